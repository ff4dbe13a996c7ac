"""
Simulation Parameters
Resolve a query-string style parameter source into a complete run configuration
"""

from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Mapping, Optional, Sequence, Tuple, Union
from urllib.parse import parse_qs

import numpy as np

from chain import Chain, Segment
from errors import ConfigurationError
from round_detector import DEFAULT_THRESHOLD, DEFAULT_WARMUP_TICKS
from trail_buffer import DEFAULT_CAPACITY

logger = logging.getLogger(__name__)

Source = Union[str, Mapping[str, Any], None]


def hsl_color(hue: float, saturation: float, lightness: float) -> str:
    return f"hsl({hue % 360:g}, {saturation:g}%, {lightness:g}%)"


def _finite(key: str, value: float) -> float:
    if not math.isfinite(value):
        raise ConfigurationError(f"'{key}' must be a finite number, got {value!r}")
    return value


class QueryParams:
    """
    Typed access to raw parameters with optional random defaults.

    When the ``random`` key is present, keys that are absent fall back to
    their random generator instead of their fixed default.
    """

    def __init__(self, source: Source = None, seed: Union[int, np.random.Generator, None] = None):
        if source is None:
            raw = {}
        elif isinstance(source, str):
            parsed = parse_qs(source.lstrip("?"), keep_blank_values=True)
            raw = {key: values[0] for key, values in parsed.items()}
        else:
            raw = dict(source)
        self.raw = raw
        self.is_random = "random" in raw
        self.rng = np.random.default_rng(seed)

    def __contains__(self, key: str) -> bool:
        return key in self.raw

    def uniform(self, low: float, high: float) -> float:
        return float(self.rng.uniform(low, high))

    def _fallback(self, default, random_generator):
        if self.is_random and random_generator is not None:
            return random_generator()
        return default

    def number(self, key: str, default: float, random_generator: Optional[Callable[[], float]] = None) -> float:
        if key not in self.raw:
            return self._fallback(default, random_generator)
        value = self.raw[key]
        try:
            number = float(value)
        except (TypeError, ValueError) as err:
            raise ConfigurationError(f"'{key}' is not a number: {value!r}") from err
        return _finite(key, number)

    def string(self, key: str, default: str, random_generator: Optional[Callable[[], str]] = None) -> str:
        if key not in self.raw:
            return self._fallback(default, random_generator)
        return str(self.raw[key])

    def _items(self, key: str) -> Optional[list]:
        if key not in self.raw:
            return None
        value = self.raw[key]
        if isinstance(value, str):
            text = value.strip()
            if text.startswith("[") and text.endswith("]"):
                try:
                    value = json.loads(text)
                except json.JSONDecodeError as err:
                    raise ConfigurationError(f"'{key}' is not a valid array: {value!r}") from err
            else:
                value = text.split(",")
        if not isinstance(value, (list, tuple)):
            raise ConfigurationError(f"'{key}' must be an array, got {value!r}")
        return list(value)

    def numbers(self, key: str) -> Optional[list]:
        items = self._items(key)
        if items is None:
            return None
        try:
            numbers = [float(item) for item in items]
        except (TypeError, ValueError) as err:
            raise ConfigurationError(f"'{key}' holds a non-numeric entry: {self.raw[key]!r}") from err
        return [_finite(key, number) for number in numbers]

    def strings(self, key: str) -> Optional[list]:
        items = self._items(key)
        if items is None:
            return None
        return [str(item).strip() for item in items]


def per_segment(
    key: str,
    explicit: Optional[Sequence],
    count: int,
    formula: Callable[[int], Any],
) -> tuple:
    """Explicit values when given (at least ``count`` of them), else ``formula(i)``."""
    if explicit is None:
        return tuple(formula(i) for i in range(count))
    if len(explicit) < count:
        raise ConfigurationError(
            f"'{key}' lists {len(explicit)} values but the chain has {count} segments"
        )
    return tuple(explicit[:count])


@dataclass(frozen=True)
class SimulationConfig:
    """Fully resolved parameters for one run."""

    lengths: Tuple[float, ...] = ()
    speeds: Tuple[float, ...] = ()
    widths: Tuple[float, ...] = ()
    angles: Tuple[float, ...] = ()
    colors: Tuple[str, ...] = ()
    pivot: Tuple[float, float] = (0.0, 0.0)
    line_color: str = "#ffffff"
    line_fill: str = "rgba(0,0,0,0.2)"
    line_width: float = 2.0
    trail_capacity: int = DEFAULT_CAPACITY
    warmup_ticks: int = DEFAULT_WARMUP_TICKS
    threshold: float = DEFAULT_THRESHOLD
    fill_radius: float = 20.0
    extras: Mapping[str, Any] = field(default_factory=dict, compare=False, repr=False)

    def __post_init__(self):
        for name in ("lengths", "speeds", "widths", "angles", "colors"):
            object.__setattr__(self, name, tuple(getattr(self, name)))
        object.__setattr__(self, "pivot", (float(self.pivot[0]), float(self.pivot[1])))

        count = len(self.lengths)
        for name in ("speeds", "widths", "angles", "colors"):
            if len(getattr(self, name)) != count:
                raise ConfigurationError(
                    f"{name} has {len(getattr(self, name))} entries but lengths has {count}"
                )
        if any(length < 0 for length in self.lengths):
            raise ConfigurationError(f"Segment lengths must be >= 0, got {self.lengths}")
        if any(width <= 0 for width in self.widths):
            raise ConfigurationError(f"Segment widths must be > 0, got {self.widths}")
        if int(self.trail_capacity) != self.trail_capacity or self.trail_capacity <= 0:
            raise ConfigurationError(f"Trail capacity must be a positive integer, got {self.trail_capacity}")
        object.__setattr__(self, "trail_capacity", int(self.trail_capacity))
        if int(self.warmup_ticks) != self.warmup_ticks or self.warmup_ticks < 0:
            raise ConfigurationError(f"Warm-up must be a non-negative integer, got {self.warmup_ticks}")
        object.__setattr__(self, "warmup_ticks", int(self.warmup_ticks))
        if self.threshold < 0:
            raise ConfigurationError(f"Threshold must be >= 0, got {self.threshold}")
        if self.line_width <= 0 or self.fill_radius <= 0:
            raise ConfigurationError("Line width and fill radius must be > 0")

    @property
    def segment_count(self) -> int:
        return len(self.lengths)

    def build_chain(self) -> Chain:
        segments = [
            Segment(
                length=length,
                angular_velocity=speed,
                angle=angle,
                visual_width=width,
                color_tag=color,
            )
            for length, speed, width, angle, color in zip(
                self.lengths, self.speeds, self.widths, self.angles, self.colors
            )
        ]
        return Chain(pivot=self.pivot, segments=segments)

    def reach(self) -> float:
        """Largest distance the tip can get from the pivot."""
        return float(sum(self.lengths))


KNOWN_KEYS = frozenset({
    "random", "pendulums", "saturation", "lightness",
    "lineWidth", "lineColor", "lineFill",
    "speeds", "speed", "speedGap",
    "heights", "height", "heightGap",
    "widths", "width", "widthGap",
    "angles", "angle", "angleGap",
    "colors", "color", "colorGap",
    "trail", "warmup", "threshold", "fillRadius", "pivotX", "pivotY",
})


def load_parameters(source: Source = None, seed: Union[int, np.random.Generator, None] = None) -> SimulationConfig:
    """
    Resolve ``source`` into a SimulationConfig.

    Parameters
    ----------
    source : str or mapping, optional
        ``"pendulums=4&speed=0.02"`` style string, or a mapping of the same keys.
    seed : int or numpy Generator, optional
        Seed for the random defaults used when ``random`` is set.
    """
    c = QueryParams(source, seed=seed)
    rand = c.uniform

    count = c.number("pendulums", 3, lambda: round(rand(2, 5)))
    if count < 0 or count != int(count):
        raise ConfigurationError(f"'pendulums' must be a non-negative integer, got {count}")
    count = int(count)
    saturation = c.number("saturation", 85, lambda: rand(70, 100))
    lightness = c.number("lightness", 60, lambda: rand(50, 70))

    line_width = c.number("lineWidth", 2, lambda: rand(1, 3))
    line_color = c.string("lineColor", "#ffffff", lambda: f"hsl({rand(0, 360):.0f}, 85%, 85%)")
    line_fill = c.string("lineFill", "rgba(0,0,0,0.2)", lambda: f"hsla({rand(0, 360):.0f}, 50%, 10%, 0.2)")

    speed_base = c.number("speed", 0.01, lambda: rand(-0.05, 0.05))
    speed_gap = c.number("speedGap", 0.01, lambda: rand(-0.02, 0.02))
    height_base = c.number("height", 100, lambda: rand(50, 150))
    height_gap = c.number("heightGap", -10, lambda: rand(-50, 20))
    width_base = c.number("width", 5, lambda: rand(3, 8))
    width_gap = c.number("widthGap", -0.5, lambda: rand(-1, 0.5))
    angle_base = c.number("angle", math.pi / 2, lambda: rand(-math.pi, math.pi))
    angle_gap = c.number("angleGap", math.pi / 4, lambda: rand(-math.pi / 2, math.pi / 2))
    color_base = c.number("color", 180, lambda: rand(0, 360))
    color_gap = c.number("colorGap", 30, lambda: rand(10, 60))

    speeds = per_segment("speeds", c.numbers("speeds"), count, lambda i: speed_base + i * speed_gap)
    lengths = per_segment("heights", c.numbers("heights"), count, lambda i: max(10.0, height_base + i * height_gap))
    widths = per_segment("widths", c.numbers("widths"), count, lambda i: max(1.0, width_base + i * width_gap))
    angles = per_segment("angles", c.numbers("angles"), count, lambda i: angle_base + i * angle_gap)
    colors = per_segment(
        "colors", c.strings("colors"), count,
        lambda i: hsl_color(color_base + i * color_gap, saturation, lightness),
    )

    config = SimulationConfig(
        lengths=lengths,
        speeds=speeds,
        widths=widths,
        angles=angles,
        colors=colors,
        pivot=(c.number("pivotX", 0.0), c.number("pivotY", 0.0)),
        line_color=line_color,
        line_fill=line_fill,
        line_width=line_width,
        trail_capacity=c.number("trail", DEFAULT_CAPACITY),
        warmup_ticks=c.number("warmup", DEFAULT_WARMUP_TICKS),
        threshold=c.number("threshold", DEFAULT_THRESHOLD),
        fill_radius=c.number("fillRadius", 20.0),
        extras={key: value for key, value in c.raw.items() if key not in KNOWN_KEYS},
    )
    logger.info(
        "Resolved %d segments (%s), trail capacity %d",
        config.segment_count, "random" if c.is_random else "fixed", config.trail_capacity,
    )
    if config.extras:
        logger.warning("Ignoring unknown parameters: %s", ", ".join(sorted(config.extras)))
    return config


def describe(config: SimulationConfig) -> Iterable[str]:
    """Human-readable summary lines for a configuration."""
    yield f"  Segments: {config.segment_count}"
    for i in range(config.segment_count):
        yield (
            f"    [{i}] length={config.lengths[i]:g} speed={config.speeds[i]:g} "
            f"angle={config.angles[i]:.3f} width={config.widths[i]:g} color={config.colors[i]}"
        )
    yield f"  Trail: capacity {config.trail_capacity}, color {config.line_color}, fill {config.line_fill}"
    yield f"  Round detection: warm-up {config.warmup_ticks} ticks, threshold {config.threshold:g}"
