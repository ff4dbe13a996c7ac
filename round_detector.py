"""
Round Detector
Edge-triggered tracking of the tip returning to its starting point
"""

import enum
import logging
import math
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

from errors import ConfigurationError

logger = logging.getLogger(__name__)

Point = Tuple[float, float]

DEFAULT_WARMUP_TICKS = 100
DEFAULT_THRESHOLD = 5.0


class RoundPhase(enum.Enum):
    AWAY = "away"
    NEAR = "near"


@dataclass
class RoundState:
    start_point: Point
    is_near_start: bool = False
    tick_count: int = 0

    def __setattr__(self, name, value):
        if name == "start_point" and "start_point" in self.__dict__:
            raise AttributeError("start_point is fixed once captured")
        super().__setattr__(name, value)


class RoundDetector:
    """
    Two-state machine (AWAY -> NEAR -> AWAY ...) fed once per tick.

    Parameters
    ----------
    start_point : (float, float)
        Tip position captured before the first tick.
    warmup_ticks : int
        Detection stays off until the tick count exceeds this value.
    threshold : float
        Distance below which the tip counts as near the start.
    on_near, on_away : callable, optional
        Invoked once per transition into the corresponding state.
    """

    def __init__(
        self,
        start_point: Point,
        warmup_ticks: int = DEFAULT_WARMUP_TICKS,
        threshold: float = DEFAULT_THRESHOLD,
        on_near: Optional[Callable[[], None]] = None,
        on_away: Optional[Callable[[], None]] = None,
    ):
        if warmup_ticks < 0:
            raise ConfigurationError(f"warm-up must be >= 0 ticks, got {warmup_ticks}")
        if not threshold >= 0:
            raise ConfigurationError(f"threshold must be >= 0, got {threshold}")
        self.state = RoundState(start_point=(float(start_point[0]), float(start_point[1])))
        self.warmup_ticks = int(warmup_ticks)
        self.threshold = float(threshold)
        self._on_near = on_near
        self._on_away = on_away

    @property
    def phase(self) -> RoundPhase:
        return RoundPhase.NEAR if self.state.is_near_start else RoundPhase.AWAY

    def distance(self, tip: Point) -> float:
        sx, sy = self.state.start_point
        return math.hypot(tip[0] - sx, tip[1] - sy)

    def update(self, tip: Point) -> bool:
        """Count one tick and apply the transition rule. Returns True on a state change."""
        self.state.tick_count += 1
        if self.state.tick_count <= self.warmup_ticks:
            return False

        near = self.distance(tip) < self.threshold
        if near == self.state.is_near_start:
            return False

        self.state.is_near_start = near
        if near:
            logger.debug("Tip back at start after %d ticks", self.state.tick_count)
            if self._on_near is not None:
                self._on_near()
        else:
            logger.debug("Tip left start at tick %d", self.state.tick_count)
            if self._on_away is not None:
                self._on_away()
        return True
