"""
Pendulum Chain
Segment data and joint positions of a chain hanging from a fixed pivot
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import List, Tuple

import numpy as np

from errors import ConfigurationError

Point = Tuple[float, float]


@dataclass
class Segment:
    """One rigid link of the chain. ``angle`` is never wrapped."""

    length: float
    angular_velocity: float
    angle: float = 0.0
    visual_width: float = 1.0
    color_tag: str = "#ffffff"

    def __post_init__(self) -> None:
        if not math.isfinite(self.length) or self.length < 0:
            raise ConfigurationError(f"Segment length must be >= 0, got {self.length}")
        if not math.isfinite(self.visual_width) or self.visual_width <= 0:
            raise ConfigurationError(f"Segment width must be > 0, got {self.visual_width}")
        if not (math.isfinite(self.angular_velocity) and math.isfinite(self.angle)):
            raise ConfigurationError("Segment angle and angular velocity must be finite")


@dataclass
class Chain:
    """Ordered segments sharing one fixed pivot, pivot outward."""

    pivot: Point = (0.0, 0.0)
    segments: List[Segment] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.pivot = (float(self.pivot[0]), float(self.pivot[1]))
        self.segments = list(self.segments)

    def __len__(self) -> int:
        return len(self.segments)

    def joint_positions(self) -> np.ndarray:
        return compute_joint_positions(self)

    def tip(self) -> Point:
        x, y = self.joint_positions()[-1]
        return float(x), float(y)


def compute_joint_positions(chain: Chain) -> np.ndarray:
    """
    Joint coordinates of ``chain`` from its current angles.

    Returns
    -------
    positions : array, shape (len(chain) + 1, 2)
        Row 0 is the pivot, row k the far end of segment k-1.
    """
    positions = np.empty((len(chain.segments) + 1, 2))
    positions[0] = chain.pivot
    if not chain.segments:
        return positions

    lengths = np.array([s.length for s in chain.segments], dtype=float)
    angles = np.array([s.angle for s in chain.segments], dtype=float)

    # Accumulate link by link so joint k only sees segments 0..k-1
    x, y = chain.pivot
    dx = lengths * np.cos(angles)
    dy = lengths * np.sin(angles)
    for k in range(len(chain.segments)):
        x += dx[k]
        y += dy[k]
        positions[k + 1, 0] = x
        positions[k + 1, 1] = y
    return positions

