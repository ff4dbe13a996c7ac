"""
Trail Buffer
Sliding window of recent tip positions paired with their drawn handles
"""

from collections import deque
from typing import Any, Callable, Deque, List, Optional, Tuple

import numpy as np

from errors import ConfigurationError

Point = Tuple[float, float]

DEFAULT_CAPACITY = 2000


def _no_handle(point: Point) -> None:
    return None


def _no_removal(handle: Any) -> None:
    pass


class TrailBuffer:
    """
    FIFO of at most ``capacity`` (point, handle) pairs.

    ``create_handle`` is called once per appended point; ``remove_handle`` once
    for every pair that leaves the buffer, by eviction or by ``reset``.
    """

    def __init__(
        self,
        capacity: int = DEFAULT_CAPACITY,
        create_handle: Optional[Callable[[Point], Any]] = None,
        remove_handle: Optional[Callable[[Any], None]] = None,
    ):
        if isinstance(capacity, bool) or not isinstance(capacity, (int, np.integer)) or capacity <= 0:
            raise ConfigurationError(f"Trail capacity must be a positive integer, got {capacity!r}")
        self.capacity = int(capacity)
        self._create_handle = create_handle or _no_handle
        self._remove_handle = remove_handle or _no_removal
        # A single deque of pairs keeps points and handles in lockstep
        self._entries: Deque[Tuple[Point, Any]] = deque()

    def __len__(self) -> int:
        return len(self._entries)

    def append(self, point: Point) -> Optional[Tuple[Point, Any]]:
        """Record ``point``; return the evicted (point, handle) pair, if any."""
        point = (float(point[0]), float(point[1]))
        handle = self._create_handle(point)
        self._entries.append((point, handle))
        if len(self._entries) > self.capacity:
            evicted = self._entries.popleft()
            self._remove_handle(evicted[1])
            return evicted
        return None

    def points(self) -> List[Point]:
        return [point for point, _ in self._entries]

    def handles(self) -> List[Any]:
        return [handle for _, handle in self._entries]

    def as_array(self) -> np.ndarray:
        """Points as an array of shape (len, 2) for polyline drawing."""
        if not self._entries:
            return np.empty((0, 2))
        return np.array(self.points(), dtype=float)

    def reset(self) -> None:
        """Drop every entry, issuing a removal for each held handle."""
        while self._entries:
            _, handle = self._entries.popleft()
            self._remove_handle(handle)
