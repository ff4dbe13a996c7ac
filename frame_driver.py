"""
Frame Driver
Run the per-tick pipeline of a pendulum chain against an injectable scheduler
"""

from __future__ import annotations

import itertools
import logging
from functools import partial
from typing import Any, Callable, Dict, Optional, Protocol, Tuple

import numpy as np

from chain import Chain
from integrator import advance
from parameters import SimulationConfig
from round_detector import RoundDetector, RoundState
from trail_buffer import TrailBuffer

logger = logging.getLogger(__name__)

Point = Tuple[float, float]


class Scheduler(Protocol):
    def request_frame(self, callback: Callable[[], None]) -> Any: ...
    def cancel(self, handle: Any) -> None: ...


class Renderer(Protocol):
    """Drawing side of a run; the driver never touches drawables itself."""

    def prepare(self, config: SimulationConfig) -> None: ...
    def begin_run(self, chain: Chain, config: SimulationConfig) -> None: ...
    def create_fill(self, point: Point) -> Any: ...
    def remove_fill(self, handle: Any) -> None: ...
    def draw_frame(self, positions: np.ndarray, trail: np.ndarray) -> None: ...
    def emphasize_pivot(self) -> None: ...
    def deemphasize_pivot(self) -> None: ...


class NullRenderer:
    """Renderer that draws nothing; used for headless runs."""

    def prepare(self, config):
        pass

    def begin_run(self, chain, config):
        pass

    def create_fill(self, point):
        return None

    def remove_fill(self, handle):
        pass

    def draw_frame(self, positions, trail):
        pass

    def emphasize_pivot(self):
        pass

    def deemphasize_pivot(self):
        pass


class ManualScheduler:
    """
    Scheduler whose frames run only when ``run_pending`` is called.

    Used for headless runs, video export and tests.
    """

    def __init__(self):
        self._pending: Dict[int, Callable[[], None]] = {}
        self._ids = itertools.count(1)

    def request_frame(self, callback: Callable[[], None]) -> int:
        handle = next(self._ids)
        self._pending[handle] = callback
        return handle

    def cancel(self, handle: int) -> None:
        self._pending.pop(handle, None)

    @property
    def pending(self) -> Dict[int, Callable[[], None]]:
        return dict(self._pending)

    def run_pending(self) -> int:
        """Run the callbacks requested before this call; returns how many ran."""
        batch = sorted(self._pending.items())
        self._pending.clear()
        for _, callback in batch:
            callback()
        return len(batch)


class FrameDriver:
    """
    Owns one run: chain, round state and trail buffer.

    Every ``reset`` starts a new generation; a scheduled tick carries the
    generation it was scheduled under and does nothing if that is stale.
    """

    def __init__(self, scheduler: Scheduler, renderer: Optional[Renderer] = None):
        self.scheduler = scheduler
        self.renderer = renderer if renderer is not None else NullRenderer()
        self.config: Optional[SimulationConfig] = None
        self.chain: Optional[Chain] = None
        self.detector: Optional[RoundDetector] = None
        self.trail: Optional[TrailBuffer] = None
        self.positions: Optional[np.ndarray] = None
        self._generation = 0
        self._pending = None

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def round_state(self) -> Optional[RoundState]:
        return self.detector.state if self.detector is not None else None

    @property
    def tick_count(self) -> int:
        return self.detector.state.tick_count if self.detector is not None else 0

    @property
    def running(self) -> bool:
        return self._pending is not None

    def reset(self, config: SimulationConfig, start: bool = True) -> None:
        """
        Replace the current run with a fresh one built from ``config``.

        The new chain, detector and trail are built, and the renderer checks
        the configuration, before the old run is touched, so a rejected
        configuration leaves the old run going.
        """
        chain = config.build_chain()
        self.renderer.prepare(config)
        positions = chain.joint_positions()
        start_point = (float(positions[-1, 0]), float(positions[-1, 1]))
        detector = RoundDetector(
            start_point,
            warmup_ticks=config.warmup_ticks,
            threshold=config.threshold,
            on_near=self.renderer.emphasize_pivot,
            on_away=self.renderer.deemphasize_pivot,
        )
        trail = TrailBuffer(
            config.trail_capacity,
            create_handle=self.renderer.create_fill,
            remove_handle=self.renderer.remove_fill,
        )

        self.stop()
        self._generation += 1
        if self.trail is not None:
            self.trail.reset()

        self.config = config
        self.chain = chain
        self.detector = detector
        self.trail = trail
        self.positions = positions
        logger.info(
            "Run %d: %d segments, start point (%.2f, %.2f)",
            self._generation, len(chain), start_point[0], start_point[1],
        )

        self.renderer.begin_run(chain, config)
        self.renderer.draw_frame(positions, trail.as_array())
        if start:
            self._schedule()

    def stop(self) -> None:
        """Cancel the pending tick, if any."""
        if self._pending is not None:
            self.scheduler.cancel(self._pending)
            self._pending = None

    def start(self) -> None:
        if self.chain is None:
            raise RuntimeError("FrameDriver.start() called before reset()")
        if self._pending is None:
            self._schedule()

    def tick(self) -> np.ndarray:
        """Advance the current run by exactly one tick and return the joint positions."""
        if self.chain is None:
            raise RuntimeError("FrameDriver.tick() called before reset()")

        advance(self.chain)
        positions = self.chain.joint_positions()
        tip = (float(positions[-1, 0]), float(positions[-1, 1]))
        self.detector.update(tip)
        self.trail.append(tip)
        self.positions = positions
        self.renderer.draw_frame(positions, self.trail.as_array())
        return positions

    def _schedule(self) -> None:
        self._pending = self.scheduler.request_frame(partial(self._scheduled_tick, self._generation))

    def _scheduled_tick(self, generation: int) -> None:
        if generation != self._generation:
            logger.debug("Dropping tick from superseded run %d", generation)
            return
        self._pending = None
        self.tick()
        self._schedule()
