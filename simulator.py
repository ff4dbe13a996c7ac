"""
Headless Pendulum Run
Tick a chain without drawing and collect the joint trajectory
"""

import time
from pathlib import Path
from typing import List, Optional, Tuple, Union

import numpy as np

from frame_driver import FrameDriver, ManualScheduler, NullRenderer
from parameters import SimulationConfig


class _NearRecorder(NullRenderer):
    """Null renderer that remembers the ticks at which the pivot was emphasized."""

    def __init__(self):
        self.driver: Optional[FrameDriver] = None
        self.near_ticks: List[int] = []

    def emphasize_pivot(self):
        self.near_ticks.append(self.driver.tick_count)


def simulate_chain(
    config: SimulationConfig,
    ticks: int = 1000,
    output: Union[str, Path, None] = None,
    fps: int = 60,
) -> Tuple[np.ndarray, np.ndarray, np.ndarray, List[int]]:
    """
    Run ``ticks`` ticks of the chain described by ``config``.

    Parameters
    ----------
    config : SimulationConfig
        Resolved run parameters.
    ticks : int
        Number of ticks to run.
    output : str or Path, optional
        When given, the trajectory is written there with ``numpy.savez``.
    fps : int
        Tick rate used to build the time axis.

    Returns
    -------
    t : array
        Time of each tick
    x : array
        X positions of all joints (shape: ticks x segments+1)
    y : array
        Y positions of all joints (shape: ticks x segments+1)
    near_ticks : list of int
        Ticks at which the tip came back near its start point
    """
    if ticks < 0:
        raise ValueError(f"ticks must be >= 0, got {ticks}")

    recorder = _NearRecorder()
    scheduler = ManualScheduler()
    driver = FrameDriver(scheduler, recorder)
    recorder.driver = driver
    driver.reset(config)

    N = config.segment_count
    t = np.arange(1, ticks + 1) / fps
    x = np.zeros((ticks, N + 1))
    y = np.zeros((ticks, N + 1))

    tic = time.time()
    for frame in range(ticks):
        scheduler.run_pending()
        x[frame] = driver.positions[:, 0]
        y[frame] = driver.positions[:, 1]
        if (frame + 1) % 1000 == 0 or frame + 1 == ticks:
            print(f"Progress: {frame + 1}/{ticks}")
    driver.stop()
    toc = time.time()
    print(f"Simulation completed in {toc - tic:.1f} seconds")

    if output is not None:
        np.savez(output, t=t, x=x, y=y, N=N, near_ticks=np.array(recorder.near_ticks, dtype=int))
        print(f"Results saved to {output}")

    return t, x, y, recorder.near_ticks
