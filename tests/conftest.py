import itertools
import math

import matplotlib

matplotlib.use("Agg")

import pytest

from frame_driver import ManualScheduler
from parameters import SimulationConfig


class RecordingRenderer:
    """Renderer fake that records every call made by the frame driver."""

    def __init__(self):
        self.runs = []
        self.created = []
        self.removed = []
        self.frames = []
        self.events = []
        self._ids = itertools.count()

    def prepare(self, config):
        pass

    def begin_run(self, chain, config):
        self.runs.append((chain, config))

    def create_fill(self, point):
        handle = next(self._ids)
        self.created.append((handle, point))
        return handle

    def remove_fill(self, handle):
        self.removed.append(handle)

    def draw_frame(self, positions, trail):
        self.frames.append((positions.copy(), trail.copy()))

    # frames holds the reset frame plus one per finished tick, so during
    # tick k its length is k
    def emphasize_pivot(self):
        self.events.append(("near", len(self.frames)))

    def deemphasize_pivot(self):
        self.events.append(("away", len(self.frames)))

    @property
    def live_handles(self):
        removed = set(self.removed)
        return [handle for handle, _ in self.created if handle not in removed]


@pytest.fixture
def renderer():
    return RecordingRenderer()


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def circle_config():
    """One segment of length 10 turning a full circle every 100 ticks."""
    return SimulationConfig(
        lengths=(10.0,),
        speeds=(math.pi / 50,),
        widths=(2.0,),
        angles=(0.0,),
        colors=("#ff0000",),
        warmup_ticks=100,
        threshold=5.0,
    )
