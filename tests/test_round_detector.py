import pytest

from errors import ConfigurationError
from round_detector import RoundDetector, RoundPhase, RoundState


def _detector(**kwargs):
    events = []
    detector = RoundDetector(
        (0.0, 0.0),
        on_near=lambda: events.append("near"),
        on_away=lambda: events.append("away"),
        **kwargs,
    )
    return detector, events


@pytest.mark.parametrize("m", [1, 2, 7, 50])
def test_each_crossing_fires_once(m):
    detector, events = _detector(warmup_ticks=0, threshold=5.0)
    trajectory = [(20.0, 0.0)] * 3 + [(1.0, 1.0)] * m + [(20.0, 0.0)] * 4
    changes = [detector.update(point) for point in trajectory]

    assert events == ["near", "away"]
    assert changes.count(True) == 2
    assert changes[3] is True
    assert changes[3 + m] is True
    assert detector.phase is RoundPhase.AWAY


def test_nothing_fires_during_warmup():
    detector, events = _detector(warmup_ticks=100, threshold=5.0)
    for _ in range(100):
        assert detector.update((0.0, 0.0)) is False
    assert events == []
    assert detector.state.tick_count == 100

    assert detector.update((0.0, 0.0)) is True
    assert events == ["near"]
    assert detector.state.is_near_start


def test_threshold_is_strict():
    detector, events = _detector(warmup_ticks=0, threshold=5.0)
    detector.update((5.0, 0.0))
    assert events == []
    detector.update((3.0, 3.9))
    assert events == ["near"]


def test_start_point_is_fixed_once_captured():
    state = RoundState(start_point=(1.0, 2.0))
    state.is_near_start = True
    state.tick_count = 4
    with pytest.raises(AttributeError):
        state.start_point = (0.0, 0.0)


def test_callbacks_are_optional():
    detector = RoundDetector((0.0, 0.0), warmup_ticks=0)
    assert detector.update((0.0, 0.0)) is True
    assert detector.update((100.0, 0.0)) is True
    assert detector.distance((3.0, 4.0)) == pytest.approx(5.0)


@pytest.mark.parametrize("kwargs", [dict(warmup_ticks=-1), dict(threshold=-0.5)])
def test_invalid_settings_are_rejected(kwargs):
    with pytest.raises(ConfigurationError):
        RoundDetector((0.0, 0.0), **kwargs)
