import numpy as np
import pytest

from simulator import simulate_chain


def test_trajectory_shape_and_round_ticks(circle_config):
    t, x, y, near_ticks = simulate_chain(circle_config, ticks=250)
    assert t.shape == (250,)
    assert x.shape == y.shape == (250, 2)
    np.testing.assert_array_equal(x[:, 0], 0.0)
    assert x[49, 1] == pytest.approx(-10.0)
    assert y[49, 1] == pytest.approx(0.0, abs=1e-9)
    assert near_ticks == [101, 192]


def test_trajectory_export(tmp_path, circle_config):
    output = tmp_path / "run.npz"
    t, x, y, near_ticks = simulate_chain(circle_config, ticks=120, output=output)
    data = np.load(output)
    np.testing.assert_array_equal(data["x"], x)
    np.testing.assert_array_equal(data["y"], y)
    assert int(data["N"]) == 1
    assert list(data["near_ticks"]) == near_ticks == [101]


def test_negative_ticks_rejected(circle_config):
    with pytest.raises(ValueError):
        simulate_chain(circle_config, ticks=-1)
