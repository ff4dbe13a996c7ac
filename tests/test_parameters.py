import math

import pytest

from errors import ConfigurationError
from parameters import SimulationConfig, describe, hsl_color, load_parameters


def test_defaults_follow_base_and_gap_formulas():
    config = load_parameters()
    assert config.segment_count == 3
    assert config.lengths == (100.0, 90.0, 80.0)
    assert config.speeds == pytest.approx((0.01, 0.02, 0.03))
    assert config.widths == (5.0, 4.5, 4.0)
    assert config.angles == pytest.approx((math.pi / 2, 3 * math.pi / 4, math.pi))
    assert config.colors == ("hsl(180, 85%, 60%)", "hsl(210, 85%, 60%)", "hsl(240, 85%, 60%)")
    assert config.line_color == "#ffffff"
    assert config.line_fill == "rgba(0,0,0,0.2)"
    assert config.trail_capacity == 2000
    assert config.warmup_ticks == 100
    assert config.threshold == 5.0
    assert config.pivot == (0.0, 0.0)


def test_formula_floors_length_and_width():
    config = load_parameters("height=20&heightGap=-10&width=1.5&widthGap=-1")
    assert config.lengths == (20.0, 10.0, 10.0)
    assert config.widths == (1.5, 1.0, 1.0)


def test_explicit_arrays_win_over_formulas():
    config = load_parameters("?pendulums=2&heights=50,60&speeds=[0.1,0.2]&colors=red,blue")
    assert config.lengths == (50.0, 60.0)
    assert config.speeds == (0.1, 0.2)
    assert config.colors == ("red", "blue")


def test_longer_arrays_are_truncated():
    config = load_parameters("pendulums=1&angles=0.5,1,2")
    assert config.angles == (0.5,)


def test_short_array_is_a_configuration_error():
    with pytest.raises(ConfigurationError, match="heights"):
        load_parameters("pendulums=3&heights=50,60")


def test_mapping_source():
    config = load_parameters({"pendulums": 2, "heights": [30, 40], "trail": 10})
    assert config.lengths == (30.0, 40.0)
    assert config.trail_capacity == 10


def test_zero_pendulums():
    config = load_parameters("pendulums=0")
    assert config.segment_count == 0
    assert len(config.build_chain()) == 0


@pytest.mark.parametrize("query", [
    "trail=0",
    "trail=-5",
    "trail=2.5",
    "pendulums=-1",
    "pendulums=2.5",
    "pendulums=1&heights=-5",
    "pendulums=1&widths=0",
    "speed=abc",
    "speed=nan",
    "speeds=[1,",
    "speeds=[1,null]",
    "warmup=-1",
    "threshold=-2",
])
def test_invalid_parameters_are_rejected(query):
    with pytest.raises(ConfigurationError):
        load_parameters(query)


def test_random_mode_is_reproducible_with_a_seed():
    first = load_parameters("random", seed=42)
    second = load_parameters("random", seed=42)
    assert first == second
    assert 2 <= first.segment_count <= 5
    assert all(length >= 10 for length in first.lengths)
    assert all(width >= 1 for width in first.widths)


def test_random_mode_keeps_explicit_values():
    config = load_parameters("random&pendulums=4&lineColor=%23123456", seed=1)
    assert config.segment_count == 4
    assert config.line_color == "#123456"


def test_unknown_keys_are_kept_aside():
    config = load_parameters("pendulums=1&sparkle=yes")
    assert config.extras == {"sparkle": "yes"}


def test_config_rejects_mismatched_segment_fields():
    with pytest.raises(ConfigurationError):
        SimulationConfig(lengths=(1.0, 2.0), speeds=(0.1,), widths=(1.0, 1.0),
                         angles=(0.0, 0.0), colors=("a", "b"))


def test_build_chain_and_pivot():
    config = load_parameters("pendulums=2&pivotX=1&pivotY=2")
    chain = config.build_chain()
    assert chain.pivot == (1.0, 2.0)
    assert [s.length for s in chain.segments] == [100.0, 90.0]
    assert [s.color_tag for s in chain.segments] == list(config.colors)
    assert config.reach() == 190.0


def test_hsl_color_wraps_hue():
    assert hsl_color(390, 85, 60) == "hsl(30, 85%, 60%)"


def test_describe_lists_every_segment():
    lines = list(describe(load_parameters("pendulums=2")))
    assert lines[0] == "  Segments: 2"
    assert len(lines) == 5
