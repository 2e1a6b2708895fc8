import math

import pytest

from locus_browser.core.scale import LinearScale, constrain
from locus_browser.core.ticks import pretty_ticks


def test_pretty_ticks_simple_range():
    assert pretty_ticks([0, 10]) == [0, 2, 4, 6, 8, 10]


def test_pretty_ticks_extends_past_both_ends():
    assert pretty_ticks([14, 67]) == [10, 20, 30, 40, 50, 60, 70]


def test_pretty_ticks_clips_low_end_only():
    assert pretty_ticks([1, 21], "low", 10) == [2, 4, 6, 8, 10, 12, 14, 16, 18, 20, 22]


def test_pretty_ticks_clips_both_ends():
    assert pretty_ticks([14, 67], "both") == [20, 30, 40, 50, 60]


def test_pretty_ticks_degenerate_range():
    assert pretty_ticks([5, 5]) == [5]


def test_pretty_ticks_unknown_clip_is_neither():
    assert pretty_ticks([14, 67], "sideways") == pretty_ticks([14, 67], "neither")


def test_pretty_ticks_small_decimals_are_rounded():
    ticks = pretty_ticks([0, 1])

    assert ticks == [0, 0.2, 0.4, 0.6, 0.8, 1.0]


def test_linear_scale_maps_and_inverts():
    scale = LinearScale([100, 200], [0, 50])

    assert scale(150) == 25
    assert scale.invert(25) == 150


def test_linear_scale_reversed_range_for_y():
    scale = LinearScale([0, 10], [200, 0])

    assert scale(0) == 200
    assert scale(10) == 0
    assert scale.invert(100) == 5


def test_linear_scale_degenerate_domain_maps_to_range_start():
    scale = LinearScale([7, 7], [10, 90])

    assert scale(1234) == 10


def test_linear_scale_ticks_stay_inside_domain():
    assert LinearScale([14, 67], [0, 1]).ticks() == [20, 30, 40, 50, 60]


@pytest.mark.parametrize(
    "value,expected",
    [
        (math.inf, 1e3),
        (-math.inf, -1e3),
        (0, 1e-3),
        (5e6, 1e3),
        (-5e-9, -1e-3),
        (2.5, 2.5),
    ],
)
def test_constrain_keeps_ratios_bounded(value, expected):
    assert constrain(value, 3) == pytest.approx(expected)
