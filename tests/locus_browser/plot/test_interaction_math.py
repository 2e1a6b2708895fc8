import pytest

from locus_browser.core.configs import Margin, Origin
from locus_browser.core.exceptions import ConfigurationError
from locus_browser.core.scale import LinearScale
from locus_browser.plot.interaction import (
    DragState,
    Interactions,
    PanelGeometry,
    ZoomState,
    base_ranges,
    shifted_ranges,
)


@pytest.fixture
def geometry():
    return PanelGeometry(
        width=700,
        height=150,
        margin=Margin(top=35, right=50, bottom=40, left=50),
        origin=Origin(0, 0),
    )


def _dragging(method, x, y, to_x, to_y, shift=False):
    interactions = Interactions()
    drag = DragState.begin(method, "p", x, y)
    drag.move_to(to_x, to_y, shift)
    interactions.start_drag(drag)
    return interactions


# ---------------------------------------------------------------------
# Gesture state
# ---------------------------------------------------------------------

def test_drag_state_axes():
    drag = DragState.begin("x_tick", "p", 10, 20)
    drag.move_to(15, 12)

    assert (drag.dragged_x, drag.dragged_y) == (5, -8)
    assert drag.is_on("x")
    assert not drag.is_on("y1")
    assert DragState.begin("y2_tick", "p", 0, 0).is_on("y2")


def test_invalid_drag_method():
    with pytest.raises(ConfigurationError):
        DragState.begin("z_tick", "p", 0, 0)


@pytest.mark.parametrize("delta, scale", [(1, 1.1), (7, 1.1), (-1, 0.9), (-0.5, 0.9)])
def test_wheel_zoom_scale(delta, scale):
    assert ZoomState.from_wheel(delta, 100).scale == scale


def test_zero_wheel_delta_is_not_a_zoom():
    assert ZoomState.from_wheel(0, 100) is None


def test_one_gesture_at_a_time():
    interactions = Interactions()
    assert interactions.start_drag(DragState.begin("background", "p", 0, 0))
    assert not interactions.start_drag(DragState.begin("background", "p", 5, 5))
    assert not interactions.start_zoom(ZoomState(1.1, 0))

    assert interactions.end_drag() is not None
    assert interactions.start_zoom(ZoomState(1.1, 0))
    assert interactions.start_zoom(ZoomState(0.9, 0))
    assert interactions.zooming.scale == 0.9
    assert not interactions.start_drag(DragState.begin("background", "p", 0, 0))
    assert interactions.end_zoom().scale == 0.9
    assert not interactions.active


# ---------------------------------------------------------------------
# Preview ranges
# ---------------------------------------------------------------------

def test_base_ranges(geometry):
    assert base_ranges(geometry, ["x", "y1"]) == {"x": [0, 700], "y1": [150, 0]}


def test_no_gesture_leaves_ranges(geometry):
    ranges = base_ranges(geometry, ["x", "y1"])

    assert shifted_ranges(ranges, Interactions(), geometry) == ranges


def test_background_drag_translates_x(geometry):
    ranges = base_ranges(geometry, ["x", "y1"])
    shifted = shifted_ranges(ranges, _dragging("background", 400, 100, 330, 140), geometry)

    assert shifted == {"x": [-70, 630], "y1": [150, 0]}
    assert ranges["x"] == [0, 700]


def test_x_tick_drag_rescales_from_left_edge(geometry):
    ranges = base_ranges(geometry, ["x"])

    shifted = shifted_ranges(ranges, _dragging("x_tick", 400, 200, 225, 200), geometry)

    # tick 350px in dragged to 175px in: the range doubles
    assert shifted["x"] == [0, 350]


def test_x_tick_drag_with_shift_translates(geometry):
    ranges = base_ranges(geometry, ["x"])

    shifted = shifted_ranges(ranges, _dragging("x_tick", 400, 200, 425, 200, shift=True), geometry)

    assert shifted["x"] == [25, 725]


def test_y_tick_drag_rescales_from_bottom_edge(geometry):
    ranges = base_ranges(geometry, ["x", "y1"])

    shifted = shifted_ranges(ranges, _dragging("y1_tick", 20, 110, 20, 135), geometry)

    assert shifted["x"] == [0, 700]
    assert shifted["y1"] == pytest.approx([150, 50])


def test_y_tick_drag_with_shift_translates(geometry):
    ranges = base_ranges(geometry, ["y1"])

    shifted = shifted_ranges(ranges, _dragging("y1_tick", 20, 110, 20, 135, shift=True), geometry)

    assert shifted["y1"] == [175, 25]


def test_y2_drag_ignored_without_y2_axis(geometry):
    ranges = base_ranges(geometry, ["x", "y1"])

    assert shifted_ranges(ranges, _dragging("y2_tick", 20, 110, 20, 135), geometry) == ranges


def _zoom(geometry, min_region_scale=None):
    interactions = Interactions()
    interactions.start_zoom(ZoomState(scale=1.1, center=geometry.margin.left + 350))
    extent = [10000, 17000]
    ranges = base_ranges(geometry, ["x"])
    shifted = shifted_ranges(
        ranges,
        interactions,
        geometry,
        x_extent=extent,
        x_scale=LinearScale(extent, ranges["x"]),
        min_region_scale=min_region_scale,
    )
    preview = LinearScale(extent, shifted["x"])
    return shifted["x"], preview.invert(0), preview.invert(700)


def test_zoom_in_about_the_cursor(geometry):
    shifted, start, end = _zoom(geometry)

    assert shifted == pytest.approx([-35, 735])
    assert end - start == pytest.approx(7000 / 1.1, abs=1)
    assert (start + end) / 2 == pytest.approx(13500, abs=1)


def test_zoom_in_stops_at_min_region_scale(geometry):
    _, start, end = _zoom(geometry, min_region_scale=6500)

    assert end - start == pytest.approx(6500, abs=1)


def test_zoom_needs_a_previous_scale(geometry):
    interactions = Interactions()
    interactions.start_zoom(ZoomState(scale=1.1, center=400))
    ranges = base_ranges(geometry, ["x"])

    assert shifted_ranges(ranges, interactions, geometry, x_extent=[0, 10]) == ranges
