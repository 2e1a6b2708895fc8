"""
Drag and zoom gesture state, and the live-preview ranges derived from it.

Coordinates are pixels relative to the panel container: ``x`` grows to the
right from the panel's left edge and ``y`` grows downward from its top edge.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from locus_browser.core.configs import Margin, Origin
from locus_browser.core.exceptions import ConfigurationError
from locus_browser.core.scale import LinearScale, constrain

DRAG_METHODS = ("background", "x_tick", "y1_tick", "y2_tick")

Ranges = Dict[str, List[float]]


@dataclass
class DragState:
    method: str
    panel_id: str
    start_x: float
    start_y: float
    dragged_x: float = 0
    dragged_y: float = 0
    on_x: bool = False
    on_y1: bool = False
    on_y2: bool = False
    # shift held on the last move: tick drags translate instead of rescaling
    shift: bool = False

    @classmethod
    def begin(cls, method: str, panel_id: str, x: float, y: float) -> DragState:
        if method not in DRAG_METHODS:
            raise ConfigurationError(f"Invalid drag method: {method}")
        return cls(
            method=method,
            panel_id=panel_id,
            start_x=x,
            start_y=y,
            on_x=method in ("background", "x_tick"),
            on_y1=method == "y1_tick",
            on_y2=method == "y2_tick",
        )

    def move_to(self, x: float, y: float, shift: bool = False) -> None:
        self.dragged_x = x - self.start_x
        self.dragged_y = y - self.start_y
        self.shift = shift

    def is_on(self, axis: str) -> bool:
        return bool(getattr(self, f"on_{axis}", False))


@dataclass
class ZoomState:
    scale: float
    center: float

    @classmethod
    def from_wheel(cls, delta: float, center: float) -> Optional[ZoomState]:
        """Wheel deltas are clamped to [-1, 1]; a zero delta is not a zoom."""
        delta = max(-1.0, min(1.0, delta))
        if delta == 0:
            return None
        return cls(scale=0.9 if delta < 1 else 1.1, center=center)


class Interactions:
    """
    The gesture in progress on a panel, if any.

    At most one of ``dragging`` and ``zooming`` is set. Linked panels share
    one instance while a gesture is being broadcast to them.
    """

    def __init__(self):
        self.dragging: Optional[DragState] = None
        self.zooming: Optional[ZoomState] = None

    @property
    def active(self) -> bool:
        return self.dragging is not None or self.zooming is not None

    def start_drag(self, drag: DragState) -> bool:
        if self.active:
            return False
        self.dragging = drag
        return True

    def end_drag(self) -> Optional[DragState]:
        drag, self.dragging = self.dragging, None
        return drag

    def start_zoom(self, zoom: ZoomState) -> bool:
        """A new wheel tick replaces a running zoom; a drag in progress blocks it."""
        if self.dragging is not None:
            return False
        self.zooming = zoom
        return True

    def end_zoom(self) -> Optional[ZoomState]:
        zoom, self.zooming = self.zooming, None
        return zoom

    def __repr__(self) -> str:
        return f"Interactions(dragging={self.dragging!r}, zooming={self.zooming!r})"


@dataclass
class PanelGeometry:
    """The pieces of a panel's layout the gesture math reads."""

    width: float
    height: float
    margin: Margin
    origin: Origin


# ---------------------------------------------------------------------
# Ranges
# ---------------------------------------------------------------------


def base_ranges(geometry: PanelGeometry, axes: Sequence[str]) -> Ranges:
    """Unshifted pixel ranges: x left to right, y axes bottom to top."""
    ranges: Ranges = {}
    for axis in axes:
        ranges[axis] = [0, geometry.width] if axis == "x" else [geometry.height, 0]
    return ranges


def shifted_ranges(
        ranges: Ranges,
        interactions: Interactions,
        geometry: PanelGeometry,
        x_extent: Optional[Sequence[float]] = None,
        x_scale: Optional[LinearScale] = None,
        min_region_scale: Optional[int] = None,
        max_region_scale: Optional[int] = None,
) -> Ranges:
    """
    Pixel ranges the current extents should be stretched onto to preview a gesture.

    Inverting the returned ranges through a scale built on them yields the
    extents the gesture would commit.

    :param ranges: output of ``base_ranges``, not modified
    :param x_extent: the panel's current x extent (needed for zoom)
    :param x_scale: the panel's scale from the previous render (needed for zoom)
    :param min_region_scale: smallest region a zoom may reach
    :param max_region_scale: largest region a zoom may reach
    """
    shifted: Ranges = {axis: list(rng) for axis, rng in ranges.items()}
    width, height = geometry.width, geometry.height
    zoom, drag = interactions.zooming, interactions.dragging

    if zoom is not None:
        if "x" in shifted and x_scale is not None and x_extent is not None:
            shifted["x"] = _zoomed_x_range(
                shifted["x"], zoom, geometry, x_extent, x_scale, min_region_scale, max_region_scale,
            )
        return shifted

    if drag is None:
        return shifted

    if drag.method == "background" and "x" in shifted:
        shifted["x"] = [drag.dragged_x, width + drag.dragged_x]
    elif drag.method == "x_tick" and "x" in shifted:
        if drag.shift:
            shifted["x"] = [drag.dragged_x, width + drag.dragged_x]
        else:
            anchor = drag.start_x - geometry.margin.left - geometry.origin.x
            scalar = constrain(_ratio(anchor, anchor + drag.dragged_x), 3)
            shifted["x"] = [0, max(width * (1 / scalar), 1)]
    elif drag.method in ("y1_tick", "y2_tick"):
        axis = drag.method[:2]
        if axis in shifted:
            if drag.shift:
                shifted[axis] = [height + drag.dragged_y, drag.dragged_y]
            else:
                anchor = height - (drag.start_y - geometry.margin.top - geometry.origin.y)
                scalar = constrain(_ratio(anchor, anchor - drag.dragged_y), 3)
                shifted[axis] = [height, height - (height * (1 / scalar))]

    return shifted


def _zoomed_x_range(
        x_range: List[float],
        zoom: ZoomState,
        geometry: PanelGeometry,
        x_extent: Sequence[float],
        x_scale: LinearScale,
        min_region_scale: Optional[int],
        max_region_scale: Optional[int],
) -> List[float]:
    current_extent_size = abs(x_extent[1] - x_extent[0])
    current_scaled_size = _js_round(x_scale.invert(x_range[1])) - _js_round(x_scale.invert(x_range[0]))
    if current_scaled_size == 0:
        return x_range

    zoom_factor = zoom.scale
    potential_size = math.floor(current_scaled_size * (1 / zoom_factor))
    if zoom_factor < 1 and max_region_scale is not None:
        zoom_factor = 1 / (min(potential_size, max_region_scale) / current_scaled_size)
    elif zoom_factor > 1 and min_region_scale is not None:
        zoom_factor = 1 / (max(potential_size, min_region_scale) / current_scaled_size)

    new_size = math.floor(current_extent_size * zoom_factor)
    anchor = zoom.center - geometry.margin.left - geometry.origin.x
    offset_ratio = anchor / geometry.width if geometry.width else 0
    new_start = max(
        math.floor(x_scale.invert(x_range[0]) - (new_size - current_scaled_size) * offset_ratio),
        1,
    )
    return [x_scale(new_start), x_scale(new_start + new_size)]


def _ratio(numerator: float, denominator: float) -> float:
    if denominator == 0:
        if numerator == 0:
            return 0.0
        return math.copysign(math.inf, numerator)
    return numerator / denominator


def _js_round(value: float) -> int:
    return int(math.floor(value + 0.5))
