from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional, Union

import plotly.graph_objects as go

from locus_browser.core.configs import AXIS_NAMES, ClipArea, DataLayerLayout, PanelLayout
from locus_browser.core.events import EventHooks
from locus_browser.core.exceptions import ConfigurationError
from locus_browser.core.extent import Extent, union_extents
from locus_browser.core.positions import position_int_to_string
from locus_browser.core.scale import LinearScale
from locus_browser.core.ticks import pretty_ticks
from locus_browser.layers.base_layer import BaseDataLayer
from . import layout_solver
from .debounce import Debouncer
from .interaction import DragState, Interactions, PanelGeometry, ZoomState, base_ranges, shifted_ranges

if TYPE_CHECKING:
    from .plot import Plot

logger = logging.getLogger(__name__)

ZOOM_COMMIT_DELAY_MS = 500

# Drag methods and the interaction flag that enables each
DRAG_PERMISSIONS = {
    "background": "drag_background_to_pan",
    "x_tick": "drag_x_ticks_to_scale",
    "y1_tick": "drag_y1_ticks_to_scale",
    "y2_tick": "drag_y2_ticks_to_scale",
}


def _chromosome_label(state) -> str:
    chrom = state.get("chr")
    try:
        float(chrom)
    except (TypeError, ValueError):
        return "Chromosome (Mb)"
    return f"Chromosome {chrom} (Mb)"


LABEL_FUNCTIONS: Dict[str, Callable[[Any], str]] = {
    "chromosome": _chromosome_label,
}


class Panel:
    """
    One horizontal band of the plot: a set of z-ordered data layers sharing
    an x axis and up to two y axes.

    The panel turns layer data into axis extents, scales and ticks, and runs
    the drag and wheel gestures. Gestures only preview (re-render with
    shifted ranges) until they end; the commit goes through
    ``Plot.apply_state``.
    """

    def __init__(self, layout: PanelLayout, plot: "Plot"):
        if not layout.id:
            raise ConfigurationError("Unable to create panel, layout has no id")
        self.layout = layout
        self.id = layout.id
        self.plot = plot
        self.state = plot.state
        self.state_id = self.id
        self.state.namespace(self.state_id)

        self.events = EventHooks(self)
        self.interactions = Interactions()
        self.initialized = False
        self.cliparea = ClipArea()

        self.data_layers: Dict[str, BaseDataLayer] = {}
        self.data_layer_ids_by_z_index: List[str] = []

        self.extents: Dict[str, Optional[Extent]] = {axis: None for axis in AXIS_NAMES}
        self.scales: Dict[str, Optional[LinearScale]] = {axis: None for axis in AXIS_NAMES}
        self.ticks: Dict[str, List[Any]] = {axis: [] for axis in AXIS_NAMES}
        self.traces: Dict[str, List[go.Scatter]] = {}

        self._zoom_debouncer = Debouncer(self.commit_zoom, ZOOM_COMMIT_DELAY_MS)

        self._initialize_layout()

    def _initialize_layout(self) -> None:
        if self.layout.width == 0 and self.layout.proportional_width is None:
            self.layout.proportional_width = 1
        if self.layout.height == 0 and self.layout.proportional_height is None:
            panel_count = len(self.plot.panels)
            self.layout.proportional_height = 1 / panel_count if panel_count > 0 else 1

        self.set_dimensions()
        self.set_origin()
        self.set_margin()

        for layer_layout in list(self.layout.data_layers):
            self.add_data_layer(layer_layout)

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def x_extent(self) -> Optional[Extent]:
        return self.extents["x"]

    @property
    def geometry(self) -> PanelGeometry:
        return PanelGeometry(
            width=self.cliparea.width,
            height=self.cliparea.height,
            margin=self.layout.margin,
            origin=self.layout.origin,
        )

    def layers_by_z_index(self) -> List[BaseDataLayer]:
        return [self.data_layers[layer_id] for layer_id in self.data_layer_ids_by_z_index]

    # ------------------------------------------------------------------
    # Layout
    # ------------------------------------------------------------------

    def set_dimensions(self, width: Optional[float] = None, height: Optional[float] = None) -> None:
        """
        Set a discrete pixel size (bounded below by the minimums), or with no
        arguments derive it from the proportional size and the plot size.
        """
        if width is not None and height is not None:
            if _non_negative(width) and _non_negative(height):
                self.layout.width = max(_round(width), self.layout.min_width)
                self.layout.height = max(_round(height), self.layout.min_height)
        else:
            if self.layout.proportional_width is not None:
                self.layout.width = max(
                    self.layout.proportional_width * self.plot.layout.width, self.layout.min_width,
                )
            if self.layout.proportional_height is not None:
                self.layout.height = max(
                    self.layout.proportional_height * self.plot.layout.height, self.layout.min_height,
                )
        self._update_cliparea()
        if self.initialized:
            self.render()

    def set_origin(self, x: Optional[float] = None, y: Optional[float] = None) -> None:
        if _non_negative(x):
            self.layout.origin.x = max(_round(x), 0)
        if _non_negative(y):
            self.layout.origin.y = max(_round(y), 0)
        if self.initialized:
            self.render()

    def set_margin(
            self,
            top: Optional[float] = None,
            right: Optional[float] = None,
            bottom: Optional[float] = None,
            left: Optional[float] = None,
    ) -> None:
        """Set margins; oversized margin pairs are trimmed evenly so the clip area stays non-negative."""
        margin = self.layout.margin
        for name, value in (("top", top), ("right", right), ("bottom", bottom), ("left", left)):
            if _non_negative(value):
                setattr(margin, name, max(_round(value), 0))

        if margin.top + margin.bottom > self.layout.height:
            extra = math.floor(((margin.top + margin.bottom) - self.layout.height) / 2)
            margin.top -= extra
            margin.bottom -= extra
        if margin.left + margin.right > self.layout.width:
            extra = math.floor(((margin.left + margin.right) - self.layout.width) / 2)
            margin.left -= extra
            margin.right -= extra
        for name in ("top", "right", "bottom", "left"):
            setattr(margin, name, max(getattr(margin, name), 0))

        self._update_cliparea()
        self.cliparea.origin.x = margin.left
        self.cliparea.origin.y = margin.top
        if self.initialized:
            self.render()

    def _update_cliparea(self) -> None:
        margin = self.layout.margin
        self.cliparea.width = max(self.layout.width - (margin.left + margin.right), 0)
        self.cliparea.height = max(self.layout.height - (margin.top + margin.bottom), 0)

    def move_up(self) -> None:
        index = self.layout.y_index
        if index is not None and index > 0:
            ids = self.plot.panel_ids_by_y_index
            ids[index], ids[index - 1] = ids[index - 1], self.id
            self.plot.apply_panel_y_indexes()
            layout_solver.position_panels(self.plot)

    def move_down(self) -> None:
        index = self.layout.y_index
        ids = self.plot.panel_ids_by_y_index
        if index is not None and index + 1 < len(ids):
            ids[index], ids[index + 1] = ids[index + 1], self.id
            self.plot.apply_panel_y_indexes()
            layout_solver.position_panels(self.plot)

    # ------------------------------------------------------------------
    # Data layers
    # ------------------------------------------------------------------

    def add_data_layer(self, layout: Union[DataLayerLayout, Dict[str, Any]]) -> BaseDataLayer:
        """
        Create a data layer from its layout and slot it into the z order.

        A ``z_index`` inserts the layer at that position (negative values count
        from the end); otherwise it goes on top.
        """
        if isinstance(layout, dict):
            layout = DataLayerLayout.from_dict(layout)
        if layout.id in self.data_layers:
            raise ConfigurationError(
                f"Cannot create data_layer with id [{layout.id}]; data layer with that id already exists in the panel"
            )

        layer = self.plot.layer_registry.create(layout, self)
        self.data_layers[layer.id] = layer

        order = self.data_layer_ids_by_z_index
        if layout.z_index is not None and order:
            if layout.z_index < 0:
                layout.z_index = max(len(order) + layout.z_index, 0)
            order.insert(layout.z_index, layer.id)
            for index, layer_id in enumerate(order):
                self.data_layers[layer_id].layout.z_index = index
        else:
            order.append(layer.id)
            layout.z_index = len(order) - 1

        if all(existing.id != layout.id for existing in self.layout.data_layers):
            self.layout.data_layers.append(layout)

        logger.debug("Data layer added", extra={"panel_id": self.id, "layer_id": layer.id, "type": layout.type})
        return layer

    def remove_data_layer(self, layer_id: str) -> None:
        if layer_id not in self.data_layers:
            raise ConfigurationError(f"Unable to remove data layer, ID not found: {layer_id}")
        layer = self.data_layers.pop(layer_id)
        self.state.pop(layer.state_id, None)
        self.data_layer_ids_by_z_index.remove(layer_id)
        for index, remaining_id in enumerate(self.data_layer_ids_by_z_index):
            self.data_layers[remaining_id].layout.z_index = index
        self.layout.data_layers = [d for d in self.layout.data_layers if d.id != layer_id]
        if self.initialized:
            self.render()

    def clear_selections(self) -> None:
        for layer in self.layers_by_z_index():
            layer.set_all_element_status("selected", False)

    def background_click(self) -> None:
        if self.layout.background_click == "clear_selections":
            self.clear_selections()

    # ------------------------------------------------------------------
    # Data
    # ------------------------------------------------------------------

    async def fetch_data(self) -> Dict[str, List[Dict[str, Any]]]:
        """Resolve every layer for the current state; nothing is stored."""
        self.events.emit("data_requested", self)
        results: Dict[str, List[Dict[str, Any]]] = {}
        for layer in self.layers_by_z_index():
            results[layer.id] = await layer.fetch_data()
        return results

    def apply_data(self, results: Dict[str, List[Dict[str, Any]]]) -> None:
        for layer_id, records in results.items():
            if layer_id in self.data_layers:
                self.data_layers[layer_id].set_data(records)
        self.initialized = True
        self.render()
        self.events.emit("layout_changed", self)
        self.plot.events.emit("layout_changed", self.plot)
        self.events.emit("data_rendered", self)

    async def re_map(self) -> None:
        self.apply_data(await self.fetch_data())

    # ------------------------------------------------------------------
    # Extents, scales and rendering
    # ------------------------------------------------------------------

    def generate_extents(self) -> Dict[str, Optional[Extent]]:
        extents: Dict[str, Optional[Extent]] = {axis: None for axis in AXIS_NAMES}
        for layer in self.layers_by_z_index():
            if not layer.layout.x_axis.decoupled:
                extents["x"] = union_extents([extents["x"], layer.get_axis_extent("x")])
            if not layer.layout.y_axis.decoupled:
                y_axis = f"y{layer.layout.y_axis.axis}"
                extents[y_axis] = union_extents([extents[y_axis], layer.get_axis_extent("y")])

        if self.layout.axes["x"].extent == "state" and self.state.start is not None and self.state.end is not None:
            extents["x"] = [self.state.start, self.state.end]

        self.extents = extents
        return extents

    def render(self, called_from_broadcast: bool = False) -> None:
        """
        Recompute extents, scales and ticks (previewing any gesture in
        progress) and rebuild the layer traces.

        A render that is not itself a broadcast pushes the gesture on to the
        panels linked on the gesture's axes.
        """
        self.generate_extents()
        input_scales = dict(self.scales)

        axes = [axis for axis in AXIS_NAMES if self.extents[axis]]
        ranges = base_ranges(self.geometry, axes)
        shifted = shifted_ranges(
            ranges,
            self.interactions,
            self.geometry,
            x_extent=self.extents["x"],
            x_scale=self.scales["x"],
            min_region_scale=self.plot.layout.min_region_scale,
            max_region_scale=self.plot.layout.max_region_scale,
        )

        for axis in AXIS_NAMES:
            extent = self.extents[axis]
            if not extent:
                self.scales[axis] = None
                self.ticks[axis] = []
                continue
            preview = LinearScale(extent, shifted[axis])
            extent = [preview.invert(ranges[axis][0]), preview.invert(ranges[axis][1])]
            # x is snapped to whole base pairs; y extents (-log10 p, rates) stay fractional
            if axis == "x":
                extent = [_round(value) for value in extent]
            self.extents[axis] = extent
            self.scales[axis] = LinearScale(extent, ranges[axis])
            layout_ticks = self.layout.axes[axis].ticks
            self.ticks[axis] = list(layout_ticks) if layout_ticks else pretty_ticks(extent, "both")

        self.traces = {layer.id: layer.render() for layer in self.layers_by_z_index()}

        if not called_from_broadcast:
            self._broadcast(input_scales)

    def _broadcast(self, input_scales: Dict[str, Optional[LinearScale]]) -> None:
        """Linked panels preview the same gesture from the scales this render started with."""
        drag = self.interactions.dragging
        for axis in AXIS_NAMES:
            if not self.layout.interaction.is_linked(axis):
                continue
            if not (self.interactions.zooming or (drag is not None and drag.is_on(axis))):
                continue
            for panel_id in self.plot.panel_ids_by_y_index:
                other = self.plot.panels[panel_id]
                if other is self or not other.layout.interaction.is_linked(axis):
                    continue
                other.scales[axis] = input_scales[axis]
                other.interactions = self.interactions
                other.render(called_from_broadcast=True)

    def axis_label(self, axis: str) -> Optional[str]:
        axis_layout = self.layout.axes[axis]
        if axis_layout.label_function:
            try:
                fn = LABEL_FUNCTIONS[axis_layout.label_function]
            except KeyError:
                raise ConfigurationError(f"Unknown label function: {axis_layout.label_function}") from None
            return fn(self.state)
        return axis_layout.label

    def tick_values(self, axis: str) -> List[float]:
        return [t["x"] if isinstance(t, dict) else t for t in self.ticks[axis]]

    def tick_labels(self, axis: str) -> List[str]:
        region = self.layout.axes[axis].tick_format == "region"
        labels = []
        for tick in self.ticks[axis]:
            if isinstance(tick, dict):
                labels.append(str(tick.get("text", tick.get("x"))))
            elif region:
                labels.append(position_int_to_string(tick, 6))
            else:
                labels.append(f"{tick:g}" if isinstance(tick, float) else str(tick))
        return labels

    # ------------------------------------------------------------------
    # Gestures
    # ------------------------------------------------------------------

    def can_interact(self) -> bool:
        return not (self.interactions.active or self.plot.loading_data)

    def start_drag(self, method: str, x: float, y: float) -> bool:
        """Begin a drag at container pixel ``(x, y)``. Refused when the layout disables it or a gesture is running."""
        flag = DRAG_PERMISSIONS.get(method)
        if flag is None:
            raise ConfigurationError(f"Invalid drag method: {method}")
        if not getattr(self.layout.interaction, flag) or not self.can_interact():
            return False
        return self.interactions.start_drag(DragState.begin(method, self.id, x, y))

    def drag_to(self, x: float, y: float, shift: bool = False) -> bool:
        drag = self.interactions.dragging
        if drag is None or drag.panel_id != self.id:
            return False
        drag.move_to(x, y, shift)
        self.render()
        return True

    async def end_drag(self) -> bool:
        """
        Finish the drag in progress.

        An x drag that moved pins the x axis of this panel's layers to the
        previewed extent and commits it as the new region. A y tick drag pins
        the y axis and re-renders. Returns True when new state was applied.
        """
        drag = self.interactions.dragging
        if drag is None:
            return False

        if drag.method in ("background", "x_tick"):
            if drag.dragged_x != 0 and self.extents["x"]:
                x_extent = list(self.extents["x"])
                self._override_axis("x", 1, x_extent)
                self.interactions.end_drag()
                logger.info(
                    "Drag committed",
                    extra={"panel_id": self.id, "method": drag.method, "start": x_extent[0], "end": x_extent[1]},
                )
                return await self.plot.apply_state({"start": x_extent[0], "end": x_extent[1]})
        else:
            axis_number = int(drag.method[1])
            y_extent = self.extents[f"y{axis_number}"]
            if drag.dragged_y != 0 and y_extent:
                self._override_axis("y", axis_number, list(y_extent))

        self.interactions.end_drag()
        if self.initialized:
            self.render()
        return False

    def _override_axis(self, dimension: str, axis_number: int, extent: Extent) -> None:
        for layer in self.layers_by_z_index():
            axis_config = layer.axis_config(dimension)
            if axis_config.axis == axis_number:
                axis_config.override_extent(extent)

    def wheel(self, delta: float, x: float) -> bool:
        """
        Preview a zoom step centred on container pixel ``x`` and (re)arm the
        commit timer. Ignored while dragging or loading.

        Called from inside a running event loop, the zoom commits on that
        loop once the wheel goes quiet. Synchronous callers have no loop to
        commit on: they poll ``zoom_commit_due`` and run ``commit_zoom()``
        themselves.
        """
        if not self.layout.interaction.scroll_to_zoom:
            return False
        if self.interactions.dragging is not None or self.plot.loading_data:
            return False
        zoom = ZoomState.from_wheel(delta, x)
        if zoom is None or not self.interactions.start_zoom(zoom):
            return False
        self.render()
        self._zoom_debouncer.touch()
        return True

    @property
    def zoom_commit_due(self) -> bool:
        return self._zoom_debouncer.due

    async def commit_zoom(self) -> bool:
        self._zoom_debouncer.cancel()
        if self.interactions.end_zoom() is None:
            return False
        x_extent = self.extents["x"]
        if not x_extent:
            return False
        logger.info("Zoom committed", extra={"panel_id": self.id, "start": x_extent[0], "end": x_extent[1]})
        return await self.plot.apply_state({"start": x_extent[0], "end": x_extent[1]})

    def __repr__(self) -> str:
        return f"Panel(id={self.id!r}, layers={self.data_layer_ids_by_z_index!r})"


def _non_negative(value: Optional[float]) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and value == value and value >= 0


def _round(value: float) -> int:
    return int(math.floor(value + 0.5))
