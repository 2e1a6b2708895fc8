from __future__ import annotations

import copy
import logging
import random
from typing import Any, Dict, List, Optional, Tuple, Union

from locus_browser.core.configs import PanelLayout, PlotLayout
from locus_browser.core.events import EventHooks
from locus_browser.core.exceptions import ConfigurationError
from locus_browser.core.layout_registry import LayoutRegistry, default_layout_registry
from locus_browser.core.state import PlotState, validate_state
from locus_browser.core.transforms import TransformRegistry
from locus_browser.data.data_sources import DataSources
from locus_browser.data.requester import Requester
from locus_browser.layers.base_layer import BaseDataLayer
from locus_browser.layers.layer_registry import DataLayerRegistry, default_layer_registry
from . import layout_solver
from .panel import Panel

logger = logging.getLogger(__name__)

LayoutSpec = Union[PlotLayout, Dict[str, Any], str, None]
PanelSpec = Union[PanelLayout, Dict[str, Any], str]


class Plot:
    """
    Top-level orchestrator: owns the shared state, the requester, and the
    vertically stacked panels.

    Every state change goes through ``apply_state``. Each call takes a new
    generation number; a resolution that completes after a newer call has
    started is dropped without touching the panels.

    :param id: identifier, used as the prefix of element ids
    :param data_sources: namespace -> source collection used by every layer
    :param layout: a PlotLayout, its dict form, or the name of a plot template
    :param layout_registry: templates for ``layout`` and ``add_panel`` names
    :param transforms: transform registry used to parse layer fields
    :param layer_registry: data layer types available to panels
    """

    def __init__(
            self,
            id: str,
            data_sources: DataSources,
            layout: LayoutSpec = None,
            layout_registry: Optional[LayoutRegistry] = None,
            transforms: Optional[TransformRegistry] = None,
            layer_registry: Optional[DataLayerRegistry] = None,
    ):
        self.id = id
        self.layout_registry = layout_registry or default_layout_registry()
        self.layer_registry = layer_registry or default_layer_registry()
        self.layout = self._resolve_layout(layout)

        self.data_sources = data_sources
        self.state = PlotState(self.layout.state)
        self.requester = Requester(data_sources, transforms)
        self.events = EventHooks(self)

        self.panels: Dict[str, Panel] = {}
        self.panel_ids_by_y_index: List[str] = []

        self.initialized = False
        self.loading_data = False
        self.last_error: Optional[BaseException] = None
        self.generation = 0

        for panel_layout in list(self.layout.panels):
            self.add_panel(panel_layout)

        layout_solver.position_panels(self)
        self.initialized = True
        layout_solver.set_dimensions(self, self.layout.width, self.layout.height)

        logger.info(
            "Plot created",
            extra={"plot_id": self.id, "panels": list(self.panel_ids_by_y_index), "sources": data_sources.keys()},
        )

    def _resolve_layout(self, layout: LayoutSpec) -> PlotLayout:
        if layout is None:
            return PlotLayout()
        if isinstance(layout, PlotLayout):
            return layout
        if isinstance(layout, str):
            return PlotLayout.from_dict(self.layout_registry.get("plot", layout))
        if isinstance(layout, dict):
            return PlotLayout.from_dict(layout)
        raise ConfigurationError(f"Invalid plot layout: {layout!r}")

    # ------------------------------------------------------------------
    # Panels
    # ------------------------------------------------------------------

    def add_panel(self, layout: PanelSpec) -> Panel:
        """
        Create a panel and place it in the vertical order.

        ``layout.y_index`` inserts the panel at that position (negative values
        count from the end); otherwise it goes at the bottom. A panel added
        after construction has no data until the next ``refresh``.
        """
        if isinstance(layout, str):
            layout = self.layout_registry.get("panel", layout)
        if isinstance(layout, dict):
            layout = PanelLayout.from_dict(layout)
        if not isinstance(layout, PanelLayout):
            raise ConfigurationError(f"Invalid panel layout passed to add_panel(): {layout!r}")

        if not layout.id:
            layout.id = self._generate_panel_id()
        elif layout.id in self.panels:
            raise ConfigurationError(
                f"Cannot create panel with id [{layout.id}]; panel with that id already exists"
            )

        panel = Panel(layout, self)
        self.panels[panel.id] = panel

        ids = self.panel_ids_by_y_index
        if layout.y_index is not None and ids:
            if layout.y_index < 0:
                layout.y_index = max(len(ids) + layout.y_index, 0)
            ids.insert(layout.y_index, panel.id)
            self.apply_panel_y_indexes()
        else:
            ids.append(panel.id)
            layout.y_index = len(ids) - 1

        if all(existing.id != panel.id for existing in self.layout.panels):
            self.layout.panels.append(layout)

        if self.initialized:
            layout_solver.position_panels(self)
            layout_solver.set_dimensions(self, self.layout.width, self.layout.height)

        logger.debug("Panel added", extra={"plot_id": self.id, "panel_id": panel.id, "y_index": layout.y_index})
        return panel

    def remove_panel(self, panel_id: str) -> None:
        """Remove a panel, its state namespaces and every cached source response."""
        if panel_id not in self.panels:
            raise ConfigurationError(f"Unable to remove panel, ID not found: {panel_id}")

        del self.panels[panel_id]
        self.state.drop_panel(panel_id)
        self.panel_ids_by_y_index.remove(panel_id)
        self.layout.panels = [p for p in self.layout.panels if p.id != panel_id]
        self.apply_panel_y_indexes()
        self.data_sources.clear_caches()

        if self.initialized and self.panels:
            layout_solver.position_panels(self)
            layout_solver.set_dimensions(self, self.layout.width, self.layout.height)

        logger.debug("Panel removed", extra={"plot_id": self.id, "panel_id": panel_id})

    def apply_panel_y_indexes(self) -> None:
        for index, panel_id in enumerate(self.panel_ids_by_y_index):
            self.panels[panel_id].layout.y_index = index

    def panels_by_y_index(self) -> List[Panel]:
        return [self.panels[panel_id] for panel_id in self.panel_ids_by_y_index]

    def _generate_panel_id(self) -> str:
        while True:
            panel_id = f"p{random.randrange(10 ** 8)}"
            if panel_id not in self.panels:
                return panel_id

    def set_dimensions(self, width: Optional[float] = None, height: Optional[float] = None) -> None:
        layout_solver.set_dimensions(self, width, height)

    # ------------------------------------------------------------------
    # State and data
    # ------------------------------------------------------------------

    async def apply_state(self, changes: Optional[Dict[str, Any]] = None) -> bool:
        """
        Merge ``changes`` into the state, validate it, then re-fetch and
        re-render every panel.

        :returns: True when the new data was rendered, False when a newer
            ``apply_state`` superseded this one
        :raises LocusBrowserError: the first request or parse failure; the
            previously rendered data is left in place and the error is kept
            on ``last_error``
        """
        changes = changes or {}
        if not isinstance(changes, dict):
            raise ConfigurationError(f"apply_state only accepts a mapping; {type(changes).__name__} given")

        new_state = self.state.snapshot()
        new_state.update(copy.deepcopy(changes))
        new_state, _ = validate_state(new_state, self.layout.min_region_scale, self.layout.max_region_scale)
        self.state.replace(new_state)

        self.generation += 1
        generation = self.generation

        self.events.emit("data_requested", self)
        self.loading_data = True
        logger.info(
            "Applying state",
            extra={"plot_id": self.id, "generation": generation, "region": self.state.region},
        )

        try:
            results: Dict[str, Dict[str, List[Dict[str, Any]]]] = {}
            for panel_id in list(self.panel_ids_by_y_index):
                results[panel_id] = await self.panels[panel_id].fetch_data()
        except Exception as e:
            if generation != self.generation:
                logger.debug(
                    "Discarding failure of superseded request",
                    extra={"plot_id": self.id, "generation": generation, "error": str(e)},
                )
                return False
            logger.exception("Unable to load plot data", extra={"plot_id": self.id, "generation": generation})
            self.last_error = e
            self.loading_data = False
            raise

        if generation != self.generation:
            logger.info(
                "Discarding superseded response",
                extra={"plot_id": self.id, "generation": generation, "current": self.generation},
            )
            return False

        self.last_error = None
        for panel_id, panel_results in results.items():
            panel = self.panels.get(panel_id)
            if panel is not None:
                panel.apply_data(panel_results)

        self.reapply_statuses()
        self.events.emit("layout_changed", self)
        self.events.emit("data_rendered", self)
        self.loading_data = False
        return True

    async def refresh(self) -> bool:
        return await self.apply_state()

    def render(self) -> None:
        """Re-render every panel from the data already loaded."""
        for panel in self.panels_by_y_index():
            panel.render()

    def reapply_statuses(self) -> None:
        for panel in self.panels_by_y_index():
            for layer in panel.layers_by_z_index():
                layer.reapply_statuses()

    # ------------------------------------------------------------------
    # Elements
    # ------------------------------------------------------------------

    def find_element(self, element_id: str) -> Optional[Tuple[BaseDataLayer, Dict[str, Any]]]:
        """Locate the layer and record behind a rendered element id."""
        for panel in self.panels_by_y_index():
            for layer in panel.layers_by_z_index():
                element = layer.get_element_by_id(element_id)
                if element is not None:
                    return layer, element
        return None

    def click_element(self, element_id: str, exclusive: bool = True) -> bool:
        found = self.find_element(element_id)
        if found is None:
            logger.debug("Clicked element not found", extra={"plot_id": self.id, "element_id": element_id})
            return False
        layer, element = found
        layer.click_element(element, exclusive=exclusive)
        return True

    def to_dict(self) -> Dict[str, Any]:
        """Current layout with the live state folded in."""
        self.layout.state = self.state.to_dict()
        return self.layout.to_dict()

    def __repr__(self) -> str:
        return f"Plot(id={self.id!r}, panels={self.panel_ids_by_y_index!r}, region={self.state.region!r})"
