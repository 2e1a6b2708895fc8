from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Union

import plotly.graph_objects as go

from locus_browser.core.configs import DataLayerLayout, LayerAxisConfig
from locus_browser.core.exceptions import ConfigurationError
from locus_browser.core.extent import Extent, data_layer_extent
from locus_browser.core.fields import FieldSpec
from locus_browser.core.state import ELEMENT_STATUSES, PlotState

if TYPE_CHECKING:
    from locus_browser.plot.panel import Panel

logger = logging.getLogger(__name__)

Element = Union[str, Dict[str, Any]]

_NON_WORD = re.compile(r"\W")
_ID_UNSAFE = re.compile(r"[:.\[\],]")


class BaseDataLayer(ABC):
    """
    Abstract base class for all data layers.

    A data layer owns one set of records and knows how to draw them. It
    shares the plot state by reference and keeps its element statuses under
    ``state["<panel>.<layer>"]``.

    Subclasses set ``type`` (the registry key) and implement ``render``.
    """

    type: str = None

    def __init__(self, layout: DataLayerLayout, panel: "Panel"):
        self.layout = layout
        self.id = layout.id
        self.panel = panel
        self.state: PlotState = panel.state
        self.state_id = f"{panel.id}.{self.id}"
        self.data: List[Dict[str, Any]] = []
        self.initialized = False

        for status in ELEMENT_STATUSES:
            self.state.element_ids(self.state_id, status)

        self.field_specs: List[FieldSpec] = panel.plot.requester.parse_fields(layout.fields)

    @property
    def plot(self):
        return self.panel.plot

    @property
    def base_id(self) -> str:
        return f"{self.plot.id}.{self.panel.id}.{self.id}"

    # ------------------------------------------------------------------
    # Data
    # ------------------------------------------------------------------

    async def fetch_data(self) -> List[Dict[str, Any]]:
        """Resolve this layer's fields for the current state without storing the result."""
        chain = await self.plot.requester.get_data(self.state, self.field_specs)
        return chain.body

    def set_data(self, records: List[Dict[str, Any]]) -> None:
        self.data = records
        self.initialized = True

    async def re_map(self) -> List[Dict[str, Any]]:
        self.set_data(await self.fetch_data())
        return self.data

    def axis_config(self, dimension: str) -> LayerAxisConfig:
        if dimension == "x":
            return self.layout.x_axis
        if dimension == "y":
            return self.layout.y_axis
        raise ConfigurationError(f"Invalid dimension identifier: {dimension!r}")

    def get_axis_extent(self, dimension: str) -> Optional[Extent]:
        return data_layer_extent(self.axis_config(dimension), self.data, self.state, dimension)

    # ------------------------------------------------------------------
    # Element identity and status
    # ------------------------------------------------------------------

    def get_element_id(self, element: Element) -> str:
        if isinstance(element, str):
            element_id = element
        elif isinstance(element, dict):
            if self.layout.id_field not in element:
                raise ConfigurationError(
                    f"Unable to generate element ID: `{self.layout.id_field}` missing from element"
                )
            element_id = _NON_WORD.sub("", str(element[self.layout.id_field]))
        else:
            element_id = "element"
        return _ID_UNSAFE.sub("_", f"{self.base_id}-{element_id}")

    def get_element_by_id(self, element_id: str) -> Optional[Dict[str, Any]]:
        for element in self.data:
            if self.layout.id_field in element and self.get_element_id(element) == element_id:
                return element
        return None

    def status_ids(self, status: str) -> List[str]:
        return self.state.element_ids(self.state_id, status)

    def element_has_status(self, element: Element, status: str) -> bool:
        return self.get_element_id(element) in self.status_ids(status)

    def set_element_status(self, status: str, element: Element, toggle: bool = True) -> None:
        if status not in ELEMENT_STATUSES:
            raise ConfigurationError(f"Invalid status passed to set_element_status(): {status}")

        element_id = self.get_element_id(element)
        ids = self.status_ids(status)
        if toggle and element_id not in ids:
            ids.append(element_id)
        if not toggle and element_id in ids:
            ids.remove(element_id)

        self.panel.events.emit("layout_changed", self.panel)
        self.plot.events.emit("layout_changed", self.plot)

    def set_all_element_status(self, status: str, toggle: bool = True) -> None:
        if status not in ELEMENT_STATUSES:
            raise ConfigurationError(f"Invalid status passed to set_all_element_status(): {status}")

        if toggle:
            for element in self.data:
                if not self.element_has_status(element, status):
                    self.set_element_status(status, element, True)
        else:
            for element_id in list(self.status_ids(status)):
                element = self.get_element_by_id(element_id)
                if element is not None:
                    self.set_element_status(status, element, False)

    def highlight_element(self, element: Element) -> None:
        self.set_element_status("highlighted", element, True)

    def unhighlight_element(self, element: Element) -> None:
        self.set_element_status("highlighted", element, False)

    def select_element(self, element: Element) -> None:
        self.set_element_status("selected", element, True)

    def unselect_element(self, element: Element) -> None:
        self.set_element_status("selected", element, False)

    def click_element(self, element: Dict[str, Any], exclusive: bool = True) -> None:
        """
        Toggle selection on an element the user clicked.

        ``exclusive`` clears every other selection in this layer first when
        the element becomes selected (a plain click; shift-click keeps others).
        """
        selected = not self.element_has_status(element, "selected")
        if selected and exclusive:
            self.set_all_element_status("selected", False)
        self.set_element_status("selected", element, selected)
        self.panel.events.emit("element_clicked", element)
        self.plot.events.emit("element_clicked", element)

    def reapply_statuses(self) -> None:
        """Re-mark every element id remembered in state against freshly loaded data."""
        for status in ELEMENT_STATUSES:
            for element_id in list(self.status_ids(status)):
                element = self.get_element_by_id(element_id)
                if element is None:
                    logger.debug(
                        "Unable to apply state",
                        extra={"state_id": self.state_id, "status": status, "element_id": element_id},
                    )
                    continue
                self.set_element_status(status, element, True)

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    @abstractmethod
    def render(self) -> List[go.Scatter]:
        """
        Build the plotly traces for the current data, in data coordinates.
        The figure builder places them on the panel's axes.
        """
        raise NotImplementedError()

    def hover_text(self, record: Dict[str, Any]) -> str:
        fields = self.layout.style.get("hover_fields") or [self.layout.id_field]
        parts = [f"{name}: {record.get(name)}" for name in fields if record.get(name) is not None]
        return "<br>".join(parts)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.id!r}, records={len(self.data)})"
