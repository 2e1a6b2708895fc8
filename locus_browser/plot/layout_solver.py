"""
Vertical panel packing.

Panels are stacked top to bottom in y-index order and share the plot height
according to their proportional heights, which are kept summing to 1. Panel
minimum sizes take precedence over proportional sizes.
"""
from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING, Optional

from locus_browser.core.exceptions import ConfigurationError

if TYPE_CHECKING:
    from .plot import Plot

logger = logging.getLogger(__name__)


def sum_proportional(plot: "Plot", dimension: str) -> float:
    """
    Sum of the panels' proportional widths or heights.

    A panel with no (or a zero) proportional size is first given an equal
    share, ``1 / panel count``.
    """
    if dimension not in ("width", "height"):
        raise ConfigurationError(f"Bad dimension value passed to sum_proportional: {dimension!r}")
    attr = f"proportional_{dimension}"
    total = 0.0
    for panel in plot.panels.values():
        if not getattr(panel.layout, attr):
            setattr(panel.layout, attr, 1 / len(plot.panels))
        total += getattr(panel.layout, attr)
    return total


def position_panels(plot: "Plot") -> None:
    """Normalise proportional heights, stack origins by y-index, then resize everything."""
    for panel in plot.panels.values():
        if panel.layout.proportional_height is None:
            panel.layout.proportional_height = panel.layout.height / plot.layout.height
        if panel.layout.proportional_width is None:
            panel.layout.proportional_width = 1

    total = sum_proportional(plot, "height")
    if not total:
        return
    adjustment = 1 / total
    for panel in plot.panels.values():
        panel.layout.proportional_height *= adjustment

    y_offset = 0.0
    for panel_id in plot.panel_ids_by_y_index:
        panel = plot.panels[panel_id]
        panel.set_origin(0, y_offset)
        panel.layout.proportional_origin.x = 0
        y_offset += panel.layout.height
    calculated_height = y_offset
    for panel_id in plot.panel_ids_by_y_index:
        panel = plot.panels[panel_id]
        panel.layout.proportional_origin.y = panel.layout.origin.y / calculated_height if calculated_height else 0

    set_dimensions(plot)

    for panel_id in plot.panel_ids_by_y_index:
        panel = plot.panels[panel_id]
        panel.set_dimensions(
            plot.layout.width * panel.layout.proportional_width,
            plot.layout.height * panel.layout.proportional_height,
        )


def set_dimensions(plot: "Plot", width: Optional[float] = None, height: Optional[float] = None) -> None:
    """
    Resize the plot.

    With a discrete ``width`` and ``height`` the plot takes those values
    (bounded below by the panel minimums) and the panels are resized and
    re-stacked to fill it. Without them the plot is sized to fit its panels
    as they are.
    """
    layout = plot.layout

    min_width = 1.0
    min_height = 1.0
    for panel in plot.panels.values():
        min_width = max(min_width, panel.layout.min_width)
        if panel.layout.proportional_height:
            min_height = max(min_height, panel.layout.min_height / panel.layout.proportional_height)
    layout.min_width = min_width
    layout.min_height = min_height

    if _valid_size(width) and _valid_size(height):
        layout.width = max(_round(width), layout.min_width)
        layout.height = max(_round(height), layout.min_height)
        if layout.responsive_resize:
            layout.height = layout.width / layout.aspect_ratio
            if layout.height < layout.min_height:
                layout.height = layout.min_height
                layout.width = layout.height * layout.aspect_ratio

        y_offset = 0.0
        for panel_id in plot.panel_ids_by_y_index:
            panel = plot.panels[panel_id]
            panel_height = panel.layout.proportional_height * layout.height
            panel.set_dimensions(layout.width, panel_height)
            panel.set_origin(0, y_offset)
            panel.layout.proportional_origin.x = 0
            panel.layout.proportional_origin.y = y_offset / layout.height
            y_offset += panel_height

    elif plot.panels:
        layout.width = max(max(p.layout.width for p in plot.panels.values()), layout.min_width)
        layout.height = max(sum(p.layout.height for p in plot.panels.values()), layout.min_height)

    layout.aspect_ratio = layout.width / layout.height
    logger.debug(
        "Plot dimensions set",
        extra={"plot_id": plot.id, "width": layout.width, "height": layout.height},
    )
    plot.events.emit("layout_changed", plot)


def _valid_size(value: Optional[float]) -> bool:
    return value is not None and value == value and value >= 0


def _round(value: float) -> int:
    return int(math.floor(value + 0.5))
