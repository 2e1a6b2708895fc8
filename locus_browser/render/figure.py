"""
Plotly figure assembly.

One subplot row per panel, top to bottom in y-index order, each row sized
by the panel's proportional height. A panel's secondary y axis maps onto
the row's plotly secondary y axis.
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Dict, Optional

import plotly.graph_objects as go
from plotly.subplots import make_subplots

if TYPE_CHECKING:
    from locus_browser.plot.panel import Panel
    from locus_browser.plot.plot import Plot

logger = logging.getLogger(__name__)


def empty_figure(message: str) -> go.Figure:
    """
    Standardised placeholder figure: a title and no axes.
    """
    fig = go.Figure()
    fig.update_layout(
        title=message,
        xaxis={"visible": False},
        yaxis={"visible": False},
    )
    return fig


def build_figure(plot: "Plot") -> go.Figure:
    panels = plot.panels_by_y_index()
    if not panels:
        return empty_figure("No panels to show")

    row_heights = [p.layout.proportional_height or 1 / len(panels) for p in panels]
    fig = make_subplots(
        rows=len(panels),
        cols=1,
        row_heights=row_heights,
        vertical_spacing=0.04 if len(panels) > 1 else 0,
        specs=[[{"secondary_y": True}] for _ in panels],
        subplot_titles=[p.layout.title or "" for p in panels],
    )

    for row, panel in enumerate(panels, start=1):
        for layer in panel.layers_by_z_index():
            secondary = layer.layout.y_axis.axis == 2
            for trace in panel.traces.get(layer.id, []):
                fig.add_trace(trace, row=row, col=1, secondary_y=secondary)
        _style_axes(fig, panel, row)

    layout: Dict[str, Any] = {
        "height": round(plot.layout.height),
        "margin": dict(l=50, r=50, t=40, b=40),
        "showlegend": False,
        "dragmode": "pan",
        "hovermode": "closest",
    }
    if not plot.layout.responsive_resize:
        layout["width"] = round(plot.layout.width)
    fig.update_layout(**layout)

    logger.debug(
        "Figure built",
        extra={"plot_id": plot.id, "panels": len(panels), "traces": len(fig.data)},
    )
    return fig


def _style_axes(fig: go.Figure, panel: "Panel", row: int) -> None:
    x_axis = _axis_props(panel, "x")
    fig.update_xaxes(row=row, col=1, **x_axis)
    fig.update_yaxes(row=row, col=1, secondary_y=False, **_axis_props(panel, "y1"))
    fig.update_yaxes(row=row, col=1, secondary_y=True, showgrid=False, **_axis_props(panel, "y2"))


def _axis_props(panel: "Panel", axis: str) -> Dict[str, Any]:
    extent: Optional[list] = panel.extents.get(axis)
    visible = panel.layout.axes[axis].render and extent is not None
    props: Dict[str, Any] = {"visible": visible, "zeroline": False}
    if extent is not None:
        props["range"] = list(extent)
    if visible:
        props["tickmode"] = "array"
        props["tickvals"] = panel.tick_values(axis)
        props["ticktext"] = panel.tick_labels(axis)
        label = panel.axis_label(axis)
        if label:
            props["title_text"] = label
    # y axes only move through drag commits on their ticks
    if axis != "x":
        props["fixedrange"] = True
    return props
