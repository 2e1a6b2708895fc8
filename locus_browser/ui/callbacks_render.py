from __future__ import annotations

import asyncio
import logging
import re
from typing import TYPE_CHECKING, Any, Dict, Optional, Tuple

import dash
import plotly.graph_objects as go
from dash import Input, Output, State

from locus_browser.core.positions import parse_position_query
from locus_browser.render.figure import build_figure
from .ids import IDs
from .layout import region_text, status_text

if TYPE_CHECKING:
    from locus_browser.plot.plot import Plot

logger = logging.getLogger(__name__)

# Half-width of the window opened around a single-position query
POSITION_HALF_WINDOW = 100_000

_RANGE_PAIR = re.compile(r"^(xaxis\d*)\.range$")
_RANGE_BOUND = re.compile(r"^(xaxis\d*)\.range\[([01])\]$")


# -----------------------------------------------------------------------------
# Helper: Message/Error Figures
# -----------------------------------------------------------------------------
def _message_figure(title: str, details: Optional[str] = None) -> go.Figure:
    fig = go.Figure()
    text = title if details is None else f"{title}<br><br>{details}"
    fig.add_annotation(
        text=text,
        showarrow=False,
        xref="paper",
        yref="paper",
        x=0.5,
        y=0.5,
    )
    fig.update_xaxes(visible=False)
    fig.update_yaxes(visible=False)
    fig.update_layout(margin=dict(l=40, r=40, t=40, b=40))
    return fig


def _error_figure(details: str) -> go.Figure:
    return _message_figure("Unable to load data for this region.", details)


# -----------------------------------------------------------------------------
# Input translation
# -----------------------------------------------------------------------------
def x_range_from_relayout(relayout: Optional[Dict[str, Any]]) -> Optional[Tuple[float, float]]:
    """
    Pull the new x range out of a graph's ``relayoutData`` after a pan or
    zoom in the browser. Autorange and non-x events give None.
    """
    if not relayout:
        return None

    bounds: Dict[str, Dict[int, float]] = {}
    for key, value in relayout.items():
        pair = _RANGE_PAIR.match(key)
        if pair and isinstance(value, (list, tuple)) and len(value) == 2:
            return float(value[0]), float(value[1])
        bound = _RANGE_BOUND.match(key)
        if bound:
            bounds.setdefault(bound.group(1), {})[int(bound.group(2))] = float(value)

    for axis_bounds in bounds.values():
        if 0 in axis_bounds and 1 in axis_bounds:
            return axis_bounds[0], axis_bounds[1]
    return None


def region_changes_from_query(query: Optional[str]) -> Optional[Dict[str, Any]]:
    parsed = parse_position_query(query or "")
    if parsed is None:
        return None
    if "position" in parsed:
        position = parsed.pop("position")
        parsed["start"] = max(position - POSITION_HALF_WINDOW, 1)
        parsed["end"] = position + POSITION_HALF_WINDOW
    return parsed


def element_id_from_click(click_data: Optional[Dict[str, Any]]) -> Optional[str]:
    points = (click_data or {}).get("points") or []
    if not points:
        return None
    custom = points[0].get("customdata")
    if isinstance(custom, (list, tuple)):
        custom = custom[0] if custom else None
    return custom if isinstance(custom, str) else None


def apply_changes(plot: "Plot", changes: Optional[Dict[str, Any]]) -> Tuple[go.Figure, str]:
    """Run one state change to completion and describe the outcome."""
    try:
        asyncio.run(plot.apply_state(changes))
    except Exception as e:
        logger.exception("Error applying state from UI", extra={"changes": changes})
        return _error_figure(str(e)), status_text(plot)
    return build_figure(plot), status_text(plot)


def handle_trigger(
        plot: "Plot",
        trigger: Optional[str],
        relayout: Optional[Dict[str, Any]] = None,
        click: Optional[Dict[str, Any]] = None,
        query: Optional[str] = None,
) -> Tuple[Any, Any, Any]:
    """
    Map the component that fired to a plot operation.

    :return: (figure, status line, region input value); ``dash.no_update``
        where nothing changes
    """
    if trigger == f"{IDs.Control.MAIN_GRAPH}.relayoutData":
        x_range = x_range_from_relayout(relayout)
        if x_range is None:
            return dash.no_update, dash.no_update, dash.no_update
        low, high = sorted(x_range)
        figure, status = apply_changes(plot, {"start": round(low), "end": round(high)})
        return figure, status, region_text(plot)

    if trigger == f"{IDs.Control.MAIN_GRAPH}.clickData":
        element_id = element_id_from_click(click)
        if element_id is None:
            for panel in plot.panels_by_y_index():
                panel.background_click()
        elif not plot.click_element(element_id):
            return dash.no_update, dash.no_update, dash.no_update
        plot.render()
        return build_figure(plot), status_text(plot), dash.no_update

    if trigger in (IDs.Control.REGION_SUBMIT, IDs.Control.REGION_INPUT):
        changes = region_changes_from_query(query)
        if changes is None:
            return dash.no_update, f"Could not parse region: {query!r}", dash.no_update
        figure, status = apply_changes(plot, changes)
        return figure, status, region_text(plot)

    if trigger == IDs.Control.REFRESH_BTN:
        figure, status = apply_changes(plot, None)
        return figure, status, dash.no_update

    return dash.no_update, dash.no_update, dash.no_update


def register_render_callbacks(app: dash.Dash, plot: "Plot") -> None:
    # ---------------------------------------------------------
    # Graph gestures, region box and refresh -> plot.apply_state -> figure
    # ---------------------------------------------------------
    @app.callback(
        Output(IDs.Control.MAIN_GRAPH, "figure"),
        Output(IDs.Display.STATUS, "children"),
        Output(IDs.Control.REGION_INPUT, "value"),
        Input(IDs.Control.MAIN_GRAPH, "relayoutData"),
        Input(IDs.Control.MAIN_GRAPH, "clickData"),
        Input(IDs.Control.REGION_SUBMIT, "n_clicks"),
        Input(IDs.Control.REGION_INPUT, "n_submit"),
        Input(IDs.Control.REFRESH_BTN, "n_clicks"),
        State(IDs.Control.REGION_INPUT, "value"),
        prevent_initial_call=True,
    )
    def update_plot(relayout, click, _submit_clicks, _n_submit, _refresh_clicks, query):
        triggered = dash.callback_context.triggered
        trigger = triggered[0]["prop_id"] if triggered else None
        if trigger and not trigger.startswith(IDs.Control.MAIN_GRAPH):
            trigger = trigger.split(".", 1)[0]
        logger.info("ui_trigger", extra={"trigger": trigger})
        return handle_trigger(plot, trigger, relayout=relayout, click=click, query=query)
