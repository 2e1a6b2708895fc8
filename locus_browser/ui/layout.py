from __future__ import annotations

from typing import TYPE_CHECKING

import dash_bootstrap_components as dbc
from dash import dcc, html

from locus_browser.render.figure import build_figure
from .ids import IDs

if TYPE_CHECKING:
    from locus_browser.plot.plot import Plot


def region_text(plot: "Plot") -> str:
    region = plot.state.region
    if region is None:
        return ""
    chrom, start, end = region
    return f"{chrom}:{start}-{end}"


def status_text(plot: "Plot") -> str:
    if plot.last_error is not None:
        return f"Error: {plot.last_error}"
    region = plot.state.region
    if region is None:
        return "No region selected"
    chrom, start, end = region
    return f"Chromosome {chrom}: {start:,} - {end:,} ({end - start:,} bp)"


def build_region_bar(plot: "Plot") -> dbc.InputGroup:
    return dbc.InputGroup(
        [
            dbc.InputGroupText("Region"),
            dbc.Input(
                id=IDs.Control.REGION_INPUT,
                value=region_text(plot),
                placeholder="chr:start-end, chr:center+offset or chr:position",
                debounce=True,
                type="text",
            ),
            dbc.Button("Go", id=IDs.Control.REGION_SUBMIT, color="primary"),
            dbc.Button("Refresh", id=IDs.Control.REFRESH_BTN, color="secondary"),
        ],
        size="sm",
    )


def build_layout(plot: "Plot") -> dbc.Container:
    return dbc.Container(
        fluid=True,
        className="lzb-root",
        children=[
            dbc.Card(
                [
                    dbc.CardHeader(build_region_bar(plot), className="p-2"),
                    dbc.CardBody(
                        [
                            dcc.Loading(
                                id="locus-graph-loading",
                                type="default",
                                children=dcc.Graph(
                                    id=IDs.Control.MAIN_GRAPH,
                                    figure=build_figure(plot),
                                    config={"responsive": True, "scrollZoom": True},
                                ),
                            ),
                            html.Div(
                                status_text(plot),
                                id=IDs.Display.STATUS,
                                className="text-muted small mt-2",
                            ),
                        ]
                    ),
                ],
                className="mt-3",
            ),
        ],
    )
