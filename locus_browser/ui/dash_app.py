from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Union

import dash_bootstrap_components as dbc
from dash import Dash

from locus_browser.config.loader import load_plot_config
from locus_browser.core.layout_registry import LayoutRegistry
from locus_browser.plot.plot import Plot
from .callbacks_render import register_render_callbacks
from .layout import build_layout

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "Locus Browser"


def create_dash_app(plot: Plot, title: str = DEFAULT_TITLE) -> Dash:
    """
    Wrap a plot in a Dash app: the figure, a region box and a status line.

    The plot is shared by every callback; load its data before serving
    (``asyncio.run(plot.refresh())``) or the first figure is empty.
    """
    app = Dash(
        __name__,
        external_stylesheets=[dbc.themes.FLATLY],
    )
    app.title = title
    app.layout = build_layout(plot)

    register_render_callbacks(app, plot)

    logger.info("Dash app created", extra={"plot_id": plot.id, "title": title})
    return app


def create_dash_app_from_config(
        config_path: Union[str, Path],
        plot_id: str = "plot",
        layout_registry: Optional[LayoutRegistry] = None,
) -> Dash:
    layout, data_sources = load_plot_config(config_path, layout_registry=layout_registry)
    plot = Plot(plot_id, data_sources, layout, layout_registry=layout_registry)
    return create_dash_app(plot)
