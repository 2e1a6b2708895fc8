from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

from locus_browser.core.configs import PlotLayout
from locus_browser.core.exceptions import ConfigurationError
from locus_browser.core.layout_registry import LayoutRegistry, default_layout_registry
from locus_browser.data.data_sources import DataSources
from locus_browser.data.source_registry import SourceRegistry

logger = logging.getLogger(__name__)


def load_plot_config(
        path: Union[str, Path],
        layout_registry: Optional[LayoutRegistry] = None,
        source_registry: Optional[SourceRegistry] = None,
) -> Tuple[PlotLayout, DataSources]:
    """
    Load a plot layout and its data sources from one JSON file.

    Expected structure:

        {
            "layout": "standard_gwas" | {"template": "standard_gwas", ...overrides} | {...full layout},
            "data_sources": {"<namespace>": ["<SourceType>", <init>], ...}
        }

    A layout given by name (or by ``template``) is taken from the layout
    registry; any other keys next to ``template`` replace the template's
    top-level keys (e.g. ``state``).

    :param path: JSON file to read
    :param layout_registry: templates to resolve names against, defaults to the built-ins
    :param source_registry: source types available to ``data_sources``
    :return: the plot layout and the populated DataSources
    :raises ConfigurationError: if the file is missing, unreadable or structurally invalid
    """
    path = Path(path)
    logger.info("Loading plot config", extra={"config_path": str(path)})

    if not path.is_file():
        logger.error("Plot config not found", extra={"config_path": str(path)})
        raise ConfigurationError(f"File not found at {path}")

    try:
        with path.open() as f:
            raw = json.load(f)
    except json.JSONDecodeError as e:
        logger.error("Plot config is not valid JSON", extra={"config_path": str(path), "error": str(e)})
        raise ConfigurationError(f"Invalid JSON in {path}: {e}") from e

    if not isinstance(raw, dict):
        raise ConfigurationError(f"Plot config {path} must be a JSON object")

    try:
        layout = _resolve_layout(raw.get("layout"), layout_registry or default_layout_registry())
        data_sources = DataSources.from_json(raw.get("data_sources") or {}, registry=source_registry)
    except ConfigurationError:
        logger.exception("Invalid plot config", extra={"config_path": str(path)})
        raise

    logger.info(
        "Loaded plot config",
        extra={"config_path": str(path), "panels": len(layout.panels), "namespaces": data_sources.keys()},
    )
    return layout, data_sources


def _resolve_layout(raw: Any, registry: LayoutRegistry) -> PlotLayout:
    if raw is None:
        raise ConfigurationError("Plot config requires a `layout`")
    if isinstance(raw, str):
        return PlotLayout.from_dict(registry.get("plot", raw))
    if isinstance(raw, dict):
        if "template" in raw:
            overrides: Dict[str, Any] = {k: v for k, v in raw.items() if k != "template"}
            return PlotLayout.from_dict(registry.get("plot", raw["template"], overrides))
        return PlotLayout.from_dict(raw)
    raise ConfigurationError(f"Invalid layout in plot config: {raw!r}")
