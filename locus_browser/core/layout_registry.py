"""
Named layout templates.

Templates are plain JSON-like dicts keyed by kind ("plot", "panel",
"data_layer") and name. ``get`` always hands out a deep copy so callers can
edit the result freely; modifications are applied to top-level keys only.
"""
from __future__ import annotations

import copy
import logging
from typing import Any, Dict, List, Optional

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

LAYOUT_KINDS = ("plot", "panel", "data_layer")


class LayoutRegistry:

    def __init__(self):
        self._layouts: Dict[str, Dict[str, Dict[str, Any]]] = {kind: {} for kind in LAYOUT_KINDS}

    def add(self, kind: str, name: str, layout: Dict[str, Any]) -> None:
        if kind not in self._layouts:
            raise ConfigurationError(f"Unknown layout kind: {kind}")
        if not isinstance(layout, dict):
            raise ConfigurationError(f"Layout {kind}/{name} must be a dict")
        self._layouts[kind][name] = copy.deepcopy(layout)

    def get(self, kind: str, name: str, modifications: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        try:
            layout = self._layouts[kind][name]
        except KeyError:
            raise ConfigurationError(f"Layout not found: {kind}/{name}") from None
        result = copy.deepcopy(layout)
        if modifications:
            result.update(copy.deepcopy(modifications))
        return result

    def list(self, kind: Optional[str] = None) -> Dict[str, List[str]] | List[str]:
        if kind is None:
            return {k: list(v.keys()) for k, v in self._layouts.items()}
        if kind not in self._layouts:
            raise ConfigurationError(f"Unknown layout kind: {kind}")
        return list(self._layouts[kind].keys())


# ---------------------------------------------------------------------
# Built-in templates
# ---------------------------------------------------------------------

LD_COLOR_BREAKS = [0, 0.2, 0.4, 0.6, 0.8]
LD_COLOR_VALUES = ["#357ebd", "#46b8da", "#5cb85c", "#eea236", "#d43f3a"]


def _register_data_layers(registry: LayoutRegistry) -> None:
    registry.add("data_layer", "significance", {
        "id": "significance",
        "type": "line",
        "fields": ["sig:x", "sig:y"],
        "z_index": 0,
        "style": {"color": "#D3D3D3", "width": 3, "dash": "dash"},
        "x_axis": {"field": "sig:x", "decoupled": True},
        "y_axis": {"axis": 1, "field": "sig:y"},
    })
    registry.add("data_layer", "recomb_rate", {
        "id": "recombrate",
        "type": "line",
        "fields": ["recomb:position", "recomb:recomb_rate"],
        "z_index": 1,
        "style": {"color": "#0000FF", "width": 1.5},
        "x_axis": {"field": "recomb:position"},
        "y_axis": {"axis": 2, "field": "recomb:recomb_rate", "floor": 0, "ceiling": 100},
    })
    registry.add("data_layer", "association_pvalues", {
        "id": "associationpvalues",
        "type": "scatter",
        "fields": [
            "variant", "position", "pvalue|scinotation", "pvalue|neglog10",
            "log_pvalue", "ref_allele", "ld:state", "ld:isrefvar",
        ],
        "id_field": "variant",
        "z_index": 2,
        "x_axis": {"field": "position"},
        "y_axis": {"axis": 1, "field": "log_pvalue", "floor": 0, "upper_buffer": 0.10, "min_extent": [0, 10]},
        "style": {
            "size": 7,
            "color_field": "ld:state",
            "color_breaks": LD_COLOR_BREAKS,
            "color_values": LD_COLOR_VALUES,
            "null_color": "#B8B8B8",
            "flag_field": "ld:isrefvar",
            "flag_color": "#9632b8",
            "flag_size": 10,
            "hover_fields": ["variant", "pvalue|scinotation", "ref_allele"],
        },
    })
    registry.add("data_layer", "genes", {
        "id": "genes",
        "type": "genes",
        "fields": ["gene:gene", "constraint:constraint"],
        "id_field": "gene_id",
        "style": {"color": "#363696", "hover_fields": ["gene_name", "gene_id", "pLI"]},
    })


def _register_panels(registry: LayoutRegistry) -> None:
    registry.add("panel", "association", {
        "id": "association",
        "width": 800,
        "height": 225,
        "min_width": 400,
        "min_height": 200,
        "proportional_width": 1,
        "proportional_height": 0.5,
        "margin": {"top": 35, "right": 50, "bottom": 40, "left": 50},
        "axes": {
            "x": {"label_function": "chromosome", "tick_format": "region", "extent": "state"},
            "y1": {"label": "-log10 p-value"},
            "y2": {"label": "Recombination Rate (cM/Mb)"},
        },
        "interaction": {
            "drag_background_to_pan": True,
            "drag_x_ticks_to_scale": True,
            "drag_y1_ticks_to_scale": True,
            "drag_y2_ticks_to_scale": True,
            "scroll_to_zoom": True,
            "x_linked": True,
        },
        "data_layers": [
            registry.get("data_layer", "significance"),
            registry.get("data_layer", "recomb_rate"),
            registry.get("data_layer", "association_pvalues"),
        ],
    })
    registry.add("panel", "genes", {
        "id": "genes",
        "width": 800,
        "height": 225,
        "min_width": 400,
        "min_height": 112.5,
        "proportional_width": 1,
        "proportional_height": 0.5,
        "margin": {"top": 20, "right": 50, "bottom": 20, "left": 50},
        "axes": {"x": {"extent": "state", "render": False}},
        "interaction": {
            "drag_background_to_pan": True,
            "scroll_to_zoom": True,
            "x_linked": True,
        },
        "data_layers": [registry.get("data_layer", "genes")],
    })


def default_layout_registry() -> LayoutRegistry:
    registry = LayoutRegistry()
    _register_data_layers(registry)
    _register_panels(registry)
    registry.add("plot", "standard_gwas", {
        "state": {},
        "width": 800,
        "height": 450,
        "responsive_resize": True,
        "aspect_ratio": 16 / 9,
        "min_region_scale": 20000,
        "max_region_scale": 4000000,
        "panels": [
            registry.get("panel", "association"),
            registry.get("panel", "genes"),
        ],
    })
    logger.debug("Built default layout registry", extra={"layouts": registry.list()})
    return registry
