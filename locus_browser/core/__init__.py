"""
Core domain layer: field specs and transforms, shared plot state,
layout structs and registries, and the extent/scale/tick math
"""

from .configs import DataLayerLayout, PanelLayout, PlotLayout
from .events import EventHooks
from .fields import FieldSpec, parse_field
from .layout_registry import LayoutRegistry, default_layout_registry
from .state import PlotState, validate_state
from .transforms import TransformRegistry, default_transform_registry

__all__ = [
    "DataLayerLayout",
    "PanelLayout",
    "PlotLayout",
    "EventHooks",
    "FieldSpec",
    "parse_field",
    "LayoutRegistry",
    "default_layout_registry",
    "PlotState",
    "validate_state",
    "TransformRegistry",
    "default_transform_registry",
]
