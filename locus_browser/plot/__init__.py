"""
Viewport engine: panels, the plot that orchestrates them, gesture
handling and the vertical layout solver
"""

from .debounce import Debouncer
from .interaction import DragState, Interactions, ZoomState, shifted_ranges
from .panel import Panel
from .plot import Plot

__all__ = [
    "Debouncer",
    "DragState",
    "Interactions",
    "ZoomState",
    "shifted_ranges",
    "Panel",
    "Plot",
]
