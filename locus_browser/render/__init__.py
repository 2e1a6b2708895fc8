from .figure import build_figure, empty_figure

__all__ = ["build_figure", "empty_figure"]
