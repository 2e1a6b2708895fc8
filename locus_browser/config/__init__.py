from .loader import load_plot_config

__all__ = ["load_plot_config"]
