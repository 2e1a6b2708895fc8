from .base_layer import BaseDataLayer
from .genes import GenesLayer
from .layer_registry import DataLayerRegistry, default_layer_registry
from .line import LineLayer
from .scatter import ScatterLayer

__all__ = [
    "BaseDataLayer",
    "GenesLayer",
    "LineLayer",
    "ScatterLayer",
    "DataLayerRegistry",
    "default_layer_registry",
]
