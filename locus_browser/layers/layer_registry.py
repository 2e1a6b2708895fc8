from __future__ import annotations

from typing import TYPE_CHECKING, Dict, List, Type

from locus_browser.core.configs import DataLayerLayout
from locus_browser.core.exceptions import ConfigurationError
from .base_layer import BaseDataLayer
from .genes import GenesLayer
from .line import LineLayer
from .scatter import ScatterLayer

if TYPE_CHECKING:
    from locus_browser.plot.panel import Panel


class DataLayerRegistry:
    """
    Registry for data layer classes so layouts can name a layer ``type``.

    - Stores subclasses of {@link BaseDataLayer}, instantiated per panel on demand
    - Each ``type`` is unique across the registry
    """

    def __init__(self):
        self._layers: Dict[str, Type[BaseDataLayer]] = {}

    def register(self, layer_cls: Type[BaseDataLayer]) -> None:
        """
        Raises:
            ConfigurationError: if layer_cls is not a BaseDataLayer subclass or its type is taken
        """
        if not isinstance(layer_cls, type) or not issubclass(layer_cls, BaseDataLayer):
            raise ConfigurationError(f"Data layer '{layer_cls!r}' must be a subclass of BaseDataLayer")
        if not layer_cls.type:
            raise ConfigurationError(f"Data layer class {layer_cls.__name__} does not define a type")
        if layer_cls.type in self._layers:
            raise ConfigurationError(f"Data layer type '{layer_cls.type}' already registered")
        self._layers[layer_cls.type] = layer_cls

    def create(self, layout: DataLayerLayout, panel: "Panel") -> BaseDataLayer:
        try:
            cls = self._layers[layout.type]
        except KeyError:
            raise ConfigurationError(f"Unknown data layer type: {layout.type}") from None
        return cls(layout, panel)

    def all_classes(self) -> List[Type[BaseDataLayer]]:
        return list(self._layers.values())


def default_layer_registry() -> DataLayerRegistry:
    registry = DataLayerRegistry()
    for layer_cls in (ScatterLayer, LineLayer, GenesLayer):
        registry.register(layer_cls)
    return registry
