from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Type

import httpx

from locus_browser.core.exceptions import ConfigurationError
from .source import BaseSource
from .sources import BUILTIN_SOURCES

logger = logging.getLogger(__name__)


class SourceRegistry:
    """
    Registry of source classes keyed by ``SOURCE_NAME``.

    Lets layouts and JSON configs name a source type (``["AssociationLZ", {...}]``)
    instead of importing the class. Stores classes, not instances, so every
    namespace gets its own source (and its own cache slot).
    """

    def __init__(self, client: Optional[httpx.AsyncClient] = None):
        self._sources: Dict[str, Type[BaseSource]] = {}
        self.client = client

    def register(self, source_cls: Type[BaseSource]) -> None:
        """
        Register a BaseSource subclass.

        Raises:
            ConfigurationError: if it is not a BaseSource, has no SOURCE_NAME,
                or the name is already taken
        """
        if not isinstance(source_cls, type) or not issubclass(source_cls, BaseSource):
            raise ConfigurationError(f"Source '{source_cls!r}' must be a subclass of BaseSource")
        name = source_cls.SOURCE_NAME
        if not name:
            raise ConfigurationError(f"Source class {source_cls.__name__} does not define SOURCE_NAME")
        if name in self._sources:
            raise ConfigurationError(f"Source '{name}' already registered")
        self._sources[name] = source_cls

    def get(self, name: str) -> Type[BaseSource]:
        try:
            return self._sources[name]
        except KeyError:
            raise ConfigurationError(f"Unable to create data source; unknown type: {name}") from None

    def create(self, name: str, init: Any) -> BaseSource:
        cls = self.get(name)
        logger.debug("Creating data source", extra={"source_type": name})
        return cls(init, client=self.client)

    def list(self) -> List[str]:
        return list(self._sources.keys())


def default_source_registry(client: Optional[httpx.AsyncClient] = None) -> SourceRegistry:
    registry = SourceRegistry(client=client)
    for source_cls in BUILTIN_SOURCES:
        registry.register(source_cls)
    return registry
