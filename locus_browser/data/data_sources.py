from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional, Union

from locus_browser.core.exceptions import ConfigurationError
from .source import BaseSource
from .source_registry import SourceRegistry, default_source_registry

logger = logging.getLogger(__name__)

SourceSpec = Union[BaseSource, List[Any], None]


class DataSources:
    """
    Namespace -> source mapping handed to a plot.

    A namespace can be set from a live source or from a ``[type_name, init]``
    pair resolved through the source registry.
    """

    def __init__(self, registry: Optional[SourceRegistry] = None):
        self.registry = registry or default_source_registry()
        self._sources: Dict[str, BaseSource] = {}

    def set(self, namespace: str, source: SourceSpec) -> DataSources:
        if source is None:
            self._sources.pop(namespace, None)
        elif isinstance(source, (list, tuple)):
            if len(source) != 2:
                raise ConfigurationError(f"Source spec for '{namespace}' must be [type, init], got {source!r}")
            self._sources[namespace] = self.registry.create(source[0], source[1])
        elif isinstance(source, BaseSource):
            self._sources[namespace] = source
        else:
            raise ConfigurationError(f"Invalid source for namespace '{namespace}': {source!r}")
        return self

    def add(self, namespace: str, source: SourceSpec) -> DataSources:
        return self.set(namespace, source)

    def get(self, namespace: str) -> Optional[BaseSource]:
        return self._sources.get(namespace)

    def remove(self, namespace: str) -> DataSources:
        return self.set(namespace, None)

    def keys(self) -> List[str]:
        return list(self._sources.keys())

    def clear_caches(self) -> None:
        for source in self._sources.values():
            source.clear_cache()

    def __contains__(self, namespace: str) -> bool:
        return namespace in self._sources

    def __len__(self) -> int:
        return len(self._sources)

    def to_json(self) -> Dict[str, List[Any]]:
        return {ns: source.to_json() for ns, source in self._sources.items()}

    @classmethod
    def from_json(cls, data: Union[str, Dict[str, Any]], registry: Optional[SourceRegistry] = None) -> DataSources:
        if isinstance(data, str):
            try:
                data = json.loads(data)
            except json.JSONDecodeError as e:
                raise ConfigurationError(f"Invalid data sources JSON: {e}") from e
        if not isinstance(data, dict):
            raise ConfigurationError("Data sources JSON must be an object keyed by namespace")

        sources = cls(registry=registry)
        for namespace, spec in data.items():
            sources.set(namespace, spec)
        logger.info("Loaded data sources", extra={"namespaces": sources.keys()})
        return sources
