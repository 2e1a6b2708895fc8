"""
Data resolution pipeline: sources, the namespace -> source collection,
and the requester that chains sources together
"""

from .chain import Chain
from .data_sources import DataSources
from .requester import Requester, split_requests
from .source import BaseSource, RemoteSource
from .source_registry import SourceRegistry, default_source_registry

__all__ = [
    "Chain",
    "DataSources",
    "Requester",
    "split_requests",
    "BaseSource",
    "RemoteSource",
    "SourceRegistry",
    "default_source_registry",
]
