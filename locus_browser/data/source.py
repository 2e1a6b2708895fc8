from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

import httpx
import pandas as pd

from locus_browser.core.exceptions import ConfigurationError, ParseError
from .chain import Chain
from .transport import fetch_text

logger = logging.getLogger(__name__)

Transform = Optional[Callable[[Any], Any]]
FieldRequest = Tuple[List[str], List[str], List[Transform]]


class BaseSource(ABC):
    """
    Abstract base for everything that can answer a namespace of field requests.

    Subclasses supply ``fetch`` (the I/O) and may override ``get_cache_key``,
    ``pre_get_data`` and ``parse``. Each instance remembers the raw response
    of its most recent request only: one (key, response) slot, replaced on
    every successful fetch.

    The registered name is the class attribute ``SOURCE_NAME``.
    """

    SOURCE_NAME: Optional[str] = None

    def __init__(self):
        self.enable_cache: bool = True
        self._cache: Optional[Tuple[Any, Any]] = None

    # ------------------------------------------------------------------
    # Hooks
    # ------------------------------------------------------------------

    def get_cache_key(self, state: Mapping[str, Any], chain: Chain, fields: List[str]) -> Optional[str]:
        return None

    @abstractmethod
    async def fetch(self, state: Mapping[str, Any], chain: Chain, fields: List[str]) -> Any:
        """Retrieve the raw response for a request (may suspend on I/O)."""
        raise NotImplementedError

    def pre_get_data(
            self,
            state: Mapping[str, Any],
            fields: List[str],
            outnames: List[str],
            transforms: List[Transform],
    ) -> FieldRequest:
        """Inject or validate fields before anything is fetched."""
        return fields, outnames, transforms

    def parse(
            self,
            raw: Any,
            chain: Chain,
            fields: List[str],
            outnames: List[str],
            transforms: List[Transform],
    ) -> Chain:
        payload = json.loads(raw) if isinstance(raw, (str, bytes)) else raw
        if isinstance(payload, dict) and "data" in payload:
            payload = payload["data"]
        records = self.parse_data(payload, fields, outnames, transforms)
        return Chain(header=chain.header, body=records)

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    @property
    def cached_key(self) -> Optional[Any]:
        return self._cache[0] if self._cache is not None else None

    def clear_cache(self) -> None:
        self._cache = None

    async def get_request(self, state: Mapping[str, Any], chain: Chain, fields: List[str]) -> Any:
        key = self.get_cache_key(state, chain, fields)
        if self.enable_cache and key is not None and self._cache is not None and self._cache[0] == key:
            logger.debug("Source cache hit", extra={"source": self.SOURCE_NAME, "cache_key": key})
            return self._cache[1]

        raw = await self.fetch(state, chain, fields)
        if self.enable_cache:
            self._cache = (key, raw)
        return raw

    async def resolve(
            self,
            state: Mapping[str, Any],
            fields: List[str],
            outnames: List[str],
            transforms: List[Transform],
            chain: Chain,
    ) -> Chain:
        """Fetch (or reuse) the response and parse it against ``chain``. Fields must already be prepared."""
        raw = await self.get_request(state, chain, fields)
        return self.parse(raw, chain, fields, outnames, transforms)

    async def get_data(
            self,
            state: Mapping[str, Any],
            fields: List[str],
            outnames: List[str],
            transforms: List[Transform],
            chain: Optional[Chain] = None,
    ) -> Chain:
        fields, outnames, transforms = self.pre_get_data(state, list(fields), list(outnames), list(transforms))
        return await self.resolve(state, fields, outnames, transforms, chain or Chain())

    # ------------------------------------------------------------------
    # Parsing helpers
    # ------------------------------------------------------------------

    def parse_data(
            self,
            data: Any,
            fields: List[str],
            outnames: List[str],
            transforms: List[Transform],
    ) -> List[Dict[str, Any]]:
        if isinstance(data, list):
            return self.parse_objects_to_objects(data, fields, outnames, transforms)
        if isinstance(data, dict):
            return self.parse_arrays_to_objects(data, fields, outnames, transforms)
        raise ParseError(f"Unexpected response payload for {self.SOURCE_NAME}: {type(data).__name__}")

    def parse_arrays_to_objects(
            self,
            data: Dict[str, List[Any]],
            fields: List[str],
            outnames: List[str],
            transforms: List[Transform],
    ) -> List[Dict[str, Any]]:
        """Columnar ``{"field": [...]}`` payload -> one record per row."""
        for name, outname in zip(fields, outnames):
            if name not in data:
                raise ParseError.missing_field(name, outname)
        try:
            frame = pd.DataFrame({name: data[name] for name in dict.fromkeys(fields)})
        except ValueError as e:
            raise ParseError(f"Columns of unequal length in response for {self.SOURCE_NAME}: {e}") from e
        return _frame_to_records(frame, fields, outnames, transforms)

    def parse_objects_to_objects(
            self,
            data: List[Dict[str, Any]],
            fields: List[str],
            outnames: List[str],
            transforms: List[Transform],
    ) -> List[Dict[str, Any]]:
        """Row ``[{...}, ...]`` payload -> records holding only the requested fields."""
        if not data:
            return []
        frame = pd.DataFrame.from_records(data)
        for name, outname in zip(fields, outnames):
            if name not in frame.columns:
                raise ParseError.missing_field(name, outname)
        return _frame_to_records(frame, fields, outnames, transforms)

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_json(self) -> List[Any]:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


def _frame_to_records(
        frame: pd.DataFrame,
        fields: List[str],
        outnames: List[str],
        transforms: List[Transform],
) -> List[Dict[str, Any]]:
    out = pd.DataFrame(index=frame.index)
    for name, outname, fn in zip(fields, outnames, transforms):
        column = frame[name].astype(object)
        column = column.where(column.notna(), None)
        if fn is not None:
            column = column.map(fn)
        out[outname] = column
    out = out.astype(object)
    return out.where(out.notna(), None).to_dict("records")


class RemoteSource(BaseSource):
    """
    A source backed by an HTTP endpoint.

    Initialised from a URL string or ``{"url": ..., "params": {...}}``; the
    default cache key is the request URL.
    """

    method = "GET"

    def __init__(self, init: Any, client: Optional[httpx.AsyncClient] = None):
        super().__init__()
        self.client = client
        self.url: str = ""
        self.params: Dict[str, Any] = {}
        self.parse_init(init)

    def parse_init(self, init: Any) -> None:
        if isinstance(init, str):
            self.url = init
            self.params = {}
        elif isinstance(init, dict):
            self.url = init.get("url")
            self.params = dict(init.get("params") or {})
        else:
            raise ConfigurationError(f"{type(self).__name__} must be initialised with a URL or dict, got {init!r}")
        if not self.url:
            raise ConfigurationError("Source not initialized with required URL")

    @abstractmethod
    def get_url(self, state: Mapping[str, Any], chain: Chain, fields: List[str]) -> str:
        raise NotImplementedError

    def get_cache_key(self, state: Mapping[str, Any], chain: Chain, fields: List[str]) -> Optional[str]:
        return self.get_url(state, chain, fields)

    async def fetch(self, state: Mapping[str, Any], chain: Chain, fields: List[str]) -> Any:
        url = self.get_url(state, chain, fields)
        logger.debug("Fetching source data", extra={"source": self.SOURCE_NAME, "url": url})
        return await fetch_text(self.method, url, client=self.client, timeout=self.params.get("timeout"))

    def to_json(self) -> List[Any]:
        return [self.SOURCE_NAME, {"url": self.url, "params": dict(self.params)}]

    def __repr__(self) -> str:
        return f"{type(self).__name__}(url={self.url!r})"
