import asyncio
import json

import httpx
import pytest

from locus_browser.core.exceptions import ConfigurationError, RequestError
from locus_browser.data.chain import Chain
from locus_browser.data.data_sources import DataSources
from locus_browser.data.source_registry import SourceRegistry, default_source_registry
from locus_browser.data.sources import AssociationSource, StaticSource
from locus_browser.data.transport import fetch_text

REGION = {"chr": "10", "start": 114550452, "end": 115067678}

CONFIG = {
    "base": ["AssociationLZ", {"url": "http://api/statistic/single/", "params": {"analysis": 45, "id_field": "variant"}}],
    "ld": ["LDLZ", {"url": "http://api/pair/LD/", "params": {"depends_on": ["base"]}}],
    "gene": ["GeneLZ", {"url": "http://api/annotation/genes/", "params": {"source": 2}}],
    "sig": ["StaticJSON", [{"x": 0, "y": 4.522}, {"x": 2881033286, "y": 4.522}]],
}


def test_round_trip_preserves_query_construction():
    sources = DataSources.from_json(CONFIG)
    rebuilt = DataSources.from_json(json.dumps(sources.to_json()))

    assert rebuilt.keys() == sources.keys()
    for ns in ("base", "gene"):
        original, copy = sources.get(ns), rebuilt.get(ns)
        assert type(copy) is type(original)
        assert copy.params == original.params
        assert copy.get_cache_key(REGION, Chain(), []) == original.get_cache_key(REGION, Chain(), [])
        assert copy.enable_cache == original.enable_cache
    assert rebuilt.to_json() == sources.to_json()


def test_from_json_rejects_unknown_type_and_bad_specs():
    with pytest.raises(ConfigurationError, match="unknown type"):
        DataSources.from_json({"x": ["NopeLZ", "http://x/"]})
    with pytest.raises(ConfigurationError):
        DataSources.from_json({"x": ["AssociationLZ"]})
    with pytest.raises(ConfigurationError):
        DataSources.from_json("{not json")
    with pytest.raises(ConfigurationError):
        DataSources.from_json("[1, 2]")


def test_remote_source_requires_url():
    with pytest.raises(ConfigurationError):
        AssociationSource({"params": {}})


def test_set_remove_and_clear_caches():
    sources = DataSources()
    static = StaticSource([{"a": 1}])
    sources.set("sig", static)
    static._cache = ("key", "raw")

    sources.clear_caches()
    assert static.cached_key is None

    sources.remove("sig")
    assert "sig" not in sources
    assert len(sources) == 0

    with pytest.raises(ConfigurationError):
        sources.set("sig", 42)


def test_registry_validates_registrations():
    registry = SourceRegistry()

    with pytest.raises(ConfigurationError):
        registry.register(dict)

    registry.register(StaticSource)
    with pytest.raises(ConfigurationError, match="already registered"):
        registry.register(StaticSource)


def test_default_registry_creates_independent_instances():
    registry = default_source_registry()

    first = registry.create("AssociationLZ", "http://api/")
    second = registry.create("AssociationLZ", "http://api/")

    assert first is not second
    assert {"AssociationLZ", "LDLZ", "GeneLZ", "GeneConstraintLZ", "RecombLZ", "BEDLZ", "StaticJSON"} <= set(
        registry.list()
    )


def test_registry_passes_shared_client():
    client = httpx.AsyncClient()
    registry = default_source_registry(client=client)

    source = registry.create("RecombLZ", "http://api/recomb/")

    assert source.client is client
    asyncio.run(client.aclose())


def test_fetch_text_raises_on_error_status():
    async def _run():
        transport = httpx.MockTransport(lambda request: httpx.Response(503, text="busy"))
        async with httpx.AsyncClient(transport=transport) as client:
            await fetch_text("GET", "http://api/x", client=client)

    with pytest.raises(RequestError, match="HTTP 503"):
        asyncio.run(_run())


def test_fetch_text_wraps_transport_failures():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    async def _run():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            await fetch_text("GET", "http://api/x", client=client)

    with pytest.raises(RequestError, match="failed"):
        asyncio.run(_run())


def test_fetch_text_posts_form_data():
    seen = []

    def handler(request):
        seen.append((request.method, request.content.decode()))
        return httpx.Response(200, text="ok")

    async def _run():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            return await fetch_text("POST", "http://api/x", data={"geneids": "[\"A\"]"}, client=client)

    assert asyncio.run(_run()) == "ok"
    assert seen[0][0] == "POST"
    assert "geneids=" in seen[0][1]
