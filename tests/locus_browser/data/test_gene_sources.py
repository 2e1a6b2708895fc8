import asyncio
import json
from urllib.parse import parse_qs

import httpx
import pytest

from locus_browser.core.exceptions import ParseError
from locus_browser.data.chain import Chain
from locus_browser.data.data_sources import DataSources
from locus_browser.data.requester import Requester
from locus_browser.data.sources import GeneConstraintSource, GeneSource

REGION = {"chr": "10", "start": 114550452, "end": 115067678}

GENES = [
    {"gene_id": "ENSG00000148737.15", "gene_name": "TCF7L2", "start": 114710009, "end": 114927437, "strand": "+"},
    {"gene_id": "ENSG00000108061.11", "gene_name": "SHOC2", "start": 110919147, "end": 111013082, "strand": "+"},
    {"gene_id": "ENSG00000197142", "gene_name": "ACSL5", "start": 112374116, "end": 112428375, "pLI": 0.5},
]

CONSTRAINT = {
    "ENSG00000148737": {"pLI": 0.9876543, "lof_z": 4.0, "mis_z": 3.14159},
    "ENSG00000197142": {"pLI": 0.01},
}


def _client(posted):
    def handler(request):
        if request.method == "POST":
            form = parse_qs(request.content.decode())
            posted.append(json.loads(form["geneids"][0]))
            return httpx.Response(200, json=CONSTRAINT)
        return httpx.Response(200, json={"data": GENES})

    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def _sources(client, constraint_params=None):
    sources = DataSources()
    sources.add("gene", GeneSource({"url": "http://api/genes/", "params": {"source": 2}}, client=client))
    sources.add(
        "constraint",
        GeneConstraintSource({"url": "http://constraint/", "params": constraint_params or {}}, client=client),
    )
    return sources


def test_constraint_merges_onto_genes():
    posted = []

    async def _run():
        async with _client(posted) as client:
            return await Requester(_sources(client)).get_data(REGION, ["gene:gene", "constraint:constraint"])

    chain = asyncio.run(_run())
    by_name = {gene["gene_name"]: gene for gene in chain.body}

    assert posted == [["ENSG00000148737", "ENSG00000108061", "ENSG00000197142"]]
    assert by_name["TCF7L2"]["pLI"] == 0.99
    assert by_name["TCF7L2"]["lof_z"] == 4.0
    assert by_name["TCF7L2"]["mis_z"] == 3.14
    assert by_name["TCF7L2"]["n_exons"] is None
    assert by_name["SHOC2"]["pLI"] is None
    # fields the gene already had are kept
    assert by_name["ACSL5"]["pLI"] == 0.5


def test_constraint_declared_first_with_depends_on():
    posted = []

    async def _run():
        async with _client(posted) as client:
            sources = _sources(client, {"depends_on": ["gene"]})
            return await Requester(sources).get_data(REGION, ["constraint:constraint", "gene:gene"])

    chain = asyncio.run(_run())

    assert len(posted) == 1
    assert chain.body[0]["pLI"] == 0.99


def test_constraint_post_is_cached_per_state():
    posted = []

    async def _run():
        async with _client(posted) as client:
            requester = Requester(_sources(client))
            await requester.get_data(REGION, ["gene:gene", "constraint:constraint"])
            await requester.get_data(REGION, ["gene:gene", "constraint:constraint"])

    asyncio.run(_run())

    assert len(posted) == 1


def test_gene_url_filters_on_region():
    url = GeneSource({"url": "http://api/genes/", "params": {"source": 1}}).get_url(REGION, Chain(), [])

    assert "source in 1" in url
    assert "start le 115067678" in url
    assert "end ge 114550452" in url


def test_gene_response_without_data_list_is_parse_error():
    async def _run():
        def handler(request):
            return httpx.Response(200, json={"data": {"gene_id": []}})

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            await GeneSource("http://api/genes/", client=client).get_data(REGION, ["gene"], ["gene:gene"], [None])

    with pytest.raises(ParseError):
        asyncio.run(_run())
