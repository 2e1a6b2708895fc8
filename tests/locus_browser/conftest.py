"""
Shared fixtures for plot-level tests.

The plot used here has two x-linked panels over chr10:114550452-115067678:
an association panel with a scatter layer and a genes panel. Both sources
answer from memory and count how many times they were resolved.
"""
import asyncio
import copy

import pytest

from locus_browser.data.data_sources import DataSources
from locus_browser.data.sources import GeneSource, StaticSource
from locus_browser.plot.plot import Plot

START = 114550452
END = 115067678

ASSOC_ROWS = [
    {"id": "10:114600000_A/G", "position": 114600000, "log_pvalue": 1.2},
    {"id": "10:114700000_C/T", "position": 114700000, "log_pvalue": 3.4},
    {"id": "10:114758349_C/T", "position": 114758349, "log_pvalue": 12.8},
    {"id": "10:114900000_G/A", "position": 114900000, "log_pvalue": 5.1},
    {"id": "10:115000000_T/C", "position": 115000000, "log_pvalue": 0.7},
]

GENES = [
    {"gene_id": "ENSG00000151532.13", "gene_name": "VTI1A", "start": 114206756, "end": 114589814},
    {"gene_id": "ENSG00000148737.15", "gene_name": "TCF7L2", "start": 114710009, "end": 114927437},
    {"gene_id": "ENSG00000197893.9", "gene_name": "NRAP", "start": 115348046, "end": 115423969},
]


class CountingStaticSource(StaticSource):
    def __init__(self, data, client=None):
        super().__init__(data, client)
        self.resolutions = 0

    async def resolve(self, *args, **kwargs):
        self.resolutions += 1
        return await super().resolve(*args, **kwargs)


class CountingGeneSource(GeneSource):
    def __init__(self, init="http://genes.test/", client=None):
        super().__init__(init, client)
        self.resolutions = 0

    async def resolve(self, *args, **kwargs):
        self.resolutions += 1
        return await super().resolve(*args, **kwargs)

    async def fetch(self, state, chain, fields):
        return {"data": copy.deepcopy(GENES)}


def assoc_panel_layout():
    return {
        "id": "assoc",
        "height": 225,
        "margin": {"top": 35, "right": 50, "bottom": 40, "left": 50},
        "axes": {
            "x": {"label_function": "chromosome", "tick_format": "region", "extent": "state"},
            "y1": {"label": "-log10 p-value"},
        },
        "interaction": {
            "drag_background_to_pan": True,
            "drag_x_ticks_to_scale": True,
            "drag_y1_ticks_to_scale": True,
            "scroll_to_zoom": True,
            "x_linked": True,
        },
        "data_layers": [{
            "id": "points",
            "type": "scatter",
            "fields": ["assoc:id", "assoc:position", "assoc:log_pvalue"],
            "id_field": "assoc:id",
            "x_axis": {"field": "assoc:position"},
            "y_axis": {"field": "assoc:log_pvalue", "floor": 0, "upper_buffer": 0.1, "min_extent": [0, 10]},
        }],
    }


def genes_panel_layout(x_linked=True):
    return {
        "id": "genes",
        "height": 225,
        "margin": {"top": 20, "right": 50, "bottom": 20, "left": 50},
        "axes": {"x": {"extent": "state", "render": False}},
        "interaction": {"drag_background_to_pan": True, "scroll_to_zoom": True, "x_linked": x_linked},
        "data_layers": [{"id": "genes", "type": "genes", "fields": ["gene:all"], "id_field": "gene_id"}],
    }


def plot_layout(genes_linked=True, start=START, end=END):
    return {
        "width": 800,
        "height": 450,
        "min_region_scale": 20000,
        "max_region_scale": 4000000,
        "state": {"chr": "10", "start": start, "end": end},
        "panels": [assoc_panel_layout(), genes_panel_layout(genes_linked)],
    }


@pytest.fixture
def sources():
    data_sources = DataSources()
    data_sources.add("assoc", CountingStaticSource(copy.deepcopy(ASSOC_ROWS)))
    data_sources.add("gene", CountingGeneSource())
    return data_sources


@pytest.fixture
def make_plot(sources):
    def _make(**kwargs):
        return Plot("plot", sources, layout=plot_layout(**kwargs))

    return _make


@pytest.fixture
def loaded_plot(make_plot):
    plot = make_plot()
    asyncio.run(plot.refresh())
    return plot
