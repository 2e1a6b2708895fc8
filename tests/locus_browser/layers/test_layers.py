import math

import pytest

from locus_browser.core.exceptions import ConfigurationError
from locus_browser.layers.base_layer import BaseDataLayer
from locus_browser.layers.genes import GenesLayer
from locus_browser.layers.layer_registry import DataLayerRegistry, default_layer_registry
from locus_browser.layers.scatter import ScatterLayer, numerical_bin

LEAD_ID = "plot_assoc_points-10114758349_CT"


# ---------------------------------------------------------------------
# numerical_bin
# ---------------------------------------------------------------------

@pytest.mark.parametrize("value, expected", [
    (0, "blue"),
    (0.19, "blue"),
    (0.2, "green"),
    (0.79, "orange"),
    (0.95, "red"),
    (-1, "blue"),
])
def test_numerical_bin(value, expected):
    breaks = [0, 0.2, 0.6, 0.8]
    values = ["blue", "green", "orange", "red"]

    assert numerical_bin(value, breaks, values, "grey") == expected


@pytest.mark.parametrize("value", [None, math.nan, "high"])
def test_numerical_bin_null_value(value):
    assert numerical_bin(value, [0, 1], ["a", "b"], "grey") == "grey"


# ---------------------------------------------------------------------
# Element identity and status
# ---------------------------------------------------------------------

def test_element_id_strips_unsafe_characters(loaded_plot):
    layer = loaded_plot.panels["assoc"].data_layers["points"]

    assert layer.get_element_id(layer.data[2]) == LEAD_ID
    assert layer.get_element_by_id(LEAD_ID) is layer.data[2]
    assert layer.get_element_id(42) == "plot_assoc_points-element"


def test_element_id_requires_id_field(loaded_plot):
    layer = loaded_plot.panels["assoc"].data_layers["points"]

    with pytest.raises(ConfigurationError, match="missing from element"):
        layer.get_element_id({"assoc:position": 1})


def test_invalid_status_is_rejected(loaded_plot):
    layer = loaded_plot.panels["assoc"].data_layers["points"]

    with pytest.raises(ConfigurationError):
        layer.set_element_status("glowing", layer.data[0])
    with pytest.raises(ConfigurationError):
        layer.set_all_element_status("glowing")


def test_statuses_live_in_plot_state(loaded_plot):
    layer = loaded_plot.panels["assoc"].data_layers["points"]

    layer.highlight_element(layer.data[2])
    assert loaded_plot.state["assoc.points"]["highlighted"] == [LEAD_ID]

    layer.unhighlight_element(layer.data[2])
    assert loaded_plot.state["assoc.points"]["highlighted"] == []


def test_set_all_element_status(loaded_plot):
    layer = loaded_plot.panels["assoc"].data_layers["points"]

    layer.set_all_element_status("highlighted", True)
    assert len(layer.status_ids("highlighted")) == len(layer.data)

    layer.set_all_element_status("highlighted", False)
    assert layer.status_ids("highlighted") == []


def test_element_clicked_event(loaded_plot):
    clicked = []
    loaded_plot.events.on("element_clicked", clicked.append)
    layer = loaded_plot.panels["assoc"].data_layers["points"]

    loaded_plot.click_element(LEAD_ID)

    assert clicked == [layer.data[2]]


# ---------------------------------------------------------------------
# Scatter
# ---------------------------------------------------------------------

def test_scatter_render(loaded_plot):
    layer = loaded_plot.panels["assoc"].data_layers["points"]

    (trace,) = layer.render()

    assert trace.mode == "markers"
    assert list(trace.x) == [r["assoc:position"] for r in layer.data]
    assert list(trace.y) == [1.2, 3.4, 12.8, 5.1, 0.7]
    assert list(trace.customdata)[2] == LEAD_ID
    assert trace.hovertext[2] == "assoc:id: 10:114758349_C/T"


def test_scatter_outlines_selected_points(loaded_plot):
    layer = loaded_plot.panels["assoc"].data_layers["points"]
    layer.select_element(layer.data[2])

    (trace,) = layer.render()

    assert list(trace.marker.line.width) == [0, 0, 2, 0, 0]


def test_scatter_binned_colors_and_flags(loaded_plot):
    layer = loaded_plot.panels["assoc"].data_layers["points"]
    layer.layout.style = {
        "size": 7,
        "color_field": "assoc:log_pvalue",
        "color_breaks": [0, 2, 10],
        "color_values": ["low", "mid", "high"],
        "flag_field": "assoc:flag",
        "flag_color": "purple",
        "flag_size": 10,
    }
    for i, record in enumerate(layer.data):
        record["assoc:flag"] = 1 if i == 0 else 0

    (trace,) = layer.render()

    assert list(trace.marker.color) == ["purple", "mid", "high", "mid", "low"]
    assert list(trace.marker.size) == [10, 7, 7, 7, 7]


def test_scatter_without_data_renders_nothing(make_plot):
    layer = make_plot().panels["assoc"].data_layers["points"]

    assert layer.render() == []


# ---------------------------------------------------------------------
# Genes
# ---------------------------------------------------------------------

def test_gene_tracks_avoid_overlaps(loaded_plot):
    layer = loaded_plot.panels["genes"].data_layers["genes"]
    layer.data = [
        {"gene_id": "a", "start": 100, "end": 500},
        {"gene_id": "b", "start": 200, "end": 300},
        {"gene_id": "c", "start": 600, "end": 700},
        {"gene_id": "d", "start": 350, "end": 400},
    ]

    assert layer.assign_tracks() == [0, 1, 0, 1]
    assert layer.get_axis_extent("y") == [-1.5, 0.5]


def test_genes_render(loaded_plot):
    layer = loaded_plot.panels["genes"].data_layers["genes"]

    lines, labels = layer.render()

    assert lines.mode == "lines"
    assert list(labels.text) == ["VTI1A", "TCF7L2", "NRAP"]
    assert list(labels.y) == [0, 0, 0]
    assert layer.get_axis_extent("y") == [-0.5, 0.5]


def test_selected_gene_gets_own_trace(loaded_plot):
    layer = loaded_plot.panels["genes"].data_layers["genes"]
    gene = layer.data[1]
    assert loaded_plot.click_element(layer.get_element_id(gene))

    traces = layer.render()

    assert len(traces) == 3
    assert traces[2].name == "genes-selected"
    assert list(traces[2].x) == [gene["start"], gene["end"], None]


def test_genes_without_data_renders_nothing(make_plot):
    layer = make_plot().panels["genes"].data_layers["genes"]

    assert layer.render() == []
    assert layer.get_axis_extent("y") is None


# ---------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------

def test_default_registry_types():
    registry = default_layer_registry()

    assert {cls.type for cls in registry.all_classes()} == {"scatter", "line", "genes"}


def test_registry_rejects_bad_classes():
    registry = DataLayerRegistry()
    registry.register(ScatterLayer)

    class Untyped(BaseDataLayer):
        def render(self):
            return []

    with pytest.raises(ConfigurationError, match="already registered"):
        registry.register(ScatterLayer)
    with pytest.raises(ConfigurationError, match="subclass"):
        registry.register(dict)
    with pytest.raises(ConfigurationError, match="does not define a type"):
        registry.register(Untyped)


def test_custom_layer_type_can_be_registered(sources):
    from locus_browser.plot.plot import Plot

    class Bars(GenesLayer):
        type = "bars"

    registry = default_layer_registry()
    registry.register(Bars)
    layout = {
        "width": 800,
        "height": 200,
        "state": {"chr": "10", "start": 1, "end": 100000},
        "panels": [{"id": "p", "height": 200, "data_layers": [{"id": "b", "type": "bars"}]}],
    }

    plot = Plot("plot", sources, layout=layout, layer_registry=registry)

    assert isinstance(plot.panels["p"].data_layers["b"], Bars)
