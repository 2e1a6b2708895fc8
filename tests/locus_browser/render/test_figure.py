import asyncio

from locus_browser.data.data_sources import DataSources
from locus_browser.plot.plot import Plot
from locus_browser.render.figure import build_figure, empty_figure

START = 114550452
END = 115067678


def test_one_row_per_panel(loaded_plot):
    fig = build_figure(loaded_plot)

    assert len(fig.data) == 3
    assoc_trace, gene_lines, gene_labels = fig.data
    assert (assoc_trace.xaxis, assoc_trace.yaxis) == ("x", "y")
    assert (gene_lines.xaxis, gene_lines.yaxis) == ("x2", "y3")
    assert gene_labels.mode == "text"
    assert fig.layout.height == 450
    assert fig.layout.width == 800


def test_x_axis_shows_region_ticks(loaded_plot):
    fig = build_figure(loaded_plot)

    assert tuple(fig.layout.xaxis.range) == (START, END)
    assert "114.60" in fig.layout.xaxis.ticktext
    assert fig.layout.xaxis.title.text == "Chromosome 10 (Mb)"
    assert fig.layout.xaxis.visible is True


def test_hidden_axes(loaded_plot):
    fig = build_figure(loaded_plot)

    # genes panel x axis is not rendered; neither panel uses a secondary axis
    assert fig.layout.xaxis2.visible is False
    assert fig.layout.yaxis2.visible is False
    assert fig.layout.yaxis4.visible is False


def test_y_axes_are_fixed(loaded_plot):
    fig = build_figure(loaded_plot)

    assert fig.layout.yaxis.fixedrange is True
    assert fig.layout.yaxis.title.text == "-log10 p-value"
    assert fig.layout.xaxis.fixedrange is None


def test_secondary_axis_layer(loaded_plot):
    panel = loaded_plot.panels["assoc"]
    panel.add_data_layer({
        "id": "trend",
        "type": "line",
        "fields": ["assoc:position", "assoc:log_pvalue"],
        "x_axis": {"field": "assoc:position"},
        "y_axis": {"axis": 2, "field": "assoc:log_pvalue"},
    })
    asyncio.run(loaded_plot.refresh())

    fig = build_figure(loaded_plot)
    trend = next(t for t in fig.data if t.name == "trend")

    assert trend.yaxis == "y2"
    assert fig.layout.yaxis2.visible is True


def test_responsive_figure_has_no_fixed_width():
    plot = Plot("gwas", DataSources(), layout="standard_gwas")

    fig = build_figure(plot)

    assert fig.layout.width is None
    assert fig.layout.height == 450


def test_plot_without_panels():
    plot = Plot("empty", DataSources(), layout={"width": 800, "height": 300})

    fig = build_figure(plot)

    assert fig.layout.title.text == "No panels to show"
    assert len(fig.data) == 0


def test_empty_figure_hides_axes():
    fig = empty_figure("Loading")

    assert fig.layout.title.text == "Loading"
    assert fig.layout.xaxis.visible is False
