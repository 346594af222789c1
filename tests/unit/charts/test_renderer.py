"""Unit tests for the fixed-geometry chart renderer."""

from __future__ import annotations

import pytest

from charts.renderer import CharGrid, render
from charts.sampling import ScatterSample
from core.column_types import ColumnType
from core.errors import TabstoreChartError
from stats.buckets import HistogramData
from stats.summary import CategoricalSummary, FrequencyRow, NumericSummary

_HISTOGRAM = HistogramData(
    column_name="value",
    edges=(0.0, 1.0, 2.0, 3.0, 4.0),
    counts=(1, 10, 0, 5),
    nulls=0,
)
_BOX = NumericSummary(
    column_name="value",
    column_type=ColumnType.INTEGER,
    count=11,
    nulls=0,
    minimum=0,
    maximum=10,
    mean=5.0,
    stddev=3.0,
    q1=2,
    median=2,
    q3=6,
)
_FREQUENCY = CategoricalSummary(
    column_name="city",
    column_type=ColumnType.SHORT_STRING,
    count=7,
    nulls=0,
    distinct=3,
    frequencies=(
        FrequencyRow("Lisbon", 4, 57.1),
        FrequencyRow("Porto", 2, 28.6),
        FrequencyRow("A very long city name", 1, 14.3),
    ),
    mode=("Lisbon",),
)


def _painted(grid: CharGrid) -> set[tuple[int, int]]:
    return {
        (column, row)
        for row in range(grid.height)
        for column in range(grid.width)
        if grid.cell(column, row) != " "
    }


def _assert_geometry(grid: CharGrid, width: int, height: int) -> None:
    assert (grid.width, grid.height) == (width, height)
    assert len(grid.rows) == height
    assert all(len(row) == width for row in grid.rows)


@pytest.mark.parametrize(
    ("kind", "inputs"),
    [
        ("histogram", _HISTOGRAM),
        ("scatter", ScatterSample("x", "y", ((0.0, 0.0), (5.0, 2.0), (10.0, 10.0)), 3, 3)),
        ("box", _BOX),
        ("frequency", _FREQUENCY),
    ],
)
def test_styles_share_geometry(kind, inputs) -> None:
    """ASCII and Unicode grids paint exactly the same cells."""
    ascii_grid = render(kind, inputs, "ascii", width=20, height=11)
    unicode_grid = render(kind, inputs, "unicode", width=20, height=11)

    _assert_geometry(ascii_grid, 20, 11)
    _assert_geometry(unicode_grid, 20, 11)
    assert _painted(ascii_grid) == _painted(unicode_grid)
    assert (ascii_grid.style, unicode_grid.style) == ("ascii", "unicode")


def test_histogram_bars_scale_to_peak() -> None:
    """The tallest bucket fills the height and small counts stay visible."""
    grid = render("histogram", _HISTOGRAM, "ascii", width=8, height=5)

    assert all(grid.cell(2, row) == "#" for row in range(5))
    assert grid.cell(0, 4) == "#"
    assert grid.cell(0, 3) == " "
    assert all(grid.cell(4, row) == " " for row in range(5))
    assert all(grid.cell(1, row) == " " for row in range(5))


def test_histogram_rejects_more_buckets_than_columns() -> None:
    """Buckets must fit the grid width."""
    with pytest.raises(TabstoreChartError, match="wider chart"):
        render("histogram", _HISTOGRAM, "ascii", width=3, height=5)


def test_scatter_marks_collisions() -> None:
    """Cells hit by several points use the collision glyph."""
    sample = ScatterSample("x", "y", ((0.0, 0.0), (0.0, 0.0), (10.0, 10.0)), 3, 3)

    grid = render("scatter", sample, "ascii", width=5, height=5)

    assert grid.cell(0, 4) == "@"
    assert grid.cell(4, 0) == "*"
    assert len(_painted(grid)) == 2


def test_empty_scatter_is_blank() -> None:
    """A sample with no points renders an empty grid."""
    grid = render("scatter", ScatterSample("x", "y", (), 0, 4), "ascii", width=4, height=3)

    assert grid.to_text() == "\n".join(["    "] * 3)


def test_box_plot_paint_order() -> None:
    """Median overrides the box edge it shares a row with."""
    grid = render("box", _BOX, "ascii", width=7, height=11)

    assert grid.rows[0] == "  ---  "
    assert grid.rows[2] == "   |   "
    assert grid.rows[4] == "======="
    assert grid.rows[6] == "|     |"
    assert grid.rows[8] == "#######"
    assert grid.rows[10] == "  ---  "


def test_box_plot_needs_quartiles() -> None:
    """An all-null numeric summary cannot be drawn."""
    empty = NumericSummary("value", ColumnType.FLOAT, 0, 3, None, None, None, None, None, None, None)

    with pytest.raises(TabstoreChartError, match="holds no values"):
        render("box", empty, "ascii")


def test_frequency_rows_show_labels_and_bars() -> None:
    """Each value gets a padded label and a scaled bar."""
    grid = render("frequency", _FREQUENCY, "ascii", width=30)

    assert grid.height == 3
    assert grid.rows[0] == "Lisbon".ljust(16) + " " + "#" * 13
    assert grid.rows[1].startswith("Porto".ljust(16) + " #")
    assert grid.rows[2].startswith("A very long cit~ #")


def test_render_rejects_bad_requests() -> None:
    """Unknown kinds, mismatched inputs and empty grids fail."""
    with pytest.raises(TabstoreChartError, match="Unknown chart kind"):
        render("pie", _HISTOGRAM)
    with pytest.raises(TabstoreChartError, match="cannot render HistogramData"):
        render("box", _HISTOGRAM)
    with pytest.raises(TabstoreChartError, match="must be positive"):
        render("histogram", _HISTOGRAM, width=0)


def test_extreme_ranges_project_onto_the_grid() -> None:
    """Box and scatter charts handle spans wider than the float range."""
    extreme_box = NumericSummary(
        "value", ColumnType.FLOAT, 3, 0, -1e308, 1e308, 0.0, 1e308, -1e308, 0.0, 1e308
    )
    sample = ScatterSample("x", "y", ((-1e308, 1e308), (1e308, -1e308)), 2, 2)

    box = render("box", extreme_box, "ascii", width=7, height=9)
    scatter = render("scatter", sample, "ascii", width=5, height=5)

    assert box.rows[4] == "======="
    assert (scatter.cell(0, 0), scatter.cell(4, 4)) == ("*", "*")
