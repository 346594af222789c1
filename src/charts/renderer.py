"""Fixed-geometry character chart renderer.

``render`` is a pure function from statistics outputs to a grid of
exactly ``width`` by ``height`` single-width characters. Style selects
glyphs only; the painted cells are identical across styles.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from charts.glyphs import GlyphSet, glyphs_for
from charts.sampling import ScatterSample
from core.constants import (
    DEFAULT_BOX_PLOT_HEIGHT,
    DEFAULT_BOX_PLOT_WIDTH,
    DEFAULT_FREQUENCY_LABEL_WIDTH,
    DEFAULT_FREQUENCY_WIDTH,
    DEFAULT_HISTOGRAM_HEIGHT,
    DEFAULT_HISTOGRAM_WIDTH,
    DEFAULT_SCATTER_HEIGHT,
    DEFAULT_SCATTER_WIDTH,
)
from core.errors import TabstoreChartError
from stats.buckets import HistogramData, span_fraction
from stats.summary import CategoricalSummary, NumericSummary

CHART_KINDS = ("histogram", "scatter", "box", "frequency")
ChartInputs = Union[HistogramData, ScatterSample, NumericSummary, CategoricalSummary]

_DEFAULT_SIZES = {
    "histogram": (DEFAULT_HISTOGRAM_WIDTH, DEFAULT_HISTOGRAM_HEIGHT),
    "scatter": (DEFAULT_SCATTER_WIDTH, DEFAULT_SCATTER_HEIGHT),
    "box": (DEFAULT_BOX_PLOT_WIDTH, DEFAULT_BOX_PLOT_HEIGHT),
}


@dataclass(frozen=True)
class CharGrid:
    """Rendered chart payload handed to any display surface.

    Attributes:
        width: Characters per row.
        height: Number of rows.
        rows: Row strings, top to bottom.
        style: Glyph style used.
    """

    width: int
    height: int
    rows: tuple[str, ...]
    style: str

    def to_text(self) -> str:
        """Return rows joined by newlines."""
        return "\n".join(self.rows)

    def cell(self, column: int, row: int) -> str:
        """Return the character at a grid position."""
        return self.rows[row][column]


class _Canvas:
    def __init__(self, width: int, height: int, glyphs: GlyphSet) -> None:
        self.width = width
        self.height = height
        self.glyphs = glyphs
        self._cells = [[glyphs.blank] * width for _ in range(height)]

    def put(self, column: int, row: int, glyph: str) -> None:
        if 0 <= column < self.width and 0 <= row < self.height:
            self._cells[row][column] = glyph

    def get(self, column: int, row: int) -> str:
        return self._cells[row][column]

    def text(self, column: int, row: int, value: str) -> None:
        for offset, character in enumerate(value):
            self.put(column + offset, row, character)

    def freeze(self) -> CharGrid:
        return CharGrid(
            width=self.width,
            height=self.height,
            rows=tuple("".join(row) for row in self._cells),
            style=self.glyphs.name,
        )


def render(
    kind: str,
    inputs: ChartInputs,
    style: str = "ascii",
    width: int | None = None,
    height: int | None = None,
) -> CharGrid:
    """Render statistics outputs into a fixed-size character grid.

    Args:
        kind: One of ``histogram``, ``scatter``, ``box``, ``frequency``.
        inputs: Histogram data, scatter sample, numeric summary, or
            categorical summary matching ``kind``.
        style: ``ascii`` or ``unicode``.
        width: Grid width; per-kind default when omitted.
        height: Grid height; per-kind default when omitted.

    Returns:
        Grid of exactly ``width`` by ``height`` characters.

    Raises:
        TabstoreChartError: If the kind, inputs, or geometry are invalid.
    """
    glyphs = glyphs_for(style)
    if kind not in CHART_KINDS:
        raise TabstoreChartError(f"Unknown chart kind '{kind}'. Use one of: {', '.join(CHART_KINDS)}.")
    if kind == "frequency":
        if not isinstance(inputs, CategoricalSummary):
            raise _wrong_inputs(kind, inputs)
        size = (
            DEFAULT_FREQUENCY_WIDTH if width is None else width,
            max(1, len(inputs.frequencies)) if height is None else height,
        )
        canvas = _canvas(size, glyphs)
        _paint_frequency(canvas, inputs)
        return canvas.freeze()
    default_width, default_height = _DEFAULT_SIZES[kind]
    size = (
        default_width if width is None else width,
        default_height if height is None else height,
    )
    canvas = _canvas(size, glyphs)
    if kind == "histogram":
        if not isinstance(inputs, HistogramData):
            raise _wrong_inputs(kind, inputs)
        _paint_histogram(canvas, inputs)
    elif kind == "scatter":
        if not isinstance(inputs, ScatterSample):
            raise _wrong_inputs(kind, inputs)
        _paint_scatter(canvas, inputs)
    else:
        if not isinstance(inputs, NumericSummary):
            raise _wrong_inputs(kind, inputs)
        _paint_box(canvas, inputs)
    return canvas.freeze()


def _canvas(size: tuple[int, int], glyphs: GlyphSet) -> _Canvas:
    width, height = size
    if width < 1 or height < 1:
        raise TabstoreChartError(f"Chart size must be positive, got {width}x{height}.")
    return _Canvas(width, height, glyphs)


def _paint_histogram(canvas: _Canvas, data: HistogramData) -> None:
    buckets = len(data.counts)
    if buckets == 0 or buckets > canvas.width:
        raise TabstoreChartError(
            f"Cannot fit {buckets} buckets into width {canvas.width}. "
            "Use fewer buckets or a wider chart."
        )
    slot = canvas.width // buckets
    bar_width = slot - 1 if slot > 1 else 1
    peak = max(data.counts)
    for bucket, count in enumerate(data.counts):
        bar_height = _scaled_length(count, peak, canvas.height)
        for column in range(bucket * slot, bucket * slot + bar_width):
            for level in range(bar_height):
                canvas.put(column, canvas.height - 1 - level, canvas.glyphs.bar)


def _paint_scatter(canvas: _Canvas, sample: ScatterSample) -> None:
    if not sample.points:
        return
    xs = [x for x, _ in sample.points]
    ys = [y for _, y in sample.points]
    x_low, x_high = min(xs), max(xs)
    y_low, y_high = min(ys), max(ys)
    occupancy: dict[tuple[int, int], int] = {}
    for x, y in sample.points:
        column = _project(x, x_low, x_high, canvas.width)
        row = canvas.height - 1 - _project(y, y_low, y_high, canvas.height)
        occupancy[(column, row)] = occupancy.get((column, row), 0) + 1
    for (column, row), hits in occupancy.items():
        canvas.put(column, row, canvas.glyphs.point if hits == 1 else canvas.glyphs.collision)


def _paint_box(canvas: _Canvas, summary: NumericSummary) -> None:
    """Paint a vertical box plot, maximum at the top.

    Overlapping rows resolve by priority: median, box edges, caps, whiskers.
    """
    values = (summary.minimum, summary.q1, summary.median, summary.q3, summary.maximum)
    if any(value is None for value in values):
        raise TabstoreChartError(
            f"Box plot needs min, quartiles and max for column '{summary.column_name}', "
            "but the column holds no values."
        )
    low, q1, median, q3, high = (float(value) for value in values)  # type: ignore[arg-type]
    glyphs = canvas.glyphs
    width = canvas.width
    center = width // 2

    def row_of(value: float) -> int:
        return canvas.height - 1 - _project(value, low, high, canvas.height)

    top, q3_row, median_row, q1_row, bottom = (row_of(v) for v in (high, q3, median, q1, low))
    for row in range(top, bottom + 1):
        canvas.put(center, row, glyphs.whisker)
    for row in range(q3_row, q1_row + 1):
        for column in range(width):
            canvas.put(column, row, glyphs.blank)
        canvas.put(0, row, glyphs.box_side)
        canvas.put(width - 1, row, glyphs.box_side)
    cap_span = range(max(0, center - 1), min(width, center + 2))
    for row in (top, bottom):
        for column in cap_span:
            canvas.put(column, row, glyphs.cap)
    for row in (q3_row, q1_row):
        for column in range(width):
            canvas.put(column, row, glyphs.box_edge)
    for column in range(width):
        canvas.put(column, median_row, glyphs.median)


def _paint_frequency(canvas: _Canvas, summary: CategoricalSummary) -> None:
    label_width = min(DEFAULT_FREQUENCY_LABEL_WIDTH, max(0, canvas.width - 2))
    bar_space = canvas.width - label_width - 1 if label_width else canvas.width
    rows = summary.frequencies[: canvas.height]
    peak = max((row.count for row in rows), default=0)
    for index, row in enumerate(rows):
        if label_width:
            canvas.text(0, index, _fit_label(row.value, label_width))
        start = canvas.width - bar_space
        for offset in range(_scaled_length(row.count, peak, bar_space)):
            canvas.put(start + offset, index, canvas.glyphs.bar)


def _scaled_length(count: int, peak: int, span: int) -> int:
    """Scale a count to a bar length; nonzero counts get at least one cell."""
    if count <= 0 or peak <= 0:
        return 0
    return max(1, round(count / peak * span))


def _project(value: float, low: float, high: float, cells: int) -> int:
    """Map a value in ``[low, high]`` onto a cell index in ``[0, cells)``."""
    if high == low:
        return (cells - 1) // 2
    position = round(span_fraction(value, low, high) * (cells - 1))
    return min(max(position, 0), cells - 1)


def _fit_label(value: str, label_width: int) -> str:
    printable = value.replace("\n", " ").replace("\t", " ")
    if len(printable) > label_width:
        printable = printable[: label_width - 1] + "~"
    return printable.ljust(label_width)


def _wrong_inputs(kind: str, inputs: object) -> TabstoreChartError:
    return TabstoreChartError(
        f"Chart kind '{kind}' cannot render {type(inputs).__name__} inputs."
    )
