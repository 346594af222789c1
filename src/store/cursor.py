"""Forward-only, restartable cursors over stored columns.

A cursor reads one cell file per step and keeps only its position in
the directory walk between steps. Nothing read earlier is retained,
so scans stay bounded in memory for any column length.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Sequence

from core.column_types import CellValue, ColumnSpec, parse_cell
from core.errors import RowMisalignmentError
from store.layout import StoreLayout


@dataclass(frozen=True)
class Cell:
    """One cell read from the store.

    Attributes:
        row_index: Dense zero-based row index.
        raw_text: Stored textual representation.
        value: Typed value re-derived on read; ``None`` for nulls.
    """

    row_index: int
    raw_text: str
    value: CellValue


@dataclass
class CursorCounters:
    """Read instrumentation shared by cursors of one operation."""

    passes: int = 0
    cell_reads: int = 0


class ColumnCursor:
    """Restartable forward-only reader over one column."""

    def __init__(
        self,
        layout: StoreLayout,
        spec: ColumnSpec,
        expected_rows: int,
        counters: CursorCounters | None = None,
    ) -> None:
        self._layout = layout
        self._spec = spec
        self._expected_rows = expected_rows
        self._counters = counters or CursorCounters()
        self._walk: Iterator[int] | None = None
        self._next_row = 0
        self._exhausted = False

    @property
    def column_name(self) -> str:
        """Return the column this cursor reads."""
        return self._spec.name

    @property
    def spec(self) -> ColumnSpec:
        """Return the column declaration used for parsing."""
        return self._spec

    @property
    def counters(self) -> CursorCounters:
        """Return read instrumentation counters."""
        return self._counters

    @property
    def position(self) -> int:
        """Return the row index the next read will produce."""
        return self._next_row

    def reset(self) -> None:
        """Restart the scan from the first row."""
        self._walk = None
        self._next_row = 0
        self._exhausted = False

    def __iter__(self) -> "ColumnCursor":
        return self

    def __next__(self) -> Cell:
        if self._exhausted:
            raise StopIteration
        if self._walk is None:
            self._walk = self._layout.enumerate(self._spec.name)
            self._counters.passes += 1
        row_index = next(self._walk, None)
        if row_index is None:
            self._finish()
            raise StopIteration
        if row_index != self._next_row or row_index >= self._expected_rows:
            raise RowMisalignmentError(
                f"Row misalignment in column '{self._spec.name}': found row {row_index} "
                f"where row {self._next_row} was expected (dataset has "
                f"{self._expected_rows} rows). Re-import the dataset."
            )
        raw_text = self._layout.read_cell(self._spec.name, row_index)
        self._counters.cell_reads += 1
        self._next_row += 1
        return Cell(row_index=row_index, raw_text=raw_text, value=parse_cell(raw_text, self._spec, row_index))

    def _finish(self) -> None:
        self._exhausted = True
        if self._next_row != self._expected_rows:
            raise RowMisalignmentError(
                f"Row misalignment in column '{self._spec.name}': column ends after "
                f"{self._next_row} rows but the dataset has {self._expected_rows}. "
                "Re-import the dataset."
            )


class AlignedCursor:
    """Advance several column cursors in row-index lock-step."""

    def __init__(self, cursors: Sequence[ColumnCursor]) -> None:
        self._cursors = tuple(cursors)

    @property
    def column_names(self) -> tuple[str, ...]:
        """Return the column names in tuple order."""
        return tuple(cursor.column_name for cursor in self._cursors)

    def reset(self) -> None:
        """Restart every underlying cursor."""
        for cursor in self._cursors:
            cursor.reset()

    def __iter__(self) -> "AlignedCursor":
        return self

    def __next__(self) -> tuple[Cell, ...]:
        cells: list[Cell | None] = []
        for cursor in self._cursors:
            cells.append(next(cursor, None))
        present = [cell for cell in cells if cell is not None]
        if not present:
            raise StopIteration
        if len(present) != len(cells):
            missing = [
                cursor.column_name for cursor, cell in zip(self._cursors, cells) if cell is None
            ]
            raise RowMisalignmentError(
                f"Row misalignment: columns {', '.join(missing)} ended before row "
                f"{present[0].row_index}. Re-import the dataset."
            )
        row_indices = {cell.row_index for cell in present}
        if len(row_indices) != 1:
            raise RowMisalignmentError(
                f"Row misalignment across columns {', '.join(self.column_names)}: "
                f"rows {sorted(row_indices)} read in the same step. Re-import the dataset."
            )
        return tuple(present)
