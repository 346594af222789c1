"""Bounded scatter-plot samples drawn from aligned cursors.

Reservoir sampling (Algorithm R) keeps at most ``sample_size`` points
while streaming every row once, so plotting cost never grows with the
dataset. A fixed seed makes samples reproducible.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Sequence

from core.column_types import ColumnSpec
from core.errors import TabstoreChartError, UndefinedStatisticError
from store.cursor import AlignedCursor


@dataclass(frozen=True)
class ScatterSample:
    """Paired numeric values sampled from two columns.

    Attributes:
        x_column: Column plotted horizontally.
        y_column: Column plotted vertically.
        points: Sampled ``(x, y)`` pairs in row order.
        eligible_rows: Rows where both values were non-null.
        rows_seen: All rows streamed.
    """

    x_column: str
    y_column: str
    points: tuple[tuple[float, float], ...]
    eligible_rows: int
    rows_seen: int


def reservoir_sample(
    cursor: AlignedCursor,
    sample_size: int,
    seed: int,
) -> ScatterSample:
    """Sample up to ``sample_size`` non-null pairs from a two-column cursor.

    Args:
        cursor: Aligned cursor over exactly two numeric columns.
        sample_size: Reservoir capacity.
        seed: Random seed for reproducible samples.

    Raises:
        TabstoreChartError: If the cursor does not cover two columns.
        RowMisalignmentError: If the columns disagree on row indices.
    """
    if len(cursor.column_names) != 2:
        raise TabstoreChartError(
            f"Scatter sampling needs exactly two columns, got {len(cursor.column_names)}."
        )
    if sample_size < 1:
        raise TabstoreChartError(f"Sample size must be positive, got {sample_size}.")
    rng = random.Random(seed)
    reservoir: list[tuple[int, float, float]] = []
    eligible = 0
    seen = 0
    cursor.reset()
    for x_cell, y_cell in cursor:
        seen += 1
        if x_cell.value is None or y_cell.value is None:
            continue
        point = (x_cell.row_index, float(x_cell.value), float(y_cell.value))  # type: ignore[arg-type]
        eligible += 1
        if len(reservoir) < sample_size:
            reservoir.append(point)
            continue
        slot = rng.randrange(eligible)
        if slot < sample_size:
            reservoir[slot] = point
    reservoir.sort()
    x_column, y_column = cursor.column_names
    return ScatterSample(
        x_column=x_column,
        y_column=y_column,
        points=tuple((x, y) for _, x, y in reservoir),
        eligible_rows=eligible,
        rows_seen=seen,
    )


def require_numeric(specs: Sequence[ColumnSpec]) -> None:
    """Reject non-numeric columns before a scatter pass.

    Raises:
        UndefinedStatisticError: If a column is not integer or float.
    """
    for spec in specs:
        if not spec.column_type.is_numeric:
            raise UndefinedStatisticError(
                f"Scatter plot is undefined for column '{spec.name}' of type "
                f"{spec.column_type.value}. Choose integer or float columns."
            )
