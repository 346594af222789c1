"""Fixed-bucket histogram data for numeric columns.

Bucket boundaries partition ``[min, max]`` into equal-width intervals.
Each value falls into ``floor((v - min) / width)``, with the maximum
folded into the last bucket.
"""

from __future__ import annotations

from dataclasses import dataclass

from core.errors import TabstoreStatsError, UndefinedStatisticError
from stats.cancellation import CancellationToken, check_token
from stats.online import RunningMoments
from store.cursor import ColumnCursor


@dataclass(frozen=True)
class HistogramData:
    """Bucketed counts for one numeric column.

    Attributes:
        column_name: Source column.
        edges: ``buckets + 1`` ascending boundaries.
        counts: Values per bucket.
        nulls: Null cells skipped.
    """

    column_name: str
    edges: tuple[float, ...]
    counts: tuple[int, ...]
    nulls: int

    @property
    def total(self) -> int:
        """Return the number of bucketed values."""
        return sum(self.counts)


def bucket_edges(minimum: float, maximum: float, buckets: int) -> tuple[float, ...]:
    """Return equal-width boundaries over ``[minimum, maximum]``."""
    if buckets < 1:
        raise TabstoreStatsError(f"Bucket count must be positive, got {buckets}.")
    half_width = (maximum / 2 - minimum / 2) / buckets
    return tuple(2 * (minimum / 2 + half_width * index) for index in range(buckets)) + (
        float(maximum),
    )


def span_fraction(value: float, low: float, high: float) -> float:
    """Return where ``value`` sits in ``[low, high]`` as a fraction.

    Works on halves so spans wider than the float range stay finite.
    """
    half_span = high / 2 - low / 2
    if half_span == 0:
        return (value - low) / (high - low)
    return (value / 2 - low / 2) / half_span


def bucket_index(value: float, minimum: float, maximum: float, buckets: int) -> int:
    """Return the bucket holding ``value``."""
    if maximum == minimum:
        return 0
    index = int(span_fraction(value, minimum, maximum) * buckets)
    return min(max(index, 0), buckets - 1)


def compute_histogram(
    cursor: ColumnCursor,
    buckets: int,
    token: CancellationToken | None = None,
) -> HistogramData:
    """Bucket a numeric column in two passes: extent, then counts.

    Raises:
        UndefinedStatisticError: If the column is not numeric or all null.
        ComputationCancelledError: If cancelled between passes.
    """
    if not cursor.spec.column_type.is_numeric:
        raise UndefinedStatisticError(
            f"Histogram is undefined for column '{cursor.column_name}' of type "
            f"{cursor.spec.column_type.value}. Use a frequency chart instead."
        )
    if buckets < 1:
        raise TabstoreStatsError(f"Bucket count must be positive, got {buckets}.")
    operation = f"Histogram for '{cursor.column_name}'"
    check_token(token, operation, 0)
    moments = RunningMoments()
    nulls = 0
    cursor.reset()
    for cell in cursor:
        if cell.value is None:
            nulls += 1
        else:
            moments.add(cell.value)  # type: ignore[arg-type]
    if moments.minimum is None or moments.maximum is None:
        raise UndefinedStatisticError(
            f"Histogram is undefined for column '{cursor.column_name}': it holds no values."
        )
    minimum, maximum = float(moments.minimum), float(moments.maximum)
    check_token(token, operation, 1)
    edges = bucket_edges(minimum, maximum, buckets)
    counts = [0] * buckets
    cursor.reset()
    for cell in cursor:
        if cell.value is not None:
            counts[bucket_index(float(cell.value), minimum, maximum, buckets)] += 1
    return HistogramData(
        column_name=cursor.column_name,
        edges=edges,
        counts=tuple(counts),
        nulls=nulls,
    )
