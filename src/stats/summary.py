"""Descriptive-statistics summaries per column.

Numeric columns get count, nulls, extrema, mean, and sample standard
deviation from one moments pass, then quartiles by counting selection.
Boolean and short-string columns degrade to counts, distinct count, and
most-frequent values. Each summary names the statistics that are
undefined for its column instead of coercing them.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence, Union

from core.column_types import ColumnType
from core.config import TabstoreConfig
from core.constants import DEFAULT_TOP_FREQUENCIES
from core.errors import TabstoreStatsError, UndefinedStatisticError
from core.logging_config import get_logger
from core.metadata import import_yaml
from stats.cancellation import CancellationToken, check_token
from stats.frequency import FrequencyCounter
from stats.online import RunningMoments
from stats.selection import CountingSelector, CursorScan
from store.cursor import CursorCounters
from store.dataset_store import DatasetStore

_LOGGER = get_logger(__name__)

NUMERIC_STATISTICS = ("count", "nulls", "min", "max", "mean", "stddev", "q1", "median", "q3")
CATEGORICAL_STATISTICS = ("count", "nulls", "distinct", "mode")
ALL_STATISTICS = NUMERIC_STATISTICS + ("distinct", "mode")
QUARTILE_PROBABILITIES = (0.25, 0.5, 0.75)


@dataclass(frozen=True)
class NumericSummary:
    """Summary of an integer or float column.

    Attributes:
        column_name: Source column.
        column_type: Declared column type.
        count: Non-null values.
        nulls: Null cells.
        minimum: Smallest value.
        maximum: Largest value.
        mean: Arithmetic mean.
        stddev: Sample standard deviation.
        q1: First quartile.
        median: Second quartile.
        q3: Third quartile.
        passes: Full cursor passes the computation used.
    """

    column_name: str
    column_type: ColumnType
    count: int
    nulls: int
    minimum: int | float | None
    maximum: int | float | None
    mean: float | None
    stddev: float | None
    q1: int | float | None
    median: int | float | None
    q3: int | float | None
    passes: int = 0

    @property
    def missing_percentage(self) -> float:
        """Return nulls as a percentage of all cells."""
        return _percentage(self.nulls, self.count + self.nulls)

    @property
    def undefined_statistics(self) -> tuple[str, ...]:
        """Return statistic names with no meaningful value here."""
        values = self._values()
        return tuple(
            name for name in ALL_STATISTICS if name not in values or values[name] is None
        )

    def statistic(self, name: str) -> int | float:
        """Return one statistic by name.

        Raises:
            UndefinedStatisticError: If the statistic is undefined.
        """
        value = self._values().get(name)
        if value is None:
            raise UndefinedStatisticError(
                _undefined_message(name, self.column_name, self.column_type)
            )
        return value

    def to_payload(self) -> dict[str, object]:
        """Return a YAML/JSON friendly mapping."""
        payload: dict[str, object] = {
            "column": self.column_name,
            "type": self.column_type.value,
        }
        payload.update(self._values())
        payload["missing_percentage"] = round(self.missing_percentage, 2)
        payload["undefined"] = list(self.undefined_statistics)
        return payload

    def _values(self) -> dict[str, int | float | None]:
        return {
            "count": self.count,
            "nulls": self.nulls,
            "min": self.minimum,
            "max": self.maximum,
            "mean": self.mean,
            "stddev": self.stddev,
            "q1": self.q1,
            "median": self.median,
            "q3": self.q3,
        }


@dataclass(frozen=True)
class FrequencyRow:
    """One value with its occurrence count and share of non-null cells."""

    value: str
    count: int
    percentage: float


@dataclass(frozen=True)
class CategoricalSummary:
    """Summary of a boolean or short-string column.

    Attributes:
        column_name: Source column.
        column_type: Declared column type.
        count: Non-null values.
        nulls: Null cells.
        distinct: Distinct non-null values.
        frequencies: Most frequent values, descending.
        mode: Values sharing the highest count.
        spilled: Whether distinct counting used the on-disk table.
    """

    column_name: str
    column_type: ColumnType
    count: int
    nulls: int
    distinct: int
    frequencies: tuple[FrequencyRow, ...]
    mode: tuple[str, ...]
    spilled: bool = False

    @property
    def missing_percentage(self) -> float:
        """Return nulls as a percentage of all cells."""
        return _percentage(self.nulls, self.count + self.nulls)

    @property
    def undefined_statistics(self) -> tuple[str, ...]:
        """Return statistic names with no meaningful value here."""
        undefined = [name for name in ALL_STATISTICS if name not in CATEGORICAL_STATISTICS]
        if not self.mode:
            undefined.append("mode")
        return tuple(undefined)

    def statistic(self, name: str) -> int | tuple[str, ...]:
        """Return one statistic by name.

        Raises:
            UndefinedStatisticError: If the statistic is undefined.
        """
        if name in self.undefined_statistics or name not in CATEGORICAL_STATISTICS:
            raise UndefinedStatisticError(
                _undefined_message(name, self.column_name, self.column_type)
            )
        values: dict[str, int | tuple[str, ...]] = {
            "count": self.count,
            "nulls": self.nulls,
            "distinct": self.distinct,
            "mode": self.mode,
        }
        return values[name]

    def to_payload(self) -> dict[str, object]:
        """Return a YAML/JSON friendly mapping."""
        return {
            "column": self.column_name,
            "type": self.column_type.value,
            "count": self.count,
            "nulls": self.nulls,
            "distinct": self.distinct,
            "mode": list(self.mode),
            "frequencies": [
                {"value": row.value, "count": row.count, "percentage": round(row.percentage, 2)}
                for row in self.frequencies
            ],
            "missing_percentage": round(self.missing_percentage, 2),
            "undefined": list(self.undefined_statistics),
        }


ColumnSummary = Union[NumericSummary, CategoricalSummary]


def describe_column(
    dataset: DatasetStore,
    column_name: str,
    config: TabstoreConfig,
    token: CancellationToken | None = None,
    top: int = DEFAULT_TOP_FREQUENCIES,
) -> ColumnSummary:
    """Summarize one column through cursors only.

    Args:
        dataset: Open dataset store.
        column_name: Column to summarize.
        config: Runtime configuration (spill threshold).
        token: Optional cancellation token, checked per pass.
        top: Frequency rows kept for categorical columns.

    Raises:
        UnknownColumnError: If the column is not declared.
        RowMisalignmentError: If the column is structurally inconsistent.
        ComputationCancelledError: If cancelled between passes.
    """
    spec = dataset.metadata.column(column_name)
    if spec.column_type.is_numeric:
        return _describe_numeric(dataset, column_name, token)
    return _describe_categorical(dataset, column_name, config, token, top)


def describe_dataset(
    dataset: DatasetStore,
    config: TabstoreConfig,
    column_names: Sequence[str] | None = None,
    token: CancellationToken | None = None,
) -> tuple[ColumnSummary, ...]:
    """Summarize several columns, in parallel when workers allow.

    Every column owns its own cursor, so no state is shared between
    workers. Results keep the requested column order.
    """
    names = tuple(column_names) if column_names else dataset.metadata.column_names
    if config.workers <= 1 or len(names) <= 1:
        return tuple(describe_column(dataset, name, config, token) for name in names)
    with ThreadPoolExecutor(max_workers=config.workers) as executor:
        futures = [
            executor.submit(describe_column, dataset, name, config, token) for name in names
        ]
        return tuple(future.result() for future in futures)


def write_report(report_path: Path, dataset: DatasetStore, summaries: Sequence[ColumnSummary]) -> None:
    """Write an analysis report with every summary as YAML."""
    yaml = import_yaml()
    payload = {
        "dataset": dataset.metadata.dataset_name,
        "rows": dataset.import_state.row_count,
        "source_sha256": dataset.import_state.source_sha256,
        "columns": [summary.to_payload() for summary in summaries],
    }
    try:
        report_path.parent.mkdir(parents=True, exist_ok=True)
        report_path.write_text(
            yaml.safe_dump(payload, sort_keys=False, allow_unicode=True),
            encoding="utf-8",
        )
    except OSError as error:
        raise TabstoreStatsError(
            f"Failed to write report to {report_path}: {error}. "
            "Check that the destination is writable."
        ) from error
    _LOGGER.info("report_written", dataset_name=dataset.metadata.dataset_name, path=str(report_path))


def _describe_numeric(
    dataset: DatasetStore,
    column_name: str,
    token: CancellationToken | None,
) -> NumericSummary:
    counters = CursorCounters()
    cursor = dataset.open_cursor(column_name, counters)
    spec = cursor.spec
    check_token(token, f"Summary of '{column_name}'", 0)
    moments = RunningMoments()
    nulls = 0
    for cell in cursor:
        if cell.value is None:
            nulls += 1
        else:
            moments.add(cell.value)  # type: ignore[arg-type]
    quartiles: tuple[int | float | None, ...] = (None, None, None)
    if moments.minimum is not None and moments.maximum is not None:
        selector = CountingSelector(
            CursorScan(cursor),
            count=moments.count,
            minimum=moments.minimum,
            maximum=moments.maximum,
            integral=spec.column_type is ColumnType.INTEGER,
            token=token,
            label=column_name,
        )
        quartiles = selector.quantiles(QUARTILE_PROBABILITIES)
    summary = NumericSummary(
        column_name=column_name,
        column_type=spec.column_type,
        count=moments.count,
        nulls=nulls,
        minimum=moments.minimum,
        maximum=moments.maximum,
        mean=moments.mean if moments.count else None,
        stddev=moments.stddev,
        q1=quartiles[0],
        median=quartiles[1],
        q3=quartiles[2],
        passes=counters.passes,
    )
    _LOGGER.info(
        "column_summarized",
        column=column_name,
        kind="numeric",
        passes=counters.passes,
        cell_reads=counters.cell_reads,
    )
    return summary


def _describe_categorical(
    dataset: DatasetStore,
    column_name: str,
    config: TabstoreConfig,
    token: CancellationToken | None,
    top: int,
) -> CategoricalSummary:
    counters = CursorCounters()
    cursor = dataset.open_cursor(column_name, counters)
    spec = cursor.spec
    check_token(token, f"Summary of '{column_name}'", 0)
    nulls = 0
    with FrequencyCounter(config.max_in_memory_distinct) as counter:
        for cell in cursor:
            if cell.value is None:
                nulls += 1
            elif spec.column_type is ColumnType.BOOLEAN:
                counter.add("true" if cell.value else "false")
            else:
                counter.add(cell.raw_text)
        ranked = counter.most_common(top)
        mode = tuple(counter.modes())
        distinct = counter.distinct_count()
        spilled = counter.spilled
        count = counter.total
    frequencies = tuple(
        FrequencyRow(value=value, count=occurrences, percentage=_percentage(occurrences, count))
        for value, occurrences in ranked
    )
    _LOGGER.info(
        "column_summarized",
        column=column_name,
        kind="categorical",
        passes=counters.passes,
        cell_reads=counters.cell_reads,
        spilled=spilled,
    )
    return CategoricalSummary(
        column_name=column_name,
        column_type=spec.column_type,
        count=count,
        nulls=nulls,
        distinct=distinct,
        frequencies=frequencies,
        mode=mode,
        spilled=spilled,
    )


def _percentage(part: int, whole: int) -> float:
    return 100.0 * part / whole if whole else 0.0


def _undefined_message(name: str, column_name: str, column_type: ColumnType) -> str:
    if name not in ALL_STATISTICS:
        return f"Unknown statistic '{name}'. Use one of: {', '.join(ALL_STATISTICS)}."
    return (
        f"Statistic '{name}' is undefined for column '{column_name}' "
        f"of type {column_type.value}."
    )
