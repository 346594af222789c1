"""Unit tests for column summaries and reports."""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path

import pytest
import yaml

from core.column_types import ColumnType
from core.config import TabstoreConfig
from core.errors import ComputationCancelledError, UndefinedStatisticError
from core.types import ImportOptions
from ingest.csv_import import import_csv
from stats.cancellation import CancellationToken
from stats.summary import (
    CategoricalSummary,
    NumericSummary,
    describe_column,
    describe_dataset,
    write_report,
)
from store.dataset_store import DatasetStore
from store.integrity import GpgSignatureVerifier
from tests.fixture_paths import fixture_path


def _config(tmp_path: Path, **overrides) -> TabstoreConfig:
    return replace(TabstoreConfig.from_env(), data_root=tmp_path, **overrides)


def _open_people(tmp_path: Path) -> DatasetStore:
    options = ImportOptions(
        dataset_name="people",
        source_path=str(fixture_path("people.csv")),
        metadata_path=str(fixture_path("people_metadata.yaml")),
    )
    dataset_root = import_csv(options, _config(tmp_path)).dataset_root
    return DatasetStore(dataset_root, GpgSignatureVerifier())


def test_numeric_summary_of_integer_column(tmp_path) -> None:
    """Integer columns get moments and exact quartiles."""
    store = _open_people(tmp_path)

    summary = describe_column(store, "age", _config(tmp_path))

    assert isinstance(summary, NumericSummary)
    assert (summary.count, summary.nulls) == (9, 1)
    assert (summary.minimum, summary.maximum) == (25, 52)
    assert summary.mean == pytest.approx(329 / 9)
    assert (summary.q1, summary.median, summary.q3) == (30, 34, 41)
    assert summary.missing_percentage == pytest.approx(10.0)
    assert summary.undefined_statistics == ("distinct", "mode")


def test_numeric_passes_are_bounded_by_value_range(tmp_path) -> None:
    """Quartiles take one moments pass plus a logarithmic search."""
    store = _open_people(tmp_path)

    summary = describe_column(store, "age", _config(tmp_path))

    assert 1 < summary.passes <= 1 + 3 * 5


def test_float_column_quartiles(tmp_path) -> None:
    """Float quartiles interpolate between stored values."""
    store = _open_people(tmp_path)

    summary = describe_column(store, "height", _config(tmp_path))

    assert isinstance(summary, NumericSummary)
    assert summary.column_type is ColumnType.FLOAT
    assert (summary.minimum, summary.maximum) == (1.60, 1.90)
    assert summary.median == pytest.approx(1.75)
    assert summary.q1 == pytest.approx(1.68)
    assert summary.q3 == pytest.approx(1.82)


def test_categorical_summary_of_text_column(tmp_path) -> None:
    """Text columns degrade to counts, distinct values and mode."""
    store = _open_people(tmp_path)

    summary = describe_column(store, "city", _config(tmp_path))

    assert isinstance(summary, CategoricalSummary)
    assert (summary.count, summary.nulls, summary.distinct) == (9, 1, 4)
    assert summary.mode == ("Lisbon",)
    assert [(row.value, row.count) for row in summary.frequencies] == [
        ("Lisbon", 4),
        ("Porto", 3),
        ("Braga", 1),
        ("Faro", 1),
    ]
    assert "mean" in summary.undefined_statistics


def test_boolean_column_counts_true_and_false(tmp_path) -> None:
    """Boolean cells are tallied by their typed value."""
    store = _open_people(tmp_path)

    summary = describe_column(store, "active", _config(tmp_path))

    assert isinstance(summary, CategoricalSummary)
    assert [(row.value, row.count) for row in summary.frequencies] == [("true", 6), ("false", 4)]


def test_undefined_statistic_is_reported_not_coerced(tmp_path) -> None:
    """Asking a text column for its mean raises a clear error."""
    store = _open_people(tmp_path)
    summary = describe_column(store, "city", _config(tmp_path))

    with pytest.raises(UndefinedStatisticError, match="'mean' is undefined"):
        summary.statistic("mean")
    assert summary.statistic("distinct") == 4


def test_spilled_summary_matches_in_memory_summary(tmp_path) -> None:
    """A tiny in-memory limit forces a spill with the same result."""
    store = _open_people(tmp_path)

    spilled = describe_column(store, "city", _config(tmp_path, max_in_memory_distinct=1))
    in_memory = describe_column(store, "city", _config(tmp_path))

    assert spilled.spilled
    assert spilled.frequencies == in_memory.frequencies
    assert spilled.distinct == in_memory.distinct


def test_parallel_workers_match_serial_results(tmp_path) -> None:
    """Column summaries are identical with one or several workers."""
    store = _open_people(tmp_path)

    serial = describe_dataset(store, _config(tmp_path))
    parallel = describe_dataset(store, _config(tmp_path, workers=3))

    assert [summary.column_name for summary in parallel] == list(store.metadata.column_names)
    assert parallel == serial


def test_cancelled_summary_raises(tmp_path) -> None:
    """A cancelled token aborts the summary without a result."""
    store = _open_people(tmp_path)
    token = CancellationToken()
    token.cancel()

    with pytest.raises(ComputationCancelledError):
        describe_column(store, "age", _config(tmp_path), token)


def test_write_report_serializes_every_summary(tmp_path) -> None:
    """The YAML report carries provenance and one entry per column."""
    store = _open_people(tmp_path)
    summaries = describe_dataset(store, _config(tmp_path), ["age", "city"])
    report_path = tmp_path / "reports" / "people.yaml"

    write_report(report_path, store, summaries)

    payload = yaml.safe_load(report_path.read_text(encoding="utf-8"))
    assert payload["dataset"] == "people"
    assert payload["rows"] == 10
    assert [column["column"] for column in payload["columns"]] == ["age", "city"]
    assert payload["columns"][0]["median"] == 34


@pytest.mark.parametrize("max_in_memory_distinct", [100, 2])
def test_mode_keeps_every_tie_beyond_top(tmp_path, max_in_memory_distinct: int) -> None:
    """All values tied for the highest count form the mode, not just the top rows."""
    source = tmp_path / "tags.csv"
    source.write_text("tag\ng\nf\ne\nd\nc\nb\na\n", encoding="utf-8")
    config = _config(tmp_path, max_in_memory_distinct=max_in_memory_distinct)
    dataset_root = import_csv(
        ImportOptions(dataset_name="tags", source_path=str(source)), config
    ).dataset_root
    store = DatasetStore(dataset_root, GpgSignatureVerifier())

    summary = describe_column(store, "tag", config, top=5)

    assert isinstance(summary, CategoricalSummary)
    assert len(summary.frequencies) == 5
    assert summary.mode == ("a", "b", "c", "d", "e", "f", "g")
