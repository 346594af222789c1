"""Python SDK for dataset operations.

This module exposes high-level APIs for import, inference, statistics,
charts, and export backed by the directory column store.
"""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path
from typing import Sequence

from charts.renderer import CharGrid, render
from charts.sampling import ScatterSample, require_numeric, reservoir_sample
from core.config import TabstoreConfig
from core.constants import (
    DEFAULT_HISTOGRAM_BUCKETS,
    DEFAULT_SCATTER_SAMPLE_SIZE,
    DEFAULT_TOP_FREQUENCIES,
)
from core.errors import TabstoreChartError
from core.metadata import DatasetMetadata
from core.types import ImportOptions, ImportResult, InferenceReport
from ingest.csv_export import export_csv
from ingest.csv_import import import_csv, infer_source_metadata
from stats.buckets import HistogramData, compute_histogram
from stats.cancellation import CancellationToken
from stats.summary import (
    ColumnSummary,
    describe_column,
    describe_dataset,
    write_report,
)
from store.catalog import DatasetCatalog
from store.cursor import CursorCounters
from store.dataset_store import DatasetStore, RowView
from store.integrity import GpgSignatureVerifier, SignatureVerifier


class TabstoreClient:
    """Primary SDK entry point."""

    def __init__(
        self,
        config: TabstoreConfig | None = None,
        verifier: SignatureVerifier | None = None,
    ) -> None:
        """Create SDK client.

        Args:
            config: Optional runtime configuration.
            verifier: Signature checker for the integrity gate.
        """
        self._config = config or TabstoreConfig.from_env()
        self._verifier = verifier or GpgSignatureVerifier()
        self._catalog = DatasetCatalog(self._config)

    @property
    def config(self) -> TabstoreConfig:
        """Return the runtime configuration."""
        return self._config

    def import_csv(self, options: ImportOptions) -> ImportResult:
        """Import a CSV file into a new dataset.

        Args:
            options: Import options.

        Returns:
            Summary of the published dataset.

        Raises:
            TabstoreIngestError: If the CSV is malformed or the target exists.
            CellValueError: If a cell fails type validation.
        """
        return import_csv(options, self._config)

    def infer(
        self,
        source_path: str,
        dataset_name: str,
        output_path: Path | None = None,
        has_header: bool | None = None,
    ) -> tuple[DatasetMetadata, InferenceReport]:
        """Infer metadata from a CSV sample, optionally writing it out."""
        return infer_source_metadata(
            source_path, dataset_name, self._config, output_path, has_header
        )

    def dataset(self, dataset_name: str) -> "Dataset":
        """Open a dataset handle by name.

        Raises:
            TabstoreStoreError: If the dataset does not exist.
            IncompleteImportError: If its import never completed.
            IntegrityCheckFailedError: If signature verification fails.
        """
        store = DatasetStore(
            self._catalog.dataset_root(dataset_name),
            self._verifier,
            require_integrity=self._config.require_integrity,
        )
        return Dataset(store, self._config)

    def list_datasets(self) -> list[str]:
        """Return names of imported datasets."""
        return self._catalog.list_datasets()

    def delete_dataset(self, dataset_name: str) -> Path:
        """Delete a dataset directory and return its former path."""
        return self._catalog.delete_dataset(dataset_name)

    def with_data_root(self, data_root: str) -> "TabstoreClient":
        """Clone the client with a different local data root.

        Args:
            data_root: New data root path.

        Returns:
            New SDK client instance.
        """
        resolved_root = Path(data_root).expanduser().resolve()
        updated_config = replace(self._config, data_root=resolved_root)
        return TabstoreClient(updated_config, self._verifier)


class Dataset:
    """Dataset handle for statistics, charts, and export."""

    def __init__(self, store: DatasetStore, config: TabstoreConfig) -> None:
        self._store = store
        self._config = config

    @property
    def name(self) -> str:
        """Return the dataset name."""
        return self._store.metadata.dataset_name

    @property
    def metadata(self) -> DatasetMetadata:
        """Return the metadata record."""
        return self._store.metadata

    @property
    def store(self) -> DatasetStore:
        """Return the underlying store handle."""
        return self._store

    def row_count(self) -> int:
        """Count rows by walking the store."""
        return self._store.row_count()

    def verify(self) -> int:
        """Verify structure and return the row count."""
        return self._store.verify()

    def read_row(self, row_index: int) -> RowView:
        """Read one row across all columns."""
        return self._store.read_row(row_index)

    def describe(
        self,
        column_name: str,
        token: CancellationToken | None = None,
        top: int = DEFAULT_TOP_FREQUENCIES,
    ) -> ColumnSummary:
        """Summarize one column."""
        return describe_column(self._store, column_name, self._config, token, top)

    def describe_all(
        self,
        column_names: Sequence[str] | None = None,
        token: CancellationToken | None = None,
    ) -> tuple[ColumnSummary, ...]:
        """Summarize several columns, all by default."""
        return describe_dataset(self._store, self._config, column_names, token)

    def write_report(self, report_path: Path, summaries: Sequence[ColumnSummary]) -> None:
        """Write summaries as a YAML analysis report."""
        write_report(report_path, self._store, summaries)

    def histogram_data(
        self,
        column_name: str,
        buckets: int = DEFAULT_HISTOGRAM_BUCKETS,
        token: CancellationToken | None = None,
    ) -> HistogramData:
        """Bucket a numeric column."""
        return compute_histogram(self._store.open_cursor(column_name), buckets, token)

    def scatter_sample(
        self,
        x_column: str,
        y_column: str,
        sample_size: int = DEFAULT_SCATTER_SAMPLE_SIZE,
        counters: CursorCounters | None = None,
    ) -> ScatterSample:
        """Draw a seeded reservoir sample of ``(x, y)`` pairs."""
        require_numeric([self.metadata.column(x_column), self.metadata.column(y_column)])
        cursor = self._store.open_aligned((x_column, y_column), counters)
        return reservoir_sample(cursor, sample_size, self._config.random_seed)

    def histogram(
        self,
        column_name: str,
        style: str,
        buckets: int = DEFAULT_HISTOGRAM_BUCKETS,
        width: int | None = None,
        height: int | None = None,
    ) -> CharGrid:
        """Render a histogram chart."""
        return render("histogram", self.histogram_data(column_name, buckets), style, width, height)

    def scatter(
        self,
        x_column: str,
        y_column: str,
        style: str,
        sample_size: int = DEFAULT_SCATTER_SAMPLE_SIZE,
        width: int | None = None,
        height: int | None = None,
    ) -> CharGrid:
        """Render a scatter chart from a bounded sample."""
        sample = self.scatter_sample(x_column, y_column, sample_size)
        return render("scatter", sample, style, width, height)

    def box_plot(
        self,
        column_name: str,
        style: str,
        width: int | None = None,
        height: int | None = None,
        token: CancellationToken | None = None,
    ) -> CharGrid:
        """Render a box-and-whiskers chart from the column summary."""
        column_type = self.metadata.column(column_name).column_type
        if not column_type.is_numeric:
            raise TabstoreChartError(
                f"Box plot needs a numeric column; '{column_name}' is "
                f"{column_type.value}. Use a frequency chart instead."
            )
        summary = self.describe(column_name, token)
        return render("box", summary, style, width, height)

    def frequency(
        self,
        column_name: str,
        style: str,
        top: int = DEFAULT_TOP_FREQUENCIES,
        width: int | None = None,
    ) -> CharGrid:
        """Render horizontal frequency bars for a categorical column."""
        column_type = self.metadata.column(column_name).column_type
        if column_type.is_numeric:
            raise TabstoreChartError(
                f"Frequency chart needs a boolean or short_string column; '{column_name}' is "
                f"{column_type.value}. Use a histogram instead."
            )
        summary = self.describe(column_name, top=top)
        return render("frequency", summary, style, width)

    def export_csv(self, output_path: Path) -> int:
        """Export the dataset to CSV and return the rows written."""
        return export_csv(self._store, output_path)
