"""Streaming CSV to column-store import.

The import reads one CSV row at a time and writes one cell file per
field into a hidden staging directory. The staging tree is renamed
into place only after every cell, the metadata file, and the import
marker are written. Any failure removes the staging tree, so an
import either fully succeeds or leaves no usable store.
"""

from __future__ import annotations

import os
import shutil
from pathlib import Path

from core.column_types import ColumnSpec, parse_cell
from core.config import TabstoreConfig
from core.constants import (
    IMPORT_STATUS_COMPLETE,
    IMPORT_STATUS_IMPORTING,
    METADATA_FILE_NAME,
    SOURCE_DIR_NAME,
    STAGING_PREFIX,
)
from core.errors import (
    IncompleteImportError,
    StorageIOError,
    TabstoreIngestError,
    TabstoreMetadataError,
)
from core.logging_config import get_logger
from core.metadata import DatasetMetadata, load_metadata_file, write_metadata_file
from core.types import ImportOptions, ImportResult, InferenceReport
from ingest.csv_source import (
    default_delimiter,
    detect_header,
    file_sha256,
    open_csv_rows,
    resolve_source_path,
)
from ingest.type_inference import infer_metadata
from store.catalog import DatasetCatalog, validate_dataset_name
from store.import_state import ImportState, write_import_state
from store.layout import StoreLayout, with_retry

_LOGGER = get_logger(__name__)


class CsvImportRunner:
    """Runner for one staged, all-or-nothing CSV import."""

    def __init__(self, options: ImportOptions, config: TabstoreConfig) -> None:
        self._options = options
        self._config = config
        self._catalog = DatasetCatalog(config)
        self._dataset_name = validate_dataset_name(options.dataset_name)
        self._source_path = resolve_source_path(options.source_path)

    def run(self) -> ImportResult:
        """Import the CSV and publish the finished store."""
        metadata, report = self._resolve_metadata()
        target_root = self._catalog.dataset_root(self._dataset_name)
        if target_root.exists() and not self._options.replace:
            raise TabstoreIngestError(
                f"Dataset '{self._dataset_name}' already exists at {target_root}. "
                "Pass --replace to overwrite it or choose another name."
            )
        _LOGGER.info(
            "import_started",
            dataset_name=self._dataset_name,
            source=str(self._source_path),
            columns=len(metadata.columns),
            inferred=report is not None,
        )
        staging_root = self._catalog.create_staging_root(self._dataset_name)
        try:
            result = self._build_store(staging_root, metadata, report)
            self._publish(staging_root, target_root)
        except Exception as error:
            _roll_back(staging_root, self._dataset_name, error)
            raise
        final = ImportResult(
            dataset_name=result.dataset_name,
            dataset_root=target_root,
            row_count=result.row_count,
            column_count=result.column_count,
            source_sha256=result.source_sha256,
            inference=report,
        )
        _LOGGER.info(
            "import_completed",
            dataset_name=self._dataset_name,
            rows=final.row_count,
            columns=final.column_count,
            path=str(target_root),
        )
        return final

    def _resolve_metadata(self) -> tuple[DatasetMetadata, InferenceReport | None]:
        if self._options.metadata_path:
            metadata = load_metadata_file(Path(self._options.metadata_path).expanduser())
            metadata = metadata.with_dataset_name(self._dataset_name)
            if self._options.has_header is not None:
                metadata = metadata.with_header(self._options.has_header)
            return metadata, None
        delimiter = default_delimiter(self._source_path)
        return infer_metadata(
            self._source_path,
            self._dataset_name,
            delimiter,
            self._config.inference_sample_rows,
            _header_directive(self._source_path, delimiter, self._options.has_header),
        )

    def _build_store(
        self,
        staging_root: Path,
        metadata: DatasetMetadata,
        report: InferenceReport | None,
    ) -> ImportResult:
        source_name = self._source_path.name
        write_import_state(
            staging_root,
            ImportState(
                status=IMPORT_STATUS_IMPORTING,
                row_count=0,
                source_file=source_name,
                source_sha256="",
            ),
        )
        row_total = _write_cells(StoreLayout(staging_root), self._source_path, metadata)
        source_dir = staging_root / SOURCE_DIR_NAME
        source_dir.mkdir()
        shutil.copyfile(self._source_path, source_dir / source_name)
        digest = file_sha256(self._source_path)
        write_metadata_file(staging_root / METADATA_FILE_NAME, metadata)
        write_import_state(
            staging_root,
            ImportState(
                status=IMPORT_STATUS_COMPLETE,
                row_count=row_total,
                source_file=source_name,
                source_sha256=digest,
            ),
        )
        return ImportResult(
            dataset_name=self._dataset_name,
            dataset_root=staging_root,
            row_count=row_total,
            column_count=len(metadata.columns),
            source_sha256=digest,
            inference=report,
        )

    def _publish(self, staging_root: Path, target_root: Path) -> None:
        if not target_root.exists():
            with_retry(lambda: os.rename(staging_root, target_root), "publish dataset", target_root)
            return
        retired_root = target_root.with_name(f"{STAGING_PREFIX}retired-{staging_root.name}")
        with_retry(lambda: os.rename(target_root, retired_root), "retire dataset", target_root)
        try:
            with_retry(lambda: os.rename(staging_root, target_root), "publish dataset", target_root)
        except StorageIOError:
            with_retry(lambda: os.rename(retired_root, target_root), "restore dataset", target_root)
            _LOGGER.warning("dataset_restored", dataset_name=self._dataset_name, path=str(target_root))
            raise
        try:
            shutil.rmtree(retired_root)
        except OSError as error:
            _LOGGER.warning(
                "retired_dataset_cleanup_failed", path=str(retired_root), error=str(error)
            )
        _LOGGER.info("dataset_replaced", dataset_name=self._dataset_name, path=str(target_root))


def import_csv(options: ImportOptions, config: TabstoreConfig) -> ImportResult:
    """Import a CSV file into a new column store.

    Args:
        options: Import request options.
        config: Runtime configuration.

    Returns:
        Summary of the published dataset.

    Raises:
        TabstoreIngestError: If the CSV is malformed or the target exists.
        TypeMismatchError: If a cell does not parse under its column type.
        ValueTooLongError: If a short string exceeds its length hint.
        IncompleteImportError: If a failed import could not be cleaned up.
    """
    return CsvImportRunner(options, config).run()


def infer_source_metadata(
    source_path: str,
    dataset_name: str,
    config: TabstoreConfig,
    output_path: Path | None = None,
    has_header: bool | None = None,
) -> tuple[DatasetMetadata, InferenceReport]:
    """Infer metadata from a CSV sample and optionally write it for review.

    Args:
        source_path: CSV file to sample.
        dataset_name: Dataset name recorded in the metadata.
        config: Runtime configuration.
        output_path: Metadata YAML destination, if any.
        has_header: Header directive; detected from the first rows when ``None``.

    Returns:
        Pair of inferred metadata and the inference report.
    """
    path = resolve_source_path(source_path)
    delimiter = default_delimiter(path)
    metadata, report = infer_metadata(
        path,
        validate_dataset_name(dataset_name),
        delimiter,
        config.inference_sample_rows,
        _header_directive(path, delimiter, has_header),
    )
    if output_path is not None:
        write_metadata_file(output_path, metadata)
        _LOGGER.info("metadata_inferred", dataset_name=dataset_name, path=str(output_path))
    return metadata, report


def _write_cells(layout: StoreLayout, source_path: Path, metadata: DatasetMetadata) -> int:
    """Stream CSV rows into cell files and return the row count."""
    with open_csv_rows(source_path, metadata.delimiter, metadata.has_header) as (header, rows):
        specs = _header_specs(header, metadata, source_path)
        for spec in metadata.columns:
            column_dir = layout.column_dir(spec.name)
            with_retry(
                lambda: column_dir.mkdir(parents=True, exist_ok=False),
                "create column directory",
                column_dir,
                spec.name,
            )
        row_total = 0
        for row_index, fields in rows:
            for spec, raw_text in zip(specs, fields):
                parse_cell(raw_text, spec, row_index)
                layout.write_cell(spec.name, row_index, raw_text)
            row_total = row_index + 1
    return row_total


def _header_directive(source_path: Path, delimiter: str, has_header: bool | None) -> bool:
    if has_header is not None:
        return has_header
    detected = detect_header(source_path, delimiter)
    if not detected:
        _LOGGER.info("header_not_detected", source=str(source_path))
    return detected


def _header_specs(
    header: tuple[str, ...],
    metadata: DatasetMetadata,
    source_path: Path,
) -> list[ColumnSpec]:
    declared = set(metadata.column_names)
    present = set(header)
    if declared != present:
        missing = ", ".join(sorted(declared - present)) or "-"
        extra = ", ".join(sorted(present - declared)) or "-"
        raise TabstoreMetadataError(
            f"CSV header in {source_path} does not match the metadata columns "
            f"(missing from CSV: {missing}; not in metadata: {extra}). "
            "Edit the metadata file or the CSV header."
        )
    return [metadata.column(name) for name in header]


def _roll_back(staging_root: Path, dataset_name: str, error: Exception) -> None:
    try:
        shutil.rmtree(staging_root)
    except OSError as cleanup_error:
        raise IncompleteImportError(
            f"Import of '{dataset_name}' failed ({error}) and its staging directory "
            f"{staging_root} could not be removed: {cleanup_error}. It is marked "
            f"'{IMPORT_STATUS_IMPORTING}' and will never be opened; delete it by hand."
        ) from error
    _LOGGER.warning(
        "import_rolled_back",
        dataset_name=dataset_name,
        error_type=type(error).__name__,
        error=str(error),
    )
