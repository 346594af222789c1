"""Streaming column-store to CSV export.

Rows are rebuilt one at a time by advancing every column cursor in
lock-step, so export memory is one row regardless of dataset size.
Column disagreement surfaces as ``RowMisalignmentError``.
"""

from __future__ import annotations

import csv
import os
from pathlib import Path

from core.constants import CSV_ENCODING, TEMP_FILE_PREFIX
from core.errors import TabstoreIngestError
from core.logging_config import get_logger
from store.dataset_store import DatasetStore

_LOGGER = get_logger(__name__)


def export_csv(dataset: DatasetStore, output_path: Path, delimiter: str | None = None) -> int:
    """Write a dataset back out as CSV.

    The output appears atomically; a failed export leaves no partial file.

    Args:
        dataset: Open dataset store.
        output_path: Destination CSV path.
        delimiter: Field delimiter; defaults to the metadata delimiter.

    Returns:
        Number of data rows written.

    Raises:
        RowMisalignmentError: If columns disagree on their row indices.
        TabstoreIngestError: If the output cannot be written.
    """
    metadata = dataset.metadata
    column_names = metadata.column_names
    output_path = output_path.expanduser()
    temp_path = output_path.with_name(f"{TEMP_FILE_PREFIX}{output_path.name}-{os.getpid()}")
    rows_written = 0
    try:
        with temp_path.open("w", encoding=CSV_ENCODING, newline="") as handle:
            writer = csv.writer(handle, delimiter=delimiter or metadata.delimiter)
            writer.writerow(column_names)
            for cells in dataset.open_aligned(column_names):
                writer.writerow([cell.raw_text for cell in cells])
                rows_written += 1
        os.replace(temp_path, output_path)
    except OSError as error:
        raise TabstoreIngestError(
            f"Failed to write export to {output_path}: {error}. "
            "Check that the destination directory exists and is writable."
        ) from error
    finally:
        temp_path.unlink(missing_ok=True)
    _LOGGER.info(
        "export_completed",
        dataset_name=metadata.dataset_name,
        rows=rows_written,
        path=str(output_path),
    )
    return rows_written
