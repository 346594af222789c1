"""Tabstore exception hierarchy.

This module defines traceable domain errors with clear boundaries.
Cell-level errors carry the column, row, and raw text needed to
locate the offending file by hand inside the store tree.
"""

from __future__ import annotations

from pathlib import Path


class TabstoreError(Exception):
    """Base exception for all tabstore failures."""


class TabstoreConfigError(TabstoreError):
    """Raised for invalid runtime configuration."""


class TabstoreMetadataError(TabstoreError):
    """Raised for invalid or unreadable metadata records."""


class TabstoreIngestError(TabstoreError):
    """Raised for CSV parsing, import, and export failures."""


class TabstoreStoreError(TabstoreError):
    """Raised for store layout and dataset lookup failures."""


class TabstoreStatsError(TabstoreError):
    """Raised for statistics engine failures."""


class TabstoreChartError(TabstoreError):
    """Raised for invalid chart inputs or geometry."""


class TabstoreDependencyError(TabstoreError):
    """Raised when an optional runtime dependency is missing."""


class UnknownColumnError(TabstoreMetadataError):
    """Raised when a column name is absent from the metadata record."""

    def __init__(self, column_name: str, known_columns: tuple[str, ...] = ()) -> None:
        self.column_name = column_name
        self.known_columns = known_columns
        known = ", ".join(known_columns) if known_columns else "-"
        super().__init__(
            f"Unknown column '{column_name}'. Known columns: {known}. "
            "Column names are case-sensitive."
        )


class CellValueError(TabstoreError):
    """Base for errors tied to one cell's raw text."""

    def __init__(self, message: str, column_name: str, row_index: int | None, raw_text: str) -> None:
        self.column_name = column_name
        self.row_index = row_index
        self.raw_text = raw_text
        super().__init__(message)


class TypeMismatchError(CellValueError):
    """Raised when raw text does not parse under the declared column type."""

    def __init__(
        self,
        column_name: str,
        row_index: int | None,
        raw_text: str,
        expected_type: str,
    ) -> None:
        self.expected_type = expected_type
        super().__init__(
            f"Type mismatch in column '{column_name}' at row {_row_label(row_index)}: "
            f"'{raw_text}' is not a valid {expected_type}. "
            "Fix the cell text or change the declared type in the metadata file.",
            column_name,
            row_index,
            raw_text,
        )


class ValueTooLongError(CellValueError):
    """Raised when a short string exceeds its declared length hint."""

    def __init__(
        self,
        column_name: str,
        row_index: int | None,
        raw_text: str,
        max_length: int,
    ) -> None:
        self.max_length = max_length
        super().__init__(
            f"Value too long in column '{column_name}' at row {_row_label(row_index)}: "
            f"{len(raw_text)} characters exceeds max_length={max_length}. "
            "Raise max_length in the metadata file and re-import.",
            column_name,
            row_index,
            raw_text,
        )


class RowMisalignmentError(TabstoreStoreError):
    """Raised when columns of one dataset disagree on their row indices."""


class IntegrityCheckFailedError(TabstoreStoreError):
    """Raised when a required integrity verification is absent or invalid."""


class IncompleteImportError(TabstoreIngestError):
    """Raised when an import aborted or a dataset is not marked complete."""


class StorageIOError(TabstoreStoreError):
    """Raised for filesystem failures, tagged with their logical address."""

    def __init__(
        self,
        operation: str,
        path: Path,
        error: OSError,
        column_name: str | None = None,
        row_index: int | None = None,
    ) -> None:
        self.operation = operation
        self.path = path
        self.column_name = column_name
        self.row_index = row_index
        address = ""
        if column_name is not None:
            address = f" (column '{column_name}', row {_row_label(row_index)})"
        super().__init__(
            f"Failed to {operation} {path}{address}: {error}. "
            "Check permissions and available disk space."
        )


class UndefinedStatisticError(TabstoreStatsError):
    """Raised when an aggregate is not meaningful for a column."""


class ComputationCancelledError(TabstoreStatsError):
    """Raised when a multi-pass computation is cancelled between passes."""


def _row_label(row_index: int | None) -> str:
    return "-" if row_index is None else str(row_index)
