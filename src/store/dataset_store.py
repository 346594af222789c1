"""Read-side handle over one imported dataset directory.

This module owns opening a dataset (import marker, integrity gate,
metadata), structural verification, and cursor construction. It never
caches cell values; the directory tree is the only source of truth.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

from core.column_types import CellValue, parse_cell
from core.constants import METADATA_FILE_NAME, SOURCE_DIR_NAME
from core.errors import RowMisalignmentError, TabstoreStoreError
from core.metadata import DatasetMetadata, load_metadata_file
from store.cursor import AlignedCursor, ColumnCursor, CursorCounters
from store.import_state import ImportState, read_import_state
from store.integrity import SignatureVerifier, verify_dataset_integrity
from store.layout import StoreLayout, row_count


@dataclass(frozen=True)
class RowView:
    """One row read across all columns."""

    row_index: int
    raw_values: tuple[str, ...]
    values: tuple[CellValue, ...]


class DatasetStore:
    """Open, verified, read-only view of a dataset root."""

    def __init__(
        self,
        dataset_root: Path,
        verifier: SignatureVerifier,
        require_integrity: bool = False,
    ) -> None:
        """Open a dataset, verifying signatures before the first read.

        Args:
            dataset_root: Dataset directory.
            verifier: Signature checker for the integrity gate.
            require_integrity: Fail closed when signatures are absent.

        Raises:
            TabstoreStoreError: If the dataset does not exist.
            IncompleteImportError: If the import never completed.
            IntegrityCheckFailedError: If verification fails.
        """
        if not dataset_root.is_dir():
            raise TabstoreStoreError(
                f"Dataset directory not found at {dataset_root}. Import a CSV first."
            )
        verify_dataset_integrity(dataset_root, verifier, require_integrity)
        self._root = dataset_root
        self._state = read_import_state(dataset_root)
        self._metadata = load_metadata_file(dataset_root / METADATA_FILE_NAME)
        self._layout = StoreLayout(dataset_root)

    @property
    def root(self) -> Path:
        """Return the dataset root directory."""
        return self._root

    @property
    def metadata(self) -> DatasetMetadata:
        """Return the metadata record."""
        return self._metadata

    @property
    def import_state(self) -> ImportState:
        """Return the import marker contents."""
        return self._state

    @property
    def layout(self) -> StoreLayout:
        """Return the address-to-path layout."""
        return self._layout

    @property
    def source_path(self) -> Path:
        """Return the provenance copy of the original CSV."""
        return self._root / SOURCE_DIR_NAME / self._state.source_file

    def row_count(self) -> int:
        """Count rows by walking the store; see ``verify`` for checks."""
        return row_count(self._layout, self._metadata.column_names)

    def verify(self) -> int:
        """Walk every column and confirm the store is structurally sound.

        Returns:
            Verified row count.

        Raises:
            RowMisalignmentError: If columns disagree, have gaps, or differ
                from the row count recorded at import.
            TabstoreStoreError: If column directories differ from metadata.
        """
        on_disk = set(self._layout.list_columns())
        declared = set(self._metadata.column_names)
        if on_disk != declared:
            missing = ", ".join(sorted(declared - on_disk)) or "-"
            extra = ", ".join(sorted(on_disk - declared)) or "-"
            raise TabstoreStoreError(
                f"Column directories under {self._layout.columns_root} do not match metadata "
                f"(missing: {missing}; unexpected: {extra}). Re-import the dataset."
            )
        counted = self.row_count()
        if counted != self._state.row_count:
            raise RowMisalignmentError(
                f"Row count mismatch: store holds {counted} rows but the import recorded "
                f"{self._state.row_count}. Re-import the dataset."
            )
        return counted

    def open_cursor(self, column_name: str, counters: CursorCounters | None = None) -> ColumnCursor:
        """Open a cursor over one column.

        Raises:
            UnknownColumnError: If the column is not declared.
        """
        spec = self._metadata.column(column_name)
        return ColumnCursor(self._layout, spec, self._state.row_count, counters)

    def open_aligned(
        self,
        column_names: Sequence[str],
        counters: CursorCounters | None = None,
    ) -> AlignedCursor:
        """Open a lock-step cursor over several columns."""
        shared = counters or CursorCounters()
        return AlignedCursor([self.open_cursor(name, shared) for name in column_names])

    def read_row(self, row_index: int) -> RowView:
        """Read one row across all columns by direct address resolution.

        Raises:
            TabstoreStoreError: If the row index is out of range.
            RowMisalignmentError: If some column lacks the row.
        """
        if row_index < 0 or row_index >= self._state.row_count:
            raise TabstoreStoreError(
                f"Row {row_index} is out of range; dataset has {self._state.row_count} rows."
            )
        raw_values: list[str] = []
        values: list[CellValue] = []
        for spec in self._metadata.columns:
            if not self._layout.has_cell(spec.name, row_index):
                raise RowMisalignmentError(
                    f"Row misalignment: column '{spec.name}' has no cell for row {row_index} "
                    f"(expected at {self._layout.resolve(spec.name, row_index)})."
                )
            raw_text = self._layout.read_cell(spec.name, row_index)
            raw_values.append(raw_text)
            values.append(parse_cell(raw_text, spec, row_index))
        return RowView(row_index=row_index, raw_values=tuple(raw_values), values=tuple(values))
