"""Address-to-path translation for the directory store.

Every cell lives at ``columns/<column>/<ddd>/<ddd>/<ddd>/<row>`` below
the dataset root. Row indices are zero-padded to twelve digits and split
into three-digit directory levels, so no directory ever holds more than
a thousand entries and a person can walk to any row by hand.
"""

from __future__ import annotations

import errno
import os
import time
from pathlib import Path
from typing import Callable, Iterator, TypeVar
from urllib.parse import quote, unquote

from core.constants import (
    COLUMNS_DIR_NAME,
    IO_RETRY_ATTEMPTS,
    IO_RETRY_DELAY_SECONDS,
    MAX_ROW_INDEX,
    ROW_GROUP_DIGITS,
    ROW_INDEX_DIGITS,
    TEMP_FILE_PREFIX,
)
from core.errors import RowMisalignmentError, StorageIOError, TabstoreStoreError

_T = TypeVar("_T")
_TRANSIENT_ERRNOS = {errno.EINTR, errno.EAGAIN, errno.EBUSY}
_GROUP_LEVELS = (ROW_INDEX_DIGITS - ROW_GROUP_DIGITS) // ROW_GROUP_DIGITS


def encode_column_name(column_name: str) -> str:
    """Encode a column name into one safe path component."""
    if column_name == "":
        raise TabstoreStoreError("Column names must be non-empty to map onto directories.")
    encoded = quote(column_name, safe=" ")
    if encoded.startswith("."):
        encoded = "%2E" + encoded[1:]
    return encoded


def decode_column_name(component: str) -> str:
    """Invert ``encode_column_name``."""
    return unquote(component)


class StoreLayout:
    """Bidirectional mapping between (column, row) and cell paths."""

    def __init__(self, dataset_root: Path) -> None:
        self._dataset_root = dataset_root
        self._columns_root = dataset_root / COLUMNS_DIR_NAME

    @property
    def dataset_root(self) -> Path:
        """Return the dataset root directory."""
        return self._dataset_root

    @property
    def columns_root(self) -> Path:
        """Return the directory holding one subdirectory per column."""
        return self._columns_root

    def column_dir(self, column_name: str) -> Path:
        """Return the directory owning a column's cells."""
        return self._columns_root / encode_column_name(column_name)

    def resolve(self, column_name: str, row_index: int) -> Path:
        """Map a logical address onto its cell path without touching disk."""
        _check_row_index(row_index)
        padded = f"{row_index:0{ROW_INDEX_DIGITS}d}"
        groups = [
            padded[offset : offset + ROW_GROUP_DIGITS]
            for offset in range(0, _GROUP_LEVELS * ROW_GROUP_DIGITS, ROW_GROUP_DIGITS)
        ]
        return self.column_dir(column_name).joinpath(*groups, str(row_index))

    def address_of(self, cell_path: Path) -> tuple[str, int]:
        """Map a cell path back to its (column, row) address.

        Raises:
            TabstoreStoreError: If the path is not a canonical cell path.
        """
        try:
            relative = cell_path.relative_to(self._columns_root)
        except ValueError as error:
            raise TabstoreStoreError(
                f"Path {cell_path} is outside the column tree {self._columns_root}."
            ) from error
        parts = relative.parts
        if len(parts) != _GROUP_LEVELS + 2 or not parts[-1].isdigit():
            raise TabstoreStoreError(f"Path {cell_path} is not a cell path.")
        column_name = decode_column_name(parts[0])
        row_index = int(parts[-1])
        if self.resolve(column_name, row_index) != cell_path:
            raise TabstoreStoreError(
                f"Cell file {cell_path} is misplaced: row {row_index} belongs at "
                f"{self.resolve(column_name, row_index)}."
            )
        return column_name, row_index

    def allocate(self, column_name: str, row_index: int) -> Path:
        """Return a cell path, creating any missing row-group directories."""
        cell_path = self.resolve(column_name, row_index)
        with_retry(
            lambda: cell_path.parent.mkdir(parents=True, exist_ok=True),
            "create row group directory",
            cell_path.parent,
            column_name,
            row_index,
        )
        return cell_path

    def write_cell(self, column_name: str, row_index: int, raw_text: str) -> Path:
        """Create a cell file atomically; an existing cell is never overwritten.

        Raises:
            StorageIOError: If the cell exists or the write fails.
        """
        cell_path = self.allocate(column_name, row_index)
        temp_path = cell_path.with_name(f"{TEMP_FILE_PREFIX}{cell_path.name}-{os.getpid()}")
        payload = (raw_text + "\n").encode("utf-8")
        try:
            with_retry(
                lambda: temp_path.write_bytes(payload),
                "write cell",
                temp_path,
                column_name,
                row_index,
            )
            with_retry(
                lambda: os.link(temp_path, cell_path),
                "publish cell",
                cell_path,
                column_name,
                row_index,
            )
        finally:
            temp_path.unlink(missing_ok=True)
        return cell_path

    def read_cell(self, column_name: str, row_index: int) -> str:
        """Return the raw text stored for one cell."""
        cell_path = self.resolve(column_name, row_index)
        payload = with_retry(
            lambda: cell_path.read_bytes(),
            "read cell",
            cell_path,
            column_name,
            row_index,
        )
        text = payload.decode("utf-8")
        return text[:-1] if text.endswith("\n") else text

    def has_cell(self, column_name: str, row_index: int) -> bool:
        """Return whether a cell file exists."""
        return self.resolve(column_name, row_index).is_file()

    def list_columns(self) -> list[str]:
        """Return decoded names of all column directories on disk."""
        if not self._columns_root.is_dir():
            return []
        return sorted(
            decode_column_name(entry.name)
            for entry in os.scandir(self._columns_root)
            if entry.is_dir() and not entry.name.startswith(TEMP_FILE_PREFIX)
        )

    def enumerate(self, column_name: str) -> Iterator[int]:
        """Lazily yield row indices present for a column in ascending order.

        Memory is bounded by one directory listing per level, never by
        the row count.
        """
        column_dir = self.column_dir(column_name)
        if not column_dir.is_dir():
            raise TabstoreStoreError(
                f"Column directory for '{column_name}' is missing at {column_dir}."
            )
        yield from self._walk_level(column_name, column_dir, 0, "")

    def _walk_level(
        self,
        column_name: str,
        directory: Path,
        level: int,
        prefix: str,
    ) -> Iterator[int]:
        names = _sorted_entries(directory, column_name)
        if level == _GROUP_LEVELS:
            for name in sorted(names, key=_row_sort_key):
                if not name.isdigit():
                    raise TabstoreStoreError(f"Unexpected file {directory / name} in column tree.")
                row_index = int(name)
                if not f"{row_index:0{ROW_INDEX_DIGITS}d}".startswith(prefix):
                    raise TabstoreStoreError(
                        f"Cell file {directory / name} is misplaced: row {row_index} "
                        f"belongs at {self.resolve(column_name, row_index)}."
                    )
                yield row_index
            return
        for name in names:
            if len(name) != ROW_GROUP_DIGITS or not name.isdigit():
                raise TabstoreStoreError(
                    f"Unexpected entry {directory / name} in column tree."
                )
            yield from self._walk_level(column_name, directory / name, level + 1, prefix + name)


def row_count(layout: StoreLayout, column_names: tuple[str, ...]) -> int:
    """Count rows by walking every column in lock-step.

    The walk is the ground truth for the row count and doubles as the
    structural corruption check.

    Raises:
        RowMisalignmentError: If columns disagree or indices have gaps.
    """
    if not column_names:
        return 0
    walks = [layout.enumerate(name) for name in column_names]
    expected = 0
    while True:
        indices = [next(walk, None) for walk in walks]
        if all(index is None for index in indices):
            return expected
        for column_name, index in zip(column_names, indices):
            if index != expected:
                raise RowMisalignmentError(_misalignment_message(column_name, index, expected))
        expected += 1


def with_retry(
    operation: Callable[[], _T],
    description: str,
    path: Path,
    column_name: str | None = None,
    row_index: int | None = None,
) -> _T:
    """Run one filesystem operation, retrying transient errors only.

    Raises:
        StorageIOError: On a non-transient error or when retries run out.
    """
    for attempt in range(1, IO_RETRY_ATTEMPTS + 1):
        try:
            return operation()
        except OSError as error:
            if error.errno in _TRANSIENT_ERRNOS and attempt < IO_RETRY_ATTEMPTS:
                time.sleep(IO_RETRY_DELAY_SECONDS * attempt)
                continue
            raise StorageIOError(description, path, error, column_name, row_index) from error
    raise AssertionError("unreachable")  # pragma: no cover


def _sorted_entries(directory: Path, column_name: str) -> list[str]:
    entries = with_retry(
        lambda: [entry.name for entry in os.scandir(directory)],
        "list directory",
        directory,
        column_name,
    )
    return sorted(name for name in entries if not name.startswith(TEMP_FILE_PREFIX))


def _row_sort_key(name: str) -> tuple[int, str]:
    return (int(name), name) if name.isdigit() else (-1, name)


def _check_row_index(row_index: int) -> None:
    if row_index < 0 or row_index > MAX_ROW_INDEX:
        raise TabstoreStoreError(
            f"Row index {row_index} is outside the supported range 0..{MAX_ROW_INDEX}."
        )


def _misalignment_message(column_name: str, index: int | None, expected: int) -> str:
    if index is None:
        return (
            f"Row misalignment: column '{column_name}' ends at row {expected} "
            "while other columns continue. The store is structurally inconsistent; re-import it."
        )
    return (
        f"Row misalignment: column '{column_name}' has row {index} where row {expected} "
        "was expected. The store is structurally inconsistent; re-import it."
    )
