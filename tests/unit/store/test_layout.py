"""Unit tests for the address-to-path store layout."""

from __future__ import annotations

import errno
import os

import pytest

from core.errors import RowMisalignmentError, StorageIOError, TabstoreStoreError
from store.layout import StoreLayout, decode_column_name, encode_column_name, row_count, with_retry


def test_resolve_groups_rows_into_bounded_directories(tmp_path) -> None:
    """Row indices should be split into three-digit directory levels."""
    layout = StoreLayout(tmp_path)

    path = layout.resolve("price", 1_234_567)

    assert path.relative_to(tmp_path).parts == ("columns", "price", "000", "001", "234", "1234567")


def test_address_of_inverts_resolve(tmp_path) -> None:
    """Path to address mapping should be unambiguous."""
    layout = StoreLayout(tmp_path)

    address = layout.address_of(layout.resolve("unit price/€", 42))

    assert address == ("unit price/€", 42)


def test_address_of_rejects_misplaced_cell(tmp_path) -> None:
    """A cell file in the wrong row group is not a valid address."""
    layout = StoreLayout(tmp_path)
    misplaced = layout.column_dir("price") / "000" / "000" / "001" / "5"

    with pytest.raises(TabstoreStoreError, match="misplaced"):
        layout.address_of(misplaced)


def test_column_names_encode_to_single_components() -> None:
    """Separators and leading dots must not escape the column directory."""
    for name in ("a/b", "..", ".hidden", "100%", "Ünïcode"):
        encoded = encode_column_name(name)
        assert "/" not in encoded and not encoded.startswith(".")
        assert decode_column_name(encoded) == name


def test_write_cell_is_create_or_fail(tmp_path) -> None:
    """An existing cell must never be overwritten."""
    layout = StoreLayout(tmp_path)
    layout.write_cell("price", 0, "1.5")

    with pytest.raises(StorageIOError) as error_info:
        layout.write_cell("price", 0, "2.5")

    assert error_info.value.column_name == "price" and error_info.value.row_index == 0
    assert layout.read_cell("price", 0) == "1.5"


def test_write_cell_leaves_no_temp_files(tmp_path) -> None:
    """Only the published cell file should remain in the row group."""
    layout = StoreLayout(tmp_path)

    cell_path = layout.write_cell("price", 3, "")

    assert os.listdir(cell_path.parent) == ["3"]
    assert cell_path.read_bytes() == b"\n"


def test_read_cell_keeps_inner_newlines(tmp_path) -> None:
    """Only the single trailing newline is stripped on read."""
    layout = StoreLayout(tmp_path)
    layout.write_cell("note", 0, "line one\nline two\n")

    assert layout.read_cell("note", 0) == "line one\nline two\n"


def test_enumerate_yields_rows_in_numeric_order(tmp_path) -> None:
    """Enumeration crosses row-group boundaries in ascending order."""
    layout = StoreLayout(tmp_path)
    for row_index in (1000, 2, 999, 0, 1):
        layout.write_cell("price", row_index, str(row_index))

    assert list(layout.enumerate("price")) == [0, 1, 2, 999, 1000]


def test_row_count_walks_all_columns(tmp_path) -> None:
    """Row count is the shared dense length of every column."""
    layout = StoreLayout(tmp_path)
    for row_index in range(5):
        layout.write_cell("a", row_index, "x")
        layout.write_cell("b", row_index, "y")

    assert row_count(layout, ("a", "b")) == 5


def test_row_count_detects_gap(tmp_path) -> None:
    """A missing cell in one column is a row misalignment."""
    layout = StoreLayout(tmp_path)
    for row_index in range(4):
        layout.write_cell("a", row_index, "x")
        if row_index != 2:
            layout.write_cell("b", row_index, "y")

    with pytest.raises(RowMisalignmentError, match="'b'"):
        row_count(layout, ("a", "b"))


def test_with_retry_retries_transient_errors(tmp_path) -> None:
    """Transient errno values are retried before succeeding."""
    attempts = []

    def flaky() -> str:
        attempts.append(1)
        if len(attempts) < 2:
            raise OSError(errno.EAGAIN, "try again")
        return "done"

    assert with_retry(flaky, "read cell", tmp_path) == "done"
    assert len(attempts) == 2


def test_with_retry_wraps_permanent_errors(tmp_path) -> None:
    """Non-transient errors surface immediately as StorageIOError."""
    def broken() -> None:
        raise OSError(errno.EACCES, "denied")

    with pytest.raises(StorageIOError, match="column 'price', row 9"):
        with_retry(broken, "read cell", tmp_path, "price", 9)
