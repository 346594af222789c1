"""Streaming CSV source reading.

This module validates source paths and yields CSV rows one at a time.
Nothing here holds more than the current row in memory.
"""

from __future__ import annotations

import csv
import hashlib
from contextlib import contextmanager
from itertools import chain, islice
from pathlib import Path
from typing import Iterator

from core.constants import (
    CSV_DEFAULT_DELIMITER,
    CSV_ENCODING,
    HASH_ALGORITHM,
    HASH_CHUNK_BYTES,
    SYNTHESIZED_COLUMN_PREFIX,
)
from core.errors import TabstoreIngestError
from core.metadata import validate_column_names

_TAB_EXTENSIONS = (".tsv", ".tab")


def resolve_source_path(source_path: str) -> Path:
    """Validate a CSV source path.

    Raises:
        TabstoreIngestError: If the path is missing or not a file.
    """
    path = Path(source_path).expanduser()
    if not path.exists():
        raise TabstoreIngestError(
            f"Failed to read source at {path}: path does not exist. Provide an existing CSV file."
        )
    if not path.is_file():
        raise TabstoreIngestError(
            f"Source {path} is not a regular file. Provide a CSV file, not a directory."
        )
    return path.resolve()


def default_delimiter(source_path: Path) -> str:
    """Pick a delimiter from the file extension."""
    if source_path.suffix.lower() in _TAB_EXTENSIONS:
        return "\t"
    return CSV_DEFAULT_DELIMITER


def file_sha256(source_path: Path) -> str:
    """Hash a file in fixed-size chunks."""
    digest = hashlib.new(HASH_ALGORITHM)
    with source_path.open("rb") as handle:
        for chunk in iter(lambda: handle.read(HASH_CHUNK_BYTES), b""):
            digest.update(chunk)
    return digest.hexdigest()


def detect_header(source_path: Path, delimiter: str) -> bool:
    """Guess whether the first row holds column names.

    The first row is a header when it has fewer numeric fields than the
    second row, or none at all. A lone row with numeric fields is data.
    """
    with source_path.open("r", encoding=CSV_ENCODING, newline="") as handle:
        reader = csv.reader(handle, delimiter=delimiter)
        try:
            leading = list(islice((row for row in reader if row), 2))
        except csv.Error as error:
            raise TabstoreIngestError(
                f"Failed to parse the first rows of {source_path}: {error}."
            ) from error
    if not leading:
        return True
    first_numeric = _numeric_fields(leading[0])
    if first_numeric == 0:
        return True
    return len(leading) == 2 and first_numeric < _numeric_fields(leading[1])


def synthesized_column_names(width: int) -> tuple[str, ...]:
    """Return ``column_1`` .. ``column_<width>`` for headerless sources."""
    return tuple(f"{SYNTHESIZED_COLUMN_PREFIX}{position}" for position in range(1, width + 1))


@contextmanager
def open_csv_rows(
    source_path: Path,
    delimiter: str,
    has_header: bool = True,
) -> Iterator[tuple[tuple[str, ...], Iterator[tuple[int, list[str]]]]]:
    """Open a CSV file and yield its header and a lazy row iterator.

    Rows are yielded as ``(row_index, fields)`` with zero-based data row
    indices. Rows whose field count differs from the header fail. Without
    a header the first row is data and column names are synthesized.

    Raises:
        TabstoreIngestError: If the file is empty, the header is invalid,
            or a row is malformed.
    """
    with source_path.open("r", encoding=CSV_ENCODING, newline="") as handle:
        reader = csv.reader(handle, delimiter=delimiter)
        try:
            first_row = next((row for row in reader if row), None)
        except csv.Error as error:
            raise TabstoreIngestError(
                f"Failed to parse CSV header in {source_path}: {error}."
            ) from error
        if first_row is None:
            raise TabstoreIngestError(
                f"CSV file {source_path} is empty. A header row with column names is required."
            )
        if has_header:
            validate_column_names(first_row)
            yield tuple(first_row), _iterate_rows(reader, source_path, len(first_row))
        else:
            rows = _iterate_rows(chain([first_row], reader), source_path, len(first_row))
            yield synthesized_column_names(len(first_row)), rows


def _iterate_rows(
    reader: Iterator[list[str]],
    source_path: Path,
    width: int,
) -> Iterator[tuple[int, list[str]]]:
    row_index = 0
    while True:
        try:
            fields = next(reader, None)
        except csv.Error as error:
            raise TabstoreIngestError(
                f"Failed to parse CSV row {row_index} in {source_path}: {error}. "
                "Fix the quoting and retry the import."
            ) from error
        if fields is None:
            return
        if not fields:
            continue
        if len(fields) != width:
            raise TabstoreIngestError(
                f"Malformed CSV row {row_index} in {source_path}: expected {width} fields, "
                f"got {len(fields)}. Fix the row and retry the import."
            )
        yield row_index, fields
        row_index += 1


def _numeric_fields(fields: list[str]) -> int:
    count = 0
    for field in fields:
        try:
            float(field.strip())
        except ValueError:
            continue
        count += 1
    return count
