"""Column data types and exact cell parsing.

This module defines the recognized column types and the per-column
parsing facts. Raw cell text is always the stored form; typed values
are derived here on every read and never persisted.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum

from core.constants import (
    DEFAULT_DECIMAL_SEPARATOR,
    DEFAULT_FALSE_TOKENS,
    DEFAULT_MAX_STRING_LENGTH,
    DEFAULT_TRUE_TOKENS,
    INTEGER_MAX,
    INTEGER_MIN,
)
from core.errors import TabstoreMetadataError, TypeMismatchError, ValueTooLongError

CellValue = bool | int | float | str | None

_INTEGER_PATTERN = re.compile(r"[+-]?\d+")
_INTEGER_MAX_DIGITS = len(str(INTEGER_MAX))
_FLOAT_PATTERN = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")


class ColumnType(str, Enum):
    """Recognized column data types."""

    BOOLEAN = "boolean"
    INTEGER = "integer"
    FLOAT = "float"
    SHORT_STRING = "short_string"

    @property
    def is_numeric(self) -> bool:
        """Return whether values of this type are ordered numbers."""
        return self in (ColumnType.INTEGER, ColumnType.FLOAT)

    @classmethod
    def parse(cls, raw_value: str) -> "ColumnType":
        """Resolve a type name from the metadata file.

        Raises:
            TabstoreMetadataError: If the name is not a known type.
        """
        normalized = raw_value.strip().lower()
        for member in cls:
            if member.value == normalized:
                return member
        supported = ", ".join(member.value for member in cls)
        raise TabstoreMetadataError(
            f"Unsupported column type '{raw_value}'. Use one of: {supported}."
        )


@dataclass(frozen=True)
class ColumnSpec:
    """Declared type and parsing facts for one column.

    Attributes:
        name: Case-sensitive column name, unique within a dataset.
        column_type: Declared data type.
        nullable: Whether empty text is accepted as a null value.
        max_length: Length hint enforced for short strings.
        decimal_separator: Separator used by float cells.
        true_tokens: Case-insensitive spellings of boolean true.
        false_tokens: Case-insensitive spellings of boolean false.
    """

    name: str
    column_type: ColumnType
    nullable: bool = True
    max_length: int = DEFAULT_MAX_STRING_LENGTH
    decimal_separator: str = DEFAULT_DECIMAL_SEPARATOR
    true_tokens: tuple[str, ...] = field(default=DEFAULT_TRUE_TOKENS)
    false_tokens: tuple[str, ...] = field(default=DEFAULT_FALSE_TOKENS)


def parse_cell(raw_text: str, spec: ColumnSpec, row_index: int | None = None) -> CellValue:
    """Parse raw cell text under the column's declared type.

    Args:
        raw_text: Stored textual representation.
        spec: Column declaration.
        row_index: Row index used for error context.

    Returns:
        Typed value, or ``None`` for a null cell.

    Raises:
        TypeMismatchError: If text is not exactly parseable.
        ValueTooLongError: If a short string exceeds ``max_length``.
    """
    if is_null(raw_text):
        if spec.nullable:
            return None
        raise TypeMismatchError(spec.name, row_index, raw_text, f"non-null {spec.column_type.value}")
    if spec.column_type is ColumnType.SHORT_STRING:
        if len(raw_text) > spec.max_length:
            raise ValueTooLongError(spec.name, row_index, raw_text, spec.max_length)
        return raw_text
    text = raw_text.strip()
    if spec.column_type is ColumnType.BOOLEAN:
        return _parse_boolean(text, raw_text, spec, row_index)
    if spec.column_type is ColumnType.INTEGER:
        if _INTEGER_PATTERN.fullmatch(text) is None:
            raise TypeMismatchError(spec.name, row_index, raw_text, ColumnType.INTEGER.value)
        return _parse_integer(text, raw_text, spec, row_index)
    return _parse_float(text, raw_text, spec, row_index)


def is_null(raw_text: str) -> bool:
    """Return whether raw text is the null token."""
    return raw_text == ""


def _parse_integer(text: str, raw_text: str, spec: ColumnSpec, row_index: int | None) -> int:
    digits = text.lstrip("+-").lstrip("0") or "0"
    if len(digits) > _INTEGER_MAX_DIGITS:
        raise TypeMismatchError(spec.name, row_index, raw_text, "64-bit integer")
    value = -int(digits) if text.startswith("-") else int(digits)
    if not INTEGER_MIN <= value <= INTEGER_MAX:
        raise TypeMismatchError(spec.name, row_index, raw_text, "64-bit integer")
    return value


def _parse_boolean(text: str, raw_text: str, spec: ColumnSpec, row_index: int | None) -> bool:
    lowered = text.lower()
    if lowered in (token.lower() for token in spec.true_tokens):
        return True
    if lowered in (token.lower() for token in spec.false_tokens):
        return False
    raise TypeMismatchError(spec.name, row_index, raw_text, ColumnType.BOOLEAN.value)


def _parse_float(text: str, raw_text: str, spec: ColumnSpec, row_index: int | None) -> float:
    normalized = text
    if spec.decimal_separator != ".":
        if "." in text:
            raise TypeMismatchError(spec.name, row_index, raw_text, ColumnType.FLOAT.value)
        normalized = text.replace(spec.decimal_separator, ".", 1)
    if _FLOAT_PATTERN.fullmatch(normalized) is None:
        raise TypeMismatchError(spec.name, row_index, raw_text, ColumnType.FLOAT.value)
    value = float(normalized)
    if value in (float("inf"), float("-inf")):
        raise TypeMismatchError(spec.name, row_index, raw_text, f"finite {ColumnType.FLOAT.value}")
    return value
