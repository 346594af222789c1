"""Unit tests for column types and exact cell parsing."""

from __future__ import annotations

import pytest

from core.column_types import ColumnSpec, ColumnType, parse_cell
from core.errors import TabstoreMetadataError, TypeMismatchError, ValueTooLongError


def test_integer_parsing_is_exact() -> None:
    """Integer cells must not be truncated from floats."""
    spec = ColumnSpec(name="age", column_type=ColumnType.INTEGER)

    with pytest.raises(TypeMismatchError) as error_info:
        parse_cell("4.5", spec, row_index=7)

    assert error_info.value.column_name == "age"
    assert error_info.value.row_index == 7
    assert error_info.value.raw_text == "4.5"


def test_integer_parsing_accepts_sign_and_whitespace() -> None:
    """Surrounding whitespace and signs are part of valid integers."""
    spec = ColumnSpec(name="delta", column_type=ColumnType.INTEGER)

    assert parse_cell(" -12 ", spec) == -12


def test_empty_text_is_null_when_nullable() -> None:
    """Empty text is the null token."""
    spec = ColumnSpec(name="age", column_type=ColumnType.INTEGER)

    assert parse_cell("", spec) is None


def test_empty_text_fails_when_not_nullable() -> None:
    """Non-nullable columns reject the null token."""
    spec = ColumnSpec(name="age", column_type=ColumnType.INTEGER, nullable=False)

    with pytest.raises(TypeMismatchError):
        parse_cell("", spec, row_index=0)


def test_boolean_tokens_are_case_insensitive() -> None:
    """Boolean parsing uses the declared tokens case-insensitively."""
    spec = ColumnSpec(name="active", column_type=ColumnType.BOOLEAN)

    assert (parse_cell("YES", spec), parse_cell("f", spec)) == (True, False)


def test_boolean_rejects_unknown_token() -> None:
    """Unrecognized spellings are a type mismatch."""
    spec = ColumnSpec(
        name="active",
        column_type=ColumnType.BOOLEAN,
        true_tokens=("on",),
        false_tokens=("off",),
    )

    with pytest.raises(TypeMismatchError):
        parse_cell("yes", spec, row_index=2)


def test_float_honours_decimal_separator() -> None:
    """Float parsing uses the declared decimal separator."""
    spec = ColumnSpec(name="price", column_type=ColumnType.FLOAT, decimal_separator=",")

    assert parse_cell("3,25", spec) == pytest.approx(3.25)


def test_float_rejects_non_finite_text() -> None:
    """Infinity and NaN spellings are not accepted floats."""
    spec = ColumnSpec(name="price", column_type=ColumnType.FLOAT)

    for raw_text in ("inf", "nan", "1e999"):
        with pytest.raises(TypeMismatchError):
            parse_cell(raw_text, spec)


def test_short_string_enforces_length_hint() -> None:
    """Short strings longer than max_length fail."""
    spec = ColumnSpec(name="code", column_type=ColumnType.SHORT_STRING, max_length=3)

    with pytest.raises(ValueTooLongError) as error_info:
        parse_cell("ABCD", spec, row_index=4)

    assert error_info.value.max_length == 3


def test_short_string_keeps_raw_text() -> None:
    """Short strings are returned verbatim, including whitespace."""
    spec = ColumnSpec(name="code", column_type=ColumnType.SHORT_STRING)

    assert parse_cell("  a b ", spec) == "  a b "


def test_column_type_parse_rejects_unknown_name() -> None:
    """Unknown type names in metadata should fail clearly."""
    with pytest.raises(TabstoreMetadataError, match="Unsupported column type"):
        ColumnType.parse("decimal")


@pytest.mark.parametrize("text", ["9223372036854775807", "-9223372036854775808", "+0009"])
def test_integer_parsing_accepts_the_64_bit_range(text: str) -> None:
    """Values inside the signed 64-bit range parse."""
    spec = ColumnSpec(name="id", column_type=ColumnType.INTEGER)

    assert parse_cell(text, spec) == int(text)


@pytest.mark.parametrize("text", ["9223372036854775808", "-9223372036854775809", "1" + "0" * 400])
def test_integer_parsing_rejects_values_outside_64_bits(text: str) -> None:
    """Out-of-range integers are type mismatches, not huge Python ints."""
    spec = ColumnSpec(name="id", column_type=ColumnType.INTEGER)

    with pytest.raises(TypeMismatchError, match="64-bit"):
        parse_cell(text, spec, row_index=2)
