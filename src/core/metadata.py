"""Dataset metadata record and its YAML file.

This module loads, validates, and writes the per-dataset metadata file
that maps each column name to its declared type and parsing facts.
The file is meant to be reviewed and hand-edited, so validation is
strict and error messages point at the offending key.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Mapping, Sequence, cast

from core.column_types import ColumnSpec, ColumnType
from core.constants import (
    CSV_DEFAULT_DELIMITER,
    DEFAULT_DECIMAL_SEPARATOR,
    DEFAULT_FALSE_TOKENS,
    DEFAULT_MAX_STRING_LENGTH,
    DEFAULT_TRUE_TOKENS,
    METADATA_FORMAT_VERSION,
)
from core.errors import TabstoreDependencyError, TabstoreMetadataError, UnknownColumnError

_ROOT_KEYS = {"version", "dataset", "delimiter", "header", "columns"}
_COLUMN_KEYS = {
    "type",
    "nullable",
    "max_length",
    "decimal_separator",
    "true_tokens",
    "false_tokens",
}


@dataclass(frozen=True)
class DatasetMetadata:
    """Metadata record for one dataset.

    Attributes:
        dataset_name: Logical dataset identifier.
        columns: Column declarations in display order.
        delimiter: CSV field delimiter of the source file.
        has_header: Whether the first source row holds column names;
            headerless sources get synthesized names.
    """

    dataset_name: str
    columns: tuple[ColumnSpec, ...]
    delimiter: str = CSV_DEFAULT_DELIMITER
    has_header: bool = True

    @property
    def column_names(self) -> tuple[str, ...]:
        """Return column names in display order."""
        return tuple(spec.name for spec in self.columns)

    def column(self, column_name: str) -> ColumnSpec:
        """Return the declaration for a column.

        Raises:
            UnknownColumnError: If the name is absent.
        """
        for spec in self.columns:
            if spec.name == column_name:
                return spec
        raise UnknownColumnError(column_name, self.column_names)

    def with_dataset_name(self, dataset_name: str) -> "DatasetMetadata":
        """Return a copy bound to another dataset name."""
        return replace(self, dataset_name=dataset_name)

    def with_header(self, has_header: bool) -> "DatasetMetadata":
        """Return a copy with another header directive."""
        return replace(self, has_header=has_header)


def validate_column_names(column_names: Sequence[str]) -> None:
    """Check that column names are non-empty and unique.

    Raises:
        TabstoreMetadataError: If a name is empty or duplicated.
    """
    seen: set[str] = set()
    for position, name in enumerate(column_names, 1):
        if name == "":
            raise TabstoreMetadataError(
                f"Column #{position} has an empty name. Every column needs a header name."
            )
        if name in seen:
            raise TabstoreMetadataError(
                f"Duplicate column name '{name}'. Column names must be unique (case-sensitive)."
            )
        seen.add(name)


def metadata_to_payload(metadata: DatasetMetadata) -> dict[str, object]:
    """Serialize metadata into a YAML-safe mapping."""
    columns: dict[str, object] = {}
    for spec in metadata.columns:
        column_payload: dict[str, object] = {
            "type": spec.column_type.value,
            "nullable": spec.nullable,
        }
        if spec.column_type is ColumnType.SHORT_STRING:
            column_payload["max_length"] = spec.max_length
        if spec.column_type is ColumnType.FLOAT:
            column_payload["decimal_separator"] = spec.decimal_separator
        if spec.column_type is ColumnType.BOOLEAN:
            column_payload["true_tokens"] = list(spec.true_tokens)
            column_payload["false_tokens"] = list(spec.false_tokens)
        columns[spec.name] = column_payload
    return {
        "version": METADATA_FORMAT_VERSION,
        "dataset": metadata.dataset_name,
        "delimiter": metadata.delimiter,
        "header": metadata.has_header,
        "columns": columns,
    }


def metadata_from_payload(payload: object, source: str) -> DatasetMetadata:
    """Validate a parsed YAML payload into a metadata record.

    Args:
        payload: Parsed YAML document.
        source: File path used in error messages.

    Returns:
        Validated metadata record.

    Raises:
        TabstoreMetadataError: If any field is invalid.
    """
    root = _expect_mapping(payload, f"metadata root in {source}")
    unknown_keys = sorted(set(root) - _ROOT_KEYS)
    if unknown_keys:
        raise TabstoreMetadataError(
            f"Metadata file {source} contains unknown fields: {', '.join(unknown_keys)}."
        )
    version = root.get("version", METADATA_FORMAT_VERSION)
    if version != METADATA_FORMAT_VERSION:
        raise TabstoreMetadataError(
            f"Unsupported metadata version {version} in {source}. "
            f"Use version: {METADATA_FORMAT_VERSION}."
        )
    dataset_name = root.get("dataset", "")
    if not isinstance(dataset_name, str):
        raise TabstoreMetadataError(f"Metadata field 'dataset' in {source} must be a string.")
    delimiter = root.get("delimiter", CSV_DEFAULT_DELIMITER)
    if not isinstance(delimiter, str) or len(delimiter) != 1:
        raise TabstoreMetadataError(
            f"Metadata field 'delimiter' in {source} must be a single character."
        )
    has_header = root.get("header", True)
    if not isinstance(has_header, bool):
        raise TabstoreMetadataError(
            f"Metadata field 'header' in {source} must be true or false."
        )
    columns_mapping = _expect_mapping(root.get("columns"), f"'columns' in {source}")
    if not columns_mapping:
        raise TabstoreMetadataError(f"Metadata file {source} declares no columns.")
    columns = tuple(
        _column_from_payload(name, value, source) for name, value in columns_mapping.items()
    )
    validate_column_names([spec.name for spec in columns])
    return DatasetMetadata(
        dataset_name=dataset_name,
        columns=columns,
        delimiter=delimiter,
        has_header=has_header,
    )


def load_metadata_file(metadata_path: Path) -> DatasetMetadata:
    """Load and validate a metadata YAML file.

    Raises:
        TabstoreDependencyError: If PyYAML is unavailable.
        TabstoreMetadataError: If the file is missing or invalid.
    """
    yaml = import_yaml()
    if not metadata_path.exists():
        raise TabstoreMetadataError(
            f"Metadata file does not exist at {metadata_path}. "
            "Run 'tabstore infer' to generate one or pass an existing file."
        )
    try:
        payload = cast(object, yaml.safe_load(metadata_path.read_text(encoding="utf-8")))
    except OSError as error:
        raise TabstoreMetadataError(
            f"Failed to read metadata file at {metadata_path}: {error}."
        ) from error
    except yaml.YAMLError as error:
        raise TabstoreMetadataError(
            f"Failed to parse metadata YAML at {metadata_path}: {error}. Fix YAML syntax and retry."
        ) from error
    return metadata_from_payload(payload, str(metadata_path))


def write_metadata_file(metadata_path: Path, metadata: DatasetMetadata) -> None:
    """Write metadata as YAML, preserving column order."""
    yaml = import_yaml()
    text = yaml.safe_dump(
        metadata_to_payload(metadata),
        sort_keys=False,
        allow_unicode=True,
        default_flow_style=False,
    )
    metadata_path.parent.mkdir(parents=True, exist_ok=True)
    metadata_path.write_text(text, encoding="utf-8")


def _column_from_payload(name: object, value: object, source: str) -> ColumnSpec:
    if not isinstance(name, str):
        raise TabstoreMetadataError(
            f"Invalid column name {name!r} in {source}: column names must be strings. "
            "Quote numeric names in YAML."
        )
    context = f"column '{name}' in {source}"
    column_mapping = _expect_mapping(value, context)
    unknown_keys = sorted(set(column_mapping) - _COLUMN_KEYS)
    if unknown_keys:
        raise TabstoreMetadataError(f"Invalid {context}: unknown fields {', '.join(unknown_keys)}.")
    raw_type = column_mapping.get("type")
    if not isinstance(raw_type, str):
        raise TabstoreMetadataError(f"Invalid {context}: field 'type' must be a string.")
    nullable = column_mapping.get("nullable", True)
    if not isinstance(nullable, bool):
        raise TabstoreMetadataError(f"Invalid {context}: field 'nullable' must be true or false.")
    max_length = column_mapping.get("max_length", DEFAULT_MAX_STRING_LENGTH)
    if isinstance(max_length, bool) or not isinstance(max_length, int) or max_length < 1:
        raise TabstoreMetadataError(f"Invalid {context}: 'max_length' must be a positive integer.")
    decimal_separator = column_mapping.get("decimal_separator", DEFAULT_DECIMAL_SEPARATOR)
    if not isinstance(decimal_separator, str) or len(decimal_separator) != 1:
        raise TabstoreMetadataError(
            f"Invalid {context}: 'decimal_separator' must be a single character."
        )
    true_tokens = _token_tuple(column_mapping.get("true_tokens", DEFAULT_TRUE_TOKENS), context)
    false_tokens = _token_tuple(column_mapping.get("false_tokens", DEFAULT_FALSE_TOKENS), context)
    overlap = {token.lower() for token in true_tokens} & {token.lower() for token in false_tokens}
    if overlap:
        raise TabstoreMetadataError(
            f"Invalid {context}: tokens {', '.join(sorted(overlap))} are both true and false."
        )
    return ColumnSpec(
        name=name,
        column_type=ColumnType.parse(raw_type),
        nullable=nullable,
        max_length=max_length,
        decimal_separator=decimal_separator,
        true_tokens=true_tokens,
        false_tokens=false_tokens,
    )


def _token_tuple(value: object, context: str) -> tuple[str, ...]:
    if isinstance(value, (str, bytes)) or not isinstance(value, Sequence):
        raise TabstoreMetadataError(f"Invalid {context}: boolean tokens must be a list of strings.")
    tokens = tuple(str(token) for token in value)
    if not tokens or any(token.strip() == "" for token in tokens):
        raise TabstoreMetadataError(f"Invalid {context}: boolean tokens must be non-empty strings.")
    return tokens


def _expect_mapping(value: object, context: str) -> Mapping[Any, object]:
    if isinstance(value, Mapping):
        return value
    raise TabstoreMetadataError(
        f"Invalid {context}: expected mapping, got {type(value).__name__}."
    )


def import_yaml() -> Any:
    """Import PyYAML lazily with an actionable error when missing."""
    try:
        import yaml  # type: ignore[import-untyped]
    except ImportError as error:  # pragma: no cover - dependency failure
        raise TabstoreDependencyError(
            "Metadata and report files require PyYAML. Install with 'pip install pyyaml'."
        ) from error
    return yaml
