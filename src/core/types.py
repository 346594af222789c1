"""Shared typed models.

This module defines immutable request and result models used by the
ingest, store, SDK, and CLI layers to keep interfaces explicit.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from core.column_types import ColumnType


@dataclass(frozen=True)
class ImportOptions:
    """Options for one CSV import.

    Attributes:
        dataset_name: Logical dataset identifier (directory name).
        source_path: CSV file to import.
        metadata_path: Explicit metadata YAML; inference runs when omitted.
        replace: Replace an existing dataset once the new one is complete.
        has_header: Whether the first row holds column names; ``None``
            defers to the metadata file, or to detection when inferring.
    """

    dataset_name: str
    source_path: str
    metadata_path: str | None = None
    replace: bool = False
    has_header: bool | None = None


@dataclass(frozen=True)
class ColumnInference:
    """Inference verdict for one column.

    Attributes:
        name: Column name from the header row.
        column_type: Type chosen for the metadata record.
        candidates: Types that fit every non-empty sample value.
        ambiguous: Whether the choice needs human review.
        note: Human-readable reason when ambiguous.
        sampled_values: Non-empty sample values inspected.
        null_values: Empty sample values inspected.
    """

    name: str
    column_type: ColumnType
    candidates: tuple[ColumnType, ...]
    ambiguous: bool
    note: str
    sampled_values: int
    null_values: int


@dataclass(frozen=True)
class InferenceReport:
    """Result of type inference over a bounded CSV sample."""

    sample_rows: int
    columns: tuple[ColumnInference, ...]

    @property
    def ambiguous_columns(self) -> tuple[ColumnInference, ...]:
        """Return columns whose inferred type needs review."""
        return tuple(column for column in self.columns if column.ambiguous)


@dataclass(frozen=True)
class ImportResult:
    """Summary of a completed import.

    Attributes:
        dataset_name: Dataset identifier.
        dataset_root: Final dataset directory.
        row_count: Rows written.
        column_count: Columns written.
        source_sha256: Digest of the original CSV.
        inference: Inference report when metadata was inferred.
    """

    dataset_name: str
    dataset_root: Path
    row_count: int
    column_count: int
    source_sha256: str
    inference: InferenceReport | None = None
