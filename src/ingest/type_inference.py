"""Best-effort column type inference over a bounded CSV sample.

Only the first ``sample_rows`` data rows are read. Ambiguous or mixed
columns resolve to the wider type and are reported for review rather
than silently guessed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from itertools import islice
from pathlib import Path

from core.column_types import ColumnSpec, ColumnType, is_null, parse_cell
from core.constants import DEFAULT_MAX_STRING_LENGTH, INFERENCE_MAJORITY_THRESHOLD
from core.errors import TypeMismatchError
from core.logging_config import get_logger
from core.metadata import DatasetMetadata
from core.types import ColumnInference, InferenceReport
from ingest.csv_source import open_csv_rows

_LOGGER = get_logger(__name__)
_CANDIDATE_ORDER = (ColumnType.BOOLEAN, ColumnType.INTEGER, ColumnType.FLOAT)
_NUMERIC_BOOLEAN_TOKENS = {"0", "1"}


@dataclass
class _ColumnSample:
    """Per-column tallies collected while scanning the sample."""

    name: str
    non_empty: int = 0
    nulls: int = 0
    longest: int = 0
    fits: dict[ColumnType, int] = field(default_factory=lambda: {kind: 0 for kind in _CANDIDATE_ORDER})
    only_zero_one: bool = True

    def observe(self, raw_text: str) -> None:
        if is_null(raw_text):
            self.nulls += 1
            return
        self.non_empty += 1
        self.longest = max(self.longest, len(raw_text))
        if raw_text.strip() not in _NUMERIC_BOOLEAN_TOKENS:
            self.only_zero_one = False
        for kind in _CANDIDATE_ORDER:
            if _fits(raw_text, kind):
                self.fits[kind] += 1


def infer_metadata(
    source_path: Path,
    dataset_name: str,
    delimiter: str,
    sample_rows: int,
    has_header: bool = True,
) -> tuple[DatasetMetadata, InferenceReport]:
    """Infer a metadata record from the first rows of a CSV file.

    Args:
        source_path: CSV file.
        dataset_name: Dataset name for the metadata record.
        delimiter: CSV field delimiter.
        sample_rows: Maximum data rows to inspect.
        has_header: Whether the first row holds column names.

    Returns:
        Pair of inferred metadata and the inference report.
    """
    with open_csv_rows(source_path, delimiter, has_header) as (header, rows):
        samples = [_ColumnSample(name=name) for name in header]
        inspected = 0
        for _, fields in islice(rows, sample_rows):
            inspected += 1
            for sample, raw_text in zip(samples, fields):
                sample.observe(raw_text)
    inferences = tuple(_decide(sample) for sample in samples)
    columns = tuple(_spec_for(sample, inference) for sample, inference in zip(samples, inferences))
    report = InferenceReport(sample_rows=inspected, columns=inferences)
    for inference in report.ambiguous_columns:
        _LOGGER.warning(
            "inference_ambiguous_column",
            dataset_name=dataset_name,
            column=inference.name,
            chosen_type=inference.column_type.value,
            note=inference.note,
        )
    metadata = DatasetMetadata(
        dataset_name=dataset_name,
        columns=columns,
        delimiter=delimiter,
        has_header=has_header,
    )
    return metadata, report


def _decide(sample: _ColumnSample) -> ColumnInference:
    candidates = tuple(
        kind for kind in _CANDIDATE_ORDER if sample.non_empty and sample.fits[kind] == sample.non_empty
    ) + (ColumnType.SHORT_STRING,)
    if sample.non_empty == 0:
        return _inference(
            sample, ColumnType.SHORT_STRING, candidates, True, "no non-empty values in sample"
        )
    if ColumnType.BOOLEAN in candidates and ColumnType.INTEGER in candidates and sample.only_zero_one:
        return _inference(
            sample,
            ColumnType.INTEGER,
            candidates,
            True,
            "only 0/1 values seen; could be boolean or integer",
        )
    if len(candidates) > 1:
        return _inference(sample, candidates[0], candidates, False, "")
    for kind in (ColumnType.INTEGER, ColumnType.FLOAT):
        share = sample.fits[kind] / sample.non_empty
        if share >= INFERENCE_MAJORITY_THRESHOLD:
            return _inference(
                sample,
                ColumnType.SHORT_STRING,
                candidates,
                True,
                f"mixed values: {share:.0%} parse as {kind.value}",
            )
    return _inference(sample, ColumnType.SHORT_STRING, candidates, False, "")


def _inference(
    sample: _ColumnSample,
    column_type: ColumnType,
    candidates: tuple[ColumnType, ...],
    ambiguous: bool,
    note: str,
) -> ColumnInference:
    return ColumnInference(
        name=sample.name,
        column_type=column_type,
        candidates=candidates,
        ambiguous=ambiguous,
        note=note,
        sampled_values=sample.non_empty,
        null_values=sample.nulls,
    )


def _spec_for(sample: _ColumnSample, inference: ColumnInference) -> ColumnSpec:
    max_length = DEFAULT_MAX_STRING_LENGTH
    if inference.column_type is ColumnType.SHORT_STRING:
        max_length = max(DEFAULT_MAX_STRING_LENGTH, 2 * sample.longest)
    return ColumnSpec(
        name=sample.name,
        column_type=inference.column_type,
        nullable=True,
        max_length=max_length,
    )


def _fits(raw_text: str, kind: ColumnType) -> bool:
    candidate = ColumnSpec(name="candidate", column_type=kind, nullable=False)
    try:
        parse_cell(raw_text, candidate)
    except TypeMismatchError:
        return False
    return True
