"""Import-state marker persistence.

This module isolates JSON IO for the per-dataset import marker that
records completion status, the imported row count, and provenance.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any

from core.constants import IMPORT_STATE_FILE_NAME, IMPORT_STATUS_COMPLETE
from core.errors import IncompleteImportError, TabstoreStoreError


@dataclass(frozen=True)
class ImportState:
    """Marker written at the dataset root.

    Attributes:
        status: ``importing`` until the store is complete.
        row_count: Rows written by the import; the directory walk stays
            the ground truth and is checked against this value.
        source_file: File name of the provenance CSV copy.
        source_sha256: Digest of the original CSV bytes.
    """

    status: str
    row_count: int
    source_file: str
    source_sha256: str


def write_import_state(dataset_root: Path, state: ImportState) -> None:
    """Write the import marker file."""
    state_path = dataset_root / IMPORT_STATE_FILE_NAME
    state_path.write_text(json.dumps(asdict(state), indent=2, sort_keys=True) + "\n", encoding="utf-8")


def read_import_state(dataset_root: Path) -> ImportState:
    """Read and validate the import marker.

    Raises:
        IncompleteImportError: If the marker is missing or not complete.
        TabstoreStoreError: If the marker is unreadable.
    """
    state_path = dataset_root / IMPORT_STATE_FILE_NAME
    if not state_path.exists():
        raise IncompleteImportError(
            f"Dataset at {dataset_root} has no {IMPORT_STATE_FILE_NAME}; it was never fully "
            "imported. Delete it and import again."
        )
    try:
        payload: Any = json.loads(state_path.read_text(encoding="utf-8"))
        state = ImportState(
            status=str(payload["status"]),
            row_count=int(payload["row_count"]),
            source_file=str(payload["source_file"]),
            source_sha256=str(payload["source_sha256"]),
        )
    except (json.JSONDecodeError, KeyError, TypeError, ValueError) as error:
        raise TabstoreStoreError(
            f"Failed to read import state at {state_path}: {error}. "
            "Delete the dataset and import again."
        ) from error
    if state.status != IMPORT_STATUS_COMPLETE:
        raise IncompleteImportError(
            f"Dataset at {dataset_root} is marked '{state.status}', not complete. "
            "Delete it and import again."
        )
    return state
