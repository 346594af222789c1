"""Dataset directory catalog.

This module owns the ``datasets/`` directory under the data root:
dataset name validation, staging directories, listing, and deletion.
"""

from __future__ import annotations

import re
import shutil
import uuid
from pathlib import Path

from core.config import TabstoreConfig
from core.constants import DATASETS_DIR_NAME, IMPORT_STATE_FILE_NAME, STAGING_PREFIX
from core.errors import TabstoreStoreError
from core.logging_config import get_logger

_LOGGER = get_logger(__name__)
_DATASET_NAME_PATTERN = re.compile(r"[A-Za-z0-9][A-Za-z0-9_.-]*")


def validate_dataset_name(dataset_name: str) -> str:
    """Check that a dataset name is usable as a directory name.

    Raises:
        TabstoreStoreError: If the name contains unsupported characters.
    """
    if _DATASET_NAME_PATTERN.fullmatch(dataset_name) is None:
        raise TabstoreStoreError(
            f"Invalid dataset name '{dataset_name}'. Use letters, digits, '_', '-' or '.', "
            "starting with a letter or digit."
        )
    return dataset_name


class DatasetCatalog:
    """Locate, list, and remove dataset directories under a data root."""

    def __init__(self, config: TabstoreConfig) -> None:
        self._datasets_root = config.data_root / DATASETS_DIR_NAME

    @property
    def datasets_root(self) -> Path:
        """Return the directory holding all datasets."""
        return self._datasets_root

    def dataset_root(self, dataset_name: str) -> Path:
        """Return the final directory for a dataset name."""
        return self._datasets_root / validate_dataset_name(dataset_name)

    def create_staging_root(self, dataset_name: str) -> Path:
        """Create a fresh hidden staging directory for one import."""
        validate_dataset_name(dataset_name)
        self._datasets_root.mkdir(parents=True, exist_ok=True)
        staging_root = self._datasets_root / f"{STAGING_PREFIX}{dataset_name}-{uuid.uuid4().hex}"
        staging_root.mkdir()
        return staging_root

    def list_datasets(self) -> list[str]:
        """Return names of datasets with an import marker, sorted."""
        if not self._datasets_root.is_dir():
            return []
        return sorted(
            entry.name
            for entry in self._datasets_root.iterdir()
            if entry.is_dir()
            and not entry.name.startswith(STAGING_PREFIX)
            and (entry / IMPORT_STATE_FILE_NAME).exists()
        )

    def delete_dataset(self, dataset_name: str) -> Path:
        """Remove a dataset directory subtree.

        Raises:
            TabstoreStoreError: If the dataset does not exist or removal fails.
        """
        dataset_root = self.dataset_root(dataset_name)
        if not dataset_root.is_dir():
            raise TabstoreStoreError(
                f"Dataset '{dataset_name}' not found under {self._datasets_root}."
            )
        try:
            shutil.rmtree(dataset_root)
        except OSError as error:
            raise TabstoreStoreError(
                f"Failed to delete dataset at {dataset_root}: {error}. "
                "Check permissions and remove the directory by hand."
            ) from error
        _LOGGER.info("dataset_deleted", dataset_name=dataset_name, path=str(dataset_root))
        return dataset_root
