"""Unit tests for the dataset directory catalog."""

from __future__ import annotations

from dataclasses import replace

import pytest

from core.config import TabstoreConfig
from core.errors import TabstoreStoreError
from store.catalog import DatasetCatalog, validate_dataset_name


def test_dataset_names_must_be_plain_directory_names() -> None:
    """Names with separators or leading dots are rejected."""
    for name in ("../escape", ".hidden", "a/b", ""):
        with pytest.raises(TabstoreStoreError):
            validate_dataset_name(name)


def test_list_datasets_ignores_staging_and_unmarked_dirs(tmp_path) -> None:
    """Only directories with an import marker are listed."""
    catalog = DatasetCatalog(replace(TabstoreConfig.from_env(), data_root=tmp_path))
    complete = catalog.dataset_root("sales")
    complete.mkdir(parents=True)
    (complete / "import_state.json").write_text("{}", encoding="utf-8")
    catalog.dataset_root("scratch").mkdir()
    catalog.create_staging_root("sales")

    assert catalog.list_datasets() == ["sales"]


def test_delete_missing_dataset_fails(tmp_path) -> None:
    """Deleting an unknown dataset is an error, not a no-op."""
    catalog = DatasetCatalog(replace(TabstoreConfig.from_env(), data_root=tmp_path))

    with pytest.raises(TabstoreStoreError, match="not found"):
        catalog.delete_dataset("absent")


def test_staging_roots_live_beside_datasets(tmp_path) -> None:
    """Staging directories are hidden siblings of published datasets."""
    catalog = DatasetCatalog(replace(TabstoreConfig.from_env(), data_root=tmp_path))

    staging_root = catalog.create_staging_root("sales")

    assert staging_root.parent == catalog.datasets_root == tmp_path / "datasets"
    assert staging_root.name.startswith(".staging-sales-")
