"""Unit tests for core config parsing."""

from __future__ import annotations

import logging
import os

import pytest

from core.config import TabstoreConfig, log_level_from_env
from core.errors import TabstoreConfigError


def test_from_env_reads_data_root(monkeypatch: pytest.MonkeyPatch) -> None:
    """Config should resolve data root from environment."""
    monkeypatch.setenv("TABSTORE_DATA_ROOT", "./.tmp-tabstore")

    config = TabstoreConfig.from_env()

    assert config.data_root.name == ".tmp-tabstore"


def test_from_env_raises_for_invalid_seed(monkeypatch: pytest.MonkeyPatch) -> None:
    """Config should fail for non-numeric random seed."""
    monkeypatch.setenv("TABSTORE_RANDOM_SEED", "not-a-number")

    with pytest.raises(TabstoreConfigError):
        TabstoreConfig.from_env()

    assert os.getenv("TABSTORE_RANDOM_SEED") == "not-a-number"


def test_from_env_rejects_non_positive_workers(monkeypatch: pytest.MonkeyPatch) -> None:
    """Worker count must be at least one."""
    monkeypatch.setenv("TABSTORE_WORKERS", "0")

    with pytest.raises(TabstoreConfigError, match="TABSTORE_WORKERS"):
        TabstoreConfig.from_env()


def test_from_env_parses_integrity_flag(monkeypatch: pytest.MonkeyPatch) -> None:
    """Boolean variables should accept common spellings."""
    monkeypatch.setenv("TABSTORE_REQUIRE_INTEGRITY", "Yes")

    config = TabstoreConfig.from_env()

    assert config.require_integrity is True


def test_from_env_rejects_unknown_chart_style(monkeypatch: pytest.MonkeyPatch) -> None:
    """Chart style must be auto, ascii, or unicode."""
    monkeypatch.setenv("TABSTORE_CHART_STYLE", "braille")

    with pytest.raises(TabstoreConfigError, match="TABSTORE_CHART_STYLE"):
        TabstoreConfig.from_env()


def test_from_env_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    """Unset variables should fall back to documented defaults."""
    for variable in (
        "TABSTORE_RANDOM_SEED",
        "TABSTORE_INFERENCE_SAMPLE_ROWS",
        "TABSTORE_CHART_STYLE",
        "TABSTORE_WORKERS",
    ):
        monkeypatch.delenv(variable, raising=False)

    config = TabstoreConfig.from_env()

    assert (config.random_seed, config.inference_sample_rows, config.chart_style, config.workers) == (
        42,
        100,
        "auto",
        1,
    )


@pytest.mark.parametrize(
    ("raw_value", "expected"),
    [("debug", logging.DEBUG), (" WARNING ", logging.WARNING), ("chatty", logging.INFO)],
)
def test_log_level_from_env(monkeypatch: pytest.MonkeyPatch, raw_value: str, expected: int) -> None:
    """Log level names map to stdlib levels with INFO as the fallback."""
    monkeypatch.setenv("TABSTORE_LOG_LEVEL", raw_value)

    assert log_level_from_env() == expected
