"""Runtime configuration model for tabstore.

This module owns all environment variable parsing and validation.
Other modules consume a typed config object instead of raw env reads.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
import os
from pathlib import Path

from core.constants import (
    CHART_STYLES,
    DEFAULT_CHART_STYLE,
    DEFAULT_DATA_ROOT,
    DEFAULT_INFERENCE_SAMPLE_ROWS,
    DEFAULT_LOG_LEVEL,
    DEFAULT_MAX_IN_MEMORY_DISTINCT,
    DEFAULT_RANDOM_SEED,
    DEFAULT_WORKERS,
)
from core.errors import TabstoreConfigError

_TRUE_VALUES = ("1", "true", "yes", "on")
_FALSE_VALUES = ("0", "false", "no", "off", "")


@dataclass(frozen=True)
class TabstoreConfig:
    """Validated runtime configuration.

    Attributes:
        data_root: Local root directory holding dataset stores.
        random_seed: Seed used for deterministic scatter sampling.
        inference_sample_rows: Rows sampled by type inference.
        chart_style: ``auto``, ``ascii`` or ``unicode``.
        require_integrity: Fail closed when no valid signature is present.
        max_in_memory_distinct: Distinct values held before spilling to disk.
        workers: Worker threads for whole-dataset summaries.
    """

    data_root: Path
    random_seed: int = DEFAULT_RANDOM_SEED
    inference_sample_rows: int = DEFAULT_INFERENCE_SAMPLE_ROWS
    chart_style: str = DEFAULT_CHART_STYLE
    require_integrity: bool = False
    max_in_memory_distinct: int = DEFAULT_MAX_IN_MEMORY_DISTINCT
    workers: int = DEFAULT_WORKERS

    @classmethod
    def from_env(cls) -> "TabstoreConfig":
        """Build config from process environment variables.

        Returns:
            A validated config object.

        Raises:
            TabstoreConfigError: If environment values are invalid.
        """
        data_root_value = os.getenv("TABSTORE_DATA_ROOT", str(DEFAULT_DATA_ROOT))
        return cls(
            data_root=Path(data_root_value).expanduser().resolve(),
            random_seed=_parse_int("TABSTORE_RANDOM_SEED", DEFAULT_RANDOM_SEED),
            inference_sample_rows=_parse_positive_int(
                "TABSTORE_INFERENCE_SAMPLE_ROWS", DEFAULT_INFERENCE_SAMPLE_ROWS
            ),
            chart_style=_parse_chart_style(
                os.getenv("TABSTORE_CHART_STYLE", DEFAULT_CHART_STYLE)
            ),
            require_integrity=_parse_bool("TABSTORE_REQUIRE_INTEGRITY", False),
            max_in_memory_distinct=_parse_positive_int(
                "TABSTORE_MAX_IN_MEMORY_DISTINCT", DEFAULT_MAX_IN_MEMORY_DISTINCT
            ),
            workers=_parse_positive_int("TABSTORE_WORKERS", DEFAULT_WORKERS),
        )


def _parse_int(variable: str, default: int) -> int:
    """Parse an integer environment value.

    Args:
        variable: Environment variable name.
        default: Value used when the variable is unset.

    Returns:
        Parsed integer.

    Raises:
        TabstoreConfigError: If value cannot be parsed into int.
    """
    raw_value = os.getenv(variable)
    if raw_value is None:
        return default
    try:
        return int(raw_value)
    except ValueError as error:
        raise TabstoreConfigError(
            f"Invalid {variable} value: expected integer, got '{raw_value}'. "
            f"Set {variable} to a numeric value."
        ) from error


def _parse_positive_int(variable: str, default: int) -> int:
    value = _parse_int(variable, default)
    if value < 1:
        raise TabstoreConfigError(
            f"Invalid {variable} value: expected a positive integer, got {value}."
        )
    return value


def _parse_bool(variable: str, default: bool) -> bool:
    raw_value = os.getenv(variable)
    if raw_value is None:
        return default
    normalized = raw_value.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    raise TabstoreConfigError(
        f"Invalid {variable} value: expected one of "
        f"{', '.join(_TRUE_VALUES + _FALSE_VALUES[:-1])}, got '{raw_value}'."
    )


def _parse_chart_style(raw_value: str) -> str:
    normalized = raw_value.strip().lower()
    if normalized == DEFAULT_CHART_STYLE or normalized in CHART_STYLES:
        return normalized
    raise TabstoreConfigError(
        f"Invalid TABSTORE_CHART_STYLE value '{raw_value}'. "
        f"Use auto, {', '.join(CHART_STYLES)}."
    )


def log_level_from_env() -> int:
    """Map TABSTORE_LOG_LEVEL onto a stdlib level number.

    Read once at logger setup, before any config object exists. Unknown
    names fall back to INFO.
    """
    level_name = os.getenv("TABSTORE_LOG_LEVEL", DEFAULT_LOG_LEVEL).strip().upper()
    level = logging.getLevelName(level_name)
    if isinstance(level, int):
        return level
    return logging.INFO
