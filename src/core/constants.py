"""Core constants used across tabstore modules.

This module centralizes layout names, defaults, and limits.
Keeping values here avoids magic literals in business logic.
"""

from __future__ import annotations

from pathlib import Path

DEFAULT_DATA_ROOT = Path(".tabstore")
DATASETS_DIR_NAME = "datasets"
COLUMNS_DIR_NAME = "columns"
SOURCE_DIR_NAME = "source"
METADATA_FILE_NAME = "metadata.yaml"
IMPORT_STATE_FILE_NAME = "import_state.json"
STAGING_PREFIX = ".staging-"
TEMP_FILE_PREFIX = ".tmp-"
METADATA_FORMAT_VERSION = 1
IMPORT_STATUS_IMPORTING = "importing"
IMPORT_STATUS_COMPLETE = "complete"

ROW_INDEX_DIGITS = 12
ROW_GROUP_DIGITS = 3
MAX_ROW_INDEX = 10**ROW_INDEX_DIGITS - 1

HASH_ALGORITHM = "sha256"
HASH_CHUNK_BYTES = 1024 * 1024
CSV_DEFAULT_DELIMITER = ","
CSV_ENCODING = "utf-8"
INTEGER_MIN = -(2**63)
INTEGER_MAX = 2**63 - 1
SYNTHESIZED_COLUMN_PREFIX = "column_"

DEFAULT_MAX_STRING_LENGTH = 255
DEFAULT_DECIMAL_SEPARATOR = "."
DEFAULT_TRUE_TOKENS = ("true", "t", "yes", "y", "1")
DEFAULT_FALSE_TOKENS = ("false", "f", "no", "n", "0")
DEFAULT_INFERENCE_SAMPLE_ROWS = 100
INFERENCE_MAJORITY_THRESHOLD = 0.7

DEFAULT_RANDOM_SEED = 42
DEFAULT_MAX_IN_MEMORY_DISTINCT = 10_000
DEFAULT_TOP_FREQUENCIES = 5
DEFAULT_WORKERS = 1
DEFAULT_LOG_LEVEL = "info"
IO_RETRY_ATTEMPTS = 3
IO_RETRY_DELAY_SECONDS = 0.05

CHART_STYLES = ("ascii", "unicode")
DEFAULT_CHART_STYLE = "auto"
DEFAULT_HISTOGRAM_BUCKETS = 10
DEFAULT_HISTOGRAM_WIDTH = 60
DEFAULT_HISTOGRAM_HEIGHT = 15
DEFAULT_SCATTER_WIDTH = 60
DEFAULT_SCATTER_HEIGHT = 20
DEFAULT_SCATTER_SAMPLE_SIZE = 1000
DEFAULT_BOX_PLOT_WIDTH = 7
DEFAULT_BOX_PLOT_HEIGHT = 15
DEFAULT_FREQUENCY_WIDTH = 60
DEFAULT_FREQUENCY_LABEL_WIDTH = 16
