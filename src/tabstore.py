"""Public SDK surface for tabstore.

This module provides a stable import path for library users.
It re-exports the primary client, option models, and chart renderer.
"""

from __future__ import annotations

from charts.renderer import CharGrid, render
from core.config import TabstoreConfig
from core.types import ImportOptions, ImportResult, InferenceReport
from stats.cancellation import CancellationToken
from stats.summary import CategoricalSummary, NumericSummary
from store.dataset_sdk import Dataset, TabstoreClient

__all__ = [
    "CancellationToken",
    "CategoricalSummary",
    "CharGrid",
    "Dataset",
    "ImportOptions",
    "ImportResult",
    "InferenceReport",
    "NumericSummary",
    "TabstoreClient",
    "TabstoreConfig",
    "render",
]
