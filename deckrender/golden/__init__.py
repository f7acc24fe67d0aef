"""Golden test harness for the rendering pipeline."""

from deckrender.golden.catalog import GoldenCase, GoldenCatalog, load_catalog, save_catalog
from deckrender.golden.runner import (
    CaseResult,
    GoldenRunner,
    GoldenSummary,
    StageResult,
    StageStatus,
    format_report,
)

__all__ = [
    "CaseResult",
    "GoldenCase",
    "GoldenCatalog",
    "GoldenRunner",
    "GoldenSummary",
    "StageResult",
    "StageStatus",
    "format_report",
    "load_catalog",
    "save_catalog",
]
