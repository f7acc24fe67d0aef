"""Shared dependencies for API routes."""

from functools import lru_cache

from deckrender.pipeline.orchestrator import Pipeline


@lru_cache()
def get_pipeline() -> Pipeline:
    """One pipeline per process; its font resolver and backends are reused."""
    return Pipeline()
