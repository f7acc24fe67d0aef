"""Rendering pipeline: compile → parse → render."""

from deckrender.pipeline.orchestrator import (
    Pipeline,
    default_output_path,
    parse_format,
    render,
)

__all__ = [
    "Pipeline",
    "default_output_path",
    "parse_format",
    "render",
]
