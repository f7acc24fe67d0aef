"""Health check routes."""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from deckrender.api.dependencies import get_pipeline
from deckrender.config import get_settings
from deckrender.dsl.schema import OutputFormat
from deckrender.pipeline.orchestrator import Pipeline

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    timestamp: str
    version: str
    compiler: bool
    formats: list[str]


@router.get("/health", response_model=HealthResponse)
async def health_check(pipeline: Pipeline = Depends(get_pipeline)):
    """Basic health check; `compiler` reports whether the DSL compiler is on PATH."""
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(timezone.utc).isoformat(),
        version=get_settings().app_version,
        compiler=bool(getattr(pipeline.compiler, "available", True)),
        formats=[f.value for f in OutputFormat],
    )
