"""Render routes."""

import logging
from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import Response
from pydantic import BaseModel, Field

from deckrender.api.dependencies import get_pipeline
from deckrender.config import get_settings
from deckrender.dsl.schema import RenderOptions
from deckrender.errors import (
    CompileError,
    DeckError,
    ParseError,
    SlideIndexError,
    UnsupportedFormatError,
)
from deckrender.pipeline.orchestrator import Pipeline, parse_format

logger = logging.getLogger("deckrender.api")

router = APIRouter()


class RenderRequest(BaseModel):
    """Request to render a deck."""
    source: str = Field(..., description="Deck DSL text, or intermediate XML when input is 'xml'")
    input: Literal["dsh", "xml"] = "dsh"
    format: str = "svg"
    slide: int | None = Field(None, ge=0, description="0-based slide; PDF renders all slides when omitted")
    layers: str | None = None
    grid: float = Field(0.0, ge=0)
    title: str = ""


def _status_for(exc: DeckError) -> int:
    if isinstance(exc, UnsupportedFormatError):
        return status.HTTP_400_BAD_REQUEST
    if isinstance(exc, SlideIndexError):
        return status.HTTP_404_NOT_FOUND
    if isinstance(exc, (CompileError, ParseError)):
        return status.HTTP_422_UNPROCESSABLE_ENTITY
    return status.HTTP_500_INTERNAL_SERVER_ERROR


@router.post("")
def render_deck(request: RenderRequest, pipeline: Pipeline = Depends(get_pipeline)):
    """Render a deck and return the output bytes with the format's media type."""
    options = RenderOptions(
        layers=request.layers or get_settings().layers,
        grid_percent=request.grid,
        title=request.title,
    )
    try:
        fmt = parse_format(request.format)
        if request.input == "xml":
            data = pipeline.render_xml(request.source, fmt, options, request.slide)
        else:
            data = pipeline.render(request.source, fmt, options, request.slide)
    except DeckError as exc:
        code = _status_for(exc)
        logger.warning(f"Render failed ({code}): {exc}")
        raise HTTPException(status_code=code, detail=str(exc))

    return Response(content=data, media_type=fmt.media_type)
