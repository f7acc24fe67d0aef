"""Error types raised by the rendering pipeline."""

from typing import Optional


class DeckError(Exception):
    """Base class for pipeline failures.

    `stage` names the pipeline stage that failed (compile, parse, render,
    write). The orchestrator fills it in when the error crosses a stage.
    """

    def __init__(self, message: str, stage: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.stage = stage

    def __str__(self) -> str:
        if self.stage:
            return f"{self.stage}: {self.message}"
        return self.message


class CompileError(DeckError):
    """The DSL compiler rejected its input. The message is its stderr."""


class ParseError(DeckError):
    """The intermediate XML document is malformed."""


class UnsupportedFormatError(DeckError):
    """No backend renders the requested output format."""


class SlideIndexError(DeckError):
    """The requested slide index is outside the deck."""


class OutputIOError(DeckError):
    """Rendered bytes could not be written."""


class RenderError(DeckError):
    """Unexpected failure inside a stage, usually a backend library error."""


class FontLoadWarning(UserWarning):
    """A font could not be loaded; rendering continues with a fallback face."""
