"""API middleware for deckrender."""

from deckrender.api.middleware.logging import LoggingMiddleware

__all__ = ["LoggingMiddleware"]
