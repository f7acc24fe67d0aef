"""Deck parser module - reads intermediate deck XML into the document model.

Handles complete decks as well as fragments: bare shape elements, or shapes
placed directly inside <deck>, are wrapped into a single synthetic slide.
"""

from deckrender.parser.deck_reader import DeckReader, wrap_in_slide_if_needed

__all__ = [
    "DeckReader",
    "wrap_in_slide_if_needed",
]
