"""
renderer.py — Shared driver for the output backends.

A backend supplies a DrawingSurface; DeckRenderer validates the slide
request, runs the SlidePainter over the chosen slides and returns the
surface's bytes.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, Union

from deckrender.dsl.schema import Deck, OutputFormat, RenderOptions
from deckrender.engine.fonts import FontResolver
from deckrender.engine.painter import SlidePainter
from deckrender.engine.surface import DrawingSurface
from deckrender.errors import SlideIndexError


class DeckRenderer(ABC):
    """
    Base class for the svg, png and pdf backends.

    Single-page backends draw one slide per call; paginated backends draw
    every slide, one page each, unless a slide index is given.
    """

    format: OutputFormat
    paginated: bool = False

    def __init__(self, fonts: Optional[FontResolver] = None):
        self.fonts = fonts or FontResolver()

    @abstractmethod
    def create_surface(self, deck: Deck, options: RenderOptions) -> DrawingSurface:
        """Create an empty surface sized to the deck canvas."""

    def render(
        self,
        deck: Deck,
        options: Optional[RenderOptions] = None,
        slide_index: Optional[int] = None,
        asset_dir: Optional[Union[str, Path]] = None,
        output: Optional[Union[str, Path]] = None,
    ) -> bytes:
        """
        Render a deck.

        Args:
            deck: Parsed deck
            options: Layer order, grid and font settings
            slide_index: 0-based slide; None means the first slide for
                single-page backends and every slide for paginated ones
            asset_dir: Directory for relative image and include paths
            output: Optional output path for file

        Returns:
            Encoded output bytes

        Raises:
            SlideIndexError: If the deck has no slides or the index is out of range
        """
        options = options or RenderOptions()
        if not deck.slides:
            raise SlideIndexError("deck has no slides")
        if slide_index is not None and not 0 <= slide_index < len(deck.slides):
            raise SlideIndexError(
                f"slide {slide_index} out of range (deck has {len(deck.slides)} slides)"
            )

        if slide_index is not None:
            numbers = [slide_index]
        elif self.paginated:
            numbers = list(range(len(deck.slides)))
        else:
            numbers = [0]

        surface = self.create_surface(deck, options)
        painter = SlidePainter(surface, options, Path(asset_dir) if asset_dir else None)
        for n in numbers:
            painter.paint(deck.slides[n], n + 1)
        data = surface.finish()

        if output:
            Path(output).write_bytes(data)
        return data
