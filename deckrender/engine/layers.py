"""
layers.py — Paint order by layer name.

A layer is a named shape collection of a slide. The caller's layer list
decides which collections are drawn and in which order; within a layer,
shapes are drawn in document order.
"""

import logging
from typing import Any, Callable, Dict, Iterable, List, Sequence, Union

from deckrender.dsl.schema import Slide
from deckrender.engine.surface import DrawingSurface
from deckrender.engine.units import DEFAULT_LAYERS

logger = logging.getLogger("deckrender.layers")

# Layer name -> Slide attribute
LAYER_COLLECTIONS: Dict[str, str] = {
    "image": "images",
    "rect": "rects",
    "ellipse": "ellipses",
    "curve": "curves",
    "arc": "arcs",
    "line": "lines",
    "poly": "polygons",
    "polygon": "polygons",
    "text": "texts",
    "list": "lists",
}

ShapeHandler = Callable[[Any, Slide], None]


def parse_layers(value: Union[str, Sequence[str], None]) -> List[str]:
    """Split a colon-separated layer string (or clean a list of names)."""
    if value is None:
        value = DEFAULT_LAYERS
    if isinstance(value, str):
        names: Iterable[str] = value.split(":")
    else:
        names = value
    return [name.strip() for name in names if name and name.strip()]


class LayerDispatcher:
    """
    Invokes per-shape handlers for a slide, layer by layer.

    Args:
        surface: Surface receiving begin_layer/end_layer notifications
        handlers: Layer name -> function drawing one shape of that kind
    """

    def __init__(self, surface: DrawingSurface, handlers: Dict[str, ShapeHandler]):
        self.surface = surface
        self.handlers = handlers

    def dispatch(self, slide: Slide, layers: Union[str, Sequence[str], None] = None) -> int:
        """
        Draw the slide's shapes in layer order.

        Unknown layer names are skipped.

        Returns:
            Number of shapes handed to handlers
        """
        drawn = 0
        for name in parse_layers(layers):
            attr = LAYER_COLLECTIONS.get(name)
            handler = self.handlers.get(name)
            if attr is None or handler is None:
                logger.debug(f"Skipping unknown layer: {name}")
                continue

            shapes = getattr(slide, attr)
            if not shapes:
                continue

            self.surface.begin_layer(name)
            for shape in shapes:
                handler(shape, slide)
                drawn += 1
            self.surface.end_layer()
        return drawn
