# Deck rendering engine

from .units import (
    DEFAULT_WIDTH,
    DEFAULT_HEIGHT,
    DEFAULT_LAYERS,
    pct,
    dimen,
    device_x,
    device_y,
    percent_y,
    pwidth,
)

from .fonts import (
    FontCache,
    FontResolver,
    ResolvedFont,
    EMAIL_SAFE_FONTS,
)

from .surface import (
    DrawingSurface,
    FontSpec,
    Gradient,
)

from .layers import (
    LayerDispatcher,
    parse_layers,
)

from .text_layout import (
    TextLayout,
    WrapResult,
    normalize_align,
    wrap_words,
)

from .painter import SlidePainter
from .renderer import DeckRenderer
from .svg_renderer import SVGRenderer, SVGSurface, render_to_svg
from .png_renderer import PNGRenderer, PNGSurface
from .pdf_renderer import PDFRenderer, PDFSurface

__all__ = [
    # Units
    'DEFAULT_WIDTH',
    'DEFAULT_HEIGHT',
    'DEFAULT_LAYERS',
    'pct',
    'dimen',
    'device_x',
    'device_y',
    'percent_y',
    'pwidth',
    # Fonts
    'FontCache',
    'FontResolver',
    'ResolvedFont',
    'EMAIL_SAFE_FONTS',
    # Surfaces
    'DrawingSurface',
    'FontSpec',
    'Gradient',
    # Layout
    'LayerDispatcher',
    'parse_layers',
    'TextLayout',
    'WrapResult',
    'normalize_align',
    'wrap_words',
    'SlidePainter',
    # Backends
    'DeckRenderer',
    'SVGRenderer',
    'SVGSurface',
    'render_to_svg',
    'PNGRenderer',
    'PNGSurface',
    'PDFRenderer',
    'PDFSurface',
]
