"""
units.py — Percentage coordinates, deck constants and colour helpers.

This is the foundation module. ALL positioning math uses these functions.
Every deck position and size is a percentage of the canvas; X grows to the
right and Y is measured from the bottom, so device Y is always flipped:

    device_x = width * xp / 100
    device_y = height * (100 - yp) / 100
"""

from PIL import ImageColor

# =============================================================================
# CANVAS DEFAULTS (US Letter, landscape, in points)
# =============================================================================

DEFAULT_WIDTH = 792.0
DEFAULT_HEIGHT = 612.0

# =============================================================================
# LAYOUT CONSTANTS
# =============================================================================

# Paint order used when the caller does not supply one
DEFAULT_LAYERS = "image:rect:ellipse:curve:arc:line:poly:text:list"

# Scales font and stroke sizes derived from `sp`
FONT_FACTOR = 1.0

LINE_SPACING = 1.4   # Free and block text leading, as a multiple of font size
LIST_SPACING = 2.0   # List item advance, as a multiple of font size
LIST_WRAP = 95.0

DEFAULT_STROKE_WIDTH = 2.0
GRID_STROKE_WIDTH = 0.25

# Word spacing as a fraction of the width of "M"
WORD_SPACING = 0.3
MONO_WORD_SPACING = 1.0

# =============================================================================
# FONT AND COLOUR DEFAULTS
# =============================================================================

DEFAULT_FONT_FAMILY = "Arial"
DEFAULT_FONT_WEIGHT = 400

DEFAULT_BACKGROUND_COLOR = "white"
DEFAULT_FOREGROUND_COLOR = "black"
DEFAULT_SHAPE_COLOR = "rgb(127,127,127)"
CODE_BACKGROUND_COLOR = "rgb(240,240,240)"
GRID_COLOR = "rgb(127,127,127)"

OPAQUE = 100.0

# =============================================================================
# COORDINATE CONVERSIONS
# =============================================================================


def pct(value: float, measure: float) -> float:
    """Return `value` percent of `measure`."""
    return value / 100.0 * measure


def device_x(xp: float, width: float) -> float:
    """Convert an X percentage to device units."""
    return pct(xp, width)


def device_y(yp: float, height: float) -> float:
    """Convert a bottom-up Y percentage to a top-down device coordinate."""
    return pct(100.0 - yp, height)


def percent_y(y: float, height: float) -> float:
    """Inverse of device_y()."""
    return 100.0 - (y / height * 100.0)


def dimen(
    width: float,
    height: float,
    xp: float,
    yp: float,
    sp: float,
) -> tuple[float, float, float]:
    """
    Map a percentage position and size to device units.

    Args:
        width: Canvas width in device units
        height: Canvas height in device units
        xp: X position, percent of width
        yp: Y position, percent of height measured from the bottom
        sp: Size, percent of width

    Returns:
        (x, y, size) in device units
    """
    return (
        device_x(xp, width),
        device_y(yp, height),
        pct(sp, width) * FONT_FACTOR,
    )


def pwidth(wp: float, width: float, default: float) -> float:
    """Width from a percentage, or `default` when the percentage is unset."""
    if wp == 0:
        return default
    return pct(wp, width)


def stroke_width(size: float) -> float:
    """Stroke width for lines, arcs and curves; zero means the default."""
    return size if size > 0 else DEFAULT_STROKE_WIDTH


# =============================================================================
# COLOUR HELPERS
# =============================================================================

def color_to_rgb(color: str) -> tuple[int, int, int]:
    """
    Convert a deck colour to an RGB tuple (0-255).

    Accepts CSS colour names, `#rgb`, `#rrggbb`, `rgb(r,g,b)` and `hsv(...)`.
    Unknown colours resolve to black.
    """
    try:
        rgb = ImageColor.getrgb(color.strip())
    except (ValueError, AttributeError):
        return (0, 0, 0)
    return rgb[0], rgb[1], rgb[2]


def rgb_to_hex(r: int, g: int, b: int) -> str:
    """Convert RGB values to a hex colour string."""
    return f"#{r:02x}{g:02x}{b:02x}"


def alpha_from_opacity(opacity: float) -> int:
    """Map a 0-100 opacity to an 8-bit alpha; zero or less means opaque."""
    if opacity > 0:
        return int(255 * min(opacity, OPAQUE) / 100)
    return 255


def opacity_fraction(opacity: float) -> float:
    """Map a 0-100 opacity to [0, 1]; zero or less means opaque."""
    if opacity > 0:
        return min(opacity, OPAQUE) / 100.0
    return 1.0


def clamp(value: float, min_val: float, max_val: float) -> float:
    """Clamp a value between min and max."""
    return max(min_val, min(max_val, value))
