"""
surface.py — The drawing capability every backend implements.

All coordinates handed to a surface are device units with the origin at the
top-left and Y growing downwards; the percentage-to-device conversion has
already been applied by the painter. Colours are deck colour strings and
opacities are deck percentages (0-100, 0 meaning opaque).
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from deckrender.engine.fonts import FontResolver, ResolvedFont

Point = Tuple[float, float]

ANCHORS = ("start", "middle", "end")


@dataclass(frozen=True)
class FontSpec:
    """A font request: deck family name, size in device units, weight."""
    family: str
    size: float
    weight: int = 400


@dataclass(frozen=True)
class Gradient:
    """Two-stop linear gradient, top to bottom; color2 is reached at `percent`."""
    color1: str
    color2: str
    percent: float = 100.0


class DrawingSurface(ABC):
    """
    One output document being drawn.

    A surface is created per render call and discarded after finish().
    """

    def __init__(self, width: float, height: float, fonts: FontResolver, title: str = ""):
        self.width = width
        self.height = height
        self.fonts = fonts
        self.title = title

    # -------------------------------------------------------------------------
    # Document structure
    # -------------------------------------------------------------------------

    @abstractmethod
    def begin_slide(self, number: int, background: str, gradient: Optional[Gradient] = None) -> None:
        """Start slide `number` (1-based) and paint its background."""

    def end_slide(self) -> None:
        """Finish the current slide."""

    def begin_layer(self, name: str) -> None:
        """Start a named group of shapes."""

    def end_layer(self) -> None:
        """Finish the current group."""

    @abstractmethod
    def finish(self) -> bytes:
        """Return the encoded document."""

    # -------------------------------------------------------------------------
    # Primitives
    # -------------------------------------------------------------------------

    @abstractmethod
    def fill_rect(self, x: float, y: float, w: float, h: float, color: str, opacity: float) -> None:
        """Fill a rectangle whose top-left corner is (x, y)."""

    @abstractmethod
    def fill_ellipse(self, cx: float, cy: float, rx: float, ry: float, color: str, opacity: float) -> None:
        """Fill an ellipse centred at (cx, cy)."""

    @abstractmethod
    def stroke_line(
        self, x1: float, y1: float, x2: float, y2: float,
        width: float, color: str, opacity: float,
    ) -> None:
        """Stroke a straight line."""

    @abstractmethod
    def fill_polygon(self, points: Sequence[Point], color: str, opacity: float) -> None:
        """Fill a closed polygon."""

    @abstractmethod
    def draw_arc(
        self, cx: float, cy: float, rx: float, ry: float,
        a1: float, a2: float, width: float, color: str, opacity: float,
    ) -> None:
        """Stroke an elliptical arc from a1 to a2 degrees, counter-clockwise."""

    @abstractmethod
    def draw_curve(
        self, p1: Point, p2: Point, p3: Point,
        width: float, color: str, opacity: float,
    ) -> None:
        """Stroke a quadratic Bezier curve with control point p2."""

    @abstractmethod
    def draw_text(
        self, x: float, y: float, text: str, font: FontSpec,
        anchor: str, color: str, opacity: float,
    ) -> None:
        """Draw one line of text with its baseline at y, anchored at x."""

    @abstractmethod
    def fill_linear_gradient(self, x: float, y: float, w: float, h: float, gradient: Gradient) -> None:
        """Fill a rectangle with a two-stop gradient."""

    @abstractmethod
    def draw_image(self, path: str, cx: float, cy: float, w: float, h: float) -> None:
        """Draw an image file scaled to w x h, centred at (cx, cy)."""

    @abstractmethod
    def push_rotation(self, degrees: float, cx: float, cy: float) -> None:
        """Rotate subsequent drawing counter-clockwise about (cx, cy)."""

    @abstractmethod
    def pop_rotation(self) -> None:
        """Undo the last push_rotation()."""

    # -------------------------------------------------------------------------
    # Measurement
    # -------------------------------------------------------------------------

    def measure_text(self, text: str, font: FontSpec) -> float:
        """Advance width of `text` in device units."""
        return self.fonts.load_pil(font.family, font.size, font.weight).getlength(text)

    def resolve_font(self, font: FontSpec) -> ResolvedFont:
        return self.fonts.resolve(font.family, font.weight)
