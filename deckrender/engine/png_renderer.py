"""
png_renderer.py — PNG output from a Deck, drawn with Pillow.

The raster backend. Coordinates are rounded to whole pixels before drawing.
Shapes are blended onto an RGB canvas through an RGBA ImageDraw, so opacity
is true alpha compositing. Rotated text is drawn on a transparent layer that
is rotated about its anchor and composited back.
"""

import io
import logging
import math
from typing import List, Optional, Sequence, Tuple

from PIL import Image, ImageDraw

from deckrender.dsl.schema import Deck, OutputFormat, RenderOptions
from deckrender.engine.fonts import FontResolver
from deckrender.engine.renderer import DeckRenderer
from deckrender.engine.surface import DrawingSurface, FontSpec, Gradient, Point
from deckrender.engine.units import alpha_from_opacity, color_to_rgb

logger = logging.getLogger("deckrender.png")

# Pillow anchors: horizontal position + baseline
TEXT_ANCHORS = {"start": "ls", "middle": "ms", "end": "rs"}

CURVE_SEGMENT_PX = 4


def to_px(value: float) -> int:
    return int(round(value))


def quadratic_points(p1: Point, p2: Point, p3: Point) -> List[Tuple[float, float]]:
    """Sample a quadratic Bezier curve into a polyline."""
    length = math.dist(p1, p2) + math.dist(p2, p3)
    steps = max(8, int(length / CURVE_SEGMENT_PX))
    points = []
    for i in range(steps + 1):
        t = i / steps
        u = 1 - t
        points.append((
            u * u * p1[0] + 2 * u * t * p2[0] + t * t * p3[0],
            u * u * p1[1] + 2 * u * t * p2[1] + t * t * p3[1],
        ))
    return points


class _RotationLayer:
    """Transparent layer collecting drawing while a rotation is active."""

    def __init__(self, size: Tuple[int, int], degrees: float, cx: float, cy: float):
        self.image = Image.new("RGBA", size, (0, 0, 0, 0))
        self.draw = ImageDraw.Draw(self.image)
        self.degrees = degrees
        self.center = (cx, cy)


class PNGSurface(DrawingSurface):
    """Pillow canvas for a single slide."""

    def __init__(self, width: float, height: float, fonts: FontResolver, title: str = ""):
        super().__init__(width, height, fonts, title)
        self.size = (max(to_px(width), 1), max(to_px(height), 1))
        self.image = Image.new("RGB", self.size, "white")
        self._layers: List[_RotationLayer] = []

    @property
    def draw(self) -> ImageDraw.ImageDraw:
        if self._layers:
            return self._layers[-1].draw
        return ImageDraw.Draw(self.image, "RGBA")

    def _ink(self, color: str, opacity: float) -> Tuple[int, int, int, int]:
        r, g, b = color_to_rgb(color)
        return (r, g, b, alpha_from_opacity(opacity))

    def _paste(self, im: Image.Image, position: Tuple[int, int]) -> None:
        """Composite an RGBA image onto the active target."""
        if not self._layers:
            self.image.paste(im, position, im)
            return
        target = self._layers[-1].image
        if _fits(im, position, self.size):
            target.alpha_composite(im, dest=position)
        else:
            target.paste(im, position, im)

    # -------------------------------------------------------------------------
    # Document structure
    # -------------------------------------------------------------------------

    def begin_slide(self, number: int, background: str, gradient: Optional[Gradient] = None) -> None:
        self.image = Image.new("RGB", self.size, color_to_rgb(background))
        self._layers = []
        if gradient is not None:
            self.fill_linear_gradient(0, 0, self.width, self.height, gradient)

    def finish(self) -> bytes:
        while self._layers:
            self.pop_rotation()
        buf = io.BytesIO()
        self.image.save(buf, format="PNG")
        return buf.getvalue()

    # -------------------------------------------------------------------------
    # Primitives
    # -------------------------------------------------------------------------

    def fill_rect(self, x, y, w, h, color: str, opacity: float) -> None:
        x0, y0, x1, y1 = to_px(x), to_px(y), to_px(x + w), to_px(y + h)
        if x1 <= x0 or y1 <= y0:
            return
        self.draw.rectangle([x0, y0, x1 - 1, y1 - 1], fill=self._ink(color, opacity))

    def fill_ellipse(self, cx, cy, rx, ry, color: str, opacity: float) -> None:
        if rx <= 0 or ry <= 0:
            return
        box = [to_px(cx - rx), to_px(cy - ry), to_px(cx + rx), to_px(cy + ry)]
        self.draw.ellipse(box, fill=self._ink(color, opacity))

    def stroke_line(self, x1, y1, x2, y2, width, color, opacity) -> None:
        self.draw.line(
            [(to_px(x1), to_px(y1)), (to_px(x2), to_px(y2))],
            fill=self._ink(color, opacity),
            width=max(to_px(width), 1),
        )

    def fill_polygon(self, points: Sequence[Point], color: str, opacity: float) -> None:
        self.draw.polygon([(to_px(x), to_px(y)) for x, y in points], fill=self._ink(color, opacity))

    def draw_arc(self, cx, cy, rx, ry, a1, a2, width, color, opacity) -> None:
        if rx <= 0 or ry <= 0:
            return
        box = [to_px(cx - rx), to_px(cy - ry), to_px(cx + rx), to_px(cy + ry)]
        # Pillow measures clockwise; a1 -> a2 counter-clockwise is 360-a2 -> 360-a1
        self.draw.arc(
            box, start=360 - a2, end=360 - a1,
            fill=self._ink(color, opacity), width=max(to_px(width), 1),
        )

    def draw_curve(self, p1: Point, p2: Point, p3: Point, width, color, opacity) -> None:
        points = [(to_px(x), to_px(y)) for x, y in quadratic_points(p1, p2, p3)]
        self.draw.line(points, fill=self._ink(color, opacity), width=max(to_px(width), 1), joint="curve")

    def draw_text(self, x, y, text: str, font: FontSpec, anchor: str, color: str, opacity: float) -> None:
        if not text:
            return
        pil_font = self.fonts.load_pil(font.family, font.size, font.weight)
        self.draw.text(
            (to_px(x), to_px(y)), text,
            font=pil_font,
            fill=self._ink(color, opacity),
            anchor=TEXT_ANCHORS.get(anchor, "ls"),
        )

    def fill_linear_gradient(self, x, y, w, h, gradient: Gradient) -> None:
        x0, y0 = to_px(x), to_px(y)
        width, height = to_px(w), to_px(h)
        if width <= 0 or height <= 0:
            return
        top = Image.new("RGBA", (width, height), color_to_rgb(gradient.color1) + (255,))
        bottom = Image.new("RGBA", (width, height), color_to_rgb(gradient.color2) + (255,))

        # 0 at the top, 255 from `percent` of the height downwards
        stop = max(to_px(height * gradient.percent / 100), 1)
        mask = Image.new("L", (width, height), 255)
        mask.paste(Image.linear_gradient("L").resize((width, stop)), (0, 0))

        self._paste(Image.composite(bottom, top, mask), (x0, y0))

    def draw_image(self, path: str, cx, cy, w, h) -> None:
        width, height = int(w), int(h)
        if width <= 0 or height <= 0:
            return
        try:
            with Image.open(path) as src:
                im = src.convert("RGBA")
        except (OSError, ValueError) as exc:
            logger.warning(f"Skipping image {path}: {exc}")
            return
        if im.size != (width, height):
            im = im.resize((width, height), Image.Resampling.BOX)
        self._paste(im, (int(cx - width / 2), int(cy - height / 2)))

    def push_rotation(self, degrees: float, cx: float, cy: float) -> None:
        self._layers.append(_RotationLayer(self.size, degrees, cx, cy))

    def pop_rotation(self) -> None:
        if not self._layers:
            return
        layer = self._layers.pop()
        rotated = layer.image.rotate(layer.degrees, resample=Image.Resampling.BICUBIC, center=layer.center)
        self._paste(rotated, (0, 0))


def _fits(im: Image.Image, position: Tuple[int, int], size: Tuple[int, int]) -> bool:
    """alpha_composite() needs the source inside the destination."""
    x, y = position
    return x >= 0 and y >= 0 and x + im.width <= size[0] and y + im.height <= size[1]


# =============================================================================
# PNG RENDERER
# =============================================================================

class PNGRenderer(DeckRenderer):
    """Renders one slide of a Deck to PNG."""

    format = OutputFormat.PNG

    def create_surface(self, deck: Deck, options: RenderOptions) -> PNGSurface:
        return PNGSurface(deck.width, deck.height, self.fonts, options.title or deck.title)

    def render_image(self, deck: Deck, options: Optional[RenderOptions] = None, slide_index: int = 0) -> Image.Image:
        """Render a slide and return it as a Pillow image."""
        return Image.open(io.BytesIO(self.render(deck, options, slide_index)))
