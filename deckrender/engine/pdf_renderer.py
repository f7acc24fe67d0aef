"""
pdf_renderer.py — PDF output from a Deck, drawn with reportlab.

The paginated backend: one page per slide, page size equal to the canvas.
reportlab's origin is the bottom-left corner, so device Y is flipped back
on the way in. Fidelity is intentionally reduced in three places:

- gradients are a flat fill of the first colour
- arcs are straight segments along the arc
- curves are one straight line from the first to the last point

Output is byte-deterministic (`invariant=1`), so it can be golden tested.
"""

import io
import logging
import math
from typing import Optional, Sequence

from reportlab.lib.utils import ImageReader
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfgen import canvas

from deckrender.dsl.schema import Deck, OutputFormat, RenderOptions
from deckrender.engine.fonts import FontResolver
from deckrender.engine.renderer import DeckRenderer
from deckrender.engine.surface import DrawingSurface, FontSpec, Gradient, Point
from deckrender.engine.units import color_to_rgb, opacity_fraction

logger = logging.getLogger("deckrender.pdf")

ARC_STEP_DEGREES = 15.0


class PDFSurface(DrawingSurface):
    """reportlab canvas; each slide is one page."""

    def __init__(self, width: float, height: float, fonts: FontResolver, title: str = ""):
        super().__init__(width, height, fonts, title)
        self.buffer = io.BytesIO()
        self.canvas = canvas.Canvas(self.buffer, pagesize=(width, height), invariant=1)
        if title:
            self.canvas.setTitle(title)
        self.pages = 0

    def _y(self, y: float) -> float:
        return self.height - y

    def _set_fill(self, color: str, opacity: float) -> None:
        r, g, b = color_to_rgb(color)
        self.canvas.setFillColorRGB(r / 255, g / 255, b / 255)
        self.canvas.setFillAlpha(opacity_fraction(opacity))

    def _set_stroke(self, color: str, width: float, opacity: float) -> None:
        r, g, b = color_to_rgb(color)
        self.canvas.setStrokeColorRGB(r / 255, g / 255, b / 255)
        self.canvas.setStrokeAlpha(opacity_fraction(opacity))
        self.canvas.setLineWidth(width)
        self.canvas.setLineCap(0)

    # -------------------------------------------------------------------------
    # Document structure
    # -------------------------------------------------------------------------

    def begin_slide(self, number: int, background: str, gradient: Optional[Gradient] = None) -> None:
        fill = gradient.color1 if gradient is not None else background
        self._set_fill(fill, 100)
        self.canvas.rect(0, 0, self.width, self.height, stroke=0, fill=1)

    def end_slide(self) -> None:
        self.canvas.showPage()
        self.pages += 1

    def finish(self) -> bytes:
        self.canvas.save()
        return self.buffer.getvalue()

    # -------------------------------------------------------------------------
    # Primitives
    # -------------------------------------------------------------------------

    def fill_rect(self, x, y, w, h, color: str, opacity: float) -> None:
        self._set_fill(color, opacity)
        self.canvas.rect(x, self._y(y + h), w, h, stroke=0, fill=1)

    def fill_ellipse(self, cx, cy, rx, ry, color: str, opacity: float) -> None:
        self._set_fill(color, opacity)
        self.canvas.ellipse(cx - rx, self._y(cy + ry), cx + rx, self._y(cy - ry), stroke=0, fill=1)

    def stroke_line(self, x1, y1, x2, y2, width, color, opacity) -> None:
        self._set_stroke(color, width, opacity)
        self.canvas.line(x1, self._y(y1), x2, self._y(y2))

    def fill_polygon(self, points: Sequence[Point], color: str, opacity: float) -> None:
        self._set_fill(color, opacity)
        path = self.canvas.beginPath()
        first, *rest = points
        path.moveTo(first[0], self._y(first[1]))
        for x, y in rest:
            path.lineTo(x, self._y(y))
        path.close()
        self.canvas.drawPath(path, stroke=0, fill=1)

    def draw_arc(self, cx, cy, rx, ry, a1, a2, width, color, opacity) -> None:
        sweep = (a2 - a1) % 360 or 360
        steps = max(int(math.ceil(sweep / ARC_STEP_DEGREES)), 1)
        self._set_stroke(color, width, opacity)
        path = self.canvas.beginPath()
        for i in range(steps + 1):
            radians = math.radians(a1 + sweep * i / steps)
            x = cx + rx * math.cos(radians)
            y = self._y(cy - ry * math.sin(radians))
            if i == 0:
                path.moveTo(x, y)
            else:
                path.lineTo(x, y)
        self.canvas.drawPath(path, stroke=1, fill=0)

    def draw_curve(self, p1: Point, p2: Point, p3: Point, width, color, opacity) -> None:
        self.stroke_line(p1[0], p1[1], p3[0], p3[1], width, color, opacity)

    def draw_text(self, x, y, text: str, font: FontSpec, anchor: str, color: str, opacity: float) -> None:
        name = self.fonts.pdf_font_name(font.family, font.weight)
        self.canvas.setFont(name, font.size)
        self._set_fill(color, opacity)
        if anchor == "middle":
            self.canvas.drawCentredString(x, self._y(y), text)
        elif anchor == "end":
            self.canvas.drawRightString(x, self._y(y), text)
        else:
            self.canvas.drawString(x, self._y(y), text)

    def measure_text(self, text: str, font: FontSpec) -> float:
        name = self.fonts.pdf_font_name(font.family, font.weight)
        return pdfmetrics.stringWidth(text, name, font.size)

    def fill_linear_gradient(self, x, y, w, h, gradient: Gradient) -> None:
        self.fill_rect(x, y, w, h, gradient.color1, 100)

    def draw_image(self, path: str, cx, cy, w, h) -> None:
        if w <= 0 or h <= 0:
            return
        try:
            image = ImageReader(path)
            self.canvas.drawImage(
                image, cx - w / 2, self._y(cy + h / 2),
                width=w, height=h, preserveAspectRatio=False, mask="auto",
            )
        except Exception as exc:
            logger.warning(f"Skipping image {path}: {exc}")

    def push_rotation(self, degrees: float, cx: float, cy: float) -> None:
        self.canvas.saveState()
        self.canvas.translate(cx, self._y(cy))
        self.canvas.rotate(degrees)
        self.canvas.translate(-cx, -self._y(cy))

    def pop_rotation(self) -> None:
        self.canvas.restoreState()


# =============================================================================
# PDF RENDERER
# =============================================================================

class PDFRenderer(DeckRenderer):
    """Renders a Deck to PDF, one page per slide."""

    format = OutputFormat.PDF
    paginated = True

    def create_surface(self, deck: Deck, options: RenderOptions) -> PDFSurface:
        return PDFSurface(deck.width, deck.height, self.fonts, options.title or deck.title)
