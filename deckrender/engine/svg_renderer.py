"""
svg_renderer.py — SVG output from a Deck.

The vector backend. One SVG document per slide, drawn through the shared
SlidePainter. Gradients are defined once in <defs> and referenced by fill;
opacity is written as fill-opacity / stroke-opacity; text is anchored with
text-anchor (start, middle, end).

Used for:
1. Export to SVG format
2. Embedding slides in web pages
3. Golden test fixtures (output is byte-deterministic)
"""

import base64
import math
from typing import List, Optional, Sequence
from xml.etree import ElementTree as ET
from xml.etree.ElementTree import Element, SubElement

from deckrender.dsl.schema import Deck, OutputFormat, RenderOptions
from deckrender.engine.fonts import FontResolver
from deckrender.engine.renderer import DeckRenderer
from deckrender.engine.surface import DrawingSurface, FontSpec, Gradient, Point
from deckrender.engine.units import opacity_fraction


# =============================================================================
# CONSTANTS
# =============================================================================

SVG_NS = "http://www.w3.org/2000/svg"
XLINK_NS = "http://www.w3.org/1999/xlink"

SLIDE_GRADIENT_ID = "slidegrad"


# =============================================================================
# CONVERSION HELPERS
# =============================================================================

def format_px(value: float) -> str:
    """Format a device value for SVG (2 decimal places)."""
    return f"{value:.2f}"


def format_points(points: Sequence[Point]) -> str:
    return " ".join(f"{format_px(x)},{format_px(y)}" for x, y in points)


def arc_point(cx: float, cy: float, rx: float, ry: float, degrees: float) -> Point:
    """Point on an ellipse; angles run counter-clockwise with Y pointing down."""
    radians = math.radians(degrees)
    return cx + rx * math.cos(radians), cy - ry * math.sin(radians)


# =============================================================================
# SVG SURFACE
# =============================================================================

class SVGSurface(DrawingSurface):
    """Builds an SVG element tree for a single slide."""

    def __init__(self, width: float, height: float, fonts: FontResolver, title: str = ""):
        super().__init__(width, height, fonts, title)
        self.svg = Element("svg")
        self.svg.set("xmlns", SVG_NS)
        self.svg.set("xmlns:xlink", XLINK_NS)
        self.svg.set("width", format_px(width))
        self.svg.set("height", format_px(height))
        self.svg.set("viewBox", f"0 0 {format_px(width)} {format_px(height)}")
        self.defs: Optional[Element] = None
        self._stack: List[Element] = [self.svg]
        self._gradients = 0

    @property
    def parent(self) -> Element:
        return self._stack[-1]

    # -------------------------------------------------------------------------
    # Document structure
    # -------------------------------------------------------------------------

    def begin_slide(self, number: int, background: str, gradient: Optional[Gradient] = None) -> None:
        title = SubElement(self.svg, "title")
        title.text = f"{self.title}: Slide {number}" if self.title else f"Slide {number}"

        bg = SubElement(self.svg, "rect")
        bg.set("x", "0")
        bg.set("y", "0")
        bg.set("width", format_px(self.width))
        bg.set("height", format_px(self.height))
        if gradient is not None:
            bg.set("fill", f"url(#{self._define_gradient(gradient, SLIDE_GRADIENT_ID)})")
        else:
            bg.set("fill", background)

    def begin_layer(self, name: str) -> None:
        group = SubElement(self.parent, "g")
        group.set("id", name)
        self._stack.append(group)

    def end_layer(self) -> None:
        if len(self._stack) > 1:
            self._stack.pop()

    def finish(self) -> bytes:
        ET.indent(self.svg, space="  ")
        svg_str = ET.tostring(self.svg, encoding="unicode")
        svg_str = '<?xml version="1.0" encoding="UTF-8"?>\n' + svg_str + "\n"
        return svg_str.encode("utf-8")

    def _define_gradient(self, gradient: Gradient, gradient_id: Optional[str] = None) -> str:
        if self.defs is None:
            self.defs = Element("defs")
            # defs go right after <title>
            self.svg.insert(1 if len(self.svg) else 0, self.defs)
        if gradient_id is None:
            self._gradients += 1
            gradient_id = f"grad{self._gradients}"

        lg = SubElement(self.defs, "linearGradient")
        lg.set("id", gradient_id)
        lg.set("x1", "0%")
        lg.set("y1", "0%")
        lg.set("x2", "0%")
        lg.set("y2", "100%")
        for offset, color in ((0.0, gradient.color1), (gradient.percent, gradient.color2)):
            stop = SubElement(lg, "stop")
            stop.set("offset", f"{offset:g}%")
            stop.set("stop-color", color)
        return gradient_id

    # -------------------------------------------------------------------------
    # Primitives
    # -------------------------------------------------------------------------

    def _fill(self, el: Element, color: str, opacity: float) -> None:
        el.set("fill", color)
        fraction = opacity_fraction(opacity)
        if fraction < 1:
            el.set("fill-opacity", format_px(fraction))

    def _stroke(self, el: Element, width: float, color: str, opacity: float, open_path: bool = True) -> None:
        if open_path:
            el.set("fill", "none")
        el.set("stroke", color)
        el.set("stroke-width", format_px(width))
        fraction = opacity_fraction(opacity)
        if fraction < 1:
            el.set("stroke-opacity", format_px(fraction))

    def fill_rect(self, x: float, y: float, w: float, h: float, color: str, opacity: float) -> None:
        rect = SubElement(self.parent, "rect")
        rect.set("x", format_px(x))
        rect.set("y", format_px(y))
        rect.set("width", format_px(w))
        rect.set("height", format_px(h))
        self._fill(rect, color, opacity)

    def fill_ellipse(self, cx: float, cy: float, rx: float, ry: float, color: str, opacity: float) -> None:
        ellipse = SubElement(self.parent, "ellipse")
        ellipse.set("cx", format_px(cx))
        ellipse.set("cy", format_px(cy))
        ellipse.set("rx", format_px(rx))
        ellipse.set("ry", format_px(ry))
        self._fill(ellipse, color, opacity)

    def stroke_line(self, x1, y1, x2, y2, width, color, opacity) -> None:
        line = SubElement(self.parent, "line")
        line.set("x1", format_px(x1))
        line.set("y1", format_px(y1))
        line.set("x2", format_px(x2))
        line.set("y2", format_px(y2))
        self._stroke(line, width, color, opacity, open_path=False)

    def fill_polygon(self, points: Sequence[Point], color: str, opacity: float) -> None:
        polygon = SubElement(self.parent, "polygon")
        polygon.set("points", format_points(points))
        self._fill(polygon, color, opacity)

    def draw_arc(self, cx, cy, rx, ry, a1, a2, width, color, opacity) -> None:
        x1, y1 = arc_point(cx, cy, rx, ry, a1)
        x2, y2 = arc_point(cx, cy, rx, ry, a2)
        sweep = (a2 - a1) % 360
        radii = f"A{format_px(rx)},{format_px(ry)} 0"
        if sweep == 0:
            # Coincident endpoints: a full ellipse, as two half arcs
            xm, ym = arc_point(cx, cy, rx, ry, a1 + 180)
            d = (
                f"M{format_px(x1)},{format_px(y1)} "
                f"{radii} 1 0 {format_px(xm)},{format_px(ym)} "
                f"{radii} 1 0 {format_px(x1)},{format_px(y1)}"
            )
        else:
            large = 1 if sweep > 180 else 0
            d = f"M{format_px(x1)},{format_px(y1)} {radii} {large} 0 {format_px(x2)},{format_px(y2)}"
        path = SubElement(self.parent, "path")
        path.set("d", d)
        self._stroke(path, width, color, opacity)

    def draw_curve(self, p1: Point, p2: Point, p3: Point, width, color, opacity) -> None:
        path = SubElement(self.parent, "path")
        path.set(
            "d",
            f"M{format_px(p1[0])},{format_px(p1[1])} "
            f"Q{format_px(p2[0])},{format_px(p2[1])} {format_px(p3[0])},{format_px(p3[1])}",
        )
        self._stroke(path, width, color, opacity)

    def draw_text(self, x, y, text: str, font: FontSpec, anchor: str, color: str, opacity: float) -> None:
        el = SubElement(self.parent, "text")
        el.set("x", format_px(x))
        el.set("y", format_px(y))
        el.set("font-family", self.resolve_font(font).family)
        el.set("font-size", format_px(font.size))
        if font.weight != 400:
            el.set("font-weight", str(font.weight))
        el.set("text-anchor", anchor)
        self._fill(el, color, opacity)
        el.text = text

    def fill_linear_gradient(self, x, y, w, h, gradient: Gradient) -> None:
        rect = SubElement(self.parent, "rect")
        rect.set("x", format_px(x))
        rect.set("y", format_px(y))
        rect.set("width", format_px(w))
        rect.set("height", format_px(h))
        rect.set("fill", f"url(#{self._define_gradient(gradient)})")

    def draw_image(self, path: str, cx, cy, w, h) -> None:
        image = SubElement(self.parent, "image")
        image.set("x", format_px(cx - w / 2))
        image.set("y", format_px(cy - h / 2))
        image.set("width", format_px(w))
        image.set("height", format_px(h))
        image.set("xlink:href", path)

    def push_rotation(self, degrees: float, cx: float, cy: float) -> None:
        group = SubElement(self.parent, "g")
        group.set("transform", f"rotate({format_px(-degrees)} {format_px(cx)} {format_px(cy)})")
        self._stack.append(group)

    def pop_rotation(self) -> None:
        if len(self._stack) > 1:
            self._stack.pop()


# =============================================================================
# SVG RENDERER
# =============================================================================

class SVGRenderer(DeckRenderer):
    """
    Renders one slide of a Deck to SVG.

    The renderer is stateless; each render() call creates a new SVG.
    """

    format = OutputFormat.SVG

    def create_surface(self, deck: Deck, options: RenderOptions) -> SVGSurface:
        return SVGSurface(deck.width, deck.height, self.fonts, options.title or deck.title)

    def render_string(self, deck: Deck, options: Optional[RenderOptions] = None, slide_index: int = 0) -> str:
        """Render a slide and return the SVG as text."""
        return self.render(deck, options, slide_index).decode("utf-8")


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================

def render_to_svg(deck: Deck, slide_index: int = 0, output_path: Optional[str] = None) -> str:
    """
    Render a slide to SVG.

    Args:
        deck: The deck to render
        slide_index: 0-based slide index
        output_path: Optional file path to save

    Returns:
        SVG content as string
    """
    return SVGRenderer().render(deck, slide_index=slide_index, output=output_path).decode("utf-8")


def render_to_data_uri(deck: Deck, slide_index: int = 0) -> str:
    """Render a slide to a base64 data URI for embedding in HTML."""
    data = SVGRenderer().render(deck, slide_index=slide_index)
    return f"data:image/svg+xml;base64,{base64.b64encode(data).decode('ascii')}"
