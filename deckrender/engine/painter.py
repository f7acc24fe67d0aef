"""
painter.py — Draws one slide onto a DrawingSurface.

This is the shared layout algorithm: percentages are converted to device
units here, defaults are applied here, and each shape becomes one or more
surface primitives. Backends never see deck records.
"""

import logging
from pathlib import Path
from typing import Optional, Tuple

from PIL import Image as PILImage

from deckrender.dsl.schema import (
    Arc,
    Curve,
    DeckList,
    Ellipse,
    Image,
    Line,
    Polygon,
    Rect,
    RenderOptions,
    Slide,
    Text,
)
from deckrender.engine.layers import LayerDispatcher
from deckrender.engine.surface import DrawingSurface, FontSpec, Gradient
from deckrender.engine.text_layout import TextLayout, normalize_align
from deckrender.engine.units import (
    DEFAULT_SHAPE_COLOR,
    GRID_STROKE_WIDTH,
    OPAQUE,
    device_x,
    device_y,
    dimen,
    pct,
    pwidth,
    stroke_width,
)

logger = logging.getLogger("deckrender.painter")


def normalize_gradpercent(value: float) -> float:
    """Gradient stop position; out-of-range values mean 100."""
    if value <= 0 or value > 100:
        return 100.0
    return value


class SlidePainter:
    """
    Paints slides of one deck onto a surface.

    Args:
        surface: Target surface
        options: Layer order, grid and font settings
        asset_dir: Directory that relative image and include paths resolve against
    """

    def __init__(
        self,
        surface: DrawingSurface,
        options: Optional[RenderOptions] = None,
        asset_dir: Optional[Path] = None,
    ):
        self.surface = surface
        self.options = options or RenderOptions()
        self.asset_dir = asset_dir
        self.text = TextLayout(surface, weight=self.options.font_weight, asset_dir=asset_dir)
        self.dispatcher = LayerDispatcher(surface, {
            "image": self.draw_image,
            "rect": self.draw_rect,
            "ellipse": self.draw_ellipse,
            "curve": self.draw_curve,
            "arc": self.draw_arc,
            "line": self.draw_line,
            "poly": self.draw_polygon,
            "polygon": self.draw_polygon,
            "text": self.draw_text,
            "list": self.draw_list,
        })

    @property
    def cw(self) -> float:
        return self.surface.width

    @property
    def ch(self) -> float:
        return self.surface.height

    def paint(self, slide: Slide, number: int) -> None:
        """Paint background, layers and the optional grid of one slide."""
        gradient = None
        if slide.has_gradient:
            gradient = Gradient(slide.gradcolor1, slide.gradcolor2, normalize_gradpercent(slide.gradpercent))

        self.surface.begin_slide(number, slide.bg, gradient)
        self.dispatcher.dispatch(slide, self.options.layers)
        if self.options.grid_percent > 0:
            self.draw_grid(slide.fg, self.options.grid_percent)
        self.surface.end_slide()

    # -------------------------------------------------------------------------
    # Shapes
    # -------------------------------------------------------------------------

    def _box(self, xp: float, yp: float, wp: float, hp: float, hr: float) -> Tuple[float, float, float, float]:
        x, y, _ = dimen(self.cw, self.ch, xp, yp, 0)
        w = pct(wp, self.cw)
        h = pct(hr, w) if hr else pct(hp, self.ch)
        return x, y, w, h

    def draw_rect(self, rect: Rect, slide: Slide) -> None:
        x, y, w, h = self._box(rect.xp, rect.yp, rect.wp, rect.hp, rect.hr)
        if rect.has_gradient:
            gradient = Gradient(rect.gradcolor1, rect.gradcolor2, normalize_gradpercent(rect.gradpercent))
            self.surface.fill_linear_gradient(x - w / 2, y - h / 2, w, h, gradient)
        else:
            self.surface.fill_rect(x - w / 2, y - h / 2, w, h, rect.color or DEFAULT_SHAPE_COLOR, rect.opacity)

    def draw_ellipse(self, ellipse: Ellipse, slide: Slide) -> None:
        x, y, w, h = self._box(ellipse.xp, ellipse.yp, ellipse.wp, ellipse.hp, ellipse.hr)
        self.surface.fill_ellipse(x, y, w / 2, h / 2, ellipse.color or DEFAULT_SHAPE_COLOR, ellipse.opacity)

    def draw_line(self, line: Line, slide: Slide) -> None:
        x1, y1, sw = dimen(self.cw, self.ch, line.xp1, line.yp1, line.sp)
        x2, y2, _ = dimen(self.cw, self.ch, line.xp2, line.yp2, 0)
        self.surface.stroke_line(
            x1, y1, x2, y2, stroke_width(sw),
            line.color or DEFAULT_SHAPE_COLOR, line.opacity,
        )

    def draw_arc(self, arc: Arc, slide: Slide) -> None:
        x, y, sw = dimen(self.cw, self.ch, arc.xp, arc.yp, arc.sp)
        # Both radii are relative to the canvas width
        w = pct(arc.wp, self.cw)
        h = pct(arc.hp, self.cw)
        self.surface.draw_arc(
            x, y, w / 2, h / 2, arc.a1, arc.a2, stroke_width(sw),
            arc.color or DEFAULT_SHAPE_COLOR, arc.opacity,
        )

    def draw_curve(self, curve: Curve, slide: Slide) -> None:
        x1, y1, sw = dimen(self.cw, self.ch, curve.xp1, curve.yp1, curve.sp)
        x2, y2, _ = dimen(self.cw, self.ch, curve.xp2, curve.yp2, 0)
        x3, y3, _ = dimen(self.cw, self.ch, curve.xp3, curve.yp3, 0)
        self.surface.draw_curve(
            (x1, y1), (x2, y2), (x3, y3), stroke_width(sw),
            curve.color or DEFAULT_SHAPE_COLOR, curve.opacity,
        )

    def draw_polygon(self, polygon: Polygon, slide: Slide) -> None:
        if not polygon.is_drawable:
            logger.debug(f"Skipping polygon with {len(polygon.xc)}/{len(polygon.yc)} coordinates")
            return
        points = [(device_x(xp, self.cw), device_y(yp, self.ch)) for xp, yp in polygon.points]
        self.surface.fill_polygon(points, polygon.color or DEFAULT_SHAPE_COLOR, polygon.opacity)

    def draw_text(self, text: Text, slide: Slide) -> None:
        self.text.draw_text(text, slide.fg)

    def draw_list(self, deck_list: DeckList, slide: Slide) -> None:
        self.text.draw_list(deck_list, slide.fg)

    def draw_image(self, image: Image, slide: Slide) -> None:
        """Draw an image centred on its position, with an optional caption."""
        x, y, _ = dimen(self.cw, self.ch, image.xp, image.yp, 0)
        path = self.resolve_asset(image.name)
        native = image_size(path)
        if native is None:
            return
        nw, nh = native

        iw, ih = image.width, image.height
        if iw > 0 and ih == 0:
            # Width alone is a percentage of the canvas width
            iw = pct(image.width, self.cw)
            ih = iw / (nw / nh) if nh else 0
        elif iw == 0 and ih == 0:
            iw, ih = nw, nh

        if image.scale > 0:
            iw *= image.scale / 100
            ih *= image.scale / 100
        if image.autoscale == "on" and 0 < iw < self.cw:
            ih = (self.cw / iw) * ih
            iw = self.cw

        self.surface.draw_image(str(path), x, y, iw, ih)

        if image.caption:
            size = pwidth(image.sp, self.cw, pct(2, self.cw))
            anchor = normalize_align(image.align)
            cx = x
            if anchor == "start":
                cx -= iw / 2
            elif anchor == "end":
                cx += iw / 2
            self.surface.draw_text(
                cx, y + ih / 2 + size * 1.5, image.caption,
                FontSpec(image.font, size, self.options.font_weight),
                anchor, image.color or slide.fg, image.opacity,
            )

    # -------------------------------------------------------------------------
    # Overlays
    # -------------------------------------------------------------------------

    def draw_grid(self, color: str, percent: float) -> None:
        """Draw a percentage grid with labels over the slide."""
        step_x = self.cw * percent / 100
        step_y = self.ch * percent / 100
        size = pct(1, self.cw)
        font = FontSpec("sans", size, self.options.font_weight)
        self.surface.begin_layer("grid")

        x, label = 0.0, 0.0
        while x <= self.cw:
            self.surface.stroke_line(x, 0, x, self.ch, GRID_STROKE_WIDTH, color, OPAQUE)
            if label > 0:
                self.surface.draw_text(x, self.ch - size, f"{label:.0f}", font, "middle", color, OPAQUE)
            x += step_x
            label += percent

        y, label = 0.0, 0.0
        while y <= self.ch:
            self.surface.stroke_line(0, y, self.cw, y, GRID_STROKE_WIDTH, color, OPAQUE)
            if label < 100:
                self.surface.draw_text(size, y + size / 3, f"{100 - label:.0f}", font, "middle", color, OPAQUE)
            y += step_y
            label += percent

        self.surface.end_layer()

    def resolve_asset(self, name: str) -> Path:
        path = Path(name)
        if not path.is_absolute() and self.asset_dir is not None:
            return self.asset_dir / path
        return path


def image_size(path: Path) -> Optional[Tuple[int, int]]:
    """Pixel size of an image file, or None when it cannot be read."""
    try:
        with PILImage.open(path) as im:
            return im.size
    except (OSError, ValueError) as exc:
        logger.warning(f"Skipping image {path}: {exc}")
        return None
