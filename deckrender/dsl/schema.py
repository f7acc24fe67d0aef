"""Pydantic v2 models for the deck document.

This module defines the typed in-memory form of one deck: a canvas and an
ordered list of slides, each holding ordered collections of shape records.
All positions and sizes are percentages of the canvas (see engine/units.py);
Y percentages are measured from the bottom of the canvas.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class OutputFormat(str, Enum):
    """Output formats understood by the pipeline."""

    SVG = "svg"
    PNG = "png"
    PDF = "pdf"
    XML = "xml"

    @property
    def extension(self) -> str:
        return f".{self.value}"

    @property
    def media_type(self) -> str:
        return MEDIA_TYPES[self]


MEDIA_TYPES = {
    OutputFormat.SVG: "image/svg+xml",
    OutputFormat.PNG: "image/png",
    OutputFormat.PDF: "application/pdf",
    OutputFormat.XML: "application/xml",
}


class TextType(str, Enum):
    """Text layout modes."""

    FREE = "free"
    BLOCK = "block"
    CODE = "code"


class ListType(str, Enum):
    """List item marker styles."""

    PLAIN = "none"
    BULLET = "bullet"
    NUMBER = "number"


# ============================================================================
# Shape Records
# ============================================================================


class Shape(BaseModel):
    """Fields shared by every shape record."""

    model_config = ConfigDict(frozen=True)

    color: Optional[str] = Field(default=None, description="Fill or stroke colour")
    opacity: float = Field(default=100.0, description="Opacity, 0-100 (0 means opaque)")


class Rect(Shape):
    """Rectangle centred at (xp, yp)."""

    xp: float = 0.0
    yp: float = 0.0
    wp: float = 0.0
    hp: float = 0.0
    hr: float = Field(default=0.0, description="Height as a percent of the device width")
    gradcolor1: Optional[str] = None
    gradcolor2: Optional[str] = None
    gradpercent: float = 100.0

    @property
    def has_gradient(self) -> bool:
        return bool(self.gradcolor1 and self.gradcolor2)


class Ellipse(Shape):
    """Ellipse centred at (xp, yp)."""

    xp: float = 0.0
    yp: float = 0.0
    wp: float = 0.0
    hp: float = 0.0
    hr: float = 0.0


class Line(Shape):
    """Straight line between two points."""

    xp1: float = 0.0
    yp1: float = 0.0
    xp2: float = 0.0
    yp2: float = 0.0
    sp: float = 0.0


class Arc(Shape):
    """Elliptical arc; angles in degrees, counter-clockwise from 3 o'clock."""

    xp: float = 0.0
    yp: float = 0.0
    wp: float = 0.0
    hp: float = 0.0
    a1: float = 0.0
    a2: float = 0.0
    sp: float = 0.0


class Curve(Shape):
    """Quadratic Bezier curve; (xp2, yp2) is the control point."""

    xp1: float = 0.0
    yp1: float = 0.0
    xp2: float = 0.0
    yp2: float = 0.0
    xp3: float = 0.0
    yp3: float = 0.0
    sp: float = 0.0


class Polygon(Shape):
    """Filled polygon from parallel X and Y percentage lists."""

    xc: tuple[float, ...] = ()
    yc: tuple[float, ...] = ()

    @property
    def points(self) -> list[tuple[float, float]]:
        return list(zip(self.xc, self.yc))

    @property
    def is_drawable(self) -> bool:
        return len(self.xc) >= 3 and len(self.xc) == len(self.yc)


class Text(Shape):
    """Text element: free, block (wrapped) or code."""

    xp: float = 0.0
    yp: float = 0.0
    sp: float = 0.0
    wp: float = 0.0
    lp: float = Field(default=0.0, description="Line spacing multiple (0 means default)")
    rotation: float = 0.0
    font: str = "sans"
    align: str = Field(default="center", description="start, center or end")
    type: TextType = TextType.FREE
    file: Optional[str] = None
    link: Optional[str] = None
    content: str = ""


class ListItem(BaseModel):
    """One list entry with optional per-item styling."""

    model_config = ConfigDict(frozen=True)

    content: str = ""
    color: Optional[str] = None
    font: Optional[str] = None
    opacity: float = 0.0


class DeckList(Shape):
    """List of text items, optionally bulleted or numbered."""

    xp: float = 0.0
    yp: float = 0.0
    sp: float = 0.0
    wp: float = 0.0
    lp: float = 0.0
    rotation: float = 0.0
    font: str = "sans"
    align: str = "start"
    type: ListType = ListType.PLAIN
    items: list[ListItem] = Field(default_factory=list)


class Image(Shape):
    """Raster image centred at (xp, yp)."""

    xp: float = 0.0
    yp: float = 0.0
    width: float = Field(default=0.0, description="Device width, or percent of canvas when height is 0")
    height: float = 0.0
    scale: float = Field(default=0.0, description="Scale percent (0 means unscaled)")
    autoscale: str = ""
    name: str = ""
    caption: str = ""
    sp: float = 0.0
    font: str = "sans"
    align: str = "center"
    link: Optional[str] = None


# ============================================================================
# Slide and Deck
# ============================================================================


class Slide(BaseModel):
    """One slide: background, foreground and shape collections in paint order."""

    model_config = ConfigDict(frozen=True)

    bg: str = "white"
    fg: str = "black"
    gradcolor1: Optional[str] = None
    gradcolor2: Optional[str] = None
    gradpercent: float = 100.0
    duration: Optional[str] = None

    rects: list[Rect] = Field(default_factory=list)
    ellipses: list[Ellipse] = Field(default_factory=list)
    lines: list[Line] = Field(default_factory=list)
    arcs: list[Arc] = Field(default_factory=list)
    curves: list[Curve] = Field(default_factory=list)
    polygons: list[Polygon] = Field(default_factory=list)
    texts: list[Text] = Field(default_factory=list)
    lists: list[DeckList] = Field(default_factory=list)
    images: list[Image] = Field(default_factory=list)

    @field_validator("gradpercent")
    @classmethod
    def normalize_gradpercent(cls, v: float) -> float:
        if v <= 0 or v > 100:
            return 100.0
        return v

    @property
    def has_gradient(self) -> bool:
        return bool(self.gradcolor1 and self.gradcolor2)

    @property
    def shape_count(self) -> int:
        return sum(
            len(group)
            for group in (
                self.rects, self.ellipses, self.lines, self.arcs, self.curves,
                self.polygons, self.texts, self.lists, self.images,
            )
        )


class RenderOptions(BaseModel):
    """Per-call rendering configuration."""

    model_config = ConfigDict(frozen=True)

    layers: tuple[str, ...] = Field(
        default=("image", "rect", "ellipse", "curve", "arc", "line", "poly", "text", "list"),
        description="Paint order by layer name",
    )
    grid_percent: float = Field(default=0.0, ge=0, description="Grid spacing percent; 0 disables")
    title: str = ""
    font_family: str = "Arial"
    font_weight: int = 400

    @field_validator("layers", mode="before")
    @classmethod
    def split_layers(cls, v):
        if isinstance(v, str):
            return tuple(name.strip() for name in v.split(":") if name.strip())
        return tuple(v)


class Canvas(BaseModel):
    """Canvas size in device units."""

    model_config = ConfigDict(frozen=True)

    width: float = Field(default=792.0, gt=0)
    height: float = Field(default=612.0, gt=0)


class Deck(BaseModel):
    """A parsed deck: canvas plus ordered slides."""

    model_config = ConfigDict(frozen=True)

    canvas: Canvas = Field(default_factory=Canvas)
    title: str = ""
    slides: list[Slide] = Field(default_factory=list)

    @property
    def width(self) -> float:
        return self.canvas.width

    @property
    def height(self) -> float:
        return self.canvas.height

    def slide(self, index: int) -> Slide:
        """Return slide `index`, raising IndexError when out of range."""
        if index < 0 or index >= len(self.slides):
            raise IndexError(f"slide {index} out of range (deck has {len(self.slides)})")
        return self.slides[index]
