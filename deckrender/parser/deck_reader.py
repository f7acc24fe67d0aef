"""Intermediate deck XML reading and parsing."""

import logging
import re
from pathlib import Path
from typing import Callable, Union

from lxml import etree

from deckrender.dsl.schema import (
    Arc,
    Canvas,
    Curve,
    Deck,
    DeckList,
    Ellipse,
    Image,
    Line,
    ListItem,
    ListType,
    Polygon,
    Rect,
    Slide,
    Text,
    TextType,
)
from deckrender.engine.units import DEFAULT_HEIGHT, DEFAULT_WIDTH
from deckrender.errors import ParseError

logger = logging.getLogger("deckrender.parser")

SHAPE_TAGS = ("rect", "ellipse", "line", "arc", "curve", "polygon", "text", "list", "image")

_XML_DECL = re.compile(r"^\s*<\?xml[^>]*\?>", re.IGNORECASE)


def wrap_in_slide_if_needed(
    xml_text: str,
    width: float = DEFAULT_WIDTH,
    height: float = DEFAULT_HEIGHT,
) -> str:
    """Wrap bare shape markup in a synthetic deck and slide.

    Fragments come in two forms: shape elements with no enclosing deck, and
    shapes placed directly inside <deck>. Both become a deck with a canvas and
    a single slide. Documents that already have a slide are returned as is.

    Args:
        xml_text: Intermediate XML or an XML fragment.
        width: Canvas width used when a canvas has to be synthesised.
        height: Canvas height used when a canvas has to be synthesised.

    Returns:
        XML text with a deck, canvas and slide.
    """
    if "<slide" in xml_text:
        return xml_text

    body = _XML_DECL.sub("", xml_text, count=1).strip()
    if not body:
        return xml_text

    if "<deck" not in body:
        return (
            f'<deck><canvas width="{width:g}" height="{height:g}"/>'
            f"<slide>{body}</slide></deck>"
        )

    root = _parse_root(body)
    slide = etree.Element("slide")
    canvas = root.find("canvas")
    if canvas is None:
        canvas = etree.Element("canvas", width=f"{width:g}", height=f"{height:g}")
        root.insert(0, canvas)
    for child in list(root):
        if child.tag in SHAPE_TAGS:
            root.remove(child)
            slide.append(child)
    root.append(slide)
    return etree.tostring(root, encoding="unicode")


def _parse_root(data: Union[str, bytes]) -> etree._Element:
    if isinstance(data, str):
        data = data.encode("utf-8")
    parser = etree.XMLParser(remove_comments=True, resolve_entities=False)
    try:
        return etree.fromstring(data, parser=parser)
    except etree.XMLSyntaxError as exc:
        raise ParseError(f"malformed deck XML: {exc}") from exc


class DeckReader:
    """Reads intermediate deck XML into a Deck."""

    def __init__(
        self,
        default_width: float = DEFAULT_WIDTH,
        default_height: float = DEFAULT_HEIGHT,
    ) -> None:
        """Initialize the reader.

        Args:
            default_width: Canvas width given to auto-wrapped fragments.
            default_height: Canvas height given to auto-wrapped fragments.
        """
        self.default_width = default_width
        self.default_height = default_height
        self._handlers: dict[str, Callable[[etree._Element], object]] = {
            "rect": self._read_rect,
            "ellipse": self._read_ellipse,
            "line": self._read_line,
            "arc": self._read_arc,
            "curve": self._read_curve,
            "polygon": self._read_polygon,
            "text": self._read_text,
            "list": self._read_list,
            "image": self._read_image,
        }

    def read(self, source: Union[str, bytes]) -> Deck:
        """Parse deck XML.

        Args:
            source: XML text or bytes.

        Returns:
            The parsed Deck.

        Raises:
            ParseError: If the XML is malformed, has no canvas, has a
                non-positive canvas size, or a shape attribute is unreadable.
        """
        if isinstance(source, bytes):
            source = source.decode("utf-8")
        text = wrap_in_slide_if_needed(source, self.default_width, self.default_height)
        if not text.strip():
            raise ParseError("empty deck document")

        root = _parse_root(text)
        if root.tag != "deck":
            raise ParseError(f"expected <deck> root, found <{root.tag}>")

        canvas_el = root.find("canvas")
        if canvas_el is None:
            raise ParseError("deck has no <canvas> element")
        width = _number(canvas_el, "width", 0.0)
        height = _number(canvas_el, "height", 0.0)
        if width <= 0 or height <= 0:
            raise ParseError(f"canvas size must be positive, got {width:g}x{height:g}")

        slides = [self._read_slide(el) for el in root.iterfind("slide")]
        logger.debug(f"Parsed deck {width:g}x{height:g} with {len(slides)} slides")

        return Deck(
            canvas=Canvas(width=width, height=height),
            title=(root.findtext("title") or "").strip(),
            slides=slides,
        )

    def read_file(self, path: Union[str, Path]) -> Deck:
        """Parse a deck XML file."""
        try:
            data = Path(path).read_bytes()
        except OSError as exc:
            raise ParseError(f"cannot read {path}: {exc}") from exc
        return self.read(data)

    def _read_slide(self, el: etree._Element) -> Slide:
        groups: dict[str, list] = {tag: [] for tag in SHAPE_TAGS}
        for child in el:
            handler = self._handlers.get(child.tag)
            if handler is None:
                logger.debug(f"Ignoring <{child.tag}> in slide")
                continue
            groups[child.tag].append(handler(child))

        return Slide(
            bg=_string(el, "bg") or "white",
            fg=_string(el, "fg") or "black",
            gradcolor1=_string(el, "gradcolor1"),
            gradcolor2=_string(el, "gradcolor2"),
            gradpercent=_number(el, "gp", 100.0),
            duration=_string(el, "duration"),
            rects=groups["rect"],
            ellipses=groups["ellipse"],
            lines=groups["line"],
            arcs=groups["arc"],
            curves=groups["curve"],
            polygons=groups["polygon"],
            texts=groups["text"],
            lists=groups["list"],
            images=groups["image"],
        )

    # -------------------------------------------------------------------------
    # Shape readers
    # -------------------------------------------------------------------------

    def _read_rect(self, el: etree._Element) -> Rect:
        return Rect(
            **_numbers(el, "xp", "yp", "wp", "hp", "hr"),
            gradcolor1=_string(el, "gradcolor1"),
            gradcolor2=_string(el, "gradcolor2"),
            gradpercent=_number(el, "gp", 100.0),
            **_paint(el),
        )

    def _read_ellipse(self, el: etree._Element) -> Ellipse:
        return Ellipse(**_numbers(el, "xp", "yp", "wp", "hp", "hr"), **_paint(el))

    def _read_line(self, el: etree._Element) -> Line:
        return Line(**_numbers(el, "xp1", "yp1", "xp2", "yp2", "sp"), **_paint(el))

    def _read_arc(self, el: etree._Element) -> Arc:
        return Arc(**_numbers(el, "xp", "yp", "wp", "hp", "a1", "a2", "sp"), **_paint(el))

    def _read_curve(self, el: etree._Element) -> Curve:
        return Curve(
            **_numbers(el, "xp1", "yp1", "xp2", "yp2", "xp3", "yp3", "sp"),
            **_paint(el),
        )

    def _read_polygon(self, el: etree._Element) -> Polygon:
        return Polygon(xc=_number_list(el, "xc"), yc=_number_list(el, "yc"), **_paint(el))

    def _read_text(self, el: etree._Element) -> Text:
        kind = _string(el, "type")
        return Text(
            **_numbers(el, "xp", "yp", "sp", "wp", "lp", "rotation"),
            font=_string(el, "font") or "sans",
            align=_string(el, "align") or "center",
            type=TextType(kind) if kind in ("block", "code") else TextType.FREE,
            file=_string(el, "file"),
            link=_string(el, "link"),
            content=_content(el),
            **_paint(el),
        )

    def _read_list(self, el: etree._Element) -> DeckList:
        kind = _string(el, "type")
        items = [
            ListItem(
                content=_content(li),
                color=_string(li, "color"),
                font=_string(li, "font"),
                opacity=_number(li, "opacity", 0.0),
            )
            for li in el.iterfind("li")
        ]
        return DeckList(
            **_numbers(el, "xp", "yp", "sp", "wp", "lp", "rotation"),
            font=_string(el, "font") or "sans",
            align=_string(el, "align") or "start",
            type=ListType(kind) if kind in ("bullet", "number") else ListType.PLAIN,
            items=items,
            **_paint(el),
        )

    def _read_image(self, el: etree._Element) -> Image:
        return Image(
            **_numbers(el, "xp", "yp", "width", "height", "scale", "sp"),
            autoscale=_string(el, "autoscale") or "",
            name=_string(el, "name") or "",
            caption=_string(el, "caption") or "",
            font=_string(el, "font") or "sans",
            align=_string(el, "align") or "center",
            link=_string(el, "link"),
            **_paint(el),
        )


# =============================================================================
# ATTRIBUTE HELPERS
# =============================================================================

def _string(el: etree._Element, name: str) -> str | None:
    value = el.get(name)
    if value is None:
        return None
    value = value.strip()
    return value or None


def _number(el: etree._Element, name: str, default: float) -> float:
    raw = el.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        raise ParseError(f"<{el.tag}> attribute {name}={raw!r} is not a number") from None


def _numbers(el: etree._Element, *names: str) -> dict[str, float]:
    return {name: _number(el, name, 0.0) for name in names}


def _number_list(el: etree._Element, name: str) -> tuple[float, ...]:
    raw = el.get(name) or ""
    try:
        return tuple(float(v) for v in raw.split())
    except ValueError:
        raise ParseError(f"<{el.tag}> attribute {name}={raw!r} is not a number list") from None


def _paint(el: etree._Element) -> dict:
    paint: dict = {"color": _string(el, "color")}
    if el.get("opacity") is not None:
        paint["opacity"] = _number(el, "opacity", 100.0)
    return paint


def _content(el: etree._Element) -> str:
    return "".join(el.itertext())
