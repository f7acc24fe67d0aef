"""
text_layout.py — Free, block, code and list text layout.

Written once against DrawingSurface; every backend shares it. Positions come
in as device units from dimen(); sizes are device font sizes.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional

from deckrender.dsl.schema import DeckList, ListType, Text, TextType
from deckrender.engine.surface import DrawingSurface, FontSpec
from deckrender.engine.units import (
    CODE_BACKGROUND_COLOR,
    LINE_SPACING,
    LIST_SPACING,
    LIST_WRAP,
    MONO_WORD_SPACING,
    OPAQUE,
    WORD_SPACING,
    dimen,
    pwidth,
)

logger = logging.getLogger("deckrender.text")

# Literal token in deck text that forces a line break inside wrapped text
BREAK_TOKEN = "\\n"

CODE_FONT = "mono"
TAB_EXPANSION = "    "


def normalize_align(align: Optional[str]) -> str:
    """Map deck alignment names to a start/middle/end anchor."""
    value = (align or "").strip().lower()
    if value in ("center", "middle", "mid", "c"):
        return "middle"
    if value in ("right", "end", "e"):
        return "end"
    return "start"


# =============================================================================
# WORD WRAPPING
# =============================================================================

@dataclass
class PlacedWord:
    """A word and its offset from the start of its line."""
    text: str
    x: float
    width: float


@dataclass
class WrapResult:
    """Result of wrap_words()."""
    lines: List[List[PlacedWord]] = field(default_factory=lambda: [[]])
    breaks: int = 0

    @property
    def visible_lines(self) -> List[List[PlacedWord]]:
        """Lines that hold at least one word."""
        return [line for line in self.lines if line]


def wrap_words(
    text: str,
    measure: Callable[[str], float],
    width: float,
    spacing: float,
) -> WrapResult:
    """
    Place words left to right, breaking once the pen passes `width`.

    A word is always placed on the current line; the break happens after the
    pen moves past the edge, so a line can overrun `width` by at most the
    width of its last word.

    Args:
        text: Text to wrap; spaces, tabs and newlines separate words
        measure: Returns the rendered width of a word
        width: Wrap width in device units
        spacing: Gap added after each word

    Returns:
        WrapResult with placed words per line and the number of breaks
    """
    result = WrapResult()
    pen = 0.0
    for word in text.split():
        if word == BREAK_TOKEN:
            result.lines.append([])
            result.breaks += 1
            pen = 0.0
            continue
        word_width = measure(word)
        result.lines[-1].append(PlacedWord(word, pen, word_width))
        pen += word_width + spacing
        if pen > width:
            result.lines.append([])
            result.breaks += 1
            pen = 0.0
    return result


# =============================================================================
# TEXT LAYOUT
# =============================================================================

class TextLayout:
    """
    Lays out deck text elements on a surface.

    Args:
        surface: Surface to draw on
        weight: Font weight for all text
        asset_dir: Directory that relative `file=` paths resolve against
    """

    def __init__(self, surface: DrawingSurface, weight: int = 400, asset_dir: Optional[Path] = None):
        self.surface = surface
        self.weight = weight
        self.asset_dir = asset_dir

    @property
    def canvas_width(self) -> float:
        return self.surface.width

    def font(self, family: Optional[str], size: float) -> FontSpec:
        return FontSpec(family or "sans", size, self.weight)

    def draw_text(self, text: Text, fg: str) -> None:
        """Draw a text element; code blocks get their background first."""
        cw = self.canvas_width
        x, y, fs = dimen(cw, self.surface.height, text.xp, text.yp, text.sp)
        content = self._content(text)
        spacing = text.lp or LINE_SPACING
        color = text.color or fg
        lines = content.split("\n")

        rotated = text.rotation > 0
        if rotated:
            self.surface.push_rotation(text.rotation, x, y)

        if text.type == TextType.CODE:
            font = self.font(CODE_FONT, fs)
            code_width = pwidth(text.wp, cw, cw - x - 20)
            self.surface.fill_rect(
                x - fs, y - fs, code_width, len(lines) * spacing * fs,
                CODE_BACKGROUND_COLOR, OPAQUE,
            )
            self.draw_lines(x, y, lines, font, spacing * fs, "start", color, text.opacity)
        elif text.type == TextType.BLOCK:
            font = self.font(text.font, fs)
            self.wrap(x, y, pwidth(text.wp, cw, cw / 2), spacing * fs, content, font, color, text.opacity)
        else:
            font = self.font(text.font, fs)
            self.draw_lines(x, y, lines, font, spacing * fs, normalize_align(text.align), color, text.opacity)

        if rotated:
            self.surface.pop_rotation()

    def draw_lines(
        self,
        x: float,
        y: float,
        lines: List[str],
        font: FontSpec,
        leading: float,
        anchor: str,
        color: str,
        opacity: float,
    ) -> None:
        """Draw lines at y, y + leading, y + 2 * leading, ..."""
        for i, line in enumerate(lines):
            self.surface.draw_text(x, y + i * leading, line, font, anchor, color, opacity)

    def wrap(
        self,
        x: float,
        y: float,
        width: float,
        leading: float,
        text: str,
        font: FontSpec,
        color: str,
        opacity: float,
    ) -> int:
        """
        Draw word-wrapped text starting at (x, y).

        Returns:
            The number of line breaks produced
        """
        def measure(s: str) -> float:
            return self.surface.measure_text(s, font)

        mono = self.surface.resolve_font(font).is_monospace or font.family == CODE_FONT
        factor = MONO_WORD_SPACING if mono else WORD_SPACING
        result = wrap_words(text, measure, width, measure("M") * factor)

        for n, line in enumerate(result.lines):
            for word in line:
                self.surface.draw_text(x + word.x, y + n * leading, word.text, font, "start", color, opacity)
        return result.breaks

    def draw_list(self, deck_list: DeckList, fg: str) -> List[str]:
        """
        Draw a list element.

        Returns:
            The item texts as laid out, in order
        """
        cw = self.canvas_width
        x, y, fs = dimen(cw, self.surface.height, deck_list.xp, deck_list.yp, deck_list.sp)
        spacing = deck_list.lp or LIST_SPACING
        item_advance = spacing * fs
        wrap_width = pwidth(deck_list.wp or LIST_WRAP, cw, cw / 2)
        anchor = normalize_align(deck_list.align)
        color = deck_list.color or fg

        if deck_list.type == ListType.BULLET:
            x += fs * 1.2

        rotated = deck_list.rotation > 0
        if rotated:
            self.surface.push_rotation(deck_list.rotation, x, y)

        laid_out: List[str] = []
        for i, item in enumerate(deck_list.items, start=1):
            opacity = item.opacity if item.opacity > 0 else deck_list.opacity
            font = self.font(item.font or deck_list.font, fs)
            if deck_list.type == ListType.NUMBER:
                content = f"{i}. {item.content}"
            else:
                content = item.content

            if deck_list.type == ListType.BULLET:
                self._bullet(x, y, fs / 2, color, opacity)

            item_color = item.color or color
            if anchor == "middle":
                self.surface.draw_text(x, y, content, font, anchor, item_color, opacity)
                y += item_advance
            else:
                breaks = self.wrap(x, y, wrap_width, item_advance, content, font, item_color, opacity)
                y += item_advance
                if breaks >= 1:
                    y += item_advance * breaks
            laid_out.append(content)

        if rotated:
            self.surface.pop_rotation()
        return laid_out

    def _bullet(self, x: float, y: float, size: float, color: str, opacity: float) -> None:
        radius = size / 2
        self.surface.fill_ellipse(x - size * 2, y - radius, radius, radius, color, opacity)

    def _content(self, text: Text) -> str:
        if not text.file:
            return text.content
        path = Path(text.file)
        if not path.is_absolute() and self.asset_dir is not None:
            path = self.asset_dir / path
        try:
            return path.read_text().replace("\t", TAB_EXPANSION)
        except OSError as exc:
            logger.warning(f"Cannot include {path}: {exc}")
            return ""
