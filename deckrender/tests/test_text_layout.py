"""Tests for text wrapping and list layout."""

import pytest

from conftest import HELLO_XML
from deckrender.dsl.schema import DeckList, ListItem, ListType, Text, TextType
from deckrender.engine.text_layout import BREAK_TOKEN, TextLayout, normalize_align, wrap_words
from deckrender.engine.units import CODE_BACKGROUND_COLOR, LINE_SPACING, LIST_SPACING, dimen


def fixed_width(word: str) -> float:
    return len(word) * 10.0


class TestNormalizeAlign:
    """Tests for normalize_align()."""

    @pytest.mark.parametrize("value,expected", [
        ("center", "middle"),
        ("c", "middle"),
        ("right", "end"),
        ("end", "end"),
        ("left", "start"),
        ("", "start"),
        (None, "start"),
    ])
    def test_names(self, value, expected) -> None:
        assert normalize_align(value) == expected


class TestWrapWords:
    """Tests for wrap_words()."""

    def test_breaks_after_passing_width(self) -> None:
        result = wrap_words("aaaa bbbb cccc dddd", fixed_width, 100, 5)
        assert [[w.text for w in line] for line in result.visible_lines] == [
            ["aaaa", "bbbb", "cccc"],
            ["dddd"],
        ]
        assert result.breaks == 1

    def test_word_offsets(self) -> None:
        result = wrap_words("aa bbb", fixed_width, 1000, 5)
        assert [(w.x, w.width) for w in result.lines[0]] == [(0, 20), (25, 30)]

    def test_overrun_bounded_by_last_word(self) -> None:
        """No line starts a word past the wrap width."""
        text = " ".join(["word"] * 10 + ["extraordinarily"] + ["x"] * 20)
        result = wrap_words(text, fixed_width, 120, 6)
        for line in result.visible_lines:
            assert line[-1].x <= 120

    def test_break_token(self) -> None:
        result = wrap_words(f"first {BREAK_TOKEN} second", fixed_width, 1000, 5)
        assert [[w.text for w in line] for line in result.visible_lines] == [["first"], ["second"]]
        assert result.breaks == 1

    def test_empty_text(self) -> None:
        result = wrap_words("", fixed_width, 100, 5)
        assert result.visible_lines == []
        assert result.breaks == 0


class TestDrawText:
    """Tests for TextLayout.draw_text()."""

    def test_free_text_centred(self, surface, reader) -> None:
        text = reader.read(HELLO_XML).slides[0].texts[0]
        TextLayout(surface).draw_text(text, "black")
        (call,) = [c for c in surface.calls if c[0] == "text"]
        _, x, y, content, font, anchor, color, _ = call
        assert (x, y) == (396, 306)
        assert content == "Hello World"
        assert anchor == "middle"
        assert color == "black"

    def test_color_defaults_to_foreground(self, surface) -> None:
        TextLayout(surface).draw_text(Text(xp=10, yp=10, sp=2, content="x"), "white")
        assert surface.calls[0][6] == "white"

    def test_free_text_lines(self, surface) -> None:
        TextLayout(surface).draw_text(Text(xp=10, yp=50, sp=2, align="start", content="a\nb"), "black")
        _, _, fs = dimen(792, 612, 10, 50, 2)
        ys = [c[2] for c in surface.calls if c[0] == "text"]
        assert ys == pytest.approx([306, 306 + LINE_SPACING * fs])

    def test_code_background_first(self, surface) -> None:
        text = Text(xp=10, yp=50, sp=1.5, type=TextType.CODE, content="x = 1\ny = 2")
        TextLayout(surface).draw_text(text, "black")
        assert surface.calls[0][0] == "rect"
        assert surface.calls[0][5] == CODE_BACKGROUND_COLOR
        texts = [c for c in surface.calls if c[0] == "text"]
        assert [c[3] for c in texts] == ["x = 1", "y = 2"]
        assert all(c[4].family == "mono" and c[5] == "start" for c in texts)

    def test_block_text_wraps(self, surface) -> None:
        words = " ".join(["lorem"] * 40)
        TextLayout(surface).draw_text(Text(xp=10, yp=80, sp=2, wp=20, type=TextType.BLOCK, content=words), "black")
        ys = {c[2] for c in surface.calls if c[0] == "text"}
        assert len(ys) > 1
        assert len(surface.texts()) == 40

    def test_rotation_wraps_drawing(self, surface) -> None:
        TextLayout(surface).draw_text(Text(xp=50, yp=50, sp=2, rotation=30, content="tilt"), "black")
        assert surface.names() == ["push_rotation", "text", "pop_rotation"]
        assert surface.calls[0][1:] == (30, 396, 306)

    def test_file_include(self, surface, tmp_path) -> None:
        (tmp_path / "snippet.txt").write_text("if x:\n\treturn y")
        text = Text(xp=10, yp=50, sp=1, type=TextType.CODE, file="snippet.txt")
        TextLayout(surface, asset_dir=tmp_path).draw_text(text, "black")
        assert surface.texts() == ["if x:", "    return y"]

    def test_missing_include_draws_nothing(self, surface, tmp_path) -> None:
        text = Text(xp=10, yp=50, sp=1, file="missing.txt")
        TextLayout(surface, asset_dir=tmp_path).draw_text(text, "black")
        assert surface.texts() == [""]


class TestDrawList:
    """Tests for TextLayout.draw_list()."""

    def _list(self, **kwargs) -> DeckList:
        items = kwargs.pop("items", ["Alpha", "Beta", "Gamma"])
        return DeckList(xp=10, yp=50, sp=2, items=[ListItem(content=i) for i in items], **kwargs)

    def test_items_in_order(self, surface) -> None:
        laid_out = TextLayout(surface).draw_list(self._list(), "black")
        assert laid_out == ["Alpha", "Beta", "Gamma"]
        assert surface.texts() == ["Alpha", "Beta", "Gamma"]

    def test_item_advance(self, surface) -> None:
        TextLayout(surface).draw_list(self._list(), "black")
        _, _, fs = dimen(792, 612, 10, 50, 2)
        ys = [c[2] for c in surface.calls if c[0] == "text"]
        assert ys == pytest.approx([306 + i * LIST_SPACING * fs for i in range(3)])

    def test_numbered(self, surface) -> None:
        laid_out = TextLayout(surface).draw_list(self._list(type=ListType.NUMBER, items=["A", "B"]), "black")
        assert laid_out == ["1. A", "2. B"]

    def test_bullets(self, surface) -> None:
        TextLayout(surface).draw_list(self._list(type=ListType.BULLET), "black")
        assert surface.names().count("ellipse") == 3
        first_text = next(c for c in surface.calls if c[0] == "text")
        assert first_text[1] > 79.2

    def test_centred_list_one_call_per_item(self, surface) -> None:
        TextLayout(surface).draw_list(self._list(align="center", items=["two words", "three more words"]), "black")
        assert surface.texts() == ["two words", "three more words"]
        assert {c[5] for c in surface.calls if c[0] == "text"} == {"middle"}

    def test_wrapped_item_pushes_next_item_down(self, surface) -> None:
        long_item = " ".join(["word"] * 60)
        TextLayout(surface).draw_list(self._list(wp=20, items=[long_item, "Next"]), "black")
        _, _, fs = dimen(792, 612, 10, 50, 2)
        next_call = next(c for c in surface.calls if c[0] == "text" and c[3] == "Next")
        assert next_call[2] > 306 + LIST_SPACING * fs

    def test_item_colour_overrides(self, surface) -> None:
        deck_list = DeckList(xp=10, yp=50, sp=2, color="blue", items=[
            ListItem(content="a"), ListItem(content="b", color="red"),
        ])
        TextLayout(surface).draw_list(deck_list, "black")
        assert [c[6] for c in surface.calls if c[0] == "text"] == ["blue", "red"]
