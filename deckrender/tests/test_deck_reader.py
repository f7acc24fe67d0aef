"""Tests for intermediate XML parsing."""

import pytest

from conftest import HELLO_XML, TWO_SLIDE_XML, all_shapes_xml
from deckrender.dsl.schema import ListType, TextType
from deckrender.errors import ParseError
from deckrender.parser.deck_reader import DeckReader, wrap_in_slide_if_needed


class TestWrapInSlide:
    """Tests for wrap_in_slide_if_needed()."""

    def test_full_document_unchanged(self) -> None:
        assert wrap_in_slide_if_needed(HELLO_XML) == HELLO_XML

    def test_bare_shapes_wrapped(self, reader) -> None:
        deck = reader.read('<rect xp="50" yp="50" wp="10" hp="10"/><text>hi</text>')
        assert deck.width == 792
        assert len(deck.slides) == 1
        assert len(deck.slides[0].rects) == 1
        assert deck.slides[0].texts[0].content == "hi"

    def test_shapes_directly_in_deck(self) -> None:
        xml = '<?xml version="1.0"?><deck><canvas width="400" height="300"/><ellipse xp="5"/></deck>'
        deck = DeckReader().read(wrap_in_slide_if_needed(xml))
        assert deck.width == 400
        assert len(deck.slides[0].ellipses) == 1

    def test_missing_canvas_synthesised(self) -> None:
        deck = DeckReader(1024, 768).read('<deck><line xp1="0" yp1="0" xp2="10" yp2="10"/></deck>')
        assert (deck.width, deck.height) == (1024, 768)


class TestDeckReader:
    """Tests for DeckReader.read()."""

    def test_hello_world(self, reader) -> None:
        deck = reader.read(HELLO_XML)
        text = deck.slides[0].texts[0]
        assert text.content == "Hello World"
        assert (text.xp, text.yp, text.sp) == (50, 50, 3)
        assert text.color == "black"

    def test_multiple_slides_and_title(self, reader) -> None:
        deck = reader.read(TWO_SLIDE_XML)
        assert deck.title == "Two"
        assert [s.bg for s in deck.slides] == ["white", "black"]

    def test_every_shape_kind(self, reader) -> None:
        slide = reader.read(all_shapes_xml()).slides[0]
        assert len(slide.images) == 1
        assert len(slide.rects) == 2
        assert len(slide.ellipses) == 1
        assert len(slide.curves) == 1
        assert len(slide.arcs) == 1
        assert len(slide.lines) == 1
        assert len(slide.polygons) == 1
        assert len(slide.texts) == 3
        assert len(slide.lists) == 2

    def test_attributes(self, reader) -> None:
        slide = reader.read(all_shapes_xml()).slides[0]
        assert slide.gradcolor1 == "white"
        assert slide.gradpercent == 80
        assert slide.rects[0].opacity == 50
        assert slide.rects[1].hr == 50
        assert slide.rects[1].gradpercent == 50
        assert slide.polygons[0].xc == (40, 50, 45)
        assert slide.texts[1].type == TextType.BLOCK
        assert slide.texts[2].type == TextType.CODE
        assert slide.lists[0].type == ListType.BULLET
        assert [li.content for li in slide.lists[0].items] == ["One", "Two"]
        assert slide.lists[0].items[1].color == "red"
        assert slide.lists[1].align == "center"
        assert slide.images[0].caption == "A caption"

    def test_opacity_absent_keeps_default(self, reader) -> None:
        slide = reader.read(HELLO_XML).slides[0]
        assert slide.texts[0].opacity == 100

    def test_unknown_elements_ignored(self, reader) -> None:
        deck = reader.read('<deck><canvas width="10" height="10"/><slide><star/><rect/></slide></deck>')
        assert deck.slides[0].shape_count == 1

    def test_bytes_input(self, reader) -> None:
        assert reader.read(HELLO_XML.encode("utf-8")).slides[0].texts[0].content == "Hello World"

    def test_read_file(self, reader, tmp_path) -> None:
        path = tmp_path / "deck.xml"
        path.write_text(HELLO_XML)
        assert len(reader.read_file(path).slides) == 1


class TestParseErrors:
    """Tests for malformed documents."""

    def test_malformed_xml(self, reader) -> None:
        with pytest.raises(ParseError, match="malformed"):
            reader.read("<deck><canvas width='1' height='1'><slide></deck>")

    def test_empty_document(self, reader) -> None:
        with pytest.raises(ParseError):
            reader.read("")

    def test_wrong_root(self, reader) -> None:
        with pytest.raises(ParseError, match="expected <deck>"):
            reader.read('<slides><slide/></slides>')

    def test_missing_canvas(self, reader) -> None:
        with pytest.raises(ParseError, match="canvas"):
            reader.read("<deck><slide/></deck>")

    @pytest.mark.parametrize("width,height", [("0", "612"), ("792", "-1")])
    def test_non_positive_canvas(self, reader, width: str, height: str) -> None:
        with pytest.raises(ParseError, match="positive"):
            reader.read(f'<deck><canvas width="{width}" height="{height}"/><slide/></deck>')

    def test_bad_number(self, reader) -> None:
        with pytest.raises(ParseError, match="xp"):
            reader.read('<deck><canvas width="10" height="10"/><slide><rect xp="left"/></slide></deck>')

    def test_missing_file(self, reader, tmp_path) -> None:
        with pytest.raises(ParseError):
            reader.read_file(tmp_path / "missing.xml")
