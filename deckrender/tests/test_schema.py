"""Tests for deck document models."""

import pytest
from pydantic import ValidationError

from deckrender.dsl.schema import (
    Canvas,
    Deck,
    OutputFormat,
    Polygon,
    Rect,
    RenderOptions,
    Slide,
    Text,
    TextType,
)


class TestOutputFormat:
    """Tests for OutputFormat."""

    def test_extension(self) -> None:
        assert OutputFormat.SVG.extension == ".svg"
        assert OutputFormat.PDF.extension == ".pdf"

    def test_media_types(self) -> None:
        assert OutputFormat.SVG.media_type == "image/svg+xml"
        assert OutputFormat.PNG.media_type == "image/png"
        assert OutputFormat.PDF.media_type == "application/pdf"


class TestShapes:
    """Tests for shape records."""

    def test_text_defaults(self) -> None:
        text = Text(content="hi")
        assert text.type == TextType.FREE
        assert text.align == "center"
        assert text.font == "sans"
        assert text.color is None

    def test_rect_gradient(self) -> None:
        assert not Rect().has_gradient
        assert not Rect(gradcolor1="red").has_gradient
        assert Rect(gradcolor1="red", gradcolor2="blue").has_gradient

    def test_polygon_drawable(self) -> None:
        assert Polygon(xc=(1, 2, 3), yc=(1, 2, 3)).is_drawable
        assert not Polygon(xc=(1, 2), yc=(1, 2)).is_drawable
        assert not Polygon(xc=(1, 2, 3), yc=(1, 2)).is_drawable

    def test_polygon_points(self) -> None:
        assert Polygon(xc=(1, 2, 3), yc=(4, 5, 6)).points == [(1, 4), (2, 5), (3, 6)]

    def test_shapes_are_frozen(self) -> None:
        rect = Rect(xp=10)
        with pytest.raises(ValidationError):
            rect.xp = 20


class TestSlide:
    """Tests for Slide."""

    def test_defaults(self) -> None:
        slide = Slide()
        assert slide.bg == "white"
        assert slide.fg == "black"
        assert slide.shape_count == 0

    @pytest.mark.parametrize("value,expected", [(0, 100), (-5, 100), (150, 100), (40, 40)])
    def test_gradpercent_normalised(self, value: float, expected: float) -> None:
        assert Slide(gradpercent=value).gradpercent == expected

    def test_shape_count(self) -> None:
        slide = Slide(rects=[Rect(), Rect()], texts=[Text()])
        assert slide.shape_count == 3


class TestDeck:
    """Tests for Deck and Canvas."""

    def test_canvas_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            Canvas(width=0, height=612)

    def test_slide_lookup(self) -> None:
        deck = Deck(slides=[Slide(bg="red")])
        assert deck.slide(0).bg == "red"
        with pytest.raises(IndexError):
            deck.slide(1)
        assert deck.width == 792
        assert deck.height == 612


class TestRenderOptions:
    """Tests for RenderOptions."""

    def test_layers_from_string(self) -> None:
        options = RenderOptions(layers="text: rect::list")
        assert options.layers == ("text", "rect", "list")

    def test_default_layers(self) -> None:
        assert RenderOptions().layers[0] == "image"
        assert RenderOptions().layers[-1] == "list"

    def test_negative_grid_rejected(self) -> None:
        with pytest.raises(ValidationError):
            RenderOptions(grid_percent=-1)
