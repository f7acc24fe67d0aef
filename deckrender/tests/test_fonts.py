"""Tests for font resolution and loading."""

import json

import pytest
from PIL import ImageFont

from deckrender.engine.fonts import FontCache, FontResolver, GENERIC_SANS
from deckrender.errors import FontLoadWarning


@pytest.fixture
def font_dir(tmp_path):
    """A font cache directory with placeholder files (never opened as fonts)."""
    (tmp_path / "roboto").mkdir()
    (tmp_path / "roboto" / "400.ttf").write_bytes(b"not a font")
    (tmp_path / "Lobster.ttf").write_bytes(b"not a font")
    (tmp_path / "fetched.ttf").write_bytes(b"not a font")
    (tmp_path / "registry.json").write_text(json.dumps({
        "open sans-700-normal-ttf": {"path": "fetched.ttf"},
    }))
    return tmp_path


class TestFontCache:
    """Tests for FontCache.lookup()."""

    def test_no_directory(self) -> None:
        assert FontCache(None).lookup("Roboto", 400) is None

    def test_weight_layout(self, font_dir) -> None:
        assert FontCache(font_dir).lookup("Roboto", 400) == font_dir / "roboto" / "400.ttf"

    def test_flat_layout_regular_only(self, font_dir) -> None:
        cache = FontCache(font_dir)
        assert cache.lookup("Lobster", 400) == font_dir / "Lobster.ttf"
        assert cache.lookup("Lobster", 700) is None

    def test_registry(self, font_dir) -> None:
        assert FontCache(font_dir).lookup("Open Sans", 700) == font_dir / "fetched.ttf"

    def test_unreadable_registry(self, tmp_path) -> None:
        (tmp_path / "registry.json").write_text("{broken")
        assert FontCache(tmp_path).lookup("Anything", 400) is None


class TestResolve:
    """Tests for the fallback chain."""

    def test_cached_family(self, font_dir) -> None:
        resolved = FontResolver(FontCache(font_dir)).resolve("Roboto")
        assert resolved.source == "cache"
        assert resolved.family == "Roboto"

    def test_email_safe_substitute(self, fonts) -> None:
        resolved = fonts.resolve("Arial Narrow")
        assert resolved.source == "email-safe"
        assert resolved.family == "Arial"

    def test_generic_fallback(self, fonts) -> None:
        resolved = fonts.resolve("Nonexistent Display")
        assert resolved.source == "generic"
        assert resolved.family == GENERIC_SANS

    def test_logical_names(self, fonts) -> None:
        assert fonts.resolve("sans").family == "Arial"
        assert fonts.resolve("serif").family == "Times"
        assert fonts.resolve("mono").is_monospace
        assert fonts.resolve("mono").generic == "mono"
        assert fonts.resolve("serif").generic == "serif"

    def test_default_family(self) -> None:
        assert FontResolver(FontCache(None), default_family="Verdana").resolve(None).family == "Verdana"

    def test_weight(self, fonts) -> None:
        assert fonts.resolve("sans", 700).is_bold
        assert not fonts.resolve("sans").is_bold

    def test_deterministic(self, fonts) -> None:
        assert fonts.resolve("Helvetica Neue") == fonts.resolve("Helvetica Neue")


class TestLoading:
    """Tests for backend font loading."""

    def test_load_pil_cached(self, fonts) -> None:
        first = fonts.load_pil("sans", 12)
        assert fonts.load_pil("sans", 12) is first
        assert first.getlength("abc") > 0

    def test_unloadable_cache_file_falls_back(self, font_dir) -> None:
        """A broken cached file falls through to system fonts or the built-in face."""
        resolver = FontResolver(FontCache(font_dir))
        font = resolver.load_pil("Roboto", 14)
        assert isinstance(font, (ImageFont.FreeTypeFont, ImageFont.ImageFont))

    def test_warning_when_nothing_loads(self, fonts, monkeypatch) -> None:
        real_truetype = ImageFont.truetype

        def no_truetype(font=None, *args, **kwargs):
            if isinstance(font, str):
                raise OSError("cannot open resource")
            return real_truetype(font, *args, **kwargs)

        monkeypatch.setattr(ImageFont, "truetype", no_truetype)
        with pytest.warns(FontLoadWarning):
            font = fonts.load_pil("Nonexistent", 10)
        assert font.getlength("x") > 0

    def test_pdf_standard_fonts(self, fonts) -> None:
        assert fonts.pdf_font_name("sans") == "Helvetica"
        assert fonts.pdf_font_name("sans", 700) == "Helvetica-Bold"
        assert fonts.pdf_font_name("serif") == "Times-Roman"
        assert fonts.pdf_font_name("mono") == "Courier"

    def test_pdf_unloadable_ttf_warns(self, font_dir) -> None:
        resolver = FontResolver(FontCache(font_dir))
        with pytest.warns(FontLoadWarning):
            assert resolver.pdf_font_name("Lobster") == "Helvetica"

    def test_clear(self, fonts) -> None:
        first = fonts.load_pil("sans", 12)
        fonts.clear()
        assert fonts.load_pil("sans", 12) is not first
