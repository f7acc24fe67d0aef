"""Tests for the compile, parse and render pipeline."""

from pathlib import Path

import pytest

from conftest import HELLO_XML, TWO_SLIDE_XML, FailingCompiler, FakeCompiler
from deckrender.dsl.schema import OutputFormat
from deckrender.errors import (
    CompileError,
    OutputIOError,
    ParseError,
    RenderError,
    SlideIndexError,
    UnsupportedFormatError,
)
from deckrender.pipeline import Pipeline, default_output_path, parse_format, render
from deckrender.pipeline.orchestrator import stage


class TestParseFormat:
    """Tests for parse_format()."""

    @pytest.mark.parametrize("value,expected", [
        ("svg", OutputFormat.SVG),
        ("PNG", OutputFormat.PNG),
        (".pdf", OutputFormat.PDF),
        ("xml", OutputFormat.XML),
        (OutputFormat.SVG, OutputFormat.SVG),
    ])
    def test_known(self, value, expected) -> None:
        assert parse_format(value) == expected

    def test_unknown(self) -> None:
        with pytest.raises(UnsupportedFormatError, match="gif"):
            parse_format("gif")


class TestDefaultOutputPath:
    """Tests for default_output_path()."""

    def test_replaces_dsl_extension(self) -> None:
        assert default_output_path("talks/intro.dsh", "svg") == Path("talks/intro.svg")

    def test_appends_otherwise(self) -> None:
        assert default_output_path("talks/intro.deck", "pdf") == Path("talks/intro.deck.pdf")


class TestStage:
    """Tests for stage tagging."""

    def test_tags_deck_errors(self) -> None:
        with pytest.raises(ParseError) as exc_info:
            with stage("parse"):
                raise ParseError("bad")
        assert exc_info.value.stage == "parse"
        assert str(exc_info.value) == "parse: bad"

    def test_keeps_existing_stage(self) -> None:
        with pytest.raises(CompileError) as exc_info:
            with stage("render"):
                raise CompileError("bad", stage="compile")
        assert exc_info.value.stage == "compile"

    def test_wraps_other_errors(self) -> None:
        with pytest.raises(RenderError) as exc_info:
            with stage("render"):
                raise ZeroDivisionError("division by zero")
        assert exc_info.value.stage == "render"
        assert "ZeroDivisionError" in str(exc_info.value)
        assert isinstance(exc_info.value.__cause__, ZeroDivisionError)


class TestPipelineRender:
    """Tests for Pipeline.render()."""

    def test_svg(self, pipeline, compiler) -> None:
        data = pipeline.render("deck\nedeck", "svg")
        assert b"Hello World" in data
        assert compiler.calls == 1

    @pytest.mark.parametrize("fmt,magic", [("png", b"\x89PNG"), ("pdf", b"%PDF"), ("svg", b"<?xml")])
    def test_formats(self, pipeline, fmt, magic) -> None:
        assert pipeline.render("deck", fmt).startswith(magic)

    def test_xml_passthrough(self, pipeline) -> None:
        assert pipeline.render("deck", "xml") == HELLO_XML.encode("utf-8")

    def test_unsupported_format_before_compiling(self, pipeline, compiler) -> None:
        with pytest.raises(UnsupportedFormatError):
            pipeline.render("deck", "gif")
        assert compiler.calls == 0

    def test_compile_error_tagged(self, fonts) -> None:
        pipeline = Pipeline(compiler=FailingCompiler("line 2: unknown keyword"), fonts=fonts)
        with pytest.raises(CompileError) as exc_info:
            pipeline.render("bad", "svg")
        assert exc_info.value.stage == "compile"
        assert str(exc_info.value) == "compile: line 2: unknown keyword"

    def test_parse_error_tagged(self, fonts) -> None:
        pipeline = Pipeline(compiler=FakeCompiler("<deck><slide></deck>"), fonts=fonts)
        with pytest.raises(ParseError) as exc_info:
            pipeline.render("deck", "svg")
        assert exc_info.value.stage == "parse"

    def test_slide_error_tagged(self, pipeline) -> None:
        with pytest.raises(SlideIndexError) as exc_info:
            pipeline.render("deck", "svg", slide_index=4)
        assert exc_info.value.stage == "render"

    def test_renderers_reused(self, pipeline) -> None:
        assert pipeline.renderer("svg") is pipeline.renderer(OutputFormat.SVG)

    def test_xml_has_no_renderer(self, pipeline) -> None:
        with pytest.raises(UnsupportedFormatError):
            pipeline.renderer("xml")

    def test_render_xml_skips_compile(self, pipeline, compiler) -> None:
        data = pipeline.render_xml(TWO_SLIDE_XML, "svg", slide_index=1)
        assert b"Second" in data
        assert compiler.calls == 0

    def test_module_level_render(self) -> None:
        assert b"Hello World" in render("deck", "svg", compiler=FakeCompiler())


class TestRenderFile:
    """Tests for Pipeline.render_file()."""

    def test_default_output_path(self, pipeline, tmp_path) -> None:
        source = tmp_path / "hello.dsh"
        source.write_text("deck\nedeck\n")
        target = pipeline.render_file(source, "svg")
        assert target == tmp_path / "hello.svg"
        assert b"Hello World" in target.read_bytes()

    def test_explicit_output_path(self, pipeline, tmp_path) -> None:
        source = tmp_path / "hello.dsh"
        source.write_text("deck")
        target = pipeline.render_file(source, "pdf", tmp_path / "out" / "slides.pdf")
        assert target.read_bytes().startswith(b"%PDF")

    def test_xml_input(self, pipeline, compiler, tmp_path) -> None:
        source = tmp_path / "deck.xml"
        source.write_text(TWO_SLIDE_XML)
        target = pipeline.render_file(source, "svg", slide_index=1)
        assert target == tmp_path / "deck.xml.svg"
        assert b"Second" in target.read_bytes()
        assert compiler.calls == 0

    def test_missing_input(self, pipeline, tmp_path) -> None:
        with pytest.raises(OutputIOError) as exc_info:
            pipeline.render_file(tmp_path / "missing.dsh", "svg")
        assert exc_info.value.stage == "read"

    def test_unwritable_output(self, pipeline, tmp_path) -> None:
        source = tmp_path / "hello.dsh"
        source.write_text("deck")
        blocker = tmp_path / "blocker"
        blocker.write_text("a file, not a directory")
        with pytest.raises(OutputIOError) as exc_info:
            pipeline.render_file(source, "svg", blocker / "out.svg")
        assert exc_info.value.stage == "write"
