"""
orchestrator.py — compile → parse → render.

The one-shot pipeline. Every stage failure surfaces as a DeckError tagged
with the stage that raised it; nothing is retried or swallowed.
"""

import logging
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Iterator, Optional, Type, Union

from deckrender.config import get_settings
from deckrender.dsl.compiler import DSL_EXTENSION, Compiler, DeckshCompiler
from deckrender.dsl.schema import Deck, OutputFormat, RenderOptions
from deckrender.engine.fonts import FontCache, FontResolver
from deckrender.engine.pdf_renderer import PDFRenderer
from deckrender.engine.png_renderer import PNGRenderer
from deckrender.engine.renderer import DeckRenderer
from deckrender.engine.svg_renderer import SVGRenderer
from deckrender.errors import DeckError, OutputIOError, RenderError, UnsupportedFormatError
from deckrender.parser.deck_reader import DeckReader

logger = logging.getLogger("deckrender.pipeline")

RENDERERS: Dict[OutputFormat, Type[DeckRenderer]] = {
    OutputFormat.SVG: SVGRenderer,
    OutputFormat.PNG: PNGRenderer,
    OutputFormat.PDF: PDFRenderer,
}


def parse_format(value: Union[str, OutputFormat]) -> OutputFormat:
    """
    Validate an output format name.

    Raises:
        UnsupportedFormatError: If no backend produces the format
    """
    if isinstance(value, OutputFormat):
        return value
    try:
        return OutputFormat(str(value).strip().lower().lstrip("."))
    except ValueError:
        supported = ", ".join(f.value for f in OutputFormat)
        raise UnsupportedFormatError(f"unsupported format {value!r} (supported: {supported})") from None


def default_output_path(input_path: Union[str, Path], output_format: Union[str, OutputFormat]) -> Path:
    """Replace the DSL extension with the format's (or append it)."""
    fmt = parse_format(output_format)
    path = Path(input_path)
    if path.suffix == DSL_EXTENSION:
        return path.with_suffix(fmt.extension)
    return path.with_name(path.name + fmt.extension)


@contextmanager
def stage(name: str) -> Iterator[None]:
    """Tag errors raised inside the block with a stage name."""
    try:
        yield
    except DeckError as exc:
        if exc.stage is None:
            exc.stage = name
        raise
    except Exception as exc:
        raise RenderError(f"{type(exc).__name__}: {exc}", stage=name) from exc


class Pipeline:
    """
    Sequences compile, parse and render.

    Args:
        compiler: DSL compiler callable (default: decksh from settings)
        fonts: Font resolver shared by all renders of this pipeline
        reader: Deck XML reader
    """

    def __init__(
        self,
        compiler: Optional[Compiler] = None,
        fonts: Optional[FontResolver] = None,
        reader: Optional[DeckReader] = None,
    ):
        settings = get_settings()
        self.compiler = compiler or DeckshCompiler(
            settings.decksh_bin,
            font_dir=settings.font_dir or None,
            timeout=settings.compile_timeout,
        )
        self.fonts = fonts or FontResolver(
            FontCache(settings.font_dir or None),
            default_family=settings.font_family,
            default_weight=settings.font_weight,
        )
        self.reader = reader or DeckReader(settings.canvas_width, settings.canvas_height)
        self._renderers: Dict[OutputFormat, DeckRenderer] = {}

    def renderer(self, output_format: Union[str, OutputFormat]) -> DeckRenderer:
        fmt = parse_format(output_format)
        if fmt not in RENDERERS:
            raise UnsupportedFormatError(f"no backend renders {fmt.value!r}")
        if fmt not in self._renderers:
            self._renderers[fmt] = RENDERERS[fmt](self.fonts)
        return self._renderers[fmt]

    # -------------------------------------------------------------------------
    # Stages
    # -------------------------------------------------------------------------

    def compile(self, dsl_text: str) -> str:
        """DSL text to intermediate XML."""
        with stage("compile"):
            return self.compiler(dsl_text)

    def parse(self, xml_text: Union[str, bytes]) -> Deck:
        """Intermediate XML to Deck."""
        with stage("parse"):
            return self.reader.read(xml_text)

    def render_deck(
        self,
        deck: Deck,
        output_format: Union[str, OutputFormat],
        options: Optional[RenderOptions] = None,
        slide_index: Optional[int] = None,
        asset_dir: Optional[Union[str, Path]] = None,
    ) -> bytes:
        """Deck to output bytes."""
        with stage("render"):
            renderer = self.renderer(output_format)
            start = time.perf_counter()
            data = renderer.render(deck, options, slide_index, asset_dir)
            logger.debug(
                f"Rendered {renderer.format.value} ({len(data)} bytes) "
                f"in {(time.perf_counter() - start) * 1000:.1f}ms"
            )
            return data

    # -------------------------------------------------------------------------
    # One-shot calls
    # -------------------------------------------------------------------------

    def render(
        self,
        dsl_text: str,
        output_format: Union[str, OutputFormat],
        options: Optional[RenderOptions] = None,
        slide_index: Optional[int] = None,
        asset_dir: Optional[Union[str, Path]] = None,
    ) -> bytes:
        """
        Render DSL text to one output format.

        Args:
            dsl_text: Deck DSL source
            output_format: svg, png, pdf, or xml (the compiled intermediate)
            options: Rendering options
            slide_index: 0-based slide (see DeckRenderer.render)
            asset_dir: Directory for relative image and include paths

        Returns:
            Output bytes

        Raises:
            UnsupportedFormatError: Before any work is done, for unknown formats
            CompileError, ParseError, SlideIndexError: Tagged with their stage
        """
        fmt = parse_format(output_format)
        xml_text = self.compile(dsl_text)
        if fmt == OutputFormat.XML:
            return xml_text.encode("utf-8")
        return self.render_xml(xml_text, fmt, options, slide_index, asset_dir)

    def render_xml(
        self,
        xml_text: Union[str, bytes],
        output_format: Union[str, OutputFormat],
        options: Optional[RenderOptions] = None,
        slide_index: Optional[int] = None,
        asset_dir: Optional[Union[str, Path]] = None,
    ) -> bytes:
        """Render intermediate XML (skipping the compile stage)."""
        fmt = parse_format(output_format)
        if fmt == OutputFormat.XML:
            return xml_text if isinstance(xml_text, bytes) else xml_text.encode("utf-8")
        deck = self.parse(xml_text)
        return self.render_deck(deck, fmt, options, slide_index, asset_dir)

    def render_file(
        self,
        input_path: Union[str, Path],
        output_format: Union[str, OutputFormat],
        output_path: Optional[Union[str, Path]] = None,
        options: Optional[RenderOptions] = None,
        slide_index: Optional[int] = None,
    ) -> Path:
        """
        Render a DSL (or .xml) file and write the result.

        Args:
            input_path: Source file; `.xml` input skips compilation
            output_format: Target format
            output_path: Destination (default: input with the format's extension)
            options: Rendering options
            slide_index: 0-based slide

        Returns:
            Path written

        Raises:
            OutputIOError: If the input cannot be read or the output cannot be written
        """
        fmt = parse_format(output_format)
        source = Path(input_path)
        with stage("read"):
            try:
                text = source.read_text(encoding="utf-8")
            except OSError as exc:
                raise OutputIOError(f"cannot read {source}: {exc}") from exc

        if source.suffix == ".xml":
            data = self.render_xml(text, fmt, options, slide_index, source.parent)
        else:
            data = self.render(text, fmt, options, slide_index, source.parent)

        target = Path(output_path) if output_path else default_output_path(source, fmt)
        write_output(target, data)
        logger.info(f"Wrote {target} ({len(data)} bytes)")
        return target


def write_output(path: Path, data: bytes) -> None:
    """Write bytes, creating parent directories."""
    with stage("write"):
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        except OSError as exc:
            raise OutputIOError(f"cannot write {path}: {exc}") from exc


def render(
    dsl_text: str,
    output_format: Union[str, OutputFormat],
    options: Optional[RenderOptions] = None,
    compiler: Optional[Compiler] = None,
) -> bytes:
    """Render DSL text with a one-off Pipeline."""
    fmt = parse_format(output_format)
    return Pipeline(compiler=compiler).render(dsl_text, fmt, options)
