"""Pytest configuration and fixtures."""

from typing import List, Optional, Sequence, Tuple

import pytest
from PIL import Image as PILImage

from deckrender.engine.fonts import FontCache, FontResolver
from deckrender.engine.surface import DrawingSurface, FontSpec, Gradient, Point
from deckrender.errors import CompileError
from deckrender.parser.deck_reader import DeckReader
from deckrender.pipeline.orchestrator import Pipeline


# =============================================================================
# DECK DOCUMENTS
# =============================================================================

HELLO_XML = (
    '<deck><canvas width="792" height="612"/>'
    '<slide bg="white" fg="black">'
    '<text xp="50" yp="50" sp="3" color="black">Hello World</text>'
    "</slide></deck>"
)

RECT_XML = (
    '<deck><canvas width="792" height="612"/>'
    '<slide><rect xp="75" yp="75" wp="20" hp="15"/></slide></deck>'
)

TWO_SLIDE_XML = (
    '<deck><title>Two</title><canvas width="792" height="612"/>'
    '<slide><text xp="10" yp="90" sp="4">First</text></slide>'
    '<slide bg="black" fg="white"><text xp="10" yp="90" sp="4">Second</text></slide>'
    "</deck>"
)


def all_shapes_xml(image_name: str = "pixel.png") -> str:
    """A slide holding one element of every shape kind."""
    return (
        '<deck><canvas width="792" height="612"/>'
        '<slide bg="white" fg="black" gradcolor1="white" gradcolor2="lightsteelblue" gp="80">'
        f'<image xp="20" yp="80" width="40" height="20" name="{image_name}" caption="A caption"/>'
        '<rect xp="50" yp="50" wp="20" hp="10" color="red" opacity="50"/>'
        '<rect xp="20" yp="20" wp="10" hr="50" gradcolor1="red" gradcolor2="blue" gp="50"/>'
        '<ellipse xp="80" yp="80" wp="10" hp="10" color="green"/>'
        '<curve xp1="10" yp1="10" xp2="20" yp2="40" xp3="30" yp3="10" sp="0.5"/>'
        '<arc xp="60" yp="30" wp="10" hp="10" a1="0" a2="180" sp="0.3" color="purple"/>'
        '<line xp1="5" yp1="5" xp2="95" yp2="5" sp="0.2"/>'
        '<polygon xc="40 50 45" yc="10 10 20" color="orange"/>'
        '<text xp="50" yp="90" sp="3" rotation="15">Rotated title</text>'
        '<text xp="10" yp="60" sp="2" wp="30" type="block">'
        "A block of text long enough to wrap across more than one line of the box</text>"
        '<text xp="60" yp="60" sp="1.5" type="code">def f():\n    return 1</text>'
        '<list xp="10" yp="40" sp="2" type="bullet"><li>One</li><li color="red">Two</li></list>'
        '<list xp="60" yp="40" sp="2" type="number" align="center"><li>Alpha</li><li>Beta</li></list>'
        "</slide></deck>"
    )


# =============================================================================
# FAKE COMPILERS
# =============================================================================

class FakeCompiler:
    """Compiler stand-in that returns a fixed document and counts calls."""

    def __init__(self, xml: str = HELLO_XML):
        self.xml = xml
        self.calls = 0
        self.available = True

    def __call__(self, dsl_text: str) -> str:
        self.calls += 1
        return self.xml


class FailingCompiler:
    """Compiler stand-in that always rejects its input."""

    def __init__(self, message: str = "line 1: unknown keyword"):
        self.message = message
        self.calls = 0

    def __call__(self, dsl_text: str) -> str:
        self.calls += 1
        raise CompileError(self.message)


# =============================================================================
# RECORDING SURFACE
# =============================================================================

class RecordingSurface(DrawingSurface):
    """Surface that records primitive calls; glyphs are half an em wide."""

    def __init__(self, width: float = 792, height: float = 612, fonts: Optional[FontResolver] = None):
        super().__init__(width, height, fonts or FontResolver())
        self.calls: List[Tuple] = []

    def names(self) -> List[str]:
        return [call[0] for call in self.calls]

    def texts(self) -> List[str]:
        return [call[3] for call in self.calls if call[0] == "text"]

    def begin_slide(self, number: int, background: str, gradient: Optional[Gradient] = None) -> None:
        self.calls.append(("begin_slide", number, background, gradient))

    def end_slide(self) -> None:
        self.calls.append(("end_slide",))

    def begin_layer(self, name: str) -> None:
        self.calls.append(("begin_layer", name))

    def end_layer(self) -> None:
        self.calls.append(("end_layer",))

    def finish(self) -> bytes:
        return b""

    def fill_rect(self, x, y, w, h, color, opacity):
        self.calls.append(("rect", x, y, w, h, color, opacity))

    def fill_ellipse(self, cx, cy, rx, ry, color, opacity):
        self.calls.append(("ellipse", cx, cy, rx, ry, color, opacity))

    def stroke_line(self, x1, y1, x2, y2, width, color, opacity):
        self.calls.append(("line", x1, y1, x2, y2, width, color, opacity))

    def fill_polygon(self, points: Sequence[Point], color, opacity):
        self.calls.append(("polygon", list(points), color, opacity))

    def draw_arc(self, cx, cy, rx, ry, a1, a2, width, color, opacity):
        self.calls.append(("arc", cx, cy, rx, ry, a1, a2, width, color, opacity))

    def draw_curve(self, p1, p2, p3, width, color, opacity):
        self.calls.append(("curve", p1, p2, p3, width, color, opacity))

    def draw_text(self, x, y, text, font: FontSpec, anchor, color, opacity):
        self.calls.append(("text", x, y, text, font, anchor, color, opacity))

    def fill_linear_gradient(self, x, y, w, h, gradient):
        self.calls.append(("gradient", x, y, w, h, gradient))

    def draw_image(self, path, cx, cy, w, h):
        self.calls.append(("image", path, cx, cy, w, h))

    def push_rotation(self, degrees, cx, cy):
        self.calls.append(("push_rotation", degrees, cx, cy))

    def pop_rotation(self):
        self.calls.append(("pop_rotation",))

    def measure_text(self, text: str, font: FontSpec) -> float:
        return len(text) * font.size * 0.5


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def fonts() -> FontResolver:
    """Font resolver with no font cache."""
    return FontResolver(FontCache(None))


@pytest.fixture
def reader() -> DeckReader:
    return DeckReader()


@pytest.fixture
def surface(fonts) -> RecordingSurface:
    return RecordingSurface(fonts=fonts)


@pytest.fixture
def compiler() -> FakeCompiler:
    return FakeCompiler()


@pytest.fixture
def pipeline(compiler, fonts) -> Pipeline:
    """Pipeline whose compiler always returns the Hello World deck."""
    return Pipeline(compiler=compiler, fonts=fonts)


@pytest.fixture
def image_file(tmp_path):
    """A small PNG next to the deck sources."""
    path = tmp_path / "pixel.png"
    PILImage.new("RGB", (40, 20), (10, 200, 30)).save(path)
    return path
