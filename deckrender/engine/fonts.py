"""
fonts.py — Font resolution and loading for every backend.

Resolution order for a (family, weight) request:
1. The family is in the font cache at the requested weight
2. The closest email-safe family (case-insensitive substring match)
3. Generic sans-serif

A FontResolver is passed into each render call. Its loaded-font table is the
only state shared between concurrent renders.
"""

import json
import logging
import threading
import warnings
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

from PIL import ImageFont

from deckrender.engine.units import DEFAULT_FONT_FAMILY, DEFAULT_FONT_WEIGHT
from deckrender.errors import FontLoadWarning

logger = logging.getLogger("deckrender.fonts")

# =============================================================================
# FONT CONFIGURATION
# =============================================================================

EMAIL_SAFE_FONTS = [
    "Arial",
    "Helvetica",
    "Georgia",
    "Times",
    "Courier",
    "Verdana",
    "Tahoma",
    "Impact",
    "Comic Sans MS",
    "Trebuchet MS",
    "Arial Black",
    "Palatino",
    "Lucida Console",
]

GENERIC_SANS = "sans-serif"

# Deck logical names
FONT_ALIASES = {
    "sans": None,  # the configured default family
    "serif": "Times",
    "mono": "Courier",
    "symbol": "Symbol",
}

MONOSPACE_FAMILIES = {"courier", "lucida console", "monospace"}
SERIF_FAMILIES = {"times", "georgia", "palatino", "serif"}

# Font files tried for a resolved family, by filename (Pillow searches the
# system font directories for bare names)
FONT_FILES: Dict[str, List[str]] = {
    "arial": ["arial.ttf", "Arial.ttf", "LiberationSans-Regular.ttf", "DejaVuSans.ttf"],
    "helvetica": ["Helvetica.ttc", "LiberationSans-Regular.ttf", "DejaVuSans.ttf"],
    "times": ["times.ttf", "Times New Roman.ttf", "LiberationSerif-Regular.ttf", "DejaVuSerif.ttf"],
    "georgia": ["georgia.ttf", "Georgia.ttf", "DejaVuSerif.ttf"],
    "courier": ["cour.ttf", "Courier New.ttf", "LiberationMono-Regular.ttf", "DejaVuSansMono.ttf"],
    "lucida console": ["lucon.ttf", "DejaVuSansMono.ttf"],
    "verdana": ["verdana.ttf", "Verdana.ttf", "DejaVuSans.ttf"],
    "tahoma": ["tahoma.ttf", "Tahoma.ttf", "DejaVuSans.ttf"],
    "impact": ["impact.ttf", "Impact.ttf", "DejaVuSans-Bold.ttf"],
    GENERIC_SANS: ["DejaVuSans.ttf", "LiberationSans-Regular.ttf", "arial.ttf"],
}

BOLD_FONT_FILES: Dict[str, List[str]] = {
    "arial": ["arialbd.ttf", "Arial Bold.ttf", "LiberationSans-Bold.ttf", "DejaVuSans-Bold.ttf"],
    "times": ["timesbd.ttf", "LiberationSerif-Bold.ttf", "DejaVuSerif-Bold.ttf"],
    "courier": ["courbd.ttf", "LiberationMono-Bold.ttf", "DejaVuSansMono-Bold.ttf"],
    GENERIC_SANS: ["DejaVuSans-Bold.ttf", "LiberationSans-Bold.ttf"],
}

# reportlab built-in faces: (regular, bold)
PDF_STANDARD_FONTS = {
    "sans": ("Helvetica", "Helvetica-Bold"),
    "serif": ("Times-Roman", "Times-Bold"),
    "mono": ("Courier", "Courier-Bold"),
    "symbol": ("Symbol", "Symbol"),
}

BOLD_WEIGHT = 600

REGISTRY_FILE = "registry.json"
FONT_EXTENSIONS = (".ttf", ".otf", ".ttc")


@dataclass(frozen=True)
class ResolvedFont:
    """Outcome of a font lookup."""
    requested: str          # Family as written in the deck
    family: str             # Family to draw with
    weight: int
    path: Optional[str]     # Font file from the cache, if any
    source: str             # "cache", "email-safe" or "generic"

    @property
    def is_monospace(self) -> bool:
        return self.family.lower() in MONOSPACE_FAMILIES

    @property
    def is_bold(self) -> bool:
        return self.weight >= BOLD_WEIGHT

    @property
    def generic(self) -> str:
        """Generic class of the family: sans, serif, mono or symbol."""
        name = self.family.lower()
        if name in MONOSPACE_FAMILIES:
            return "mono"
        if name in SERIF_FAMILIES:
            return "serif"
        if name == "symbol":
            return "symbol"
        return "sans"


# =============================================================================
# FONT CACHE
# =============================================================================

class FontCache:
    """
    Read-only view of a font directory populated by an external font fetcher.

    Fonts are found through `registry.json` (keys "family-weight-style-format",
    family lowercased, values carrying a "path"), or by file layout:
    `<dir>/<family>/<weight>.ttf` or `<dir>/<family>.ttf`.
    """

    def __init__(self, font_dir: Optional[Union[str, Path]] = None):
        self.font_dir = Path(font_dir) if font_dir else None
        self._registry: Optional[Dict[str, dict]] = None

    @property
    def registry(self) -> Dict[str, dict]:
        if self._registry is None:
            self._registry = self._load_registry()
        return self._registry

    def _load_registry(self) -> Dict[str, dict]:
        if self.font_dir is None:
            return {}
        path = self.font_dir / REGISTRY_FILE
        if not path.exists():
            return {}
        try:
            with open(path) as f:
                data = json.load(f)
        except (OSError, ValueError) as exc:
            logger.warning(f"Ignoring unreadable font registry {path}: {exc}")
            return {}
        return data if isinstance(data, dict) else {}

    def lookup(
        self,
        family: str,
        weight: int,
        style: str = "normal",
    ) -> Optional[Path]:
        """Return the cached font file for a family/weight, if present."""
        if self.font_dir is None:
            return None

        name = family.lower()
        for fmt in ("ttf", "otf"):
            entry = self.registry.get(f"{name}-{weight}-{style}-{fmt}")
            if entry:
                raw = entry.get("path") or entry.get("Path")
                if raw:
                    candidate = Path(raw)
                    if not candidate.is_absolute():
                        candidate = self.font_dir / candidate
                    if candidate.exists():
                        return candidate

        for ext in FONT_EXTENSIONS:
            for candidate in (
                self.font_dir / name / f"{weight}{ext}",
                self.font_dir / family / f"{weight}{ext}",
            ):
                if candidate.exists():
                    return candidate

        if weight == DEFAULT_FONT_WEIGHT:
            for ext in FONT_EXTENSIONS:
                candidate = self.font_dir / f"{family}{ext}"
                if candidate.exists():
                    return candidate
        return None


# =============================================================================
# FONT RESOLVER
# =============================================================================

class FontResolver:
    """
    Resolves deck font names and loads them for each backend.

    Args:
        cache: Font cache to consult first
        default_family: Family used for the logical name "sans"
        default_weight: Weight used when a request gives none
    """

    def __init__(
        self,
        cache: Optional[FontCache] = None,
        default_family: str = DEFAULT_FONT_FAMILY,
        default_weight: int = DEFAULT_FONT_WEIGHT,
    ):
        self.cache = cache or FontCache()
        self.default_family = default_family
        self.default_weight = default_weight
        self._pil_fonts: Dict[Tuple[str, float, int], ImageFont.ImageFont] = {}
        self._pdf_fonts: Dict[Tuple[str, int], str] = {}
        self._lock = threading.Lock()

    def resolve(self, family: Optional[str], weight: Optional[int] = None) -> ResolvedFont:
        """Resolve a deck family name to the family that will be drawn."""
        requested = (family or "sans").strip() or "sans"
        weight = weight or self.default_weight
        name = requested
        if requested.lower() in FONT_ALIASES:
            name = FONT_ALIASES[requested.lower()] or self.default_family

        path = self.cache.lookup(name, weight)
        if path is not None:
            return ResolvedFont(requested, name, weight, str(path), "cache")

        lowered = name.lower()
        for safe in EMAIL_SAFE_FONTS:
            if safe.lower() in lowered:
                return ResolvedFont(requested, safe, weight, None, "email-safe")

        return ResolvedFont(requested, GENERIC_SANS, weight, None, "generic")

    # -------------------------------------------------------------------------
    # Pillow
    # -------------------------------------------------------------------------

    def load_pil(
        self,
        family: Optional[str],
        size: float,
        weight: Optional[int] = None,
    ) -> ImageFont.ImageFont:
        """
        Load a Pillow font, falling back to Pillow's built-in face.

        Args:
            family: Deck font name
            size: Font size in device units
            weight: Font weight (default: resolver default)

        Returns:
            A Pillow font object
        """
        size = max(round(size, 2), 1.0)
        key = ((family or "sans").lower(), size, weight or self.default_weight)
        font = self._pil_fonts.get(key)
        if font is not None:
            return font

        resolved = self.resolve(family, weight)
        font = self._open_pil(resolved, size)
        with self._lock:
            return self._pil_fonts.setdefault(key, font)

    def _open_pil(self, resolved: ResolvedFont, size: float) -> ImageFont.ImageFont:
        candidates: List[str] = []
        if resolved.path:
            candidates.append(resolved.path)
        table = BOLD_FONT_FILES if resolved.is_bold else FONT_FILES
        name = resolved.family.lower()
        candidates.extend(table.get(name, []))
        candidates.extend(FONT_FILES.get(name, []))
        if resolved.is_monospace:
            candidates.extend(FONT_FILES["courier"])
        candidates.extend(FONT_FILES[GENERIC_SANS])

        for candidate in candidates:
            try:
                return ImageFont.truetype(candidate, size)
            except OSError:
                continue

        _warn(f"No font file found for {resolved.requested!r}; using the built-in face")
        return ImageFont.load_default(size=size)

    # -------------------------------------------------------------------------
    # reportlab
    # -------------------------------------------------------------------------

    def pdf_font_name(self, family: Optional[str], weight: Optional[int] = None) -> str:
        """Return a reportlab font name for a deck family, registering TTFs."""
        from reportlab.pdfbase import pdfmetrics
        from reportlab.pdfbase.ttfonts import TTFont

        resolved = self.resolve(family, weight)
        key = (resolved.family.lower(), resolved.weight)
        name = self._pdf_fonts.get(key)
        if name is not None:
            return name

        regular, bold = PDF_STANDARD_FONTS[resolved.generic]
        name = bold if resolved.is_bold else regular
        if resolved.path:
            ttf_name = f"{resolved.family}-{resolved.weight}"
            try:
                with self._lock:
                    if ttf_name not in pdfmetrics.getRegisteredFontNames():
                        pdfmetrics.registerFont(TTFont(ttf_name, resolved.path))
                name = ttf_name
            except Exception as exc:
                _warn(f"Cannot load {resolved.path} for {resolved.requested!r}: {exc}; using {name}")

        with self._lock:
            return self._pdf_fonts.setdefault(key, name)

    def clear(self) -> None:
        """Drop loaded fonts (useful for testing)."""
        with self._lock:
            self._pil_fonts.clear()
            self._pdf_fonts.clear()


def _warn(message: str) -> None:
    logger.warning(message)
    warnings.warn(message, FontLoadWarning, stacklevel=3)
