"""Adapter for the external DSL compiler.

The compiler is an opaque collaborator: DSL text in, intermediate deck XML
out, or a CompileError. Anything with the signature `(str) -> str` can stand
in for it; DeckshCompiler runs the `decksh` executable.
"""

import logging
import os
import re
import shutil
import subprocess
from typing import Callable, Optional

from deckrender.errors import CompileError

logger = logging.getLogger("deckrender.compiler")

Compiler = Callable[[str], str]

DSL_EXTENSION = ".dsh"

# attr=value pairs the compiler sometimes leaves unquoted, e.g. color=red
_UNQUOTED_ATTR = re.compile(r'(\s[A-Za-z_][\w-]*)=([^\s"\'<>/=]+)(?=[\s/>])')
_TAG = re.compile(r"<[^<>!?]+>")


def quote_attributes(xml_text: str) -> str:
    """Quote bare attribute values inside tags so the XML parses."""
    return _TAG.sub(lambda m: _UNQUOTED_ATTR.sub(r'\1="\2"', m.group(0)), xml_text)


class DeckshCompiler:
    """Runs `decksh`, feeding DSL on stdin and reading XML from stdout."""

    def __init__(
        self,
        binary: str = "decksh",
        font_dir: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> None:
        """Initialize the compiler adapter.

        Args:
            binary: Executable name or path.
            font_dir: Exported to the compiler as DECKFONTS.
            timeout: Seconds before the compiler is killed (None waits forever).
        """
        self.binary = binary
        self.font_dir = font_dir
        self.timeout = timeout

    @property
    def available(self) -> bool:
        """Whether the executable can be found."""
        return shutil.which(self.binary) is not None

    def __call__(self, dsl_text: str) -> str:
        return self.compile(dsl_text)

    def compile(self, dsl_text: str) -> str:
        """Compile DSL text to deck XML.

        Args:
            dsl_text: Source in the deck DSL.

        Returns:
            The intermediate XML.

        Raises:
            CompileError: If the compiler is missing, times out or rejects
                the input. The compiler's stderr is passed through verbatim.
        """
        env = dict(os.environ)
        if self.font_dir:
            env["DECKFONTS"] = self.font_dir

        try:
            proc = subprocess.run(
                [self.binary],
                input=dsl_text,
                capture_output=True,
                text=True,
                env=env,
                timeout=self.timeout,
            )
        except FileNotFoundError:
            raise CompileError(f"{self.binary}: compiler not found") from None
        except subprocess.TimeoutExpired:
            raise CompileError(f"{self.binary}: timed out after {self.timeout}s") from None

        if proc.returncode != 0:
            message = proc.stderr.strip() or f"{self.binary} exited with status {proc.returncode}"
            raise CompileError(message)

        logger.debug(f"Compiled {len(dsl_text)} bytes of DSL to {len(proc.stdout)} bytes of XML")
        return quote_attributes(proc.stdout)
