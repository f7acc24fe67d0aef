"""Command-line entry point: render one deck file."""

import argparse
import logging
import sys

from deckrender.config import get_settings
from deckrender.dsl.schema import OutputFormat, RenderOptions
from deckrender.errors import DeckError
from deckrender.pipeline.orchestrator import Pipeline

logger = logging.getLogger("deckrender.cli")


def build_parser() -> argparse.ArgumentParser:
    settings = get_settings()
    parser = argparse.ArgumentParser(prog="deckrender", description="Render a deck DSL file")
    parser.add_argument("input", help="Deck DSL file (.dsh) or compiled deck XML (.xml)")
    parser.add_argument(
        "-f", "--format",
        default="svg",
        help=f"Output format ({', '.join(f.value for f in OutputFormat)})",
    )
    parser.add_argument("-o", "--output", help="Output path (default: input with the format's extension)")
    parser.add_argument("--slide", type=int, default=None, help="0-based slide index")
    parser.add_argument("--layers", default=settings.layers, help="Colon-separated layer order")
    parser.add_argument("--grid", type=float, default=0.0, help="Grid percentage (0 = off)")
    parser.add_argument("--title", default="", help="Document title")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else get_settings().log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        options = RenderOptions(layers=args.layers, grid_percent=args.grid, title=args.title)
        target = Pipeline().render_file(args.input, args.format, args.output, options, args.slide)
    except DeckError as exc:
        print(f"deckrender: {exc}", file=sys.stderr)
        return 1
    except ValueError as exc:
        print(f"deckrender: invalid option: {exc}", file=sys.stderr)
        return 2

    print(target)
    return 0


if __name__ == "__main__":
    sys.exit(main())
