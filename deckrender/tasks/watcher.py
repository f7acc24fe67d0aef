"""Polling file watcher that re-renders DSL files as they change."""

import asyncio
import logging
import signal
import threading
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, Optional

from deckrender.config import get_settings
from deckrender.dsl.compiler import DSL_EXTENSION
from deckrender.dsl.schema import RenderOptions
from deckrender.pipeline.orchestrator import Pipeline, parse_format, write_output

logger = logging.getLogger("deckrender.watcher")


@dataclass
class WatcherSettings:
    """Watcher configuration."""
    paths: list[str] = field(default_factory=lambda: ["."])
    formats: list[str] = field(default_factory=lambda: ["svg", "png", "pdf"])
    output_dir: str | None = None  # None = beside the source file
    poll_interval: float = 2.0
    freshness_window: float = 10.0
    shutdown_timeout: float = 30.0
    extension: str = DSL_EXTENSION


class InFlightSet:
    """Thread-safe set of paths being rendered, with insert-if-absent."""

    def __init__(self):
        self._items: set[str] = set()
        self._lock = threading.Lock()

    def add(self, key: str) -> bool:
        """Mark `key` in flight. Returns False if it already was."""
        with self._lock:
            if key in self._items:
                return False
            self._items.add(key)
            return True

    def discard(self, key: str) -> None:
        with self._lock:
            self._items.discard(key)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._items

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)


class FileWatcher:
    """Watches directories for fresh DSL files and renders them.

    Each qualifying file gets its own task; a file is never rendered twice
    at the same time.
    """

    def __init__(
        self,
        settings: WatcherSettings | None = None,
        pipeline: Pipeline | None = None,
        options: RenderOptions | None = None,
    ):
        self.settings = settings or WatcherSettings()
        self.pipeline = pipeline or Pipeline()
        self.options = options or RenderOptions()
        self.in_flight = InFlightSet()
        self._tasks: set[asyncio.Task] = set()
        self._stop: asyncio.Event | None = None
        self._running = False
        self._files_rendered = 0

    @property
    def running(self) -> bool:
        return self._running

    def output_path(self, source: Path, fmt: str) -> Path:
        """Where a rendered format of `source` is written."""
        ext = parse_format(fmt).extension
        directory = Path(self.settings.output_dir) if self.settings.output_dir else source.parent
        return directory / f"{source.stem}{ext}"

    def candidates(self, now: float | None = None) -> Iterator[Path]:
        """Yield DSL files whose modification time is inside the freshness window."""
        now = time.time() if now is None else now
        for root in self.settings.paths:
            root_path = Path(root)
            files = [root_path] if root_path.is_file() else sorted(root_path.rglob(f"*{self.settings.extension}"))
            for path in files:
                if path.suffix != self.settings.extension:
                    continue
                try:
                    mtime = path.stat().st_mtime
                except OSError:
                    continue
                if now - mtime <= self.settings.freshness_window:
                    yield path

    def scan_once(self) -> list[Path]:
        """Dispatch a task for every fresh file not already in flight."""
        dispatched = []
        for path in self.candidates():
            key = str(path.resolve())
            if not self.in_flight.add(key):
                continue
            task = asyncio.create_task(self._process(path, key))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)
            dispatched.append(path)
        return dispatched

    async def _process(self, path: Path, key: str) -> None:
        """Compile once, then render every format independently."""
        try:
            logger.info(f"Rendering {path}")
            text = await asyncio.to_thread(path.read_text, encoding="utf-8")
            xml_text = await asyncio.to_thread(self.pipeline.compile, text)
            deck = None
            for fmt in self.settings.formats:
                try:
                    if parse_format(fmt).value == "xml":
                        data = xml_text.encode("utf-8")
                    else:
                        if deck is None:
                            deck = await asyncio.to_thread(self.pipeline.parse, xml_text)
                        data = await asyncio.to_thread(
                            self.pipeline.render_deck, deck, fmt, self.options, None, path.parent,
                        )
                    target = self.output_path(path, fmt)
                    await asyncio.to_thread(write_output, target, data)
                    logger.info(f"Wrote {target}")
                except Exception as exc:
                    logger.error(f"{path}: {fmt} failed: {exc}")
            self._files_rendered += 1
        except Exception as exc:
            logger.error(f"{path}: {exc}")
        finally:
            self.in_flight.discard(key)

    async def run(self) -> None:
        """Poll until stop() is called, then shut down."""
        self._stop = asyncio.Event()
        self._running = True
        logger.info(
            f"Watching {', '.join(self.settings.paths)} for {self.settings.extension} files "
            f"(formats: {', '.join(self.settings.formats)})"
        )
        try:
            while not self._stop.is_set():
                self.scan_once()
                try:
                    await asyncio.wait_for(self._stop.wait(), timeout=self.settings.poll_interval)
                except asyncio.TimeoutError:
                    pass
        except asyncio.CancelledError:
            logger.info("Watcher cancelled")
            raise
        finally:
            await self.shutdown()

    def stop(self) -> None:
        """Stop scanning; in-flight renders are allowed to finish."""
        if self._stop is not None:
            self._stop.set()

    async def shutdown(self) -> None:
        """Wait for in-flight renders, bounded by the shutdown timeout."""
        self._running = False
        pending = set(self._tasks)
        if pending:
            logger.info(f"Waiting for {len(pending)} render(s) to finish...")
            _, still_running = await asyncio.wait(pending, timeout=self.settings.shutdown_timeout)
            if still_running:
                logger.warning(f"Shutdown timeout reached; abandoning {len(still_running)} render(s)")
                for task in still_running:
                    task.cancel()
        logger.info(f"Watcher stopped. Rendered {self._files_rendered} file(s).")


async def run_watcher(
    settings: WatcherSettings | None = None,
    pipeline: Pipeline | None = None,
    options: RenderOptions | None = None,
) -> None:
    """Run the watcher until SIGINT/SIGTERM.

    Args:
        settings: Watcher settings.
        pipeline: Pipeline to render with.
        options: Rendering options for every file.
    """
    watcher = FileWatcher(settings, pipeline, options)

    # Handle signals
    loop = asyncio.get_running_loop()

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, watcher.stop)
        except NotImplementedError:
            # Windows doesn't support add_signal_handler
            pass

    await watcher.run()


def main():
    """CLI entry point for the watcher."""
    import argparse

    config = get_settings()
    parser = argparse.ArgumentParser(description="Re-render deck DSL files as they change")
    parser.add_argument("paths", nargs="*", default=["."], help="Files or directories to watch")
    parser.add_argument("--formats", default="svg,png,pdf", help="Comma-separated output formats")
    parser.add_argument("--output-dir", default=config.output_dir or None, help="Output directory")
    parser.add_argument("--interval", type=float, default=config.poll_interval, help="Poll interval (seconds)")
    parser.add_argument("--window", type=float, default=config.freshness_window, help="Freshness window (seconds)")
    parser.add_argument("--layers", default=config.layers, help="Colon-separated layer order")
    parser.add_argument("--grid", type=float, default=0.0, help="Grid percentage (0 = off)")
    args = parser.parse_args()

    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    settings = WatcherSettings(
        paths=args.paths,
        formats=[f.strip() for f in args.formats.split(",") if f.strip()],
        output_dir=args.output_dir,
        poll_interval=args.interval,
        freshness_window=args.window,
        shutdown_timeout=config.shutdown_timeout,
    )
    options = RenderOptions(layers=args.layers, grid_percent=args.grid)

    asyncio.run(run_watcher(settings, options=options))


if __name__ == "__main__":
    main()
