"""Background tasks for deckrender."""

from deckrender.tasks.watcher import FileWatcher, InFlightSet, WatcherSettings, run_watcher

__all__ = [
    "FileWatcher",
    "InFlightSet",
    "WatcherSettings",
    "run_watcher",
]
