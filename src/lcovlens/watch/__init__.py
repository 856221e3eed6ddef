"""Coverage file change detection."""

from lcovlens.watch.watcher import CoverageFileWatcher

__all__ = ["CoverageFileWatcher"]
