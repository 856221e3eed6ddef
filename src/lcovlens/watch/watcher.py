"""Watcher for the configured LCOV files, using watchfiles.

Design:
- Watches only the parent directories of the configured files, with
  recursive=False (one inotify watch per directory)
- Events are filtered down to exactly the configured files; created,
  modified and deleted all count as a change
- Sliding-window debounce batches rapid rewrites (coverage tools often write
  the report in several steps); a max wait caps the delay under constant churn
- Falls back to mtime polling of the configured files for cross-filesystem
  mounts (WSL /mnt/*, network drives) or when forced
- A report directory that does not exist yet is polled as well, so the
  report is picked up once a coverage run creates it
"""

from __future__ import annotations

import asyncio
import contextlib
import os
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from pathlib import Path

import structlog
from watchfiles import Change, awatch

logger = structlog.get_logger()

# Debouncing configuration
DEBOUNCE_WINDOW_SEC = 0.5  # Sliding window for batching rapid changes
MAX_DEBOUNCE_WAIT_SEC = 2.0  # Maximum wait before forcing flush


def _is_cross_filesystem(path: Path) -> bool:
    """Detect if path is on a cross-filesystem mount (WSL /mnt/*, network drives, etc.)."""
    path_str = str(path.resolve())
    # WSL accessing Windows filesystem: /mnt/c/, /mnt/d/, etc.
    # Must be single letter followed by / (not /mnt/data/ which is a regular mount)
    if (
        path_str.startswith("/mnt/")
        and len(path_str) > 6
        and path_str[5].isalpha()
        and path_str[6] == "/"
    ):
        return True
    return path_str.startswith(("/run/user/", "/media/", "/net/"))


def _stat_mtime(path: Path) -> int | None:
    try:
        return path.stat().st_mtime_ns
    except OSError:
        return None


@dataclass
class CoverageFileWatcher:
    """
    Async watcher for a fixed set of coverage files with sliding-window debouncing.

    ``on_change`` receives the batch of configured files that changed. It is
    called on the event loop thread.
    """

    paths: Sequence[Path]
    on_change: Callable[[list[Path]], object]
    poll_interval: float = 1.0  # Seconds between mtime polls
    debounce_window: float = DEBOUNCE_WINDOW_SEC
    max_debounce_wait: float = MAX_DEBOUNCE_WAIT_SEC
    force_polling: bool = False

    _files: frozenset[Path] = field(init=False)
    _watch_task: asyncio.Task[None] | None = field(default=None, init=False)
    _stop_event: asyncio.Event = field(default_factory=asyncio.Event, init=False)
    # Debouncing state
    _pending_changes: set[Path] = field(default_factory=set, init=False)
    _last_change_time: float = field(default=0.0, init=False)
    _first_change_time: float = field(default=0.0, init=False)
    _debounce_task: asyncio.Task[None] | None = field(default=None, init=False)

    def __post_init__(self) -> None:
        self._files = frozenset(Path(os.path.abspath(p)) for p in self.paths)

    @property
    def watch_dirs(self) -> list[Path]:
        """Existing parent directories of the configured files."""
        return sorted({p.parent for p in self._files if p.parent.is_dir()})

    @property
    def missing_dirs(self) -> list[Path]:
        """Parent directories that do not exist (yet)."""
        return sorted({p.parent for p in self._files if not p.parent.is_dir()})

    @property
    def uses_polling(self) -> bool:
        """True when native notifications cannot cover every configured file.

        A missing report directory cannot be watched until it is created, so
        it forces polling just like a cross-filesystem mount does.
        """
        if self.force_polling or self.missing_dirs:
            return True
        return any(_is_cross_filesystem(d) for d in self.watch_dirs)

    async def start(self) -> None:
        """Start watching for file changes."""
        if self._watch_task is not None:
            return

        self._stop_event.clear()
        if self.uses_polling:
            self._watch_task = asyncio.create_task(self._poll_loop())
            mode = "polling"
        else:
            self._watch_task = asyncio.create_task(self._watch_loop())
            mode = "native_nonrecursive"
        logger.info(
            "coverage_watcher_started",
            files=len(self._files),
            mode=mode,
            debounce_window=self.debounce_window,
        )

    async def stop(self) -> None:
        """Stop watching; pending changes are flushed first."""
        self._stop_event.set()

        if self._debounce_task is not None:
            if not self._debounce_task.done():
                self._debounce_task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await self._debounce_task
            self._debounce_task = None

        if self._pending_changes:
            self._flush_pending()

        if self._watch_task is not None:
            self._watch_task.cancel()
            with contextlib.suppress(asyncio.CancelledError, asyncio.TimeoutError):
                await asyncio.wait_for(self._watch_task, timeout=2.0)
            self._watch_task = None

        logger.info("coverage_watcher_stopped")

    def _queue_change(self, path: Path) -> None:
        """Queue a change for debounced delivery."""
        now = time.monotonic()

        if not self._pending_changes:
            self._first_change_time = now

        self._pending_changes.add(path)
        self._last_change_time = now

    def _should_flush(self) -> bool:
        if not self._pending_changes:
            return False

        now = time.monotonic()
        time_since_last = now - self._last_change_time
        time_since_first = now - self._first_change_time

        # Flush if quiet window elapsed OR max wait exceeded
        return time_since_last >= self.debounce_window or time_since_first >= self.max_debounce_wait

    def _flush_pending(self) -> None:
        if not self._pending_changes:
            return

        paths = sorted(self._pending_changes)
        self._pending_changes.clear()
        self._first_change_time = 0.0
        self._last_change_time = 0.0

        logger.info("coverage_files_changed", count=len(paths), paths=[str(p) for p in paths])
        self.on_change(paths)

    async def _debounce_flush_loop(self) -> None:
        """Background task that flushes when debounce window elapses."""
        try:
            while not self._stop_event.is_set():
                await asyncio.sleep(0.1)  # Check every 100ms

                if self._should_flush():
                    self._flush_pending()
        except asyncio.CancelledError:
            pass

    def _handle_changes(self, changes: set[tuple[Change, str]]) -> int:
        """Queue the configured files among ``changes``; returns how many were queued."""
        queued = 0
        for change_type, path_str in changes:
            path = Path(os.path.abspath(path_str))
            if path not in self._files:
                continue
            self._queue_change(path)
            queued += 1
            logger.debug("coverage_file_queued", path=str(path), change_type=change_type.name)
        return queued

    async def _watch_loop(self) -> None:
        """Watch loop using watchfiles with one non-recursive watch per parent dir."""
        self._debounce_task = asyncio.create_task(self._debounce_flush_loop())

        try:
            while not self._stop_event.is_set():
                missing = self.missing_dirs
                if missing:
                    # A report directory was removed; polling sees it come back
                    logger.info(
                        "coverage_watcher_polling_fallback",
                        missing=[str(d) for d in missing],
                    )
                    await self._poll_until_stopped()
                    return

                watch_dirs = self.watch_dirs

                try:
                    async for changes in awatch(
                        *watch_dirs,
                        recursive=False,
                        step=200,
                        rust_timeout=10_000,
                        stop_event=self._stop_event,
                        ignore_permission_denied=True,
                    ):
                        self._handle_changes(changes)
                except asyncio.CancelledError:
                    raise
                except Exception as e:
                    if self._stop_event.is_set():
                        return
                    logger.error("watcher_error", error=str(e))
                    # Brief backoff before retry
                    await asyncio.sleep(1.0)
        except asyncio.CancelledError:
            pass
        finally:
            if self._debounce_task:
                self._debounce_task.cancel()

    def _scan_mtimes(self) -> dict[Path, int | None]:
        return {path: _stat_mtime(path) for path in self._files}

    async def _poll_until_stopped(self) -> None:
        mtimes = self._scan_mtimes()
        while not self._stop_event.is_set():
            await asyncio.sleep(self.poll_interval)

            current = self._scan_mtimes()
            # None -> value is a create, value -> None a delete
            for path, mtime in current.items():
                if mtime != mtimes.get(path):
                    self._queue_change(path)
            mtimes = current

    async def _poll_loop(self) -> None:
        """Poll loop using mtime checks (cross-filesystem mounts, missing directories)."""
        self._debounce_task = asyncio.create_task(self._debounce_flush_loop())

        try:
            await self._poll_until_stopped()
        finally:
            if self._debounce_task:
                self._debounce_task.cancel()
