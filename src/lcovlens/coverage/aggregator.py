"""Coverage aggregator: loads, merges, remaps and publishes one snapshot.

Design:
- Each refresh is one computation tagged with a monotonically increasing
  generation; only the newest generation may publish, a stale one is logged
  and discarded
- Merge walks the configured LCOV files in order, later files override
  earlier ones per file identity (the overwriting path is configured last)
- A failing computation keeps the previous snapshot
- The snapshot is a read-only mapping replaced in a single assignment
"""

from __future__ import annotations

import asyncio
import os
from collections.abc import Callable, Iterable, Sequence
from enum import Enum
from pathlib import Path
from types import MappingProxyType

import structlog

from lcovlens.core.logging import clear_computation_id, set_computation_id
from lcovlens.coverage.context import CoverageContext
from lcovlens.coverage.loader import load_many
from lcovlens.coverage.models import (
    CoverageRecord,
    DirectoryRemapRule,
    FileSummary,
    LoadResult,
    Snapshot,
)
from lcovlens.coverage.paths import canonical_path
from lcovlens.coverage.remapper import collect_source_maps, remap_coverage
from lcovlens.coverage.report import build_file_summaries

logger = structlog.get_logger()

_EMPTY: Snapshot = MappingProxyType({})


class AggregatorState(Enum):
    """Aggregator state."""

    IDLE = "idle"
    PROCESSING = "processing"


def merge_results(results: Iterable[LoadResult]) -> dict[str, CoverageRecord]:
    """Merge load results in order; a later record replaces an earlier one."""
    merged: dict[str, CoverageRecord] = {}
    for result in results:
        if result.records is None:
            continue
        for record in result.records:
            merged[record.path] = record
    return merged


class CoverageAggregator:
    """Owns the published coverage snapshot for a workspace."""

    def __init__(
        self,
        paths: Sequence[Path | str],
        context: CoverageContext | None = None,
        *,
        source_maps: bool = False,
        directory_rule: DirectoryRemapRule | None = None,
    ) -> None:
        self.paths = [os.path.abspath(os.fspath(p)) for p in paths]
        self.context = context or CoverageContext()
        self.source_maps = source_maps
        self.directory_rule = directory_rule or DirectoryRemapRule()

        self._snapshot: Snapshot = _EMPTY
        self._generation = 0
        self._published_generation = 0
        self._running = 0
        self._change_listeners: list[Callable[[], None]] = []
        self._processing_listeners: list[Callable[[bool], None]] = []
        self._tasks: set[asyncio.Task[bool]] = set()

    # -- read API -----------------------------------------------------------

    @property
    def snapshot(self) -> Snapshot:
        return self._snapshot

    @property
    def state(self) -> AggregatorState:
        return AggregatorState.PROCESSING if self._running else AggregatorState.IDLE

    @property
    def is_processing(self) -> bool:
        return self._running > 0

    @property
    def generation(self) -> int:
        """Generation of the snapshot currently published (0 before the first)."""
        return self._published_generation

    def get(self, path: Path | str) -> CoverageRecord | None:
        return self._snapshot.get(canonical_path(path))

    def is_empty(self) -> bool:
        return not self._snapshot

    def summaries(self, workspace_root: Path | str | None = None) -> list[FileSummary]:
        root = workspace_root if workspace_root is not None else os.getcwd()
        return build_file_summaries(self._snapshot, root)

    # -- subscriptions -------------------------------------------------------

    def on_change(self, callback: Callable[[], None]) -> Callable[[], None]:
        """Register a listener called after each publish; returns an unsubscriber."""
        self._change_listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._change_listeners:
                self._change_listeners.remove(callback)

        return unsubscribe

    def on_processing_change(self, callback: Callable[[bool], None]) -> Callable[[], None]:
        self._processing_listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._processing_listeners:
                self._processing_listeners.remove(callback)

        return unsubscribe

    # -- computation ---------------------------------------------------------

    async def refresh(self) -> bool:
        """Run one computation. Returns True if it published a new snapshot."""
        self._generation += 1
        generation = self._generation
        computation_id = set_computation_id()
        self._set_running(+1)
        try:
            logger.info(
                "coverage_refresh_started",
                generation=generation,
                computation_id=computation_id,
                lcov_files=len(self.paths),
            )
            records = await self._compute()
        except Exception:
            logger.exception("coverage_refresh_failed", generation=generation)
            return False
        else:
            if generation < self._generation:
                logger.info(
                    "coverage_refresh_superseded",
                    generation=generation,
                    latest=self._generation,
                )
                return False
            self._publish(records, generation)
            return True
        finally:
            self._set_running(-1)
            clear_computation_id()

    async def _compute(self) -> dict[str, CoverageRecord]:
        results = await load_many(self.paths, self.directory_rule, self.context)
        failed = sum(1 for r in results if not r.ok)
        records = merge_results(results)
        logger.info("coverage_merged", files=len(records), failed_sources=failed)

        if self.source_maps:
            maps = await collect_source_maps(records.keys(), self.context)
            records = remap_coverage(records, maps)
            logger.info("coverage_remapped", files=len(records), source_maps=len(maps))
        return records

    def _publish(self, records: dict[str, CoverageRecord], generation: int) -> None:
        self._snapshot = MappingProxyType(records)
        self._published_generation = generation
        logger.info("coverage_published", generation=generation, files=len(records))
        for callback in list(self._change_listeners):
            try:
                callback()
            except Exception:
                logger.exception("change_listener_failed")

    def _set_running(self, delta: int) -> None:
        was_processing = self.is_processing
        self._running += delta
        if was_processing == self.is_processing:
            return
        for callback in list(self._processing_listeners):
            try:
                callback(self.is_processing)
            except Exception:
                logger.exception("processing_listener_failed")

    # -- watcher entry point -------------------------------------------------

    def handle_paths_changed(self, changed: Iterable[Path | str]) -> bool:
        """Schedule a refresh if any changed path is a configured LCOV file.

        Must be called from the event loop thread. Returns True when a
        refresh was scheduled.
        """
        configured = set(self.paths)
        relevant = [p for p in changed if os.path.abspath(os.fspath(p)) in configured]
        if not relevant:
            return False
        logger.info("coverage_sources_changed", paths=[str(p) for p in relevant])
        task = asyncio.get_running_loop().create_task(self.refresh())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return True

    async def wait_idle(self) -> None:
        """Wait for refreshes scheduled by ``handle_paths_changed``."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))
