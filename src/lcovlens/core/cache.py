"""Modification-time keyed memoisation of per-file derived data.

Design:
- Every ``get`` stats the file (off the event loop) and compares its mtime in
  milliseconds with the cached entry's freshness key
- Equal key returns the cached value object itself; anything else recomputes
  and replaces the entry (never merges)
- Stat failures raise and are never cached, so a file that reappears is
  picked up on the next call
- No de-duplication of in-flight work: two racing calls may both produce,
  and the last one to finish owns the entry
"""

from __future__ import annotations

import asyncio
import os
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Generic, TypeVar

import structlog

from lcovlens.core.errors import CoverageError

logger = structlog.get_logger()

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class CacheEntry(Generic[T]):
    value: T
    freshness_key: int  # mtime in ms


def _mtime_ms(path: str) -> int:
    return os.stat(path).st_mtime_ns // 1_000_000


class MtimeCache(ABC, Generic[T]):
    """Abstract cache; subclasses implement ``_produce``."""

    def __init__(self) -> None:
        self._entries: dict[str, CacheEntry[T]] = {}

    async def get(self, path: Path | str) -> T:
        """Return the value for ``path``, recomputing only if its mtime changed.

        Raises:
            LcovLensError: subclass-specific read error when the file cannot be
                stat'ed, or whatever ``_produce`` raises.
        """
        fs_path = os.path.abspath(os.fspath(path))
        loop = asyncio.get_running_loop()
        try:
            key = await loop.run_in_executor(None, _mtime_ms, fs_path)
        except OSError as e:
            raise self._stat_error(fs_path, e) from e

        entry = self._entries.get(fs_path)
        if entry is not None and entry.freshness_key == key:
            logger.debug("cache_hit", path=fs_path, cache=type(self).__name__)
            return entry.value

        value = await self._produce(fs_path)
        self._entries[fs_path] = CacheEntry(value=value, freshness_key=key)
        return value

    def invalidate(self, path: Path | str) -> None:
        """Drop the entry for one path."""
        self._entries.pop(os.path.abspath(os.fspath(path)), None)

    def __contains__(self, path: object) -> bool:
        if not isinstance(path, (str, Path)):
            return False
        return os.path.abspath(os.fspath(path)) in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def _stat_error(self, path: str, error: OSError) -> Exception:
        return CoverageError.read_error(path, error.strerror or str(error))

    @abstractmethod
    async def _produce(self, path: str) -> T:
        """Compute a fresh value for ``path`` (absolute)."""
        ...
