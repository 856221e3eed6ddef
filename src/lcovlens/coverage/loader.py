"""LCOV file loading through the modification-time cache."""

from __future__ import annotations

import asyncio
import os
from collections.abc import Sequence
from pathlib import Path
from typing import TYPE_CHECKING

import structlog

from lcovlens.core.errors import CoverageError, LcovLensError
from lcovlens.core.cache import MtimeCache
from lcovlens.coverage.models import CoverageRecord, DirectoryRemapRule, LoadResult
from lcovlens.coverage.parsers import CoverageParser, LcovParser
from lcovlens.coverage.paths import apply_rule, canonical_path

if TYPE_CHECKING:
    from lcovlens.coverage.context import CoverageContext

logger = structlog.get_logger()


def _read_bytes(path: str) -> bytes:
    with open(path, "rb") as f:
        return f.read()


class LcovCache(MtimeCache[LoadResult]):
    """Caches one LoadResult per LCOV file.

    Records come out with their ``path`` already remapped and canonical. The
    directory rule is part of what is cached, so it is fixed per instance.
    """

    def __init__(
        self,
        rule: DirectoryRemapRule | None = None,
        parser: CoverageParser | None = None,
    ) -> None:
        super().__init__()
        self.rule = rule or DirectoryRemapRule()
        self.parser: CoverageParser = parser or LcovParser()

    async def load(self, path: Path | str) -> LoadResult:
        """Like ``get`` but never raises: failures become a result without records."""
        fs_path = os.path.abspath(os.fspath(path))
        try:
            return await self.get(fs_path)
        except LcovLensError as e:
            logger.error("lcov_load_failed", path=fs_path, error=str(e), code=e.error_name)
        except (OSError, ValueError) as e:
            logger.error("lcov_load_failed", path=fs_path, error=str(e))
        return LoadResult(source_path=fs_path, records=None)

    async def _produce(self, path: str) -> LoadResult:
        logger.info("lcov_reading", path=path)
        loop = asyncio.get_running_loop()
        try:
            buf = await loop.run_in_executor(None, _read_bytes, path)
        except OSError as e:
            raise CoverageError.read_error(path, e.strerror or str(e)) from e
        try:
            text = buf.decode("utf-8")
        except UnicodeDecodeError as e:
            raise CoverageError.parse_error(path, f"not UTF-8 text: {e.reason}") from e

        raw_records = self.parser.parse_text(text, source=path)
        records = [self._canonicalize(record) for record in raw_records]
        logger.info("lcov_loaded", path=path, files=len(records))
        return LoadResult(source_path=path, records=records)

    def _canonicalize(self, record: CoverageRecord) -> CoverageRecord:
        record.path = canonical_path(apply_rule(record.path, self.rule))
        return record


async def load_many(
    paths: Sequence[Path | str],
    rule: DirectoryRemapRule,
    context: CoverageContext,
) -> list[LoadResult]:
    """Load every LCOV file concurrently; results keep the input order.

    A path that cannot be loaded yields ``LoadResult(path, None)``; this
    function itself does not raise for per-file problems.
    """
    cache = context.lcov_cache(rule)
    return list(await asyncio.gather(*(cache.load(p) for p in paths)))
