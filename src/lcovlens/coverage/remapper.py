"""Re-attribute coverage of generated files to their original sources.

Each line, function and branch detail of a generated file is translated with
the file's source map (generated line, column 0, least-upper-bound bias).
Details that do not translate are dropped. Translated details are grouped
per original file and the counters are re-derived as they accumulate; the
generated record's own counters are never copied.
"""

from __future__ import annotations

import asyncio
import os
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

import structlog

from lcovlens.core.errors import LcovLensError
from lcovlens.coverage.models import (
    BranchDetail,
    CoverageRecord,
    FunctionDetail,
    LineDetail,
)
from lcovlens.coverage.paths import canonical_path
from lcovlens.sourcemap import Bias, SourceMapConsumer

if TYPE_CHECKING:
    from lcovlens.coverage.context import CoverageContext

logger = structlog.get_logger()


@dataclass(frozen=True, slots=True)
class SourceMapRecord:
    generated_path: str
    source_map_path: str
    consumer: SourceMapConsumer


async def _collect_one(path: str, context: CoverageContext) -> SourceMapRecord | None:
    source_map = await context.locator.locate(path)
    if source_map is None:
        return None
    try:
        consumer = await context.source_maps.get(source_map)
    except LcovLensError as e:
        logger.warning(
            "sourcemap_load_failed",
            generated=path,
            source_map=str(source_map),
            error=str(e),
        )
        return None
    return SourceMapRecord(
        generated_path=path,
        source_map_path=str(source_map),
        consumer=consumer,
    )


async def collect_source_maps(
    paths: Iterable[str],
    context: CoverageContext,
) -> dict[str, SourceMapRecord]:
    """Locate and load the source map of every generated file, concurrently.

    Files without a usable map are left out of the result.
    """
    keys = list(paths)
    found = await asyncio.gather(*(_collect_one(p, context) for p in keys))
    return {key: record for key, record in zip(keys, found, strict=True) if record is not None}


class _Accumulator:
    """Builds remapped records keyed by original file identity."""

    def __init__(self) -> None:
        self.records: dict[str, CoverageRecord] = {}

    def record_for(self, original: str, title: str) -> CoverageRecord:
        record = self.records.get(original)
        if record is None:
            record = CoverageRecord(path=original, title=title)
            self.records[original] = record
        return record


def _original_identity(generated_path: str, source: str) -> str:
    # Source names are relative to the generated file, as in browsers
    return canonical_path(Path(os.path.dirname(generated_path)) / source)


def remap_coverage(
    records: Mapping[str, CoverageRecord],
    source_maps: Mapping[str, SourceMapRecord],
) -> dict[str, CoverageRecord]:
    """Translate every generated record that has a source map.

    Args:
        records: Merged coverage, keyed by generated file identity.
        source_maps: Source maps keyed by the same identities.

    Returns:
        New records keyed by original file identity. Generated files without
        a source map contribute nothing.
    """
    acc = _Accumulator()

    for generated_path, record in records.items():
        sm = source_maps.get(generated_path)
        if sm is None:
            logger.info("remap_skipped_no_sourcemap", generated=generated_path)
            continue

        def translate(line: int, _sm: SourceMapRecord = sm) -> tuple[str, int] | None:
            position = _sm.consumer.original_position_for(line, 0, Bias.LEAST_UPPER_BOUND)
            if position is None:
                return None
            return _original_identity(generated_path, position.source), position.line

        dropped = 0
        for line_detail in record.lines.details:
            target = translate(line_detail.line)
            if target is None:
                dropped += 1
                continue
            original, line = target
            acc.record_for(original, record.title).lines.add(
                LineDetail(line=line, hit=line_detail.hit)
            )

        for fn in record.functions.details:
            target = translate(fn.line)
            if target is None:
                dropped += 1
                continue
            original, line = target
            acc.record_for(original, record.title).functions.add(
                FunctionDetail(line=line, hit=fn.hit, name=fn.name)
            )

        for br in record.branches.details:
            target = translate(br.line)
            if target is None:
                dropped += 1
                continue
            original, line = target
            acc.record_for(original, record.title).branches.add(
                BranchDetail(line=line, block=br.block, branch=br.branch, taken=br.taken)
            )

        if dropped:
            logger.debug("remap_details_dropped", generated=generated_path, count=dropped)

    return acc.records
