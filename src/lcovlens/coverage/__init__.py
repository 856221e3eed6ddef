"""Coverage loading, merging and source map remapping.

Usage::

    aggregator = CoverageAggregator(["coverage/lcov.info"], CoverageContext())
    await aggregator.refresh()
    record = aggregator.get("src/app.ts")
"""

from lcovlens.coverage.aggregator import AggregatorState, CoverageAggregator, merge_results
from lcovlens.coverage.context import CoverageContext
from lcovlens.coverage.loader import LcovCache, load_many
from lcovlens.coverage.models import (
    BranchDetail,
    BranchesCoverage,
    CountPair,
    CoverageRecord,
    DirectoryRemapRule,
    FileSummary,
    FunctionDetail,
    FunctionsCoverage,
    LineDetail,
    LinesCoverage,
    LoadResult,
    Snapshot,
)
from lcovlens.coverage.paths import apply_rule, canonical_path, remap_directory
from lcovlens.coverage.remapper import SourceMapRecord, collect_source_maps, remap_coverage
from lcovlens.coverage.report import (
    build_file_summaries,
    build_report,
    coverage_percent,
    format_status,
)

__all__ = [
    # Models
    "BranchDetail",
    "BranchesCoverage",
    "CountPair",
    "CoverageRecord",
    "DirectoryRemapRule",
    "FileSummary",
    "FunctionDetail",
    "FunctionsCoverage",
    "LineDetail",
    "LinesCoverage",
    "LoadResult",
    "Snapshot",
    # Paths
    "apply_rule",
    "canonical_path",
    "remap_directory",
    # Loading
    "LcovCache",
    "load_many",
    # Remapping
    "SourceMapRecord",
    "collect_source_maps",
    "remap_coverage",
    # Aggregation
    "AggregatorState",
    "CoverageAggregator",
    "CoverageContext",
    "merge_results",
    # Report
    "build_file_summaries",
    "build_report",
    "coverage_percent",
    "format_status",
]
