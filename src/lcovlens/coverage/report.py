"""Per-file summaries and status text derived from a coverage snapshot.

Output schema for build_report:
{
    "summary": {
        "total_files": int,
        "total_lines": int,
        "covered_lines": int,
        "line_coverage_percent": float | null,
        "total_branches": int,
        "covered_branches": int,
        "branch_coverage_percent": float | null,
        "total_functions": int,
        "covered_functions": int,
        "function_coverage_percent": float | null
    },
    "files": [
        {
            "path": str,
            "relative_path": str,
            "lines": {"found": int, "hit": int, "percent": float | null},
            "branches": {...},
            "functions": {...}
        },
        ...
    ]
}
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from lcovlens.coverage.models import CountPair, CoverageRecord, FileSummary, Snapshot


def coverage_percent(hit: int, found: int) -> float | None:
    """Percentage rounded to 2 decimals; None when nothing was found."""
    if found <= 0:
        return None
    return round(hit / found * 100.0, 2)


def _relative(path: str, root: str) -> str:
    try:
        rel = os.path.relpath(path, root)
    except ValueError:
        # Different drive on Windows
        return path
    return path if rel.startswith("..") else rel


def summarize_record(record: CoverageRecord, workspace_root: Path | str) -> FileSummary:
    return FileSummary(
        path=record.path,
        relative_path=_relative(record.path, os.fspath(workspace_root)),
        lines=CountPair(record.lines.found, record.lines.hit),
        branches=CountPair(record.branches.found, record.branches.hit),
        functions=CountPair(record.functions.found, record.functions.hit),
    )


def build_file_summaries(snapshot: Snapshot, workspace_root: Path | str) -> list[FileSummary]:
    """One FileSummary per record, sorted by path.

    Files outside the workspace keep their absolute path as relative_path.
    """
    return [summarize_record(snapshot[path], workspace_root) for path in sorted(snapshot)]


def _format_percent(pair: CountPair) -> str:
    percent = coverage_percent(pair.hit, pair.found)
    return "n/a" if percent is None else f"{percent}%"


def format_status(record: CoverageRecord | None) -> str:
    """Status line for one file, e.g. ``Coverage: lines: 80.0% branches: 50.0% ...``."""
    if record is None:
        return "Coverage: No Info"
    lines = _format_percent(CountPair(record.lines.found, record.lines.hit))
    branches = _format_percent(CountPair(record.branches.found, record.branches.hit))
    functions = _format_percent(CountPair(record.functions.found, record.functions.hit))
    return f"Coverage: lines: {lines} branches: {branches} functions: {functions}"


def _pair_dict(pair: CountPair) -> dict[str, Any]:
    return {
        "found": pair.found,
        "hit": pair.hit,
        "percent": coverage_percent(pair.hit, pair.found),
    }


_SINGULAR = {"lines": "line", "branches": "branch", "functions": "function"}


def build_report(snapshot: Snapshot, workspace_root: Path | str) -> dict[str, Any]:
    """Build a JSON-serialisable report of the whole snapshot.

    Args:
        snapshot: Published coverage snapshot.
        workspace_root: Directory that ``relative_path`` is computed against.

    Returns:
        Dict with an overall ``summary`` and a ``files`` list sorted by path.
    """
    summaries = build_file_summaries(snapshot, workspace_root)

    # kind -> [found, hit]
    totals = {"lines": [0, 0], "branches": [0, 0], "functions": [0, 0]}
    for summary in summaries:
        for kind in totals:
            pair: CountPair = getattr(summary, kind)
            totals[kind][0] += pair.found
            totals[kind][1] += pair.hit

    summary_dict: dict[str, Any] = {"total_files": len(summaries)}
    for kind, (found, hit) in totals.items():
        singular = _SINGULAR[kind]
        summary_dict[f"total_{kind}"] = found
        summary_dict[f"covered_{kind}"] = hit
        summary_dict[f"{singular}_coverage_percent"] = coverage_percent(hit, found)

    return {
        "summary": summary_dict,
        "files": [
            {
                "path": s.path,
                "relative_path": s.relative_path,
                "lines": _pair_dict(s.lines),
                "branches": _pair_dict(s.branches),
                "functions": _pair_dict(s.functions),
            }
            for s in summaries
        ],
    }
