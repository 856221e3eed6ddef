"""Tests for coverage summaries and status text."""

from __future__ import annotations

import json
from pathlib import Path
from types import MappingProxyType

from lcovlens.coverage.models import (
    BranchDetail,
    BranchesCoverage,
    CountPair,
    CoverageRecord,
    FunctionDetail,
    FunctionsCoverage,
    LineDetail,
    LinesCoverage,
)
from lcovlens.coverage.report import (
    build_file_summaries,
    build_report,
    coverage_percent,
    format_status,
)


def _record(path: str) -> CoverageRecord:
    return CoverageRecord(
        path=path,
        lines=LinesCoverage.from_details(
            [LineDetail(1, 1), LineDetail(2, 1), LineDetail(3, 1), LineDetail(4, 1), LineDetail(5, 0)]
        ),
        branches=BranchesCoverage.from_details([BranchDetail(2, 0, 0, 1), BranchDetail(2, 0, 1, 0)]),
        functions=FunctionsCoverage.from_details([FunctionDetail(1, 3, "main")]),
    )


class TestCoveragePercent:
    """Tests for coverage_percent."""

    def test_rounds_to_two_decimals(self) -> None:
        assert coverage_percent(2, 3) == 66.67

    def test_none_when_nothing_found(self) -> None:
        assert coverage_percent(0, 0) is None

    def test_full(self) -> None:
        assert coverage_percent(4, 4) == 100.0


class TestFormatStatus:
    """Tests for format_status."""

    def test_all_categories(self) -> None:
        assert (
            format_status(_record("/w/a.ts"))
            == "Coverage: lines: 80.0% branches: 50.0% functions: 100.0%"
        )

    def test_no_record(self) -> None:
        assert format_status(None) == "Coverage: No Info"

    def test_empty_categories_are_na(self) -> None:
        record = CoverageRecord(path="/w/a.ts", lines=LinesCoverage.from_details([LineDetail(1, 1)]))
        assert format_status(record) == "Coverage: lines: 100.0% branches: n/a functions: n/a"


class TestBuildFileSummaries:
    """Tests for build_file_summaries."""

    def test_sorted_with_relative_paths(self, tmp_path: Path) -> None:
        b = str(tmp_path / "src" / "b.ts")
        a = str(tmp_path / "src" / "a.ts")
        snapshot = MappingProxyType({b: _record(b), a: _record(a)})

        summaries = build_file_summaries(snapshot, tmp_path)

        assert [s.relative_path for s in summaries] == [
            str(Path("src") / "a.ts"),
            str(Path("src") / "b.ts"),
        ]
        assert summaries[0].lines == CountPair(found=5, hit=4)
        assert summaries[0].branches == CountPair(found=2, hit=1)

    def test_outside_workspace_keeps_absolute(self, tmp_path: Path) -> None:
        outside = str(tmp_path / "other" / "x.ts")
        snapshot = MappingProxyType({outside: _record(outside)})

        [summary] = build_file_summaries(snapshot, tmp_path / "workspace")

        assert summary.relative_path == outside


class TestBuildReport:
    """Tests for build_report."""

    def test_totals_and_files(self, tmp_path: Path) -> None:
        a = str(tmp_path / "a.ts")
        b = str(tmp_path / "b.ts")
        snapshot = MappingProxyType({a: _record(a), b: _record(b)})

        report = build_report(snapshot, tmp_path)

        summary = report["summary"]
        assert summary["total_files"] == 2
        assert summary["total_lines"] == 10
        assert summary["covered_lines"] == 8
        assert summary["line_coverage_percent"] == 80.0
        assert summary["branch_coverage_percent"] == 50.0
        assert summary["function_coverage_percent"] == 100.0
        assert [f["relative_path"] for f in report["files"]] == ["a.ts", "b.ts"]
        assert report["files"][0]["lines"] == {"found": 5, "hit": 4, "percent": 80.0}
        json.dumps(report)

    def test_empty_snapshot(self, tmp_path: Path) -> None:
        report = build_report(MappingProxyType({}), tmp_path)
        assert report["summary"]["total_files"] == 0
        assert report["summary"]["line_coverage_percent"] is None
        assert report["files"] == []
