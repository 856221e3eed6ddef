"""Tests for the LCOV text parser."""

from __future__ import annotations

import pytest

from lcovlens.core.errors import CoverageError, ErrorCode
from lcovlens.coverage.models import BranchDetail, FunctionDetail, LineDetail
from lcovlens.coverage.parsers import LcovParser


@pytest.fixture
def parser() -> LcovParser:
    return LcovParser()


class TestLcovParser:
    """Tests for LcovParser.parse_text."""

    def test_parses_basic_lcov(self, parser: LcovParser) -> None:
        """Counters are derived from the details, one record per SF block."""
        text = """SF:src/main.ts
DA:1,1
DA:2,1
DA:3,0
LF:3
LH:2
end_of_record
SF:src/utils.ts
DA:1,4
LF:1
LH:1
end_of_record
"""
        records = parser.parse_text(text)

        assert [r.path for r in records] == ["src/main.ts", "src/utils.ts"]
        main = records[0]
        assert main.lines.found == 3
        assert main.lines.hit == 2
        assert main.lines.details == [LineDetail(1, 1), LineDetail(2, 1), LineDetail(3, 0)]

    def test_summary_counters_are_not_trusted(self, parser: LcovParser) -> None:
        """LF/LH that disagree with the DA lines are ignored."""
        text = "SF:a.ts\nDA:1,0\nLF:99\nLH:99\nend_of_record\n"

        [record] = parser.parse_text(text)

        assert record.lines.found == 1
        assert record.lines.hit == 0

    def test_parses_branches(self, parser: LcovParser) -> None:
        """BRDA lines keep report order; '-' means not taken."""
        text = "SF:a.ts\nBRDA:5,0,0,1\nBRDA:5,0,1,-\nBRDA:9,1,0,0\nend_of_record\n"

        [record] = parser.parse_text(text)

        assert record.branches.details == [
            BranchDetail(line=5, block=0, branch=0, taken=1),
            BranchDetail(line=5, block=0, branch=1, taken=0),
            BranchDetail(line=9, block=1, branch=0, taken=0),
        ]
        assert record.branches.found == 3
        assert record.branches.hit == 1

    def test_parses_functions(self, parser: LcovParser) -> None:
        """FN gives the line, FNDA the hit count, matched by name."""
        text = (
            "SF:a.ts\nFN:3,alpha\nFN:10,beta\nFNDA:2,alpha\nFNDA:0,beta\n"
            "FNF:2\nFNH:1\nend_of_record\n"
        )

        [record] = parser.parse_text(text)

        assert record.functions.details == [
            FunctionDetail(line=3, hit=2, name="alpha"),
            FunctionDetail(line=10, hit=0, name="beta"),
        ]
        assert record.functions.found == 2
        assert record.functions.hit == 1

    def test_same_name_functions_are_kept_apart(self, parser: LcovParser) -> None:
        """Each FN is its own function; FNDA hits go to same-name entries in FN order."""
        text = "SF:a.ts\nFN:3,helper\nFN:9,helper\nFNDA:1,helper\nFNDA:0,helper\nend_of_record\n"

        [record] = parser.parse_text(text)

        assert record.functions.details == [
            FunctionDetail(line=3, hit=1, name="helper"),
            FunctionDetail(line=9, hit=0, name="helper"),
        ]
        assert record.functions.found == 2
        assert record.functions.hit == 1

    def test_fnda_without_fn_counts_as_function(self, parser: LcovParser) -> None:
        text = "SF:a.ts\nFN:3,main\nFNDA:1,main\nFNDA:4,orphan\nend_of_record\n"

        [record] = parser.parse_text(text)

        assert record.functions.details == [
            FunctionDetail(line=3, hit=1, name="main"),
            FunctionDetail(line=0, hit=4, name="orphan"),
        ]

    def test_function_without_fnda_has_zero_hits(self, parser: LcovParser) -> None:
        [record] = parser.parse_text("SF:a.ts\nFN:3,lonely\nend_of_record\n")
        assert record.functions.details == [FunctionDetail(line=3, hit=0, name="lonely")]

    def test_title_from_tn(self, parser: LcovParser) -> None:
        """TN applies to the following records."""
        records = parser.parse_text("TN:unit\nSF:a.ts\nend_of_record\nSF:b.ts\nend_of_record\n")
        assert [r.title for r in records] == ["unit", "unit"]

    def test_missing_end_of_record(self, parser: LcovParser) -> None:
        """A new SF (or EOF) closes an unterminated record."""
        records = parser.parse_text("SF:a.ts\nDA:1,1\nSF:b.ts\nDA:1,0\n")
        assert [r.path for r in records] == ["a.ts", "b.ts"]
        assert records[1].lines.found == 1

    def test_da_with_checksum(self, parser: LcovParser) -> None:
        [record] = parser.parse_text("SF:a.ts\nDA:7,3,abcdef\nend_of_record\n")
        assert record.lines.details == [LineDetail(7, 3)]

    def test_windows_line_endings(self, parser: LcovParser) -> None:
        [record] = parser.parse_text("SF:a.ts\r\nDA:1,1\r\nend_of_record\r\n")
        assert record.path == "a.ts"
        assert record.lines.hit == 1

    def test_bad_integer_raises_parse_error(self, parser: LcovParser) -> None:
        """Malformed numbers point at the offending line."""
        with pytest.raises(CoverageError) as exc_info:
            parser.parse_text("SF:a.ts\nDA:1,1\nDA:x,1\nend_of_record\n", source="/r/lcov.info")

        error = exc_info.value
        assert error.code == ErrorCode.COVERAGE_PARSE_ERROR
        assert error.details["line"] == 3
        assert error.details["path"] == "/r/lcov.info"

    def test_truncated_brda_raises(self, parser: LcovParser) -> None:
        with pytest.raises(CoverageError):
            parser.parse_text("SF:a.ts\nBRDA:1,0\nend_of_record\n")

    def test_no_records_raises(self, parser: LcovParser) -> None:
        """Text without any SF line is not an LCOV report."""
        with pytest.raises(CoverageError):
            parser.parse_text("this is not lcov\n")
