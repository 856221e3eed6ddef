"""LCOV format parser.

LCOV format is a plain text format with records like:
- TN:<test name>
- SF:<source file path>
- DA:<line>,<hit count>[,<checksum>]
- BRDA:<line>,<block>,<branch>,<taken or ->
- FN:<line>,<name>
- FNDA:<hit count>,<name>
- LF/LH/BRF/BRH/FNF/FNH: summary counters (recomputed, not trusted)
- end_of_record
"""

from __future__ import annotations

from dataclasses import dataclass, field

from lcovlens.core.errors import CoverageError
from lcovlens.coverage.models import (
    BranchDetail,
    BranchesCoverage,
    CoverageRecord,
    FunctionDetail,
    FunctionsCoverage,
    LineDetail,
    LinesCoverage,
)

_SUMMARY_PREFIXES = ("LF:", "LH:", "BRF:", "BRH:", "FNF:", "FNH:")


@dataclass
class _PendingFunction:
    line: int
    name: str
    hits: int | None = None  # None until an FNDA claims this entry


@dataclass
class _PendingRecord:
    path: str
    title: str
    lines: list[LineDetail] = field(default_factory=list)
    branches: list[BranchDetail] = field(default_factory=list)
    # One entry per FN, in order
    functions: list[_PendingFunction] = field(default_factory=list)

    def add_function(self, line: int, name: str) -> None:
        self.functions.append(_PendingFunction(line=line, name=name))

    def add_function_hits(self, name: str, hits: int) -> None:
        # Same-name functions (overloads, anonymous callbacks) are matched in FN order
        for entry in self.functions:
            if entry.name == name and entry.hits is None:
                entry.hits = hits
                return
        # FNDA without a matching FN still counts as a function
        self.functions.append(_PendingFunction(line=0, name=name, hits=hits))

    def build(self) -> CoverageRecord:
        functions = [
            FunctionDetail(line=f.line, hit=f.hits or 0, name=f.name) for f in self.functions
        ]
        return CoverageRecord(
            path=self.path,
            title=self.title,
            lines=LinesCoverage.from_details(self.lines),
            functions=FunctionsCoverage.from_details(functions),
            branches=BranchesCoverage.from_details(self.branches),
        )


class LcovParser:
    """Parser for LCOV format coverage files."""

    def parse_text(self, text: str, *, source: str = "<string>") -> list[CoverageRecord]:
        """Parse LCOV text into records, one per ``SF:`` block."""
        records: list[CoverageRecord] = []
        current: _PendingRecord | None = None
        title = ""
        saw_source = False

        for lineno, raw in enumerate(text.splitlines(), start=1):
            line = raw.strip()
            if not line:
                continue

            if line.startswith("TN:"):
                title = line[3:]

            elif line.startswith("SF:"):
                if current is not None:
                    # Missing end_of_record before the next file
                    records.append(current.build())
                current = _PendingRecord(path=line[3:], title=title)
                saw_source = True

            elif line == "end_of_record":
                if current is not None:
                    records.append(current.build())
                current = None

            elif current is None:
                # Data outside an SF: block has no file to belong to
                continue

            elif line.startswith("DA:"):
                parts = line[3:].split(",")
                if len(parts) < 2:
                    raise CoverageError.parse_error(source, f"bad DA record {line!r}", lineno)
                line_num = _to_int(parts[0], source, lineno)
                hits = 0 if parts[1] == "-" else _to_int(parts[1], source, lineno)
                current.lines.append(LineDetail(line=line_num, hit=hits))

            elif line.startswith("BRDA:"):
                parts = line[5:].split(",")
                if len(parts) < 4:
                    raise CoverageError.parse_error(source, f"bad BRDA record {line!r}", lineno)
                current.branches.append(
                    BranchDetail(
                        line=_to_int(parts[0], source, lineno),
                        block=_to_int(parts[1], source, lineno),
                        branch=_to_int(parts[2], source, lineno),
                        # '-' means the enclosing block never ran
                        taken=0 if parts[3] == "-" else _to_int(parts[3], source, lineno),
                    )
                )

            elif line.startswith("FN:"):
                parts = line[3:].split(",", 1)
                if len(parts) < 2:
                    raise CoverageError.parse_error(source, f"bad FN record {line!r}", lineno)
                current.add_function(_to_int(parts[0], source, lineno), parts[1])

            elif line.startswith("FNDA:"):
                parts = line[5:].split(",", 1)
                if len(parts) < 2:
                    raise CoverageError.parse_error(source, f"bad FNDA record {line!r}", lineno)
                current.add_function_hits(parts[1], _to_int(parts[0], source, lineno))

            elif line.startswith(_SUMMARY_PREFIXES):
                _to_int(line.split(":", 1)[1], source, lineno)

        if current is not None:
            records.append(current.build())

        if not saw_source:
            raise CoverageError.parse_error(source, "no SF: records found")

        return records


def _to_int(value: str, source: str, lineno: int) -> int:
    try:
        return int(value)
    except ValueError:
        reason = f"expected integer, got {value!r}"
        raise CoverageError.parse_error(source, reason, lineno) from None
