"""Coverage data model.

One CoverageRecord per source file mentioned in an LCOV report. Every
counter block keeps the invariant ``found == len(details)`` and
``hit == count(details with hits > 0)``; build blocks with ``from_details``
or the accumulating ``add`` methods so the counters are derived, never copied.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class LineDetail:
    """Hit count for one instrumented line (``DA:``)."""

    line: int
    hit: int


@dataclass(frozen=True, slots=True)
class FunctionDetail:
    """Call count for one function (``FN:`` + ``FNDA:``)."""

    line: int
    hit: int
    name: str


@dataclass(frozen=True, slots=True)
class BranchDetail:
    """One outcome of one decision point (``BRDA:``).

    ``taken`` is 0 both for "never taken" and for LCOV's ``-``
    (block never executed).
    """

    line: int
    block: int
    branch: int
    taken: int


@dataclass(slots=True)
class LinesCoverage:
    found: int = 0
    hit: int = 0
    details: list[LineDetail] = field(default_factory=list)

    @classmethod
    def from_details(cls, details: Iterable[LineDetail]) -> LinesCoverage:
        block = cls()
        for detail in details:
            block.add(detail)
        return block

    def add(self, detail: LineDetail) -> None:
        self.details.append(detail)
        self.found += 1
        if detail.hit > 0:
            self.hit += 1


@dataclass(slots=True)
class FunctionsCoverage:
    found: int = 0
    hit: int = 0
    details: list[FunctionDetail] = field(default_factory=list)

    @classmethod
    def from_details(cls, details: Iterable[FunctionDetail]) -> FunctionsCoverage:
        block = cls()
        for detail in details:
            block.add(detail)
        return block

    def add(self, detail: FunctionDetail) -> None:
        self.details.append(detail)
        self.found += 1
        if detail.hit > 0:
            self.hit += 1


@dataclass(slots=True)
class BranchesCoverage:
    found: int = 0
    hit: int = 0
    details: list[BranchDetail] = field(default_factory=list)

    @classmethod
    def from_details(cls, details: Iterable[BranchDetail]) -> BranchesCoverage:
        block = cls()
        for detail in details:
            block.add(detail)
        return block

    def add(self, detail: BranchDetail) -> None:
        self.details.append(detail)
        self.found += 1
        if detail.taken > 0:
            self.hit += 1


@dataclass(slots=True)
class CoverageRecord:
    """Coverage data for a single source file.

    ``path`` is the canonical file identity once the loader has processed the
    record; parsers fill it with the raw ``SF:`` value.
    """

    path: str
    title: str = ""
    lines: LinesCoverage = field(default_factory=LinesCoverage)
    functions: FunctionsCoverage = field(default_factory=FunctionsCoverage)
    branches: BranchesCoverage = field(default_factory=BranchesCoverage)


@dataclass(frozen=True, slots=True)
class LoadResult:
    """Outcome of loading one LCOV file.

    ``records`` is None when the file could not be read or parsed. Callers
    treat that as "no data for this source", not as a fatal condition.
    """

    source_path: str
    records: list[CoverageRecord] | None

    @property
    def ok(self) -> bool:
        return self.records is not None


@dataclass(frozen=True, slots=True)
class DirectoryRemapRule:
    """Prefix substitution applied to every ``SF:`` path before canonicalisation."""

    from_prefix: str = ""
    to_prefix: str = ""
    windowsify: bool = False


@dataclass(frozen=True, slots=True)
class CountPair:
    found: int
    hit: int


@dataclass(frozen=True, slots=True)
class FileSummary:
    """Per-file counters for report and status displays."""

    path: str
    relative_path: str
    lines: CountPair
    branches: CountPair
    functions: CountPair


# Canonical identity -> record. Published as a read-only mapping.
Snapshot = Mapping[str, CoverageRecord]
