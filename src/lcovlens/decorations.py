"""Line and branch decorations for one file's coverage.

Branch details are grouped by walking them in report order: each run of
consecutive entries with the same ``block`` is one group, keyed by the line
of its first entry. A line may own several groups. Each group renders as
one glyph per outcome (taken / not taken) and groups are joined with an
em dash. The two-outcome single groups get short labels: " E " when only
the first outcome was taken (else branch missed), " I " when only the
second was (if branch missed).
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum

from lcovlens.coverage.models import BranchDetail, LineDetail

TAKEN_GLYPH = "✓"
NOT_TAKEN_GLYPH = "∅"
GROUP_SEPARATOR = "—"

_SHORT_LABELS = {
    TAKEN_GLYPH + NOT_TAKEN_GLYPH: " E ",
    NOT_TAKEN_GLYPH + TAKEN_GLYPH: " I ",
}


class BranchState(Enum):
    COVERED = "covered"
    MISSED = "missed"
    PARTIAL = "partial"


@dataclass(frozen=True, slots=True)
class BranchDecoration:
    line: int
    state: BranchState
    text: str
    taken: int
    total: int


@dataclass(slots=True)
class LineDecorations:
    covered: list[int] = field(default_factory=list)
    missed: list[int] = field(default_factory=list)


def compute_line_decorations(details: Sequence[LineDetail]) -> LineDecorations:
    """Split line numbers into covered (hit > 0) and missed (hit == 0)."""
    result = LineDecorations()
    for detail in details:
        if detail.hit > 0:
            result.covered.append(detail.line)
        else:
            result.missed.append(detail.line)
    return result


def group_branches(details: Sequence[BranchDetail]) -> dict[int, list[list[BranchDetail]]]:
    """Group consecutive same-block runs, keyed by the first entry's line."""
    groups: dict[int, list[list[BranchDetail]]] = {}
    if not details:
        return groups

    current: list[BranchDetail] = [details[0]]
    for detail in details[1:]:
        if detail.block == current[-1].block:
            current.append(detail)
            continue
        groups.setdefault(current[0].line, []).append(current)
        current = [detail]
    groups.setdefault(current[0].line, []).append(current)
    return groups


def _counts(groups: Sequence[Sequence[BranchDetail]]) -> tuple[int, int]:
    total = sum(len(group) for group in groups)
    taken = sum(1 for group in groups for detail in group if detail.taken > 0)
    return total, taken


def classify_branches(groups: Sequence[Sequence[BranchDetail]]) -> BranchState:
    """Classify all groups of one line."""
    total, taken = _counts(groups)
    if total == taken:
        return BranchState.COVERED
    if taken == 0:
        return BranchState.MISSED
    return BranchState.PARTIAL


def render_branch_label(groups: Sequence[Sequence[BranchDetail]]) -> str:
    pieces = [
        "".join(TAKEN_GLYPH if detail.taken > 0 else NOT_TAKEN_GLYPH for detail in group)
        for group in groups
    ]
    if len(pieces) == 1 and pieces[0] in _SHORT_LABELS:
        return _SHORT_LABELS[pieces[0]]
    return GROUP_SEPARATOR.join(pieces)


def compute_branch_decorations(details: Sequence[BranchDetail]) -> list[BranchDecoration]:
    """One decoration per line that owns at least one branch group, sorted by line."""
    decorations = []
    for line, groups in sorted(group_branches(details).items()):
        total, taken = _counts(groups)
        decorations.append(
            BranchDecoration(
                line=line,
                state=classify_branches(groups),
                text=render_branch_label(groups),
                taken=taken,
                total=total,
            )
        )
    return decorations
