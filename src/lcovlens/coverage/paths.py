"""Directory remapping and canonical file identity.

Reports produced in CI name files by the CI checkout path; the remap rule
rewrites that prefix to the local workspace before the path becomes a
merge key.
"""

from __future__ import annotations

import ntpath
import os
from pathlib import Path

from lcovlens.coverage.models import DirectoryRemapRule


def remap_directory(original: str, from_prefix: str, to_prefix: str, windowsify: bool) -> str:
    """Apply a directory remap to one path string.

    Plain substring replacement of the first occurrence of ``from_prefix``
    (no regex), only when both prefixes are non-empty; then ``/`` becomes
    ``\\`` when ``windowsify`` is set.
    """
    result = original
    if from_prefix and to_prefix:
        result = result.replace(from_prefix, to_prefix, 1)
    if windowsify:
        result = result.replace("/", "\\")
    return result


def apply_rule(original: str, rule: DirectoryRemapRule) -> str:
    return remap_directory(original, rule.from_prefix, rule.to_prefix, rule.windowsify)


def _looks_windows(path: str) -> bool:
    return "\\" in path or (len(path) >= 2 and path[1] == ":" and path[0].isalpha())


def canonical_path(path: str | Path) -> str:
    """Normalized absolute form of a path, used as the merge key.

    Windows-style paths (drive letter or backslashes) are normalized with
    Windows rules whatever the host OS, so windowsified report paths stay
    stable keys.
    """
    raw = os.fspath(path)
    if os.name != "nt" and _looks_windows(raw):
        return ntpath.normpath(raw)
    return os.path.normpath(os.path.abspath(raw))
