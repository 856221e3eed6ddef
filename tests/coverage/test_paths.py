"""Tests for directory remapping and canonical identity."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from lcovlens.coverage.models import DirectoryRemapRule
from lcovlens.coverage.paths import apply_rule, canonical_path, remap_directory


class TestRemapDirectory:
    """Tests for remap_directory."""

    def test_replaces_prefix(self) -> None:
        assert (
            remap_directory("/ci/build/src/a.ts", "/ci/build", "/home/dev/app", False)
            == "/home/dev/app/src/a.ts"
        )

    def test_replaces_first_occurrence_only(self) -> None:
        assert remap_directory("/x/y/x/z", "/x", "/w", False) == "/w/y/x/z"

    def test_plain_substring_not_regex(self) -> None:
        """Regex metacharacters in the prefix are literal."""
        assert remap_directory("/a.b/c", "a.b", "q", False) == "/q/c"
        assert remap_directory("/axb/c", "a.b", "q", False) == "/axb/c"

    def test_matches_anywhere_in_path(self) -> None:
        """The prefix is found as a substring, not anchored at the start."""
        assert remap_directory("file:///ci/a.ts", "/ci", "/dev", False) == "file:///dev/a.ts"

    @pytest.mark.parametrize(("from_prefix", "to_prefix"), [("", "/dev"), ("/ci", ""), ("", "")])
    def test_no_replacement_unless_both_set(self, from_prefix: str, to_prefix: str) -> None:
        assert remap_directory("/ci/a.ts", from_prefix, to_prefix, False) == "/ci/a.ts"

    def test_windowsify_after_replacement(self) -> None:
        """Slashes are converted after the prefix substitution."""
        assert remap_directory("/ci/src/a.ts", "/ci", "C:", True) == "C:\\src\\a.ts"

    def test_windowsify_alone(self) -> None:
        assert remap_directory("src/a.ts", "", "", True) == "src\\a.ts"

    def test_apply_rule(self) -> None:
        rule = DirectoryRemapRule(from_prefix="/ci", to_prefix="/dev")
        assert apply_rule("/ci/a.ts", rule) == "/dev/a.ts"


class TestCanonicalPath:
    """Tests for canonical_path."""

    def test_relative_becomes_absolute(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.chdir(tmp_path)
        assert canonical_path("src/a.ts") == os.path.join(os.getcwd(), "src", "a.ts")

    def test_normalizes_dot_segments(self, tmp_path: Path) -> None:
        messy = f"{tmp_path}/out/../src/./a.ts"
        assert canonical_path(messy) == str(tmp_path / "src" / "a.ts")

    def test_accepts_path_objects(self, tmp_path: Path) -> None:
        assert canonical_path(tmp_path / "a.ts") == str(tmp_path / "a.ts")

    @pytest.mark.skipif(os.name == "nt", reason="POSIX host behavior")
    def test_windows_paths_stay_windows(self) -> None:
        """Windowsified report paths are normalized with Windows rules on any host."""
        assert canonical_path("C:\\proj\\out\\..\\src\\a.ts") == "C:\\proj\\src\\a.ts"
        assert canonical_path("C:/proj/src/a.ts") == "C:\\proj\\src\\a.ts"
