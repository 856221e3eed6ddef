"""Root conftest.py for test configuration.

Ensures local src/ directory takes priority over any installed packages.
"""

import json
import logging
import sys
from collections.abc import Callable, Iterable, Iterator
from pathlib import Path

import pytest
import structlog

# Insert local src directory at the beginning of sys.path
# This ensures that the local lcovlens package is used, not any installed one
_src_dir = Path(__file__).parent.parent / "src"
if str(_src_dir) not in sys.path:
    sys.path.insert(0, str(_src_dir))

# Force reimport of lcovlens modules if already imported
for module_name in list(sys.modules.keys()):
    if module_name.startswith("lcovlens"):
        del sys.modules[module_name]


def _lcov_record(
    source: str,
    lines: Iterable[tuple[int, int]] = (),
    branches: Iterable[tuple[int, int, int, int | str]] = (),
    functions: Iterable[tuple[int, str, int]] = (),
    title: str = "",
) -> str:
    """Render one LCOV record. functions are (line, name, hits)."""
    out: list[str] = []
    if title:
        out.append(f"TN:{title}")
    out.append(f"SF:{source}")
    fns = list(functions)
    for line, name, _hits in fns:
        out.append(f"FN:{line},{name}")
    for _line, name, hits in fns:
        out.append(f"FNDA:{hits},{name}")
    out.append(f"FNF:{len(fns)}")
    out.append(f"FNH:{sum(1 for f in fns if f[2] > 0)}")
    brs = list(branches)
    for line, block, branch, taken in brs:
        out.append(f"BRDA:{line},{block},{branch},{taken}")
    das = list(lines)
    for line, hits in das:
        out.append(f"DA:{line},{hits}")
    out.append(f"LF:{len(das)}")
    out.append(f"LH:{sum(1 for d in das if d[1] > 0)}")
    out.append("end_of_record")
    return "\n".join(out) + "\n"


@pytest.fixture
def lcov_record() -> Callable[..., str]:
    """Factory rendering one LCOV record as text."""
    return _lcov_record


_B64 = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789+/"


def _vlq(value: int) -> str:
    v = ((-value) << 1) | 1 if value < 0 else value << 1
    out = ""
    while True:
        digit = v & 0x1F
        v >>= 5
        if v:
            digit |= 0x20
        out += _B64[digit]
        if not v:
            return out


def _encode_mappings(lines: dict[int, list[tuple[int, int, int, int]]]) -> str:
    """Encode {generated line: [(gen col, source idx, orig line, orig col)]}, 1-based lines."""
    prev_source = prev_line = prev_col = 0
    encoded: list[str] = []
    for line in range(1, max(lines, default=0) + 1):
        segments = []
        gen_col_prev = 0
        for gen_col, source, orig_line, orig_col in sorted(lines.get(line, [])):
            segments.append(
                _vlq(gen_col - gen_col_prev)
                + _vlq(source - prev_source)
                + _vlq(orig_line - 1 - prev_line)
                + _vlq(orig_col - prev_col)
            )
            gen_col_prev = gen_col
            prev_source, prev_line, prev_col = source, orig_line - 1, orig_col
        encoded.append(",".join(segments))
    return ";".join(encoded)


def _write_source_map(
    generated: Path,
    mappings: dict[int, list[tuple[int, int, int, int]]],
    sources: list[str],
    *,
    source_root: str | None = None,
    generated_lines: int = 20,
) -> Path:
    """Write ``generated`` (with a trailing sourceMappingURL) and its ``.map``."""
    map_path = generated.with_name(generated.name + ".map")
    document: dict[str, object] = {
        "version": 3,
        "file": generated.name,
        "sources": sources,
        "names": [],
        "mappings": _encode_mappings(mappings),
    }
    if source_root is not None:
        document["sourceRoot"] = source_root
    map_path.write_text(json.dumps(document))
    body = "\n".join(f"line{i};" for i in range(1, generated_lines + 1))
    generated.write_text(f"{body}\n//# sourceMappingURL={map_path.name}\n")
    return map_path


@pytest.fixture
def vlq() -> Callable[[int], str]:
    """Base64-VLQ encoder for a single value."""
    return _vlq


@pytest.fixture
def write_source_map() -> Callable[..., Path]:
    """Factory writing a generated file plus its v3 source map."""
    return _write_source_map


@pytest.fixture(autouse=True)
def _reset_logging() -> Iterator[None]:
    """Drop handlers installed by configure_logging so streams don't outlive a test."""
    yield
    structlog.reset_defaults()
    root = logging.getLogger()
    for handler in list(root.handlers):
        if type(handler) in (logging.StreamHandler, logging.FileHandler):
            root.removeHandler(handler)
            handler.close()
