"""Find the source map a generated file points at.

The reference is the text after the last ``//# sourceMappingURL=`` marker,
resolved against the generated file's directory. Lookups are memoised per
generated file for the life of the locator; a generated file that later
changes its reference is only re-read after ``clear()``.
"""

from __future__ import annotations

import asyncio
import os
from pathlib import Path
from urllib.parse import unquote

import structlog

logger = structlog.get_logger()

SOURCE_MAPPING_URL_MARKER = "//# sourceMappingURL="

# References that do not name a file on disk
_UNRESOLVABLE_PREFIXES = ("data:", "http://", "https://")


def _read_text(path: str) -> str:
    with open(path, encoding="utf-8", errors="replace") as f:
        return f.read()


def find_source_map_reference(contents: str) -> str | None:
    """Return the reference after the last marker, or None if absent or empty."""
    start = contents.rfind(SOURCE_MAPPING_URL_MARKER)
    if start == -1:
        return None
    reference = contents[start + len(SOURCE_MAPPING_URL_MARKER) :].strip()
    return reference or None


class SourceMapLocator:
    """Memoised generated file -> source map file lookup."""

    def __init__(self) -> None:
        self._map: dict[str, Path | None] = {}

    async def locate(self, generated_file: Path | str) -> Path | None:
        """Return the source map path for ``generated_file``, or None.

        A missing marker or an unreadable file is a normal outcome: it is
        logged, memoised and reported as None.
        """
        key = os.path.abspath(os.fspath(generated_file))
        if key in self._map:
            return self._map[key]

        logger.debug("sourcemap_lookup", generated=key)
        loop = asyncio.get_running_loop()
        try:
            contents = await loop.run_in_executor(None, _read_text, key)
        except OSError as e:
            logger.warning("sourcemap_generated_unreadable", generated=key, error=str(e))
            self._map[key] = None
            return None

        reference = find_source_map_reference(contents)
        if reference is None:
            logger.warning("sourcemap_missing", generated=key)
            self._map[key] = None
            return None
        if reference.startswith(_UNRESOLVABLE_PREFIXES):
            logger.warning("sourcemap_not_a_file", generated=key, reference=reference[:64])
            self._map[key] = None
            return None

        # The reference is a URL, so escapes like %20 name plain characters
        source_map = Path(os.path.normpath(Path(key).parent / unquote(reference)))
        logger.debug("sourcemap_found", generated=key, source_map=str(source_map))
        self._map[key] = source_map
        return source_map

    def clear(self) -> None:
        self._map.clear()

    def __len__(self) -> int:
        return len(self._map)
