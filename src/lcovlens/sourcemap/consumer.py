"""Source map v3 decoding and generated -> original position lookup.

Only what coverage remapping needs is decoded: the ``mappings`` string,
``sources``/``sourceRoot`` and ``names``. Index maps (``sections``) are not
supported and are reported as parse errors.

Coordinates follow the usual consumer API: lines are 1-based, columns are
0-based, on both the generated and the original side.
"""

from __future__ import annotations

import asyncio
import bisect
import json
from dataclasses import dataclass
from enum import Enum
from typing import Any

import structlog

from lcovlens.core.cache import MtimeCache
from lcovlens.core.errors import SourceMapError

logger = structlog.get_logger()

_B64 = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789+/"
_B64_VALUES = {c: i for i, c in enumerate(_B64)}
_VLQ_CONTINUATION = 0x20
_VLQ_MASK = 0x1F


class Bias(Enum):
    """Which mapping to pick when there is no exact match at the column."""

    GREATEST_LOWER_BOUND = "glb"
    LEAST_UPPER_BOUND = "lub"


@dataclass(frozen=True, slots=True)
class OriginalPosition:
    source: str
    line: int
    column: int
    name: str | None = None


@dataclass(frozen=True, slots=True)
class Segment:
    """One decoded segment. ``source`` is None for segments without origin."""

    generated_line: int
    generated_column: int
    source: str | None = None
    original_line: int | None = None
    original_column: int | None = None
    name: str | None = None


def decode_vlq(segment: str) -> list[int]:
    """Decode one Base64-VLQ segment into its signed integers.

    Raises:
        ValueError: On characters outside the Base64 alphabet or a truncated value.
    """
    values: list[int] = []
    shift = 0
    value = 0
    for char in segment:
        digit = _B64_VALUES.get(char)
        if digit is None:
            raise ValueError(f"invalid base64 character {char!r}")
        value += (digit & _VLQ_MASK) << shift
        if digit & _VLQ_CONTINUATION:
            shift += 5
            continue
        negative = value & 1
        value >>= 1
        values.append(-value if negative else value)
        shift = 0
        value = 0
    if shift:
        raise ValueError(f"truncated VLQ segment {segment!r}")
    return values


def _decode_mappings(mappings: str, sources: list[str], names: list[str]) -> list[Segment]:
    """Decode the ``mappings`` field; output is sorted by generated position."""
    result: list[Segment] = []
    source_index = 0
    original_line = 0
    original_column = 0
    name_index = 0

    for line_index, line in enumerate(mappings.split(";")):
        generated_column = 0
        line_mappings: list[Segment] = []
        for segment in line.split(","):
            if not segment:
                continue
            fields = decode_vlq(segment)
            if len(fields) not in (1, 4, 5):
                raise ValueError(f"segment {segment!r} has {len(fields)} fields")
            generated_column += fields[0]
            if len(fields) == 1:
                line_mappings.append(Segment(line_index + 1, generated_column))
                continue

            source_index += fields[1]
            original_line += fields[2]
            original_column += fields[3]
            name: str | None = None
            if len(fields) == 5:
                name_index += fields[4]
                name = names[name_index] if 0 <= name_index < len(names) else None
            if not 0 <= source_index < len(sources):
                raise ValueError(f"source index {source_index} out of range")
            line_mappings.append(
                Segment(
                    generated_line=line_index + 1,
                    generated_column=generated_column,
                    source=sources[source_index],
                    original_line=original_line + 1,
                    original_column=original_column,
                    name=name,
                )
            )
        line_mappings.sort(key=lambda m: m.generated_column)
        result.extend(line_mappings)
    return result


class SourceMapConsumer:
    """Coordinate translator built from one parsed source map."""

    def __init__(self, mappings: list[Segment], sources: list[str], file: str | None = None):
        self._mappings = mappings
        self._keys = [(m.generated_line, m.generated_column) for m in mappings]
        self.sources = sources
        self.file = file

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SourceMapConsumer:
        """Build from a decoded JSON document.

        Raises:
            ValueError: If the document is not a usable v3 source map.
        """
        if not isinstance(data, dict):
            raise ValueError("source map must be a JSON object")
        if "sections" in data:
            raise ValueError("index source maps are not supported")
        if data.get("version") != 3:
            raise ValueError(f"unsupported source map version {data.get('version')!r}")
        raw_sources = data.get("sources")
        mappings = data.get("mappings")
        if not isinstance(raw_sources, list) or not isinstance(mappings, str):
            raise ValueError("'sources' and 'mappings' are required")

        source_root = data.get("sourceRoot") or ""
        sources = [_join_root(source_root, str(s)) for s in raw_sources]
        names = [str(n) for n in data.get("names") or []]
        return cls(_decode_mappings(mappings, sources, names), sources, data.get("file"))

    @classmethod
    def from_json(cls, text: str) -> SourceMapConsumer:
        # Maps served to browsers may start with an XSSI guard line
        if text.startswith(")]}'"):
            text = text.split("\n", 1)[1] if "\n" in text else ""
        return cls.from_dict(json.loads(text))

    def original_position_for(
        self,
        line: int,
        column: int = 0,
        bias: Bias = Bias.LEAST_UPPER_BOUND,
    ) -> OriginalPosition | None:
        """Translate a generated position; None when nothing on that line maps.

        LEAST_UPPER_BOUND picks the first mapping at or after ``column``,
        GREATEST_LOWER_BOUND the last one at or before it. Either way the
        mapping must be on the same generated line and carry a source.
        """
        needle = (line, column)
        if bias is Bias.LEAST_UPPER_BOUND:
            index = bisect.bisect_left(self._keys, needle)
        else:
            index = bisect.bisect_right(self._keys, needle) - 1
        if not 0 <= index < len(self._mappings):
            return None

        mapping = self._mappings[index]
        if mapping.generated_line != line or mapping.source is None:
            return None
        assert mapping.original_line is not None and mapping.original_column is not None
        return OriginalPosition(
            source=mapping.source,
            line=mapping.original_line,
            column=mapping.original_column,
            name=mapping.name,
        )

    def __len__(self) -> int:
        return len(self._mappings)


def _join_root(root: str, source: str) -> str:
    if not root or source.startswith("/") or "://" in source:
        return source
    return root.rstrip("/") + "/" + source


def _read_text(path: str) -> str:
    with open(path, encoding="utf-8") as f:
        return f.read()


class SourceMapConsumerCache(MtimeCache[SourceMapConsumer]):
    """Parsed source maps, reparsed only when the map file's mtime changes."""

    def _stat_error(self, path: str, error: OSError) -> Exception:
        return SourceMapError.read_error(path, error.strerror or str(error))

    async def _produce(self, path: str) -> SourceMapConsumer:
        loop = asyncio.get_running_loop()
        try:
            text = await loop.run_in_executor(None, _read_text, path)
        except OSError as e:
            raise SourceMapError.read_error(path, e.strerror or str(e)) from e
        except UnicodeDecodeError as e:
            raise SourceMapError.parse_error(path, f"not UTF-8 text: {e.reason}") from e

        try:
            consumer = SourceMapConsumer.from_json(text)
        except ValueError as e:
            # json.JSONDecodeError is a ValueError
            raise SourceMapError.parse_error(path, str(e)) from e
        logger.debug("sourcemap_parsed", path=path, mappings=len(consumer))
        return consumer
