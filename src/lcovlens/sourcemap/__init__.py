"""Source map discovery and decoding."""

from lcovlens.sourcemap.consumer import (
    Bias,
    OriginalPosition,
    SourceMapConsumer,
    SourceMapConsumerCache,
    decode_vlq,
)
from lcovlens.sourcemap.locator import (
    SOURCE_MAPPING_URL_MARKER,
    SourceMapLocator,
    find_source_map_reference,
)

__all__ = [
    "Bias",
    "OriginalPosition",
    "SOURCE_MAPPING_URL_MARKER",
    "SourceMapConsumer",
    "SourceMapConsumerCache",
    "SourceMapLocator",
    "decode_vlq",
    "find_source_map_reference",
]
