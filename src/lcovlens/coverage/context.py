"""Process-wide caches, created once and handed to every component."""

from __future__ import annotations

from dataclasses import dataclass, field

from lcovlens.coverage.loader import LcovCache
from lcovlens.coverage.models import DirectoryRemapRule
from lcovlens.coverage.parsers import CoverageParser, LcovParser
from lcovlens.sourcemap import SourceMapConsumerCache, SourceMapLocator


@dataclass
class CoverageContext:
    """Holds the LCOV caches (one per directory rule) and the source map caches."""

    parser: CoverageParser = field(default_factory=LcovParser)
    locator: SourceMapLocator = field(default_factory=SourceMapLocator)
    source_maps: SourceMapConsumerCache = field(default_factory=SourceMapConsumerCache)
    _lcov_caches: dict[DirectoryRemapRule, LcovCache] = field(default_factory=dict, init=False)

    def lcov_cache(self, rule: DirectoryRemapRule) -> LcovCache:
        cache = self._lcov_caches.get(rule)
        if cache is None:
            cache = LcovCache(rule, self.parser)
            self._lcov_caches[rule] = cache
        return cache
