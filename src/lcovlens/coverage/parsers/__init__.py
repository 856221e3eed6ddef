"""Report parsers.

The LCOV grammar lives here, behind the ``CoverageParser`` protocol, so the
loader can be handed any parser producing ``CoverageRecord`` lists.
"""

from lcovlens.coverage.parsers.base import CoverageParser
from lcovlens.coverage.parsers.lcov import LcovParser

__all__ = [
    "CoverageParser",
    "LcovParser",
]
