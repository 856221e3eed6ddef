"""Coverage parser protocol."""

from typing import Protocol

from lcovlens.coverage.models import CoverageRecord


class CoverageParser(Protocol):
    """Protocol for report parsers.

    The loader owns reading, caching and path canonicalisation; a parser only
    turns report text into records whose ``path`` is the raw value found in
    the report.
    """

    def parse_text(self, text: str, *, source: str = "<string>") -> list[CoverageRecord]:
        """Parse report text into records, in report order.

        Args:
            text: Full report content.
            source: Name of the report, used in error messages.

        Raises:
            CoverageError: If the content is not a valid report.
        """
        ...
