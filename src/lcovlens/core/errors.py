"""lcovlens error types with typed error codes.

Error code ranges:
- 2xxx: Config
- 3xxx: Coverage (LCOV read/parse)
- 4xxx: Source maps
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    """Typed error codes for programmatic handling."""

    # Config (2xxx)
    CONFIG_PARSE_ERROR = 2001
    CONFIG_INVALID_VALUE = 2002

    # Coverage (3xxx)
    COVERAGE_READ_ERROR = 3001
    COVERAGE_PARSE_ERROR = 3002

    # Source maps (4xxx)
    SOURCEMAP_READ_ERROR = 4001
    SOURCEMAP_PARSE_ERROR = 4002


@dataclass(frozen=True, slots=True)
class LcovLensError(Exception):
    """Base error with structured context."""

    code: ErrorCode
    message: str
    retryable: bool = False
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def error_name(self) -> str:
        """String identifier for logging (e.g., 'COVERAGE_PARSE_ERROR')."""
        return self.code.name

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON output."""
        return {
            "code": self.code.value,
            "error": self.error_name,
            "message": self.message,
            "retryable": self.retryable,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.error_name}: {self.message}"


class ConfigError(LcovLensError):
    """Configuration-related errors."""

    @classmethod
    def parse_error(cls, path: str, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_PARSE_ERROR,
            message=f"Failed to parse config at {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def invalid_value(cls, field: str, value: Any, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_INVALID_VALUE,
            message=f"Invalid value for '{field}': {reason}",
            details={"field": field, "value": str(value), "reason": reason},
        )


class CoverageError(LcovLensError):
    """LCOV file could not be read or parsed.

    Read errors are retryable: the file may reappear on the next change event.
    """

    @classmethod
    def read_error(cls, path: str, reason: str) -> "CoverageError":
        return cls(
            code=ErrorCode.COVERAGE_READ_ERROR,
            message=f"Cannot read coverage file {path}: {reason}",
            retryable=True,
            details={"path": path, "reason": reason},
        )

    @classmethod
    def parse_error(cls, path: str, reason: str, line: int | None = None) -> "CoverageError":
        details: dict[str, Any] = {"path": path, "reason": reason}
        if line is not None:
            details["line"] = line
        return cls(
            code=ErrorCode.COVERAGE_PARSE_ERROR,
            message=f"Malformed LCOV data in {path}: {reason}",
            details=details,
        )


class SourceMapError(LcovLensError):
    """Source map could not be read or decoded."""

    @classmethod
    def read_error(cls, path: str, reason: str) -> "SourceMapError":
        return cls(
            code=ErrorCode.SOURCEMAP_READ_ERROR,
            message=f"Cannot read source map {path}: {reason}",
            retryable=True,
            details={"path": path, "reason": reason},
        )

    @classmethod
    def parse_error(cls, path: str, reason: str) -> "SourceMapError":
        return cls(
            code=ErrorCode.SOURCEMAP_PARSE_ERROR,
            message=f"Invalid source map {path}: {reason}",
            details={"path": path, "reason": reason},
        )
