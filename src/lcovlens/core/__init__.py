"""Core module exports."""

from lcovlens.core.errors import (
    ConfigError,
    CoverageError,
    ErrorCode,
    LcovLensError,
    SourceMapError,
)
from lcovlens.core.logging import (
    clear_computation_id,
    configure_logging,
    get_computation_id,
    get_logger,
    set_computation_id,
)

__all__ = [
    # Errors
    "ConfigError",
    "CoverageError",
    "ErrorCode",
    "LcovLensError",
    "SourceMapError",
    # Logging
    "clear_computation_id",
    "configure_logging",
    "get_computation_id",
    "get_logger",
    "set_computation_id",
]
