"""Config module exports."""

from lcovlens.config.loader import load_config
from lcovlens.config.models import (
    CoverageConfig,
    LcovLensConfig,
    LoggingConfig,
    LogOutputConfig,
    WatcherConfig,
)

__all__ = [
    "load_config",
    "CoverageConfig",
    "LcovLensConfig",
    "LoggingConfig",
    "LogOutputConfig",
    "WatcherConfig",
]
