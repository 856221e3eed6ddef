"""Pydantic configuration models with env var support.

Configuration Hierarchy (highest to lowest precedence):
1. Direct kwargs to load_config()
2. Environment variables (LCOVLENS__SECTION__KEY)
3. Workspace YAML (.lcovlens.yaml)
4. Global YAML (~/.config/lcovlens/config.yaml)
5. Built-in defaults (this file)

Environment Variable Format:
    LCOVLENS__<SECTION>__<KEY>=<VALUE>

Examples:
    LCOVLENS__LOGGING__LEVEL=DEBUG
    LCOVLENS__COVERAGE__SOURCE_MAPS=true
    LCOVLENS__WATCHER__DEBOUNCE_SEC=1.0
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from lcovlens.coverage.models import DirectoryRemapRule

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class LogOutputConfig(BaseModel):
    """Single logging output configuration."""

    format: Literal["json", "console"] = "console"
    destination: str = "stderr"  # stderr, stdout, or absolute file path
    level: LogLevel | None = None  # Inherits from parent if None

    @field_validator("destination")
    @classmethod
    def validate_destination(cls, v: str) -> str:
        if v in ("stderr", "stdout"):
            return v
        path = Path(v).expanduser()
        if not path.is_absolute():
            raise ValueError(f"File destination must be absolute path: {v}")
        return str(path)


class LoggingConfig(BaseModel):
    """Logging configuration.

    Env vars:
        LCOVLENS__LOGGING__LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    level: LogLevel = Field(
        default="INFO",
        description="Root log level. DEBUG logs every cache hit and source map lookup.",
    )
    outputs: list[LogOutputConfig] = Field(default_factory=lambda: [LogOutputConfig()])


class CoverageConfig(BaseModel):
    """Coverage sources and remapping.

    Env vars:
        LCOVLENS__COVERAGE__PATHS: JSON list of LCOV files
        LCOVLENS__COVERAGE__OVERWRITING_PATH: LCOV file that overrides all others
        LCOVLENS__COVERAGE__SOURCE_MAPS: Remap generated files via source maps
    """

    paths: list[str] = Field(
        default_factory=lambda: ["coverage/lcov.info"],
        description="LCOV files to load, in order. Later files win when two describe "
        "the same source file.",
    )
    overwriting_path: str | None = Field(
        default=None,
        description="Optional LCOV file loaded after all others, overriding them.",
    )
    source_maps: bool = Field(
        default=False,
        description="Attribute coverage of generated files to their original sources. "
        "Generated files without a discoverable source map are dropped.",
    )
    path_to_replace: str = Field(
        default="",
        description="Prefix of SF: paths to substitute (e.g. a CI checkout directory).",
    )
    replacement_path: str = Field(
        default="",
        description="Replacement for path_to_replace.",
    )
    windowsify_slashes: bool = Field(
        default=False,
        description="Convert forward slashes in SF: paths to backslashes.",
    )

    def directory_rule(self) -> DirectoryRemapRule:
        return DirectoryRemapRule(
            from_prefix=self.path_to_replace,
            to_prefix=self.replacement_path,
            windowsify=self.windowsify_slashes,
        )

    def resolved_paths(self, root: Path) -> list[Path]:
        """Absolute LCOV paths in precedence order (overwriting path last)."""
        raw = [*self.paths]
        if self.overwriting_path:
            raw.append(self.overwriting_path)
        return [(root / Path(p).expanduser()).absolute() for p in raw]


class WatcherConfig(BaseModel):
    """Coverage file watcher configuration.

    Env vars:
        LCOVLENS__WATCHER__DEBOUNCE_SEC: Quiet window before recomputing
        LCOVLENS__WATCHER__POLL_INTERVAL_SEC: Poll interval in polling mode
        LCOVLENS__WATCHER__FORCE_POLLING: Always use mtime polling
    """

    debounce_sec: float = Field(
        default=0.5,
        description="Quiet window before a batch of changes triggers recomputation. "
        "Coverage tools often rewrite the report several times in a row.",
    )
    max_debounce_wait_sec: float = Field(
        default=2.0,
        description="Upper bound on how long a continuous burst can delay recomputation.",
    )
    poll_interval_sec: float = Field(
        default=1.0,
        description="mtime polling interval for cross-filesystem mounts.",
    )
    force_polling: bool = Field(
        default=False,
        description="Use mtime polling even where native notifications work.",
    )

    @field_validator("debounce_sec", "max_debounce_wait_sec", "poll_interval_sec")
    @classmethod
    def validate_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"Must be positive, got {v}")
        return v


class LcovLensConfig(BaseModel):
    """Root configuration for lcovlens."""

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    coverage: CoverageConfig = Field(default_factory=CoverageConfig)
    watcher: WatcherConfig = Field(default_factory=WatcherConfig)
