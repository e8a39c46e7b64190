"""Pydantic configuration models with env var support.

Configuration Hierarchy (highest to lowest precedence):
1. Direct kwargs to load_config()
2. Environment variables (TSPLANE__SECTION__KEY)
3. Global YAML (~/.config/tsplane/config.yaml)
4. Built-in defaults (this file)

Environment Variable Format:
    TSPLANE__<SECTION>__<KEY>=<VALUE>

Examples:
    TSPLANE__LOGGING__LEVEL=DEBUG
    TSPLANE__ENGINE__MAX_FILE_SIZE_MB=4

These settings govern the workspace itself. Per-project compiler options
live in each project's tsconfig.json (see ``tsplane.config.tsconfig``).
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

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
        TSPLANE__LOGGING__LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    level: LogLevel = Field(
        default="INFO",
        description="Root log level. DEBUG logs every track and registry lookup.",
    )
    outputs: list[LogOutputConfig] = Field(default_factory=lambda: [LogOutputConfig()])


class DiscoveryConfig(BaseModel):
    """Project discovery configuration.

    Env vars:
        TSPLANE__DISCOVERY__CONFIG_MARKERS: JSON list of marker file names
    """

    config_markers: list[str] = Field(
        default_factory=lambda: ["tsconfig.json"],
        description="File names that mark a directory as a project root. "
        "Checked in order within each directory.",
    )

    @field_validator("config_markers")
    @classmethod
    def validate_markers(cls, v: list[str]) -> list[str]:
        if not v:
            raise ValueError("At least one config marker is required")
        for name in v:
            if not name or "/" in name or "\\" in name:
                raise ValueError(f"Config marker must be a bare file name: {name!r}")
        return v


class EngineConfig(BaseModel):
    """Analysis engine configuration.

    Env vars:
        TSPLANE__ENGINE__MAX_FILE_SIZE_MB: Refuse to track files larger than this
        TSPLANE__ENGINE__DEFAULT_NEW_LINE: lf or crlf when a project sets none
    """

    max_file_size_mb: int = Field(
        default=10,
        description="Files larger than this (MB) are reported as unreadable.",
    )
    default_new_line: Literal["lf", "crlf"] | None = Field(
        default=None,
        description="Newline for emitted output when compilerOptions.newLine is unset. "
        "None uses the platform convention.",
    )

    @field_validator("max_file_size_mb")
    @classmethod
    def validate_max_file_size(cls, v: int) -> int:
        if v <= 0:
            raise ValueError(f"max_file_size_mb must be positive, got {v}")
        return v

    @property
    def max_file_size_bytes(self) -> int:
        return self.max_file_size_mb * 1024 * 1024


class TsPlaneConfig(BaseModel):
    """Root configuration model."""

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    discovery: DiscoveryConfig = Field(default_factory=DiscoveryConfig)
    engine: EngineConfig = Field(default_factory=EngineConfig)
