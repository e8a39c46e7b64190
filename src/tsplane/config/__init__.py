"""Config module exports."""

from tsplane.config.loader import load_config
from tsplane.config.models import (
    DiscoveryConfig,
    EngineConfig,
    LoggingConfig,
    LogOutputConfig,
    TsPlaneConfig,
)
from tsplane.config.tsconfig import CompilerOptions, ProjectConfig, load_project_config

__all__ = [
    "load_config",
    "load_project_config",
    "CompilerOptions",
    "DiscoveryConfig",
    "EngineConfig",
    "LoggingConfig",
    "LogOutputConfig",
    "ProjectConfig",
    "TsPlaneConfig",
]
