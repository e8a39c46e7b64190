"""Core module exports."""

from tsplane.core.errors import (
    ConfigError,
    ErrorCode,
    FileUnreadableError,
    InternalError,
    MalformedConfigurationError,
    NoConfigurationError,
    TsPlaneError,
    UnsupportedFileError,
)
from tsplane.core.fs import FileSystem, LocalFileSystem, normalize_path
from tsplane.core.logging import (
    clear_request_id,
    configure_logging,
    get_logger,
    get_request_id,
    set_request_id,
)

__all__ = [
    # Errors
    "TsPlaneError",
    "ConfigError",
    "ErrorCode",
    "FileUnreadableError",
    "InternalError",
    "MalformedConfigurationError",
    "NoConfigurationError",
    "UnsupportedFileError",
    # Filesystem
    "FileSystem",
    "LocalFileSystem",
    "normalize_path",
    # Logging
    "clear_request_id",
    "configure_logging",
    "get_logger",
    "get_request_id",
    "set_request_id",
]
