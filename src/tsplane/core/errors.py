"""tsplane error types with typed error codes.

Error code ranges:
- 2xxx: Configuration (workspace settings and project configuration)
- 3xxx: Files
- 9xxx: Internal
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    """Typed error codes for programmatic handling."""

    # Config (2xxx)
    CONFIG_PARSE_ERROR = 2001
    CONFIG_INVALID_VALUE = 2002
    NO_CONFIGURATION = 2101
    MALFORMED_CONFIGURATION = 2102

    # Files (3xxx)
    FILE_UNREADABLE = 3001
    FILE_UNSUPPORTED = 3002

    # Internal (9xxx)
    INTERNAL_ERROR = 9001


@dataclass(frozen=True, slots=True)
class TsPlaneError(Exception):
    """Base error with structured context."""

    code: ErrorCode
    message: str
    retryable: bool = False
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def error_name(self) -> str:
        """String identifier for logging (e.g., 'NO_CONFIGURATION')."""
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


class ConfigError(TsPlaneError):
    """Workspace settings errors (YAML / env / kwargs)."""

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


class NoConfigurationError(TsPlaneError):
    """No ancestor directory of a file holds a project configuration."""

    @classmethod
    def for_file(cls, path: str, markers: list[str]) -> "NoConfigurationError":
        return cls(
            code=ErrorCode.NO_CONFIGURATION,
            message=f"{path} has no associated TypeScript configuration",
            details={"path": path, "markers": list(markers)},
        )


class MalformedConfigurationError(TsPlaneError):
    """Project configuration does not parse into valid options.

    Raised while constructing a session; the session is never cached, so a
    retry after fixing the file succeeds.
    """

    @classmethod
    def parse_error(cls, path: str, reason: str) -> "MalformedConfigurationError":
        return cls(
            code=ErrorCode.MALFORMED_CONFIGURATION,
            message=f"Malformed configuration at {path}: {reason}",
            retryable=True,
            details={"path": path, "reason": reason},
        )

    @classmethod
    def invalid_option(
        cls, path: str, option: str, value: Any, reason: str
    ) -> "MalformedConfigurationError":
        return cls(
            code=ErrorCode.MALFORMED_CONFIGURATION,
            message=f"Invalid compiler option '{option}' in {path}: {reason}",
            retryable=True,
            details={"path": path, "option": option, "value": str(value), "reason": reason},
        )


class FileUnreadableError(TsPlaneError):
    """A tracked or referenced file could not be read."""

    @classmethod
    def for_path(cls, path: str, reason: str) -> "FileUnreadableError":
        return cls(
            code=ErrorCode.FILE_UNREADABLE,
            message=f"Cannot read {path}: {reason}",
            retryable=True,
            details={"path": path, "reason": reason},
        )

    @classmethod
    def too_large(cls, path: str, size: int, limit: int) -> "FileUnreadableError":
        return cls(
            code=ErrorCode.FILE_UNREADABLE,
            message=f"Cannot read {path}: {size} bytes exceeds limit of {limit} bytes",
            details={"path": path, "size": size, "limit": limit},
        )


class UnsupportedFileError(TsPlaneError):
    """The engine has no grammar for a file's extension."""

    @classmethod
    def for_path(cls, path: str, extension: str) -> "UnsupportedFileError":
        return cls(
            code=ErrorCode.FILE_UNSUPPORTED,
            message=f"Unsupported file extension '{extension}': {path}",
            details={"path": path, "extension": extension},
        )


class InternalError(TsPlaneError):
    """Internal/unexpected errors."""

    @classmethod
    def unexpected(cls, reason: str, **details: Any) -> "InternalError":
        return cls(
            code=ErrorCode.INTERNAL_ERROR,
            message=f"Internal error: {reason}",
            details=details,
        )
