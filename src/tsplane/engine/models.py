"""Engine result types: diagnostics and emitted output."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any


class DiagnosticCategory(StrEnum):
    """Severity of a diagnostic."""

    ERROR = "error"
    WARNING = "warning"
    SUGGESTION = "suggestion"
    MESSAGE = "message"


@dataclass(frozen=True, order=True)
class TextPosition:
    """Zero-based line and column (column counted in characters)."""

    line: int
    column: int


@dataclass(frozen=True)
class Diagnostic:
    """A single diagnostic reported against a file range."""

    category: DiagnosticCategory
    code: int
    message: str
    file: str
    start: TextPosition
    end: TextPosition

    def to_dict(self) -> dict[str, Any]:
        return {
            "category": self.category.value,
            "code": self.code,
            "message": self.message,
            "file": self.file,
            "start": {"line": self.start.line, "column": self.start.column},
            "end": {"line": self.end.line, "column": self.end.column},
        }

    def format(self) -> str:
        """Render as ``file:line:col - category TScode: message`` (1-based)."""
        return (
            f"{self.file}:{self.start.line + 1}:{self.start.column + 1} - "
            f"{self.category.value} TS{self.code}: {self.message}"
        )


@dataclass(frozen=True)
class OutputFile:
    """One emitted file. The text is opaque to the workspace."""

    name: str
    text: str
    write_byte_order_mark: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "text": self.text}


@dataclass(frozen=True)
class EmitOutput:
    """Result of emitting a single source file."""

    output_files: tuple[OutputFile, ...] = field(default=())
    emit_skipped: bool = False
