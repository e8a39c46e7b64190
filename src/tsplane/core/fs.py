"""Filesystem access for the workspace.

All project routing and file tracking goes through a ``FileSystem`` so the
workspace can be driven against the real disk or an instrumented stand-in.
Everything here is synchronous and read-only.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Protocol


class FileSystem(Protocol):
    """Read-only filesystem primitives consumed by the workspace."""

    def read_file(self, path: str) -> str: ...

    def file_size(self, path: str) -> int: ...

    def exists(self, path: str) -> bool: ...

    def is_file(self, path: str) -> bool: ...

    def is_dir(self, path: str) -> bool: ...

    def list_directories(self, path: str) -> list[str]: ...

    def list_files(self, path: str) -> list[str]: ...

    def realpath(self, path: str) -> str: ...

    @property
    def use_case_sensitive_file_names(self) -> bool: ...


def _detect_case_sensitivity() -> bool:
    # Windows and macOS default filesystems fold case
    return sys.platform not in ("win32", "darwin")


class LocalFileSystem:
    """``FileSystem`` backed by the local disk."""

    def __init__(self, *, case_sensitive: bool | None = None) -> None:
        self._case_sensitive = (
            _detect_case_sensitivity() if case_sensitive is None else case_sensitive
        )

    @property
    def use_case_sensitive_file_names(self) -> bool:
        return self._case_sensitive

    def read_file(self, path: str) -> str:
        """Read a file as UTF-8 text. A leading BOM is dropped.

        Raises:
            OSError: If the file cannot be read.
            UnicodeDecodeError: If the content is not valid UTF-8.
        """
        with open(path, encoding="utf-8-sig", newline="") as f:
            return f.read()

    def file_size(self, path: str) -> int:
        return Path(path).stat().st_size

    def exists(self, path: str) -> bool:
        return os.path.exists(path)

    def is_file(self, path: str) -> bool:
        return os.path.isfile(path)

    def is_dir(self, path: str) -> bool:
        return os.path.isdir(path)

    def list_directories(self, path: str) -> list[str]:
        try:
            with os.scandir(path) as entries:
                return sorted(e.name for e in entries if e.is_dir())
        except OSError:
            return []

    def list_files(self, path: str) -> list[str]:
        try:
            with os.scandir(path) as entries:
                return sorted(e.name for e in entries if e.is_file())
        except OSError:
            return []

    def realpath(self, path: str) -> str:
        return os.path.realpath(path)


def normalize_path(path: str, cwd: str | None = None) -> str:
    """Resolve ``path`` against ``cwd`` (default: process cwd) and normalize it."""
    base = cwd if cwd is not None else os.getcwd()
    return os.path.normpath(os.path.join(base, os.path.expanduser(path)))
