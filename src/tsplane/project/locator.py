"""Nearest-ancestor project configuration lookup."""

from __future__ import annotations

import os
from collections.abc import Sequence
from typing import TYPE_CHECKING

from tsplane.core.logging import get_logger

if TYPE_CHECKING:
    from tsplane.core.fs import FileSystem

log = get_logger(__name__)


class ConfigLocator:
    """
    Finds the project configuration that owns a file.

    Walks from the file's directory up to the filesystem root and stops at the
    first directory that holds one of ``markers``. Nothing is cached; every
    call probes the filesystem as it is now.
    """

    def __init__(self, fs: FileSystem, markers: Sequence[str] = ("tsconfig.json",)) -> None:
        self._fs = fs
        self.markers = tuple(markers)

    def find_config(self, path: str) -> str | None:
        """Return the absolute path of the nearest configuration file, or None."""
        directory = os.path.dirname(os.path.abspath(path))
        while True:
            for marker in self.markers:
                candidate = os.path.join(directory, marker)
                if self._fs.is_file(candidate):
                    return candidate
            parent = os.path.dirname(directory)
            if parent == directory:
                log.debug("config_not_found", path=path, markers=self.markers)
                return None
            directory = parent

    def resolve(self, path: str) -> str | None:
        """Return the project root owning ``path``, or None."""
        config = self.find_config(path)
        return os.path.dirname(config) if config is not None else None
