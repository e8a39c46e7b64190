"""Per-project file tracking and the engine-facing host interface.

A :class:`SessionHost` is what the analysis engine pulls from: the list of
known files, each file's version and snapshot, the compiler options and the
aggregate project version. Files enter the host lazily, either because a
caller tracked them or because the engine asked about a file it found
through an import.

Versions are sha256 digests of the full file text. Re-tracking a file whose
text is unchanged costs one read and one hash and leaves everything as it
was.
"""

from __future__ import annotations

import fnmatch
import hashlib
import os
from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING

from tsplane.core.errors import FileUnreadableError
from tsplane.core.logging import get_logger
from tsplane.engine.packs import ScriptKind, script_kind_for_path
from tsplane.engine.source import Snapshot, SourceArtifact

if TYPE_CHECKING:
    from tsplane.config.tsconfig import CompilerOptions, ProjectConfig
    from tsplane.core.fs import FileSystem
    from tsplane.project.registry import ArtifactRegistry

log = get_logger(__name__)

_DIGEST_MODULUS = 1 << 256


def content_version(text: str) -> str:
    """Content identity of a file's text."""
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


@dataclass(frozen=True)
class TrackedFile:
    """A file known to a session. Always replaced whole, never mutated."""

    path: str
    version: str
    snapshot: Snapshot


@dataclass(frozen=True)
class ProjectVersion:
    """Order-independent aggregate of a project's ``(path, version)`` pairs.

    The digest is the sum, modulo 2**256, of one sha256 per pair, so it only
    depends on which pairs are present and never on the order they arrived.
    """

    digest: int = 0
    file_count: int = 0

    @staticmethod
    def _term(path: str, version: str) -> int:
        return int.from_bytes(hashlib.sha256(f"{path}\0{version}".encode()).digest(), "big")

    def with_file(self, path: str, version: str) -> ProjectVersion:
        return ProjectVersion(
            (self.digest + self._term(path, version)) % _DIGEST_MODULUS, self.file_count + 1
        )

    def without_file(self, path: str, version: str) -> ProjectVersion:
        return ProjectVersion(
            (self.digest - self._term(path, version)) % _DIGEST_MODULUS, self.file_count - 1
        )

    def __str__(self) -> str:
        return f"{self.file_count}-{self.digest:064x}"


class SessionHost:
    """
    File-tracking state for one project, queried by the analysis engine.

    Configuration accessors are fixed when the host is built. A changed
    tsconfig.json needs a new session.
    """

    def __init__(
        self,
        config: ProjectConfig,
        registry: ArtifactRegistry,
        fs: FileSystem,
        *,
        max_file_size: int | None = None,
        default_new_line: str | None = None,
    ) -> None:
        self._config = config
        self._registry = registry
        self._fs = fs
        self._max_file_size = max_file_size
        self._files: dict[str, TrackedFile] = {}
        self._version = ProjectVersion()
        self._case_sensitive = fs.use_case_sensitive_file_names
        self._new_line = config.new_line or default_new_line or os.linesep

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    @property
    def config(self) -> ProjectConfig:
        return self._config

    @property
    def compilation_settings(self) -> CompilerOptions:
        return self._config.options

    @property
    def current_directory(self) -> str:
        return self._config.root

    @property
    def new_line(self) -> str:
        return self._new_line

    @property
    def use_case_sensitive_file_names(self) -> bool:
        return self._case_sensitive

    @property
    def default_lib_file_name(self) -> str:
        return os.path.join(self._config.root, "lib.d.ts")

    def canonical_path(self, path: str) -> str:
        """Key under which ``path`` is tracked and shared."""
        path = os.path.normpath(path)
        return path if self._case_sensitive else path.lower()

    # ------------------------------------------------------------------
    # File tracking
    # ------------------------------------------------------------------

    def tracked_files(self) -> list[str]:
        """Tracked paths in the order they were first tracked."""
        return [tracked.path for tracked in self._files.values()]

    def get_tracked(self, path: str) -> TrackedFile | None:
        return self._files.get(self.canonical_path(path))

    def is_tracked(self, path: str) -> bool:
        return self.canonical_path(path) in self._files

    def file_version(self, path: str) -> str:
        tracked = self.get_tracked(path) or self.track(path)
        return tracked.version

    def file_snapshot(self, path: str) -> Snapshot:
        tracked = self.get_tracked(path) or self.track(path)
        return tracked.snapshot

    def project_version(self) -> str:
        return str(self._version)

    def track(self, path: str) -> TrackedFile:
        """Read ``path`` and record its current content.

        Raises:
            FileUnreadableError: If the file cannot be read. Any previously
                tracked content for the path is left in place.
        """
        path = os.path.normpath(path)
        key = self.canonical_path(path)
        text = self._read(path)
        version = content_version(text)

        current = self._files.get(key)
        if current is not None and current.version == version:
            log.debug("file_unchanged", path=path)
            return current

        artifact = self._registry.get(key, version)
        if artifact is None:
            artifact = SourceArtifact(path=path, version=version, snapshot=Snapshot(text))
            self._registry.put(key, version, artifact)

        tracked = TrackedFile(path=path, version=version, snapshot=artifact.snapshot)
        if current is not None:
            self._version = self._version.without_file(key, current.version)
        self._version = self._version.with_file(key, version)
        self._files[key] = tracked

        log.debug(
            "file_tracked",
            path=path,
            version=version[:12],
            changed=current is not None,
        )
        return tracked

    def untrack(self, path: str) -> bool:
        """Forget ``path``. Its registry entry stays until overwritten."""
        key = self.canonical_path(path)
        tracked = self._files.pop(key, None)
        if tracked is None:
            return False
        self._version = self._version.without_file(key, tracked.version)
        log.debug("file_untracked", path=tracked.path)
        return True

    def _read(self, path: str) -> str:
        try:
            if self._max_file_size is not None:
                size = self._fs.file_size(path)
                if size > self._max_file_size:
                    raise FileUnreadableError.too_large(path, size, self._max_file_size)
            return self._fs.read_file(path)
        except (OSError, UnicodeDecodeError) as e:
            raise FileUnreadableError.for_path(path, str(e)) from e

    # ------------------------------------------------------------------
    # Engine queries
    # ------------------------------------------------------------------

    def script_kind(self, path: str) -> ScriptKind:
        return script_kind_for_path(path)

    def file_exists(self, path: str) -> bool:
        return self.is_tracked(path) or self._fs.is_file(path)

    def read_file(self, path: str) -> str | None:
        try:
            return self._fs.read_file(path)
        except (OSError, UnicodeDecodeError):
            return None

    def directory_exists(self, path: str) -> bool:
        return self._fs.is_dir(path)

    def get_directories(self, path: str) -> list[str]:
        return self._fs.list_directories(path)

    def realpath(self, path: str) -> str:
        return self._fs.realpath(path)

    def read_directory(
        self,
        directory: str,
        extensions: Sequence[str] | None = None,
        exclude: Sequence[str] | None = None,
        include: Sequence[str] | None = None,
        depth: int | None = None,
    ) -> list[str]:
        """List files under ``directory`` matching the include/exclude globs.

        Patterns are absolute globs; ``**`` spans directories. Directories
        matching an exclude pattern are not descended into.
        """
        results: list[str] = []
        exclude = list(exclude or ())
        include = list(include or ())

        def walk(current: str, level: int) -> None:
            for name in self._fs.list_files(current):
                full = os.path.join(current, name)
                if extensions and not name.endswith(tuple(extensions)):
                    continue
                if include and not any(_glob_match(full, p) for p in include):
                    continue
                if any(_glob_match(full, p) for p in exclude):
                    continue
                results.append(full)
            if depth is not None and level >= depth:
                return
            for name in self._fs.list_directories(current):
                full = os.path.join(current, name)
                if any(_glob_match(full, p) for p in exclude):
                    continue
                walk(full, level + 1)

        walk(os.path.normpath(directory), 1)
        return results


def _glob_match(path: str, pattern: str) -> bool:
    """Match a path against a tsconfig-style glob.

    A pattern without wildcards matches the path itself and everything under
    it. ``**/`` matches zero or more directories.
    """
    if not any(ch in pattern for ch in "*?["):
        return path == pattern or path.startswith(pattern.rstrip(os.sep) + os.sep)
    if fnmatch.fnmatch(path, pattern):
        return True
    collapsed = pattern.replace(f"**{os.sep}", "")
    return collapsed != pattern and fnmatch.fnmatch(path, collapsed)
