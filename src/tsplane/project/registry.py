"""Workspace-wide store of parsed source artifacts.

Every session in a workspace shares one :class:`ArtifactRegistry`. Entries
are keyed by ``(path, version)`` where the version is the content hash of
the file text, so an entry can never be served for content it was not built
from. Each path holds at most one entry: storing a new version for a path
evicts whatever version was there before. Nothing is reference counted; a
session still holding an older version simply misses and rebuilds.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from tsplane.core.logging import get_logger

if TYPE_CHECKING:
    from tsplane.engine.source import SourceArtifact

log = get_logger(__name__)


@dataclass
class RegistryStats:
    hits: int = 0
    misses: int = 0
    evictions: int = 0
    builds: Counter[str] = field(default_factory=Counter)


class ArtifactRegistry:
    """
    Shared ``(path, version) -> SourceArtifact`` cache.

    Not thread-safe; callers serialize access to the owning workspace.

    Usage::

        registry = ArtifactRegistry()
        artifact = registry.acquire(path, version, lambda: SourceArtifact(...))
    """

    def __init__(self) -> None:
        self._entries: dict[str, SourceArtifact] = {}
        self.stats = RegistryStats()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, tuple) or len(key) != 2:
            return False
        path, version = key
        entry = self._entries.get(path)
        return entry is not None and entry.version == version

    def get(self, path: str, version: str) -> SourceArtifact | None:
        """Return the artifact for ``(path, version)`` or None."""
        entry = self._entries.get(path)
        if entry is None or entry.version != version:
            self.stats.misses += 1
            log.debug("artifact_miss", path=path, version=version[:12])
            return None
        self.stats.hits += 1
        log.debug("artifact_hit", path=path, version=version[:12])
        return entry

    def put(self, path: str, version: str, artifact: SourceArtifact) -> None:
        """Store ``artifact``, evicting any entry held for another version of ``path``."""
        previous = self._entries.get(path)
        if previous is artifact:
            return
        if previous is not None and previous.version != version:
            self.stats.evictions += 1
            log.debug(
                "artifact_evicted",
                path=path,
                old_version=previous.version[:12],
                new_version=version[:12],
            )
        self._entries[path] = artifact
        self.stats.builds[path] += 1

    def acquire(
        self, path: str, version: str, factory: Callable[[], SourceArtifact]
    ) -> SourceArtifact:
        """Return the stored artifact for ``(path, version)``, building it on a miss."""
        artifact = self.get(path, version)
        if artifact is None:
            artifact = factory()
            self.put(path, version, artifact)
        return artifact

    def builds(self, path: str) -> int:
        """Number of artifacts stored for ``path`` over the registry's lifetime."""
        return self.stats.builds[path]

    def versions(self) -> dict[str, str]:
        """Current ``path -> version`` mapping."""
        return {path: entry.version for path, entry in self._entries.items()}

    def clear(self) -> None:
        self._entries.clear()
