"""Workspace facade: routes any file to the session of the project that owns it."""

from __future__ import annotations

import os
from typing import TYPE_CHECKING, Any

from tsplane.config.models import TsPlaneConfig
from tsplane.core.errors import NoConfigurationError
from tsplane.core.fs import LocalFileSystem, normalize_path
from tsplane.core.logging import get_logger
from tsplane.engine.parser import SourceParser
from tsplane.project.locator import ConfigLocator
from tsplane.project.registry import ArtifactRegistry
from tsplane.project.session import RefreshResult, Session

if TYPE_CHECKING:
    from tsplane.core.fs import FileSystem
    from tsplane.engine.models import Diagnostic, OutputFile

log = get_logger(__name__)


class Workspace:
    """
    Multi-project entry point.

    Owns the ``root -> Session`` map and holds the one :class:`ArtifactRegistry`
    every session shares. A registry passed in by the caller stays the
    caller's and survives :meth:`close`. Callers construct it explicitly;
    there is no module-level instance.

    Each distinct file costs one locator walk. After that its owning root is
    remembered, so repeat calls go straight to the session.

    Usage::

        with Workspace() as ws:
            for diagnostic in ws.diagnose("packages/app/src/index.ts"):
                print(diagnostic.format())
    """

    def __init__(
        self,
        config: TsPlaneConfig | None = None,
        *,
        fs: FileSystem | None = None,
        registry: ArtifactRegistry | None = None,
        cwd: str | None = None,
    ) -> None:
        self._config = config or TsPlaneConfig()
        self._fs = fs or LocalFileSystem()
        self._registry = registry if registry is not None else ArtifactRegistry()
        self._owns_registry = registry is None
        self._cwd = cwd
        self._locator = ConfigLocator(self._fs, self._config.discovery.config_markers)
        self._parser = SourceParser()
        self._sessions: dict[str, Session] = {}
        self._routes: dict[str, str] = {}

    @property
    def config(self) -> TsPlaneConfig:
        return self._config

    @property
    def registry(self) -> ArtifactRegistry:
        return self._registry

    @property
    def sessions(self) -> dict[str, Session]:
        """Open sessions keyed by project root."""
        return dict(self._sessions)

    def project_for(self, path: str) -> Session:
        """Return the session for the project owning ``path``, creating it if needed.

        Raises:
            NoConfigurationError: If no ancestor directory holds a configuration.
            MalformedConfigurationError: If the owning configuration does not
                parse. Nothing is cached, so a later call retries.
        """
        path = normalize_path(path, self._cwd)
        root = self._routes.get(path)
        if root is not None and root in self._sessions:
            return self._sessions[root]

        config_path = self._locator.find_config(path)
        if config_path is None:
            raise NoConfigurationError.for_file(path, list(self._locator.markers))

        session = self._sessions.get(os.path.dirname(config_path))
        if session is None:
            session = Session.open(
                config_path,
                self._registry,
                self._fs,
                engine_config=self._config.engine,
                parser=self._parser,
                cwd=self._cwd,
            )
            self._sessions[session.root] = session
        self._routes[path] = session.root
        return session

    def diagnose(self, path: str) -> list[Diagnostic]:
        return self.project_for(path).diagnose(normalize_path(path, self._cwd))

    def compile(self, path: str) -> list[OutputFile]:
        return self.project_for(path).compile(normalize_path(path, self._cwd))

    def refresh(self) -> dict[str, RefreshResult]:
        """Re-read tracked files in every session.

        Only sessions with a changed or unreadable file appear, keyed by root.
        """
        results: dict[str, RefreshResult] = {}
        for root, session in self._sessions.items():
            result = session.refresh()
            if result:
                results[root] = result
        return results

    def close(self) -> None:
        """Drop every session. The registry is cleared only if this workspace created it."""
        log.debug("workspace_closed", sessions=len(self._sessions))
        self._sessions.clear()
        self._routes.clear()
        if self._owns_registry:
            self._registry.clear()

    def __enter__(self) -> Workspace:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"Workspace(sessions={len(self._sessions)}, artifacts={len(self._registry)})"
