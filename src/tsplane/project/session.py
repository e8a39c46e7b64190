"""One analysis session per project configuration root."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from tsplane.config.models import EngineConfig
from tsplane.config.tsconfig import ProjectConfig, load_project_config
from tsplane.core.errors import FileUnreadableError, MalformedConfigurationError
from tsplane.core.fs import normalize_path
from tsplane.core.logging import get_logger
from tsplane.engine.packs import JAVASCRIPT_PACK, TSX_PACK, TYPESCRIPT_PACK
from tsplane.engine.service import LanguageService
from tsplane.project.host import SessionHost

if TYPE_CHECKING:
    from tsplane.core.fs import FileSystem
    from tsplane.engine.models import Diagnostic, OutputFile
    from tsplane.engine.parser import SourceParser
    from tsplane.project.registry import ArtifactRegistry

log = get_logger(__name__)


@dataclass(frozen=True)
class RefreshResult:
    """Outcome of re-reading a session's tracked files.

    Unreadable files keep their last tracked content and are reported by
    path with the error that stopped the read.
    """

    changed: tuple[str, ...] = ()
    unreadable: dict[str, FileUnreadableError] = field(default_factory=dict)

    def __bool__(self) -> bool:
        return bool(self.changed or self.unreadable)


class Session:
    """
    Binds one project's :class:`SessionHost` to a :class:`LanguageService`.

    The session owns its host and tracked files. It never owns the artifact
    registry; that is shared by every session of a workspace.

    Usage::

        session = Session.open("/repo/app/tsconfig.json", registry, fs)
        diagnostics = session.diagnose("/repo/app/src/index.ts")
    """

    def __init__(
        self,
        config: ProjectConfig,
        registry: ArtifactRegistry,
        fs: FileSystem,
        *,
        engine_config: EngineConfig | None = None,
        parser: SourceParser | None = None,
        cwd: str | None = None,
    ) -> None:
        engine_config = engine_config or EngineConfig()
        default_new_line = {"lf": "\n", "crlf": "\r\n"}.get(engine_config.default_new_line or "")

        self._config = config
        self._cwd = cwd
        self._host = SessionHost(
            config,
            registry,
            fs,
            max_file_size=engine_config.max_file_size_bytes,
            default_new_line=default_new_line,
        )
        self._service = LanguageService(self._host, registry, parser)

        log.info("session_created", root=config.root, config=config.config_path)

    @classmethod
    def open(
        cls,
        config_path: str,
        registry: ArtifactRegistry,
        fs: FileSystem,
        *,
        engine_config: EngineConfig | None = None,
        parser: SourceParser | None = None,
        cwd: str | None = None,
    ) -> Session:
        """Read the configuration at ``config_path`` and build a session for it.

        Raises:
            MalformedConfigurationError: If the configuration does not parse.
        """
        try:
            config = load_project_config(config_path, fs)
        except MalformedConfigurationError as e:
            log.warning("malformed_configuration", config=config_path, reason=e.message)
            raise
        return cls(config, registry, fs, engine_config=engine_config, parser=parser, cwd=cwd)

    @property
    def root(self) -> str:
        return self._config.root

    @property
    def config(self) -> ProjectConfig:
        return self._config

    @property
    def config_path(self) -> str:
        return self._config.config_path

    @property
    def host(self) -> SessionHost:
        return self._host

    @property
    def service(self) -> LanguageService:
        return self._service

    def _resolve(self, path: str) -> str:
        return normalize_path(path, self._cwd)

    # ------------------------------------------------------------------
    # Tracking
    # ------------------------------------------------------------------

    def track(self, path: str) -> str:
        """Record the current content of ``path`` and return its version."""
        return self._host.track(self._resolve(path)).version

    def untrack(self, path: str) -> bool:
        return self._host.untrack(self._resolve(path))

    def refresh(self) -> RefreshResult:
        """Re-read every tracked file.

        A file that can no longer be read does not stop the others from being
        re-read; it is reported in :attr:`RefreshResult.unreadable`.
        """
        changed: list[str] = []
        unreadable: dict[str, FileUnreadableError] = {}
        for path in self._host.tracked_files():
            before = self._host.file_version(path)
            try:
                version = self._host.track(path).version
            except FileUnreadableError as e:
                log.warning("file_unreadable", path=path, reason=e.message)
                unreadable[path] = e
                continue
            if version != before:
                changed.append(path)
        result = RefreshResult(tuple(changed), unreadable)
        if result:
            log.debug(
                "session_refreshed",
                root=self.root,
                changed=len(changed),
                unreadable=len(unreadable),
            )
        return result

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def diagnose(self, path: str) -> list[Diagnostic]:
        """Syntactic diagnostics followed by semantic diagnostics for ``path``."""
        path = self._resolve(path)
        self._host.track(path)
        return self._service.get_syntactic_diagnostics(
            path
        ) + self._service.get_semantic_diagnostics(path)

    def compile(self, path: str) -> list[OutputFile]:
        """Emitted outputs for ``path``, exactly as the engine produced them."""
        path = self._resolve(path)
        self._host.track(path)
        return list(self._service.get_emit_output(path).output_files)

    def root_files(self) -> list[str]:
        """Files the project configuration names: ``files`` plus ``include`` minus ``exclude``."""
        extensions = [*TYPESCRIPT_PACK.extensions, *TSX_PACK.extensions]
        if self._config.options.allow_js:
            extensions.extend(JAVASCRIPT_PACK.extensions)
        suffixes = tuple(f".{ext}" for ext in extensions)

        seen: set[str] = set()
        result: list[str] = []

        def add(path: str) -> None:
            key = self._host.canonical_path(path)
            if key not in seen:
                seen.add(key)
                result.append(path)

        for path in self._config.files:
            if self._host.file_exists(path):
                add(path)
        if self._config.include:
            for path in sorted(
                self._host.read_directory(
                    self.root,
                    extensions=suffixes,
                    exclude=self._config.exclude,
                    include=self._config.include,
                )
            ):
                add(path)
        return result

    def diagnose_all(self) -> dict[str, list[Diagnostic]]:
        """Diagnose every root file, keyed by path in :meth:`root_files` order."""
        return {path: self.diagnose(path) for path in self.root_files()}

    def __repr__(self) -> str:
        return f"Session(root={self.root!r}, files={len(self._host.tracked_files())})"
