"""Language service: the analysis engine a session drives.

The service never reads files itself. Every version and snapshot comes from
the :class:`~tsplane.project.host.SessionHost`, and every parse goes through
the shared :class:`~tsplane.project.registry.ArtifactRegistry`, so a file
that several projects see with the same content is parsed once.

Per-file results are cached: syntactic diagnostics and module shape by file
version, semantic diagnostics by file version plus project version (imports
make them depend on other files).
"""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

from tsplane.core.logging import get_logger
from tsplane.engine.checker import (
    ModuleInfo,
    SemanticChecker,
    collect_module_info,
    syntactic_diagnostics,
)
from tsplane.engine.emitter import Emitter, output_file_name
from tsplane.engine.models import Diagnostic, DiagnosticCategory, EmitOutput, OutputFile
from tsplane.engine.packs import ScriptKind, get_pack_for_path, is_declaration_file
from tsplane.engine.parser import ParseResult, SourceParser
from tsplane.engine.source import SourceArtifact

if TYPE_CHECKING:
    from tsplane.project.host import SessionHost
    from tsplane.project.registry import ArtifactRegistry

log = get_logger(__name__)

_RESOLUTION_EXTENSIONS = (".ts", ".tsx", ".d.ts", ".js", ".jsx")
_JS_TO_TS = {".js": (".ts", ".tsx"), ".mjs": (".mts",), ".cjs": (".cts",), ".jsx": (".tsx",)}


class LanguageService:
    """Answers diagnostics and emit queries for files of one project."""

    def __init__(
        self,
        host: SessionHost,
        registry: ArtifactRegistry,
        parser: SourceParser | None = None,
    ) -> None:
        self._host = host
        self._registry = registry
        self._parser = parser or SourceParser()
        self._checker = SemanticChecker(self, host.compilation_settings)
        self._syntactic: dict[str, tuple[str, list[Diagnostic]]] = {}
        self._semantic: dict[str, tuple[str, str, list[Diagnostic], tuple[str, ...]]] = {}
        self._unresolved: list[str] = []
        self._modules: dict[str, tuple[str, ModuleInfo]] = {}

    @property
    def parser(self) -> SourceParser:
        return self._parser

    # ------------------------------------------------------------------
    # Sources
    # ------------------------------------------------------------------

    def get_source(self, path: str) -> SourceArtifact:
        """The shared artifact for the host's current version of ``path``."""
        version = self._host.file_version(path)
        key = self._host.canonical_path(path)

        def build() -> SourceArtifact:
            return SourceArtifact(
                path=os.path.normpath(path),
                version=version,
                snapshot=self._host.file_snapshot(path),
            )

        return self._registry.acquire(key, version, build)

    def _parse(self, path: str) -> ParseResult:
        return self.get_source(path).parse(self._parser)

    # ------------------------------------------------------------------
    # ModuleHost
    # ------------------------------------------------------------------

    def resolve_module(self, specifier: str, containing_file: str) -> str | None:
        """Resolve a relative module specifier to an existing file."""
        base = os.path.normpath(os.path.join(os.path.dirname(containing_file), specifier))
        candidates: list[str] = []
        stem, ext = os.path.splitext(base)
        if ext.lower() in _JS_TO_TS:
            candidates.extend(stem + ts_ext for ts_ext in _JS_TO_TS[ext.lower()])
        if get_pack_for_path(base) is not None:
            candidates.append(base)
        candidates.extend(base + ext for ext in _RESOLUTION_EXTENSIONS)
        candidates.extend(os.path.join(base, "index" + ext) for ext in _RESOLUTION_EXTENSIONS)

        for candidate in candidates:
            if self._host.file_exists(candidate):
                return candidate
        self._unresolved.extend(candidates)
        return None

    def module_info(self, path: str) -> ModuleInfo | None:
        if get_pack_for_path(path) is None:
            return None
        key = self._host.canonical_path(path)
        version = self._host.file_version(path)
        cached = self._modules.get(key)
        if cached is not None and cached[0] == version:
            return cached[1]
        info = collect_module_info(self._parse(path))
        self._modules[key] = (version, info)
        return info

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------

    def get_syntactic_diagnostics(self, path: str) -> list[Diagnostic]:
        key = self._host.canonical_path(path)
        version = self._host.file_version(path)
        cached = self._syntactic.get(key)
        if cached is not None and cached[0] == version:
            return list(cached[1])
        diagnostics = syntactic_diagnostics(path, self._parse(path))
        self._syntactic[key] = (version, diagnostics)
        return list(diagnostics)

    def get_semantic_diagnostics(self, path: str) -> list[Diagnostic]:
        key = self._host.canonical_path(path)
        version = self._host.file_version(path)
        project_version = self._host.project_version()
        cached = self._semantic.get(key)
        if (
            cached is not None
            and cached[0] == version
            and cached[1] == project_version
            and not any(self._host.file_exists(c) for c in cached[3])
        ):
            return list(cached[2])

        self._unresolved = []
        if not self._should_check(path):
            diagnostics: list[Diagnostic] = []
        else:
            parse = self._parse(path)
            info = self.module_info(path) or ModuleInfo()
            diagnostics = self._checker.check(path, parse, info)
        unresolved = tuple(dict.fromkeys(self._unresolved))
        self._unresolved = []

        # Checking may pull imported files into the host. Paths that failed to
        # resolve are kept so a file appearing at one of them invalidates the entry.
        self._semantic[key] = (version, self._host.project_version(), diagnostics, unresolved)
        log.debug("semantic_checked", path=path, count=len(diagnostics))
        return list(diagnostics)

    def _should_check(self, path: str) -> bool:
        kind = self._host.script_kind(path)
        if kind in (ScriptKind.TS, ScriptKind.TSX):
            return True
        return self._host.compilation_settings.check_js

    # ------------------------------------------------------------------
    # Emit
    # ------------------------------------------------------------------

    def get_emit_output(self, path: str) -> EmitOutput:
        options = self._host.compilation_settings
        kind = self._host.script_kind(path)
        name = output_file_name(path, options, self._host.current_directory)

        skip = (
            options.no_emit
            or name is None
            or is_declaration_file(path)
            or kind == ScriptKind.UNKNOWN
            or (kind in (ScriptKind.JS, ScriptKind.JSX) and not options.allow_js)
            or os.path.normpath(name) == os.path.normpath(path)
        )
        if skip:
            return EmitOutput(output_files=(), emit_skipped=True)

        if options.no_emit_on_error and self._has_errors(path):
            return EmitOutput(output_files=(), emit_skipped=True)

        text = Emitter(options, self._host.new_line).emit(self._parse(path))
        return EmitOutput(output_files=(OutputFile(name=name, text=text),))

    def _has_errors(self, path: str) -> bool:
        diagnostics = self.get_syntactic_diagnostics(path) + self.get_semantic_diagnostics(path)
        return any(d.category == DiagnosticCategory.ERROR for d in diagnostics)
