"""Engine module - tree-sitter backed analysis for TypeScript and JavaScript.

This module provides:
- Parsing: grammar packs per extension, lazily loaded and cached
- Diagnostics: syntactic (parse errors) and semantic (types, scopes, imports)
- Emit: type-erasing JavaScript output

The engine is pull-based. It never reads files itself and asks its host for
versions and snapshots instead.
"""

from tsplane.engine.checker import ModuleHost, ModuleInfo, SemanticChecker, syntactic_diagnostics
from tsplane.engine.emitter import Emitter, output_file_name
from tsplane.engine.models import (
    Diagnostic,
    DiagnosticCategory,
    EmitOutput,
    OutputFile,
    TextPosition,
)
from tsplane.engine.packs import ScriptKind, get_pack_for_path, script_kind_for_path
from tsplane.engine.parser import ParseResult, SourceParser
from tsplane.engine.service import LanguageService
from tsplane.engine.source import Snapshot, SourceArtifact

__all__ = [
    # Models
    "Diagnostic",
    "DiagnosticCategory",
    "EmitOutput",
    "OutputFile",
    "TextPosition",
    # Parsing
    "ParseResult",
    "ScriptKind",
    "Snapshot",
    "SourceArtifact",
    "SourceParser",
    "get_pack_for_path",
    "script_kind_for_path",
    # Analysis
    "Emitter",
    "LanguageService",
    "ModuleHost",
    "ModuleInfo",
    "SemanticChecker",
    "output_file_name",
    "syntactic_diagnostics",
]
