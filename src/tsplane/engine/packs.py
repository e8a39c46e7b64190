"""Grammar packs: which tree-sitter grammar parses which file."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from enum import StrEnum


class ScriptKind(StrEnum):
    UNKNOWN = "unknown"
    JS = "js"
    JSX = "jsx"
    TS = "ts"
    TSX = "tsx"


@dataclass(frozen=True)
class GrammarPack:
    """Complete tree-sitter configuration for a single grammar."""

    name: str  # Canonical language name ("typescript", "tsx", "javascript")
    grammar_package: str  # PyPI package ("tree-sitter-typescript")
    grammar_module: str  # Python import ("tree_sitter_typescript")
    # Non-standard function name (e.g. "language_typescript", "language_tsx")
    language_func: str = "language"
    extensions: frozenset[str] = field(default_factory=frozenset)
    typed: bool = False  # grammar carries type syntax


TYPESCRIPT_PACK = GrammarPack(
    name="typescript",
    grammar_package="tree-sitter-typescript",
    grammar_module="tree_sitter_typescript",
    language_func="language_typescript",
    extensions=frozenset({"ts", "mts", "cts"}),
    typed=True,
)

TSX_PACK = GrammarPack(
    name="tsx",
    grammar_package="tree-sitter-typescript",
    grammar_module="tree_sitter_typescript",
    language_func="language_tsx",
    extensions=frozenset({"tsx"}),
    typed=True,
)

JAVASCRIPT_PACK = GrammarPack(
    name="javascript",
    grammar_package="tree-sitter-javascript",
    grammar_module="tree_sitter_javascript",
    extensions=frozenset({"js", "mjs", "cjs", "jsx"}),
)

PACKS: dict[str, GrammarPack] = {
    pack.name: pack for pack in (TYPESCRIPT_PACK, TSX_PACK, JAVASCRIPT_PACK)
}

_EXT_TO_PACK: dict[str, GrammarPack] = {}
for _pack in PACKS.values():
    for _ext in _pack.extensions:
        _EXT_TO_PACK[_ext] = _pack


def _extension(path: str) -> str:
    name = os.path.basename(path)
    return name.rsplit(".", 1)[-1].lower() if "." in name else ""


def get_pack(name: str) -> GrammarPack | None:
    return PACKS.get(name)


def get_pack_for_path(path: str) -> GrammarPack | None:
    """Look up the pack for a file path by extension."""
    return _EXT_TO_PACK.get(_extension(path))


def script_kind_for_path(path: str) -> ScriptKind:
    ext = _extension(path)
    if ext in ("ts", "mts", "cts"):
        return ScriptKind.TS
    if ext == "tsx":
        return ScriptKind.TSX
    if ext in ("js", "mjs", "cjs"):
        return ScriptKind.JS
    if ext == "jsx":
        return ScriptKind.JSX
    return ScriptKind.UNKNOWN


def is_declaration_file(path: str) -> bool:
    return path.endswith((".d.ts", ".d.mts", ".d.cts"))
