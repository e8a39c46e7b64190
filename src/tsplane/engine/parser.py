"""Tree-sitter parsing for TypeScript and JavaScript sources."""

from __future__ import annotations

import importlib
from dataclasses import dataclass, field
from typing import Any

import tree_sitter

from tsplane.core.errors import UnsupportedFileError
from tsplane.engine.packs import GrammarPack, get_pack_for_path


@dataclass
class ParseResult:
    """Result of parsing a file."""

    tree: Any  # Tree-sitter Tree (not serializable)
    language: str
    error_count: int
    total_nodes: int
    root_node: Any  # Tree-sitter Node
    source: bytes = b""
    typed: bool = False


def node_text(node: Any, source: bytes) -> str:
    return source[node.start_byte : node.end_byte].decode("utf-8", errors="replace")


@dataclass
class SourceParser:
    """
    Tree-sitter parser for the TypeScript family of languages.

    Grammars load on first use and stay cached for the parser's lifetime.

    Usage::

        parser = SourceParser()
        result = parser.parse("/p/src/a.ts", "const x = 1;")
    """

    _parser: Any = field(default=None, repr=False)
    _languages: dict[str, Any] = field(default_factory=dict, repr=False)
    parse_count: int = 0

    def __post_init__(self) -> None:
        self._parser = tree_sitter.Parser()
        self._languages = {}

    def _get_language(self, pack: GrammarPack) -> Any:
        if pack.name in self._languages:
            return self._languages[pack.name]

        try:
            mod = importlib.import_module(pack.grammar_module)
            lang_fn = getattr(mod, pack.language_func)
        except (ImportError, AttributeError) as err:
            raise ValueError(
                f"Language not available: {pack.name} (install {pack.grammar_package})"
            ) from err

        lang = tree_sitter.Language(lang_fn())
        self._languages[pack.name] = lang
        return lang

    def supports(self, path: str) -> bool:
        return get_pack_for_path(path) is not None

    def parse(self, path: str, text: str) -> ParseResult:
        """
        Parse source text with the grammar matching ``path``'s extension.

        Args:
            path: File path (used for language detection only)
            text: Full file text

        Returns:
            ParseResult with tree, language, and error info.

        Raises:
            UnsupportedFileError: If no grammar handles the extension.
        """
        pack = get_pack_for_path(path)
        if pack is None:
            ext = path.rsplit(".", 1)[-1] if "." in path else ""
            raise UnsupportedFileError.for_path(path, ext)

        self._parser.language = self._get_language(pack)
        source = text.encode("utf-8")
        tree = self._parser.parse(source)
        self.parse_count += 1

        error_count = 0
        total_nodes = 0
        stack = [tree.root_node]
        while stack:
            node = stack.pop()
            total_nodes += 1
            if node.type == "ERROR" or node.is_missing:
                error_count += 1
            stack.extend(node.children)

        return ParseResult(
            tree=tree,
            language=pack.name,
            error_count=error_count,
            total_nodes=total_nodes,
            root_node=tree.root_node,
            source=source,
            typed=pack.typed,
        )
