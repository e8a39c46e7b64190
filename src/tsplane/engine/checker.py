"""Syntactic and semantic checks over tree-sitter parse trees.

The semantic checker reports:

- TS2322: a primitive type annotation whose initializer is a literal of a
  different primitive type (``const x: number = "s"``)
- TS2451: a block-scoped variable declared twice in the same scope
- TS2307: a relative import that resolves to no file
- TS2306 / TS2305 / TS1192: imports of a file that is not a module, of a
  member it does not export, or of a default export it does not have

Cross-file checks go through a :class:`ModuleHost`, which is how imported
files get pulled into a session.
"""

from __future__ import annotations

import os
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol

from tsplane.engine.models import Diagnostic, DiagnosticCategory, TextPosition
from tsplane.engine.parser import ParseResult, node_text

if TYPE_CHECKING:
    from tsplane.config.tsconfig import CompilerOptions


class ModuleHost(Protocol):
    """Cross-file lookups the semantic checker needs."""

    def resolve_module(self, specifier: str, containing_file: str) -> str | None: ...

    def module_info(self, path: str) -> ModuleInfo | None: ...


class LineIndex:
    """Converts tree-sitter byte points to character positions."""

    def __init__(self, source: bytes) -> None:
        self._lines = source.split(b"\n")

    def position(self, point: Any) -> TextPosition:
        row, byte_col = point
        line = self._lines[row] if row < len(self._lines) else b""
        return TextPosition(row, len(line[:byte_col].decode("utf-8", errors="replace")))


def _diagnostic(
    index: LineIndex, path: str, node: Any, code: int, message: str
) -> Diagnostic:
    return Diagnostic(
        category=DiagnosticCategory.ERROR,
        code=code,
        message=message,
        file=path,
        start=index.position(node.start_point),
        end=index.position(node.end_point),
    )


def _sorted(diagnostics: list[Diagnostic]) -> list[Diagnostic]:
    return sorted(diagnostics, key=lambda d: (d.start, d.end, d.code, d.message))


# ---------------------------------------------------------------------------
# Syntactic
# ---------------------------------------------------------------------------


def syntactic_diagnostics(path: str, parse: ParseResult) -> list[Diagnostic]:
    """Report ERROR and MISSING nodes. ERROR subtrees are reported once."""
    if parse.error_count == 0:
        return []

    index = LineIndex(parse.source)
    diagnostics: list[Diagnostic] = []
    stack = [parse.root_node]
    while stack:
        node = stack.pop()
        if node.is_missing:
            diagnostics.append(_diagnostic(index, path, node, 1005, f"'{node.type}' expected."))
            continue
        if node.type == "ERROR":
            diagnostics.append(
                _diagnostic(index, path, node, 1128, "Declaration or statement expected.")
            )
            continue
        if node.has_error:
            stack.extend(node.children)
    return _sorted(diagnostics)


# ---------------------------------------------------------------------------
# Module structure
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ImportBinding:
    """One imported name. ``imported`` is ``default``, ``*`` or a member name."""

    imported: str
    local: str
    node: Any = field(compare=False, repr=False)
    type_only: bool = False


@dataclass(frozen=True)
class ImportInfo:
    """An import, re-export or ``import()`` call with a module specifier."""

    specifier: str
    node: Any = field(compare=False, repr=False)  # the specifier string node
    bindings: tuple[ImportBinding, ...] = ()
    type_only: bool = False
    is_reexport: bool = False
    is_dynamic: bool = False

    @property
    def is_relative(self) -> bool:
        return self.specifier.startswith(("./", "../", "/")) or self.specifier in (".", "..")


@dataclass(frozen=True)
class ModuleInfo:
    """Import/export shape of a file. Depends only on the file's own text."""

    imports: tuple[ImportInfo, ...] = ()
    exports: frozenset[str] = frozenset()
    star_exports: tuple[str, ...] = ()
    is_module: bool = False
    has_export_assignment: bool = False


def _string_value(node: Any, source: bytes) -> str:
    text = node_text(node, source)
    return text[1:-1] if len(text) >= 2 and text[0] in "'\"" else text


def _has_token(node: Any, token: str) -> bool:
    return any(child.type == token for child in node.children)


def _declared_names(node: Any, source: bytes) -> Iterator[str]:
    """Names introduced by a declaration node (exported or not)."""
    if node.type in ("lexical_declaration", "variable_declaration"):
        for declarator in node.named_children:
            if declarator.type != "variable_declarator":
                continue
            name = declarator.child_by_field_name("name")
            if name is not None and name.type == "identifier":
                yield node_text(name, source)
        return
    if node.type == "ambient_declaration":
        for child in node.named_children:
            yield from _declared_names(child, source)
        return
    name = node.child_by_field_name("name")
    if name is not None:
        yield node_text(name, source)


def _import_bindings(clause: Any, source: bytes) -> Iterator[ImportBinding]:
    for child in clause.named_children:
        if child.type == "identifier":
            yield ImportBinding("default", node_text(child, source), child)
        elif child.type == "namespace_import":
            ident = next((c for c in child.named_children if c.type == "identifier"), None)
            if ident is not None:
                yield ImportBinding("*", node_text(ident, source), child)
        elif child.type == "named_imports":
            for spec in child.named_children:
                if spec.type != "import_specifier":
                    continue
                name = spec.child_by_field_name("name")
                alias = spec.child_by_field_name("alias")
                if name is None:
                    continue
                imported = _string_value(name, source)
                local = node_text(alias, source) if alias is not None else imported
                yield ImportBinding(
                    imported, local, spec, type_only=_has_token(spec, "type")
                )


def _dynamic_imports(root: Any, source: bytes) -> Iterator[ImportInfo]:
    stack = [root]
    while stack:
        node = stack.pop()
        if node.type == "call_expression":
            callee = node.child_by_field_name("function")
            arguments = node.child_by_field_name("arguments")
            if callee is not None and callee.type == "import" and arguments is not None:
                first = next(iter(arguments.named_children), None)
                if first is not None and first.type == "string":
                    yield ImportInfo(
                        specifier=_string_value(first, source), node=first, is_dynamic=True
                    )
        stack.extend(reversed(node.children))


def collect_module_info(parse: ParseResult) -> ModuleInfo:
    """Collect top-level imports and exports, and ``import()`` calls anywhere."""
    source = parse.source
    imports: list[ImportInfo] = []
    exports: set[str] = set()
    star_exports: list[str] = []
    is_module = False
    has_export_assignment = False

    for stmt in parse.root_node.named_children:
        if stmt.type == "import_statement":
            is_module = True
            src = stmt.child_by_field_name("source")
            if src is None:
                continue
            clause = next((c for c in stmt.named_children if c.type == "import_clause"), None)
            bindings = tuple(_import_bindings(clause, source)) if clause is not None else ()
            imports.append(
                ImportInfo(
                    specifier=_string_value(src, source),
                    node=src,
                    bindings=bindings,
                    type_only=_has_token(stmt, "type"),
                )
            )

        elif stmt.type == "export_statement":
            is_module = True
            if _has_token(stmt, "="):
                has_export_assignment = True
                continue
            if _has_token(stmt, "default"):
                exports.add("default")
            declaration = stmt.child_by_field_name("declaration")
            if declaration is not None:
                exports.update(_declared_names(declaration, source))

            src = stmt.child_by_field_name("source")
            clause = next((c for c in stmt.named_children if c.type == "export_clause"), None)
            namespace = next(
                (c for c in stmt.named_children if c.type == "namespace_export"), None
            )
            reexported: list[ImportBinding] = []
            if clause is not None:
                for spec in clause.named_children:
                    if spec.type != "export_specifier":
                        continue
                    name = spec.child_by_field_name("name")
                    alias = spec.child_by_field_name("alias")
                    if name is None:
                        continue
                    local = _string_value(name, source)
                    exports.add(_string_value(alias, source) if alias is not None else local)
                    reexported.append(ImportBinding(local, local, spec))
            if namespace is not None:
                ident = next(iter(namespace.named_children), None)
                if ident is not None:
                    exports.add(_string_value(ident, source))
            if src is not None:
                specifier = _string_value(src, source)
                if clause is None and namespace is None:
                    star_exports.append(specifier)
                imports.append(
                    ImportInfo(
                        specifier=specifier,
                        node=src,
                        bindings=tuple(reexported),
                        type_only=_has_token(stmt, "type"),
                        is_reexport=True,
                    )
                )

    imports.extend(_dynamic_imports(parse.root_node, source))
    return ModuleInfo(
        imports=tuple(imports),
        exports=frozenset(exports),
        star_exports=tuple(star_exports),
        is_module=is_module,
        has_export_assignment=has_export_assignment,
    )


# ---------------------------------------------------------------------------
# Semantic
# ---------------------------------------------------------------------------

_PRIMITIVE_ANNOTATIONS = frozenset({"number", "string", "boolean", "bigint"})
_SCOPE_NODES = frozenset({"program", "statement_block", "class_static_block", "switch_case"})


def _literal_type(node: Any, source: bytes) -> str | None:
    """Primitive type of a literal initializer, or None if not a literal."""
    kind = node.type
    if kind == "number":
        return "bigint" if node_text(node, source).endswith("n") else "number"
    if kind == "string":
        return "string"
    if kind == "template_string":
        has_substitution = any(c.type == "template_substitution" for c in node.named_children)
        return None if has_substitution else "string"
    if kind in ("true", "false"):
        return "boolean"
    if kind == "null":
        return "null"
    if kind == "undefined" or (kind == "identifier" and node_text(node, source) == "undefined"):
        return "undefined"
    if kind == "unary_expression":
        operand = node.child_by_field_name("argument")
        operator = node.child_by_field_name("operator")
        if (
            operand is not None
            and operator is not None
            and node_text(operator, source) in ("-", "+")
        ):
            inner = _literal_type(operand, source)
            return inner if inner in ("number", "bigint") else None
    if kind == "parenthesized_expression" and node.named_child_count == 1:
        return _literal_type(node.named_children[0], source)
    return None


def _walk(node: Any) -> Iterator[Any]:
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.children))


class SemanticChecker:
    """Runs the semantic rules for one file."""

    def __init__(self, modules: ModuleHost, options: CompilerOptions) -> None:
        self._modules = modules
        self._options = options

    def check(self, path: str, parse: ParseResult, info: ModuleInfo) -> list[Diagnostic]:
        index = LineIndex(parse.source)
        diagnostics: list[Diagnostic] = []
        diagnostics.extend(self._check_annotations(path, parse, index))
        diagnostics.extend(self._check_redeclarations(path, parse, index))
        diagnostics.extend(self._check_imports(path, info, index))
        return _sorted(diagnostics)

    def _check_annotations(
        self, path: str, parse: ParseResult, index: LineIndex
    ) -> Iterator[Diagnostic]:
        if not parse.typed:
            return
        source = parse.source
        for node in _walk(parse.root_node):
            if node.type != "variable_declarator":
                continue
            name = node.child_by_field_name("name")
            annotation = node.child_by_field_name("type")
            value = node.child_by_field_name("value")
            if name is None or annotation is None or value is None:
                continue
            declared = next(iter(annotation.named_children), None)
            if declared is None or declared.type != "predefined_type":
                continue
            target = node_text(declared, source)
            if target not in _PRIMITIVE_ANNOTATIONS:
                continue
            actual = _literal_type(value, source)
            if actual is None or actual == target:
                continue
            if actual in ("null", "undefined") and not self._options.strict:
                continue
            yield _diagnostic(
                index,
                path,
                name,
                2322,
                f"Type '{actual}' is not assignable to type '{target}'.",
            )

    def _check_redeclarations(
        self, path: str, parse: ParseResult, index: LineIndex
    ) -> Iterator[Diagnostic]:
        source = parse.source
        for scope in _walk(parse.root_node):
            if scope.type not in _SCOPE_NODES:
                continue
            declared: dict[str, list[tuple[bool, Any]]] = {}
            for stmt in scope.named_children:
                decl = stmt
                if stmt.type == "export_statement":
                    decl = stmt.child_by_field_name("declaration")
                    if decl is None:
                        continue
                if decl.type not in ("lexical_declaration", "variable_declaration"):
                    continue
                block_scoped = decl.type == "lexical_declaration"
                for declarator in decl.named_children:
                    if declarator.type != "variable_declarator":
                        continue
                    name = declarator.child_by_field_name("name")
                    if name is None or name.type != "identifier":
                        continue
                    declared.setdefault(node_text(name, source), []).append((block_scoped, name))
            for ident, occurrences in declared.items():
                if len(occurrences) < 2 or not any(scoped for scoped, _ in occurrences):
                    continue
                for _, name in occurrences:
                    yield _diagnostic(
                        index,
                        path,
                        name,
                        2451,
                        f"Cannot redeclare block-scoped variable '{ident}'.",
                    )

    def _check_imports(self, path: str, info: ModuleInfo, index: LineIndex) -> Iterator[Diagnostic]:
        for imp in info.imports:
            if not imp.is_relative:
                continue
            resolved = self._modules.resolve_module(imp.specifier, path)
            if resolved is None:
                yield _diagnostic(
                    index,
                    path,
                    imp.node,
                    2307,
                    f"Cannot find module '{imp.specifier}' "
                    "or its corresponding type declarations.",
                )
                continue
            bindings = [b for b in imp.bindings if b.imported != "*"]
            if not bindings:
                continue
            target = self._modules.module_info(resolved)
            if target is None or target.has_export_assignment:
                continue
            if not target.is_module:
                if _is_typescript(resolved):
                    yield _diagnostic(
                        index, path, imp.node, 2306, f"File '{resolved}' is not a module."
                    )
                continue
            names = self._exported_names(resolved, set())
            if names is None:
                continue
            for binding in bindings:
                if binding.imported in names:
                    continue
                if binding.imported == "default":
                    if imp.is_reexport:
                        continue
                    yield _diagnostic(
                        index,
                        path,
                        binding.node,
                        1192,
                        f"Module '\"{imp.specifier}\"' has no default export.",
                    )
                else:
                    yield _diagnostic(
                        index,
                        path,
                        binding.node,
                        2305,
                        f"Module '\"{imp.specifier}\"' has no exported member "
                        f"'{binding.imported}'.",
                    )

    def _exported_names(self, path: str, visited: set[str]) -> set[str] | None:
        """All names ``path`` exports, following ``export *``.

        Returns None when the set cannot be known (unresolvable star export
        or an ``export =`` module in the chain).
        """
        if path in visited:
            return set()
        visited.add(path)
        info = self._modules.module_info(path)
        if info is None or info.has_export_assignment:
            return None
        names = set(info.exports)
        for specifier in info.star_exports:
            target = self._modules.resolve_module(specifier, path)
            if target is None:
                return None
            inner = self._exported_names(target, visited)
            if inner is None:
                return None
            names.update(n for n in inner if n != "default")
        return names


def _is_typescript(path: str) -> bool:
    return os.path.splitext(path)[1].lower() in (".ts", ".tsx", ".mts", ".cts")
