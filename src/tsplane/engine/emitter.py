"""Type-erasing emit: TypeScript source in, JavaScript text out.

Emission works on byte-range edits computed from the parse tree and applied
to the original source, so everything that is not TypeScript-only syntax is
emitted exactly as written. Handled:

- annotations, type parameters and arguments, ``implements``, ``as`` /
  ``satisfies`` / ``!`` assertions, accessibility and ``readonly`` modifiers
- interfaces, type aliases, ``declare`` statements, overload signatures,
  abstract members, type-only imports and exports
- imports whose bindings are only used as types are elided
- ``enum`` declarations become the usual IIFE
- instantiated namespaces become an IIFE; exported members are assigned onto
  the namespace object. Namespaces holding only types are removed
- constructor parameter properties become ``this.x = x;`` assignments

JSX is preserved (``.tsx`` emits ``.jsx``).
"""

from __future__ import annotations

import os
from collections.abc import Iterator
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from tsplane.engine.parser import ParseResult, node_text

if TYPE_CHECKING:
    from tsplane.config.tsconfig import CompilerOptions

_REMOVE_NODES = frozenset(
    {
        "type_annotation",
        "type_parameters",
        "type_arguments",
        "implements_clause",
        "asserts_annotation",
        "type_predicate_annotation",
        "opting_type_annotation",
        "omitting_type_annotation",
    }
)

_MODIFIERS = frozenset({"accessibility_modifier", "override_modifier", "readonly", "abstract"})

_REMOVE_STATEMENTS = frozenset(
    {
        "interface_declaration",
        "type_alias_declaration",
        "ambient_declaration",
        "function_signature",
        "abstract_method_signature",
        "method_signature",
        "index_signature",
    }
)

_NAMESPACES = frozenset({"internal_module", "module"})

_OUTPUT_EXTENSIONS = {
    ".ts": ".js",
    ".mts": ".mjs",
    ".cts": ".cjs",
    ".tsx": ".jsx",
    ".js": ".js",
    ".mjs": ".mjs",
    ".cjs": ".cjs",
    ".jsx": ".jsx",
}


@dataclass(frozen=True)
class _Edit:
    start: int
    end: int
    text: str = ""


def output_file_name(path: str, options: CompilerOptions, root: str) -> str | None:
    """Name of the JavaScript file emitted for ``path``, or None if nothing is emitted."""
    if path.endswith((".d.ts", ".d.mts", ".d.cts")):
        return None
    base, ext = os.path.splitext(path)
    out_ext = _OUTPUT_EXTENSIONS.get(ext.lower())
    if out_ext is None:
        return None
    if options.out_dir is None:
        return base + out_ext
    source_root = options.root_dir or root
    rel = os.path.relpath(base, source_root)
    if rel.startswith(os.pardir):
        rel = os.path.basename(base)
    return os.path.join(options.out_dir, rel + out_ext)


def _children_of_type(node: Any, kind: str) -> Iterator[Any]:
    return (child for child in node.children if child.type == kind)


class Emitter:
    """Emits one parsed file."""

    def __init__(self, options: CompilerOptions, new_line: str) -> None:
        self._options = options
        self._new_line = new_line

    def emit(self, parse: ParseResult) -> str:
        self._source = parse.source
        self._edits: list[_Edit] = []
        if parse.typed:
            self._value_refs = self._collect_value_references(parse.root_node)
            self._visit(parse.root_node)
        elif self._options.remove_comments:
            self._strip_comments(parse.root_node)
        text = self._apply()
        return self._normalize_newlines(text)

    # ------------------------------------------------------------------
    # Edits
    # ------------------------------------------------------------------

    def _remove(self, node: Any) -> None:
        self._edits.append(_Edit(node.start_byte, node.end_byte))

    def _remove_statement(self, node: Any) -> None:
        """Remove a statement, taking its line with it when it stands alone."""
        source = self._source
        start, end = node.start_byte, node.end_byte
        line_start = source.rfind(b"\n", 0, start) + 1
        line_end = source.find(b"\n", end)
        line_end = len(source) if line_end == -1 else line_end
        if not source[line_start:start].strip() and not source[end:line_end].strip():
            start = line_start
            end = min(line_end + 1, len(source))
        self._edits.append(_Edit(start, end))

    def _remove_token(self, node: Any) -> None:
        """Remove a modifier keyword and the space that follows it."""
        end = node.end_byte
        while self._source[end : end + 1] in (b" ", b"\t"):
            end += 1
        self._edits.append(_Edit(node.start_byte, end))

    def _replace(self, node: Any, text: str) -> None:
        self._edits.append(_Edit(node.start_byte, node.end_byte, text))

    def _insert(self, offset: int, text: str) -> None:
        self._edits.append(_Edit(offset, offset, text))

    def _apply(self) -> str:
        out = bytearray()
        cursor = 0
        for edit in sorted(self._edits, key=lambda e: (e.start, e.end)):
            if edit.start < cursor:
                continue
            out += self._source[cursor : edit.start]
            out += edit.text.encode("utf-8")
            cursor = edit.end
        out += self._source[cursor:]
        return out.decode("utf-8")

    def _normalize_newlines(self, text: str) -> str:
        text = text.replace("\r\n", "\n")
        return text if self._new_line == "\n" else text.replace("\n", self._new_line)

    def _text(self, node: Any) -> str:
        return node_text(node, self._source)

    def _indent_of(self, node: Any) -> str:
        line_start = self._source.rfind(b"\n", 0, node.start_byte) + 1
        prefix = self._source[line_start : node.start_byte].decode("utf-8", errors="replace")
        return prefix[: len(prefix) - len(prefix.lstrip())]

    # ------------------------------------------------------------------
    # Tree walk
    # ------------------------------------------------------------------

    def _visit(self, node: Any) -> None:
        kind = node.type

        if kind in _REMOVE_NODES:
            self._remove(node)
            return
        if kind in _MODIFIERS:
            self._remove_token(node)
            return
        if kind in _REMOVE_STATEMENTS:
            self._remove_statement(node)
            return
        if kind == "comment":
            if self._options.remove_comments and not self._text(node).startswith("/*!"):
                self._remove_statement(node)
            return

        handler = getattr(self, f"_visit_{kind}", None)
        if handler is not None and handler(node):
            return
        for child in node.children:
            self._visit(child)

    def _visit_import_statement(self, node: Any) -> bool:
        if any(c.type == "type" for c in node.children):
            self._remove_statement(node)
            return True
        clause = next((c for c in node.named_children if c.type == "import_clause"), None)
        if clause is None:
            return True

        default: str | None = None
        namespace: str | None = None
        named: list[str] = []
        total = 0
        for child in clause.named_children:
            if child.type == "identifier":
                total += 1
                if self._text(child) in self._value_refs:
                    default = self._text(child)
            elif child.type == "namespace_import":
                total += 1
                local = next((c for c in child.named_children if c.type == "identifier"), None)
                if local is not None and self._text(local) in self._value_refs:
                    namespace = self._text(local)
            elif child.type == "named_imports":
                for spec in child.named_children:
                    if spec.type != "import_specifier":
                        continue
                    total += 1
                    if any(c.type == "type" for c in spec.children):
                        continue
                    name = spec.child_by_field_name("name")
                    alias = spec.child_by_field_name("alias")
                    local = alias if alias is not None else name
                    if local is not None and self._text(local) in self._value_refs:
                        text = self._text(name)
                        if alias is not None:
                            text = f"{text} as {self._text(alias)}"
                        named.append(text)

        kept = (default is not None) + (namespace is not None) + len(named)
        if kept == total:
            return True
        if kept == 0:
            self._remove_statement(node)
            return True

        parts: list[str] = []
        if default is not None:
            parts.append(default)
        if namespace is not None:
            parts.append(f"* as {namespace}")
        if named:
            parts.append("{ " + ", ".join(named) + " }")
        source = node.child_by_field_name("source")
        self._replace(node, f"import {', '.join(parts)} from {self._text(source)};")
        return True

    def _visit_export_statement(self, node: Any) -> bool:
        if any(c.type == "type" for c in node.children):
            self._remove_statement(node)
            return True
        declaration = node.child_by_field_name("declaration")
        if declaration is None:
            return False
        if declaration.type in _REMOVE_STATEMENTS:
            self._remove_statement(node)
            return True
        if declaration.type == "enum_declaration":
            self._replace(
                node, self._emit_enum(declaration, exported=True, indent=self._indent_of(node))
            )
            return True
        if declaration.type in _NAMESPACES:
            self._lower_namespace(declaration, node, exported=True)
            return True
        return False

    def _visit_enum_declaration(self, node: Any) -> bool:
        self._replace(node, self._emit_enum(node, exported=False, indent=self._indent_of(node)))
        return True

    def _visit_internal_module(self, node: Any) -> bool:
        self._lower_namespace(node, node)
        return True

    _visit_module = _visit_internal_module

    def _visit_as_expression(self, node: Any) -> bool:
        expression = node.named_children[0] if node.named_children else None
        if expression is None:
            return False
        self._edits.append(_Edit(expression.end_byte, node.end_byte))
        self._visit(expression)
        return True

    _visit_satisfies_expression = _visit_as_expression

    def _visit_non_null_expression(self, node: Any) -> bool:
        for bang in _children_of_type(node, "!"):
            self._remove(bang)
        return False

    def _visit_optional_parameter(self, node: Any) -> bool:
        for token in _children_of_type(node, "?"):
            self._remove(token)
        return False

    def _visit_variable_declarator(self, node: Any) -> bool:
        for bang in _children_of_type(node, "!"):
            self._remove(bang)
        return False

    def _visit_public_field_definition(self, node: Any) -> bool:
        tokens = {c.type for c in node.children}
        if "declare" in tokens or "abstract" in tokens:
            self._remove_statement(node)
            return True
        for token in node.children:
            if token.type in ("?", "!"):
                self._remove(token)
        return False

    def _visit_method_definition(self, node: Any) -> bool:
        for token in _children_of_type(node, "?"):
            self._remove(token)
        name = node.child_by_field_name("name")
        if name is None or self._text(name) != "constructor":
            return False
        params = node.child_by_field_name("parameters")
        body = node.child_by_field_name("body")
        if params is None or body is None:
            return False

        properties: list[str] = []
        for param in params.named_children:
            if param.type not in ("required_parameter", "optional_parameter"):
                continue
            modifiers = {c.type for c in param.children}
            if not modifiers & {"accessibility_modifier", "readonly", "override_modifier"}:
                continue
            pattern = param.child_by_field_name("pattern")
            if pattern is not None and pattern.type == "identifier":
                properties.append(self._text(pattern))
        if not properties:
            return False

        indent = self._indent_of(node) + "    "
        assignments = "".join(f"\n{indent}this.{p} = {p};" for p in properties)
        anchor = body.children[0].end_byte  # after "{"
        statements = [c for c in body.named_children if c.type != "comment"]
        if statements and self._is_super_call(statements[0]):
            anchor = statements[0].end_byte
        self._insert(anchor, assignments)
        return False

    def _is_super_call(self, node: Any) -> bool:
        if node.type != "expression_statement" or not node.named_children:
            return False
        call = node.named_children[0]
        if call.type != "call_expression":
            return False
        callee = call.child_by_field_name("function")
        return callee is not None and callee.type == "super"

    # ------------------------------------------------------------------
    # Enums
    # ------------------------------------------------------------------

    def _emit_enum(self, node: Any, *, exported: bool, indent: str) -> str:
        name = self._text(node.child_by_field_name("name"))
        body = node.child_by_field_name("body")
        lines: list[str] = []
        next_value: int | None = 0
        previous: str | None = None

        members = [c for c in body.named_children if c.type != "comment"] if body else []
        for member in members:
            if member.type == "enum_assignment":
                key_node = member.child_by_field_name("name")
                value = member.child_by_field_name("value")
            else:
                key_node, value = member, None
            key = self._text(key_node).strip("'\"")

            if value is None:
                if next_value is None and previous is not None:
                    initializer = f'{name}["{previous}"] + 1'
                else:
                    initializer = str(next_value or 0)
                    next_value = (next_value or 0) + 1
                lines.append(f'{name}[{name}["{key}"] = {initializer}] = "{key}";')
            elif value.type in ("string", "template_string"):
                lines.append(f'{name}["{key}"] = {self._text(value)};')
                next_value = None
            else:
                text = self._text(value)
                try:
                    next_value = int(text, 0) + 1
                except ValueError:
                    next_value = None
                lines.append(f'{name}[{name}["{key}"] = {text}] = "{key}";')
            previous = key

        head = f"export var {name};" if exported else f"var {name};"
        out = [head, f"{indent}(function ({name}) {{"]
        out.extend(f"{indent}    {line}" for line in lines)
        out.append(f"{indent}}})({name} || ({name} = {{}}));")
        return "\n".join(out)

    # ------------------------------------------------------------------
    # Namespaces
    # ------------------------------------------------------------------

    def _lower_namespace(
        self, node: Any, outer: Any, *, exported: bool = False, owner: str | None = None
    ) -> None:
        """Rewrite ``namespace A.B { ... }`` in place as nested IIFEs.

        The header and closing brace are replaced and the body is walked
        normally, so type erasure inside the namespace still applies. ``owner``
        is the enclosing namespace when this one is exported from it.
        """
        name = node.child_by_field_name("name")
        body = node.child_by_field_name("body")
        if (
            name is None
            or body is None
            or name.type not in ("identifier", "nested_identifier")
            or not self._is_instantiated(node)
        ):
            self._remove_statement(outer)
            return

        parts = [p.strip() for p in self._text(name).split(".")]
        indent = self._indent_of(outer)
        head: list[str] = []
        tail: list[str] = []
        for depth, part in enumerate(parts):
            pad = indent + "    " * depth
            keyword = "export var" if exported and depth == 0 else "var"
            head.append(f"{pad}{keyword} {part};")
            head.append(f"{pad}(function ({part}) {{")
            parent = owner if depth == 0 else parts[depth - 1]
            if parent:
                target = f"{part} = {parent}.{part} || ({parent}.{part} = {{}})"
            else:
                target = f"{part} || ({part} = {{}})"
            tail.insert(0, f"{pad}}})({target});")
        header = "\n".join(head)[len(indent) :]
        self._edits.append(_Edit(outer.start_byte, body.start_byte + 1, header))
        self._edits.append(_Edit(body.end_byte - 1, body.end_byte, "\n".join(tail).lstrip()))

        inner = parts[-1]
        for statement in body.named_children:
            if statement.type != "export_statement":
                self._visit(statement)
                continue
            declaration = statement.child_by_field_name("declaration")
            if (
                declaration is None
                or declaration.type in _REMOVE_STATEMENTS
                or any(c.type == "type" for c in statement.children)
            ):
                self._visit(statement)
                continue
            if declaration.type in _NAMESPACES:
                self._lower_namespace(declaration, statement, owner=inner)
                continue
            self._edits.append(_Edit(statement.start_byte, declaration.start_byte))
            pad = self._indent_of(statement)
            if declaration.type == "enum_declaration":
                self._replace(declaration, self._emit_enum(declaration, exported=False, indent=pad))
            else:
                self._visit(declaration)
            assignments = [f"\n{pad}{inner}.{n} = {n};" for n in self._declared_names(declaration)]
            if assignments:
                self._insert(statement.end_byte, "".join(assignments))

    def _is_instantiated(self, node: Any) -> bool:
        """True when a namespace body holds anything besides types."""
        body = node.child_by_field_name("body")
        if body is None:
            return False
        for statement in body.named_children:
            target = statement
            if statement.type == "export_statement":
                if any(c.type == "type" for c in statement.children):
                    continue
                target = statement.child_by_field_name("declaration") or statement
            if target.type == "expression_statement" and target.named_children:
                if target.named_children[0].type in _NAMESPACES:
                    target = target.named_children[0]
            if target.type == "comment" or target.type in _REMOVE_STATEMENTS:
                continue
            if target.type in _NAMESPACES:
                if self._is_instantiated(target):
                    return True
                continue
            return True
        return False

    def _declared_names(self, declaration: Any) -> list[str]:
        if declaration.type in ("lexical_declaration", "variable_declaration"):
            names = []
            for declarator in _children_of_type(declaration, "variable_declarator"):
                name = declarator.child_by_field_name("name")
                if name is not None and name.type == "identifier":
                    names.append(self._text(name))
            return names
        name = declaration.child_by_field_name("name")
        return [self._text(name)] if name is not None else []

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _collect_value_references(self, root: Any) -> set[str]:
        """Identifiers used outside type positions and import statements."""
        refs: set[str] = set()
        stack = [root]
        while stack:
            node = stack.pop()
            kind = node.type
            if kind in _REMOVE_NODES or kind in _REMOVE_STATEMENTS or kind == "import_statement":
                continue
            if kind in ("identifier", "shorthand_property_identifier"):
                refs.add(self._text(node))
            stack.extend(node.children)
        return refs

    def _strip_comments(self, root: Any) -> None:
        stack = [root]
        while stack:
            node = stack.pop()
            if node.type == "comment":
                if not self._text(node).startswith("/*!"):
                    self._remove_statement(node)
                continue
            stack.extend(node.children)
