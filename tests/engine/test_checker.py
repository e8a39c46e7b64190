"""Unit tests for syntactic and semantic checks."""

from __future__ import annotations

import os

import pytest

from tsplane.config.tsconfig import CompilerOptions
from tsplane.engine.checker import (
    LineIndex,
    ModuleInfo,
    SemanticChecker,
    collect_module_info,
    syntactic_diagnostics,
)
from tsplane.engine.models import Diagnostic, DiagnosticCategory, TextPosition
from tsplane.engine.parser import SourceParser


class InMemoryModules:
    """ModuleHost over a dict of ``path -> text``."""

    def __init__(self, parser: SourceParser, files: dict[str, str]) -> None:
        self._parser = parser
        self.files = files

    def resolve_module(self, specifier: str, containing_file: str) -> str | None:
        base = os.path.normpath(os.path.join(os.path.dirname(containing_file), specifier))
        for candidate in (base, base + ".ts", base + ".d.ts", os.path.join(base, "index.ts")):
            if candidate in self.files:
                return candidate
        return None

    def module_info(self, path: str) -> ModuleInfo | None:
        if path not in self.files:
            return None
        return collect_module_info(self._parser.parse(path, self.files[path]))


@pytest.fixture
def modules(parser: SourceParser) -> InMemoryModules:
    return InMemoryModules(parser, {})


def _check(
    parser: SourceParser,
    modules: InMemoryModules,
    text: str,
    *,
    path: str = "/p/a.ts",
    strict: bool = False,
) -> list[Diagnostic]:
    modules.files[path] = text
    parse = parser.parse(path, text)
    checker = SemanticChecker(modules, CompilerOptions(strict=strict))
    return checker.check(path, parse, collect_module_info(parse))


class TestSyntacticDiagnostics:
    """ERROR and MISSING nodes."""

    def test_valid_source_has_none(self, parser: SourceParser) -> None:
        parse = parser.parse("/p/a.ts", 'const x: number = "s";\n')
        assert syntactic_diagnostics("/p/a.ts", parse) == []

    def test_broken_source_reported(self, parser: SourceParser) -> None:
        parse = parser.parse("/p/a.ts", "const = ;\nlet ok = 1;\n")

        diagnostics = syntactic_diagnostics("/p/a.ts", parse)

        assert diagnostics
        assert all(d.code in (1005, 1128) for d in diagnostics)
        assert all(d.category == DiagnosticCategory.ERROR for d in diagnostics)
        assert all(d.file == "/p/a.ts" for d in diagnostics)

    def test_diagnostics_sorted_by_position(self, parser: SourceParser) -> None:
        parse = parser.parse("/p/a.ts", "let a = ;\nlet b = ;\nlet c = ;\n")

        diagnostics = syntactic_diagnostics("/p/a.ts", parse)

        starts = [d.start for d in diagnostics]
        assert starts == sorted(starts)


class TestLineIndex:
    def test_columns_counted_in_characters(self) -> None:
        index = LineIndex("const é = 1;\n".encode())
        # "const é" is 8 bytes but 7 characters
        assert index.position((0, 8)) == TextPosition(0, 7)


class TestTypeMismatch:
    """Primitive annotations against literal initializers."""

    def test_string_literal_for_number(
        self, parser: SourceParser, modules: InMemoryModules
    ) -> None:
        diagnostics = _check(parser, modules, 'const x: number = "s";\n')

        assert len(diagnostics) == 1
        d = diagnostics[0]
        assert d.code == 2322
        assert d.message == "Type 'string' is not assignable to type 'number'."
        assert d.start == TextPosition(0, 6)
        assert d.end == TextPosition(0, 7)

    def test_number_literal_for_string(
        self, parser: SourceParser, modules: InMemoryModules
    ) -> None:
        diagnostics = _check(parser, modules, "let s: string = 42;\n")

        assert [d.message for d in diagnostics] == [
            "Type 'number' is not assignable to type 'string'."
        ]

    def test_matching_literals_are_fine(
        self, parser: SourceParser, modules: InMemoryModules
    ) -> None:
        text = (
            "const a: number = -1;\n"
            'const b: string = "b";\n'
            "const c: boolean = false;\n"
            "const d: bigint = 10n;\n"
            "const e: string = `t`;\n"
        )
        assert _check(parser, modules, text) == []

    def test_non_literal_initializer_ignored(
        self, parser: SourceParser, modules: InMemoryModules
    ) -> None:
        assert _check(parser, modules, "const n: number = Number('1');\n") == []

    def test_null_only_reported_in_strict_mode(
        self, parser: SourceParser, modules: InMemoryModules
    ) -> None:
        text = "let s: string = null;\n"

        assert _check(parser, modules, text) == []
        strict = _check(parser, modules, text, strict=True)
        assert [d.message for d in strict] == ["Type 'null' is not assignable to type 'string'."]

    def test_javascript_not_type_checked(
        self, parser: SourceParser, modules: InMemoryModules
    ) -> None:
        assert _check(parser, modules, 'const x = "s";\n', path="/p/a.js") == []


class TestRedeclaration:
    """Block-scoped redeclarations."""

    def test_let_declared_twice(self, parser: SourceParser, modules: InMemoryModules) -> None:
        diagnostics = _check(parser, modules, "let a = 1;\nlet a = 2;\n")

        assert [d.code for d in diagnostics] == [2451, 2451]
        assert diagnostics[0].message == "Cannot redeclare block-scoped variable 'a'."
        assert [d.start.line for d in diagnostics] == [0, 1]

    def test_var_declared_twice_is_allowed(
        self, parser: SourceParser, modules: InMemoryModules
    ) -> None:
        assert _check(parser, modules, "var a = 1;\nvar a = 2;\n") == []

    def test_shadowing_in_nested_block_is_allowed(
        self, parser: SourceParser, modules: InMemoryModules
    ) -> None:
        assert _check(parser, modules, "let a = 1;\n{\n  let a = 2;\n}\n") == []

    def test_redeclaration_inside_function_body(
        self, parser: SourceParser, modules: InMemoryModules
    ) -> None:
        text = "function f() {\n  const b = 1;\n  const b = 2;\n}\n"
        diagnostics = _check(parser, modules, text)
        assert [d.code for d in diagnostics] == [2451, 2451]


class TestImports:
    """Relative import resolution and exported members."""

    def test_unresolved_relative_import(
        self, parser: SourceParser, modules: InMemoryModules
    ) -> None:
        diagnostics = _check(parser, modules, 'import { x } from "./missing";\n')

        assert len(diagnostics) == 1
        assert diagnostics[0].code == 2307
        assert diagnostics[0].message == (
            "Cannot find module './missing' or its corresponding type declarations."
        )

    def test_unresolved_dynamic_import(
        self, parser: SourceParser, modules: InMemoryModules
    ) -> None:
        # Given an import() call nested inside a function
        text = 'async function load() {\n    return import("./nope");\n}\n'

        # When
        diagnostics = _check(parser, modules, text)

        # Then the specifier string is reported
        assert [d.code for d in diagnostics] == [2307]
        assert (diagnostics[0].start.line, diagnostics[0].start.column) == (1, 18)

    def test_dynamic_import_of_existing_file(
        self, parser: SourceParser, modules: InMemoryModules
    ) -> None:
        modules.files["/p/b.ts"] = "export const x = 1;\n"
        assert _check(parser, modules, 'const b = import("./b");\n') == []

    def test_computed_dynamic_import_not_checked(
        self, parser: SourceParser, modules: InMemoryModules
    ) -> None:
        assert _check(parser, modules, "const m = import(name);\n") == []

    def test_package_imports_not_checked(
        self, parser: SourceParser, modules: InMemoryModules
    ) -> None:
        assert _check(parser, modules, 'import React from "react";\n') == []

    def test_existing_member(self, parser: SourceParser, modules: InMemoryModules) -> None:
        modules.files["/p/b.ts"] = "export const x = 1;\n"
        assert _check(parser, modules, 'import { x } from "./b";\n') == []

    def test_missing_member(self, parser: SourceParser, modules: InMemoryModules) -> None:
        modules.files["/p/b.ts"] = "export const x = 1;\n"

        diagnostics = _check(parser, modules, 'import { x, y } from "./b";\n')

        assert [(d.code, d.message) for d in diagnostics] == [
            (2305, "Module '\"./b\"' has no exported member 'y'.")
        ]

    def test_missing_default_export(
        self, parser: SourceParser, modules: InMemoryModules
    ) -> None:
        modules.files["/p/b.ts"] = "export function f() {}\n"

        diagnostics = _check(parser, modules, 'import b from "./b";\n')

        assert [(d.code, d.message) for d in diagnostics] == [
            (1192, "Module '\"./b\"' has no default export.")
        ]

    def test_default_export_present(
        self, parser: SourceParser, modules: InMemoryModules
    ) -> None:
        modules.files["/p/b.ts"] = "export default class B {}\n"
        assert _check(parser, modules, 'import B from "./b";\n') == []

    def test_import_of_script_file(
        self, parser: SourceParser, modules: InMemoryModules
    ) -> None:
        modules.files["/p/script.ts"] = "const x = 1;\n"

        diagnostics = _check(parser, modules, 'import { x } from "./script";\n')

        assert [(d.code, d.message) for d in diagnostics] == [
            (2306, "File '/p/script.ts' is not a module.")
        ]

    def test_star_reexport_followed(
        self, parser: SourceParser, modules: InMemoryModules
    ) -> None:
        modules.files["/p/b.ts"] = "export const x = 1;\n"
        modules.files["/p/index.ts"] = 'export * from "./b";\nexport { x as y } from "./b";\n'

        assert _check(parser, modules, 'import { x, y } from "./index";\n') == []

    def test_namespace_import_never_reports_members(
        self, parser: SourceParser, modules: InMemoryModules
    ) -> None:
        modules.files["/p/b.ts"] = "export const x = 1;\n"
        assert _check(parser, modules, 'import * as b from "./b";\n') == []


class TestModuleInfo:
    def test_collects_imports_and_exports(self, parser: SourceParser) -> None:
        parse = parser.parse(
            "/p/a.ts",
            'import { a } from "./a";\n'
            "export const b = 1, c = 2;\n"
            "export function f() {}\n"
            "export interface I {}\n"
            "export default 1;\n"
            'export * from "./z";\n',
        )

        info = collect_module_info(parse)

        assert info.is_module
        assert {"b", "c", "f", "I", "default"} <= info.exports
        assert info.star_exports == ("./z",)
        assert [imp.specifier for imp in info.imports] == ["./a", "./z"]
        assert info.imports[0].is_relative

    def test_script_has_no_module_shape(self, parser: SourceParser) -> None:
        info = collect_module_info(parser.parse("/p/a.ts", "const a = 1;\n"))
        assert not info.is_module
        assert info.exports == frozenset()

    def test_dynamic_import_collected_without_making_a_module(
        self, parser: SourceParser
    ) -> None:
        info = collect_module_info(parser.parse("/p/a.ts", 'const m = import("./m");\n'))

        assert not info.is_module
        assert [imp.specifier for imp in info.imports] == ["./m"]
        assert info.imports[0].is_dynamic
        assert info.imports[0].bindings == ()
