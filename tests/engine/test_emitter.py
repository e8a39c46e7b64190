"""Unit tests for type-erasing emit."""

from __future__ import annotations

import os

import pytest

from tsplane.config.tsconfig import CompilerOptions
from tsplane.engine.emitter import Emitter, output_file_name
from tsplane.engine.parser import SourceParser


def _emit(
    parser: SourceParser,
    text: str,
    *,
    path: str = "/p/a.ts",
    new_line: str = "\n",
    **options: object,
) -> str:
    return Emitter(CompilerOptions(**options), new_line).emit(parser.parse(path, text))


class TestOutputFileName:
    """Emitted file naming."""

    @pytest.mark.parametrize(
        ("source", "expected"),
        [
            ("/p/src/a.ts", "/p/src/a.js"),
            ("/p/src/a.mts", "/p/src/a.mjs"),
            ("/p/src/a.cts", "/p/src/a.cjs"),
            ("/p/src/App.tsx", "/p/src/App.jsx"),
        ],
    )
    def test_extension_mapping(self, source: str, expected: str) -> None:
        assert output_file_name(source, CompilerOptions(), "/p") == expected

    def test_declaration_file_emits_nothing(self) -> None:
        assert output_file_name("/p/types.d.ts", CompilerOptions(), "/p") is None

    def test_unknown_extension_emits_nothing(self) -> None:
        assert output_file_name("/p/a.css", CompilerOptions(), "/p") is None

    def test_out_dir_keeps_layout_relative_to_root(self) -> None:
        options = CompilerOptions(out_dir="/p/dist")
        assert output_file_name("/p/src/a.ts", options, "/p") == os.path.join(
            "/p/dist", "src", "a.js"
        )

    def test_root_dir_trims_layout(self) -> None:
        options = CompilerOptions(out_dir="/p/dist", root_dir="/p/src")
        assert output_file_name("/p/src/lib/a.ts", options, "/p") == os.path.join(
            "/p/dist", "lib", "a.js"
        )

    def test_file_outside_root_lands_at_out_dir_top(self) -> None:
        options = CompilerOptions(out_dir="/p/dist")
        assert output_file_name("/shared/util.ts", options, "/p") == os.path.join(
            "/p/dist", "util.js"
        )


class TestTypeErasure:
    """Annotations and type-only declarations disappear."""

    def test_variable_annotation(self, parser: SourceParser) -> None:
        assert _emit(parser, "const x: number = 1;\n") == "const x = 1;\n"

    def test_function_signature_types(self, parser: SourceParser) -> None:
        text = "function f(a: number, b?: string): void {}\n"
        assert _emit(parser, text) == "function f(a, b) {}\n"

    def test_generic_parameters(self, parser: SourceParser) -> None:
        text = "function id<T>(v: T): T { return v; }\n"
        assert _emit(parser, text) == "function id(v) { return v; }\n"

    def test_interface_and_type_alias_removed(self, parser: SourceParser) -> None:
        text = "interface A { a: number }\ntype B = string;\nconst c = 1;\n"
        assert _emit(parser, text) == "const c = 1;\n"

    def test_declare_statement_removed(self, parser: SourceParser) -> None:
        text = "declare const VERSION: string;\nconst v = 1;\n"
        assert _emit(parser, text) == "const v = 1;\n"

    def test_as_and_non_null(self, parser: SourceParser) -> None:
        text = "const n = (value as number) + other!.size;\n"
        assert _emit(parser, text) == "const n = (value) + other.size;\n"

    def test_satisfies(self, parser: SourceParser) -> None:
        text = "const cfg = { a: 1 } satisfies Config;\n"
        assert _emit(parser, text) == "const cfg = { a: 1 };\n"

    def test_exported_interface_removed(self, parser: SourceParser) -> None:
        text = "export interface Props { a: number }\nexport const p = 1;\n"
        assert _emit(parser, text) == "export const p = 1;\n"


class TestClasses:
    """Class members and modifiers."""

    def test_parameter_properties_become_assignments(self, parser: SourceParser) -> None:
        text = "class P {\n    constructor(private x: number, readonly y: string) {}\n}\n"

        out = _emit(parser, text)

        assert "constructor(x, y) {" in out
        assert "this.x = x;" in out
        assert "this.y = y;" in out
        assert "private" not in out
        assert "readonly" not in out

    def test_assignments_follow_super_call(self, parser: SourceParser) -> None:
        text = (
            "class C extends B {\n"
            "    constructor(public n: number) {\n"
            "        super();\n"
            "    }\n"
            "}\n"
        )

        out = _emit(parser, text)

        assert out.index("super();") < out.index("this.n = n;")

    def test_modifiers_and_field_types_removed(self, parser: SourceParser) -> None:
        text = "abstract class A implements I {\n    protected count: number = 0;\n}\n"

        out = _emit(parser, text)

        assert out.startswith("class A")
        assert "implements" not in out
        assert "count = 0;" in out
        assert "protected" not in out


class TestEnums:
    def test_numeric_enum(self, parser: SourceParser) -> None:
        out = _emit(parser, "enum Color { Red, Green = 5, Blue }\n")

        assert out.startswith("var Color;\n(function (Color) {\n")
        assert 'Color[Color["Red"] = 0] = "Red";' in out
        assert 'Color[Color["Green"] = 5] = "Green";' in out
        assert 'Color[Color["Blue"] = 6] = "Blue";' in out
        assert out.rstrip().endswith("})(Color || (Color = {}));")

    def test_string_enum(self, parser: SourceParser) -> None:
        out = _emit(parser, 'export enum Mode { On = "on" }\n')

        assert out.startswith("export var Mode;")
        assert 'Mode["On"] = "on";' in out


class TestNamespaces:
    """Namespaces with values become an IIFE over the namespace object."""

    def test_exported_members_assigned_onto_namespace(self, parser: SourceParser) -> None:
        # Given
        text = (
            "namespace N {\n"
            "    export const a: number = 1;\n"
            "    export function f(): void {}\n"
            "    interface I {}\n"
            "}\n"
        )

        # When
        out = _emit(parser, text)

        # Then
        assert out == (
            "var N;\n"
            "(function (N) {\n"
            "    const a = 1;\n"
            "    N.a = a;\n"
            "    function f() {}\n"
            "    N.f = f;\n"
            "})(N || (N = {}));\n"
        )

    def test_single_line_namespace_is_valid_javascript(self, parser: SourceParser) -> None:
        out = _emit(parser, "namespace N { export const a = 1; }\n")

        assert out.startswith("var N;\n(function (N) {")
        assert "export" not in out
        assert "N.a = a;" in out
        assert out.rstrip().endswith("})(N || (N = {}));")

    def test_type_only_namespace_removed(self, parser: SourceParser) -> None:
        text = "namespace T {\n    export interface I {}\n    type U = string;\n}\nconst x = 1;\n"

        assert _emit(parser, text) == "const x = 1;\n"

    def test_exported_dotted_namespace(self, parser: SourceParser) -> None:
        out = _emit(parser, "export namespace A.B { export const c = 1; }\n")

        assert out.startswith("export var A;\n(function (A) {\n    var B;\n    (function (B) {")
        assert "B.c = c;" in out
        assert "})(B = A.B || (A.B = {}));\n})(A || (A = {}));" in out

    def test_nested_exported_namespace_attaches_to_parent(self, parser: SourceParser) -> None:
        text = (
            "namespace Outer {\n"
            "    export namespace Inner {\n"
            "        export const v = 1;\n"
            "    }\n"
            "}\n"
        )

        out = _emit(parser, text)

        assert "    var Inner;\n    (function (Inner) {" in out
        assert "Inner.v = v;" in out
        assert "})(Inner = Outer.Inner || (Outer.Inner = {}));" in out
        assert out.rstrip().endswith("})(Outer || (Outer = {}));")


class TestImportElision:
    """Imports used only as types are dropped."""

    def test_type_only_usage_removes_import(self, parser: SourceParser) -> None:
        text = 'import { A } from "./a";\nlet v: A;\n'
        assert _emit(parser, text) == "let v;\n"

    def test_value_usage_keeps_import(self, parser: SourceParser) -> None:
        text = 'import { f } from "./a";\nf();\n'
        assert _emit(parser, text) == text

    def test_mixed_import_rewritten(self, parser: SourceParser) -> None:
        text = 'import { f, T } from "./a";\nlet v: T = f();\n'
        assert _emit(parser, text) == 'import { f } from "./a";\nlet v = f();\n'

    def test_import_type_statement_removed(self, parser: SourceParser) -> None:
        text = 'import type { T } from "./a";\nconst a = 1;\n'
        assert _emit(parser, text) == "const a = 1;\n"

    def test_side_effect_import_kept(self, parser: SourceParser) -> None:
        text = 'import "./polyfill";\n'
        assert _emit(parser, text) == text


class TestEmitOptions:
    def test_remove_comments_keeps_pinned(self, parser: SourceParser) -> None:
        text = "// note\nconst a = 1; /*! keep */\n"
        assert _emit(parser, text, remove_comments=True) == "const a = 1; /*! keep */\n"

    def test_comments_kept_by_default(self, parser: SourceParser) -> None:
        text = "// note\nconst a = 1;\n"
        assert _emit(parser, text) == text

    def test_crlf_new_line(self, parser: SourceParser) -> None:
        out = _emit(parser, "const a = 1;\nconst b = 2;\n", new_line="\r\n")
        assert out == "const a = 1;\r\nconst b = 2;\r\n"

    def test_javascript_passes_through(self, parser: SourceParser) -> None:
        text = "const a = 1; // c\n"
        assert _emit(parser, text, path="/p/a.js") == text

    def test_jsx_preserved_in_tsx(self, parser: SourceParser) -> None:
        text = "const el = <div className={cls as string}>hi</div>;\n"
        out = _emit(parser, text, path="/p/App.tsx")
        assert out == "const el = <div className={cls}>hi</div>;\n"
