"""Project configuration reader (tsconfig.json).

Reads a project's configuration file, follows its ``extends`` chain and
validates ``compilerOptions`` into an immutable :class:`ProjectConfig`.

tsconfig files are JSON with comments and trailing commas. Path-valued
options (``outDir``, ``rootDir``) and ``files``/``include``/``exclude``
entries are resolved against the directory of the file that declares them,
so inherited values keep pointing where their author intended.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Literal

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from tsplane.core.errors import MalformedConfigurationError
from tsplane.core.logging import get_logger

if TYPE_CHECKING:
    from tsplane.core.fs import FileSystem

log = get_logger(__name__)

DEFAULT_INCLUDE = ("**/*",)
DEFAULT_EXCLUDE = ("node_modules", "bower_components", "jspm_packages")

_PATH_OPTIONS = ("outDir", "rootDir")


class CompilerOptions(BaseModel):
    """Compiler options from ``compilerOptions``.

    Only the options the engine acts on are typed; everything else is kept
    verbatim and passed through untouched.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
        frozen=True,
    )

    out_dir: str | None = None
    root_dir: str | None = None
    no_emit: bool = False
    new_line: Literal["lf", "crlf"] | None = None
    remove_comments: bool = False
    strict: bool = False
    allow_js: bool = False
    check_js: bool = False
    no_emit_on_error: bool = False
    jsx: str | None = None
    target: str | None = None
    module: str | None = None

    @field_validator("new_line", mode="before")
    @classmethod
    def normalize_new_line(cls, v: Any) -> Any:
        return v.lower() if isinstance(v, str) else v


@dataclass(frozen=True)
class ProjectConfig:
    """Parsed, immutable project configuration."""

    config_path: str
    root: str
    options: CompilerOptions
    files: tuple[str, ...] = ()
    include: tuple[str, ...] = ()
    exclude: tuple[str, ...] = ()
    extended: tuple[str, ...] = field(default=())  # configs pulled in via extends

    @property
    def new_line(self) -> str | None:
        if self.options.new_line == "crlf":
            return "\r\n"
        if self.options.new_line == "lf":
            return "\n"
        return None


# ---------------------------------------------------------------------------
# JSON with comments
# ---------------------------------------------------------------------------


def strip_jsonc(text: str) -> str:
    """Remove ``//`` and ``/* */`` comments and trailing commas outside strings."""
    out: list[str] = []
    i = 0
    n = len(text)
    in_string = False
    pending_comma: int | None = None  # index in ``out`` of a comma not yet confirmed

    while i < n:
        ch = text[i]
        if in_string:
            out.append(ch)
            if ch == "\\" and i + 1 < n:
                out.append(text[i + 1])
                i += 2
                continue
            if ch == '"':
                in_string = False
            i += 1
            continue

        if ch == "/" and i + 1 < n and text[i + 1] == "/":
            end = text.find("\n", i)
            i = n if end == -1 else end
            continue
        if ch == "/" and i + 1 < n and text[i + 1] == "*":
            end = text.find("*/", i + 2)
            i = n if end == -1 else end + 2
            continue

        if ch in " \t\r\n":
            out.append(ch)
        elif ch in "}]" and pending_comma is not None:
            out[pending_comma] = " "
            pending_comma = None
            out.append(ch)
        else:
            pending_comma = None
            if ch == ",":
                pending_comma = len(out)
            elif ch == '"':
                in_string = True
            out.append(ch)
        i += 1

    return "".join(out)


def _parse_document(path: str, fs: FileSystem) -> dict[str, Any]:
    try:
        text = fs.read_file(path)
    except (OSError, UnicodeDecodeError) as e:
        raise MalformedConfigurationError.parse_error(path, f"cannot read file: {e}") from e

    if not text.strip():
        return {}

    try:
        data = json.loads(strip_jsonc(text))
    except json.JSONDecodeError as e:
        raise MalformedConfigurationError.parse_error(path, str(e)) from e

    if not isinstance(data, dict):
        raise MalformedConfigurationError.parse_error(path, "top-level value must be an object")
    return data


# ---------------------------------------------------------------------------
# extends resolution
# ---------------------------------------------------------------------------


def _resolve_extends(spec: str, from_dir: str, declaring: str, fs: FileSystem) -> str:
    candidates: list[str] = []
    if spec.startswith((".", "/")) or os.path.isabs(spec):
        base = os.path.normpath(os.path.join(from_dir, spec))
        candidates = [base] if base.endswith(".json") else [base, base + ".json"]
    else:
        directory = from_dir
        while True:
            module_path = os.path.join(directory, "node_modules", spec)
            candidates.extend(
                [
                    os.path.join(module_path, "tsconfig.json"),
                    module_path,
                    module_path + ".json",
                ]
            )
            parent = os.path.dirname(directory)
            if parent == directory:
                break
            directory = parent

    for candidate in candidates:
        if fs.is_file(candidate):
            return candidate

    raise MalformedConfigurationError.parse_error(
        declaring, f"extended configuration '{spec}' not found"
    )


def _absolute_patterns(values: Any, base_dir: str, key: str, path: str) -> tuple[str, ...]:
    if not isinstance(values, list) or not all(isinstance(v, str) for v in values):
        raise MalformedConfigurationError.parse_error(path, f"'{key}' must be a list of strings")
    return tuple(os.path.normpath(os.path.join(base_dir, v)) for v in values)


@dataclass
class _Layer:
    path: str
    options: dict[str, Any]
    files: tuple[str, ...] | None
    include: tuple[str, ...] | None
    exclude: tuple[str, ...] | None


def _load_layers(path: str, fs: FileSystem, seen: tuple[str, ...]) -> list[_Layer]:
    """Load ``path`` and its extends chain, base configs first."""
    if path in seen:
        chain = " -> ".join((*seen, path))
        raise MalformedConfigurationError.parse_error(path, f"circular extends: {chain}")

    data = _parse_document(path, fs)
    base_dir = os.path.dirname(path)

    raw_options = data.get("compilerOptions", {})
    if not isinstance(raw_options, dict):
        raise MalformedConfigurationError.parse_error(path, "'compilerOptions' must be an object")
    options = dict(raw_options)
    for key in _PATH_OPTIONS:
        value = options.get(key)
        if isinstance(value, str):
            options[key] = os.path.normpath(os.path.join(base_dir, value))

    layer = _Layer(
        path=path,
        options=options,
        files=(
            _absolute_patterns(data["files"], base_dir, "files", path) if "files" in data else None
        ),
        include=(
            _absolute_patterns(data["include"], base_dir, "include", path)
            if "include" in data
            else None
        ),
        exclude=(
            _absolute_patterns(data["exclude"], base_dir, "exclude", path)
            if "exclude" in data
            else None
        ),
    )

    extends = data.get("extends")
    if extends is None:
        return [layer]
    specs = [extends] if isinstance(extends, str) else extends
    if not isinstance(specs, list) or not all(isinstance(s, str) for s in specs):
        raise MalformedConfigurationError.parse_error(
            path, "'extends' must be a string or list of strings"
        )

    layers: list[_Layer] = []
    for spec in specs:
        parent_path = _resolve_extends(spec, base_dir, path, fs)
        layers.extend(_load_layers(parent_path, fs, (*seen, path)))
    layers.append(layer)
    return layers


def load_project_config(config_path: str, fs: FileSystem) -> ProjectConfig:
    """Read and validate the project configuration at ``config_path``.

    Raises:
        MalformedConfigurationError: If the file or any extended file does not
            parse, an extends target is missing or circular, or an option has
            an invalid value.
    """
    config_path = os.path.normpath(config_path)
    layers = _load_layers(config_path, fs, ())

    merged: dict[str, Any] = {}
    files: tuple[str, ...] | None = None
    include: tuple[str, ...] | None = None
    exclude: tuple[str, ...] | None = None
    for layer in layers:
        merged.update(layer.options)
        if layer.files is not None:
            files = layer.files
        if layer.include is not None:
            include = layer.include
        if layer.exclude is not None:
            exclude = layer.exclude

    try:
        options = CompilerOptions.model_validate(merged)
    except ValidationError as e:
        err = e.errors()[0]
        option = ".".join(str(loc) for loc in err["loc"])
        raise MalformedConfigurationError.invalid_option(
            config_path, option, err.get("input"), err["msg"]
        ) from e

    root = os.path.dirname(config_path)
    if files is None and include is None:
        include = tuple(os.path.join(root, pattern) for pattern in DEFAULT_INCLUDE)
    if exclude is None:
        exclude = tuple(os.path.join(root, name) for name in DEFAULT_EXCLUDE)
        if options.out_dir:
            exclude = (*exclude, options.out_dir)

    log.debug(
        "project_config_loaded",
        config_path=config_path,
        extended=len(layers) - 1,
    )

    return ProjectConfig(
        config_path=config_path,
        root=root,
        options=options,
        files=files or (),
        include=include or (),
        exclude=exclude,
        extended=tuple(layer.path for layer in layers[:-1]),
    )
