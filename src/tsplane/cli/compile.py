"""tsplane compile command - emit JavaScript for files."""

import json
from pathlib import Path
from typing import Any

import click

from tsplane.core.errors import TsPlaneError
from tsplane.core.logging import clear_request_id, set_request_id
from tsplane.project.workspace import Workspace


@click.command()
@click.argument(
    "files",
    nargs=-1,
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option("--write", is_flag=True, help="Write emitted files to disk")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def compile_command(
    ctx: click.Context, files: tuple[Path, ...], write: bool, as_json: bool
) -> None:
    """Emit compiled output for FILES.

    Output is printed unless --write is given, in which case each emitted
    file is written to the path its project's compiler options select.
    """
    results: list[dict[str, Any]] = []
    failed = False

    with Workspace(ctx.obj["config"]) as workspace:
        for file in files:
            set_request_id()
            try:
                outputs = workspace.compile(str(file))
            except TsPlaneError as e:
                failed = True
                results.append({"file": str(file), "error": e.to_dict()})
                if not as_json:
                    click.echo(f"{file}: {e}", err=True)
                continue

            results.append({"file": str(file), "outputs": [o.to_dict() for o in outputs]})
            if not outputs and not as_json:
                click.echo(f"{file}: emit skipped", err=True)

            for output in outputs:
                if write:
                    target = Path(output.name)
                    target.parent.mkdir(parents=True, exist_ok=True)
                    target.write_text(output.text, encoding="utf-8", newline="")
                    if not as_json:
                        click.echo(f"wrote {target}")
                elif not as_json:
                    click.echo(f"// {output.name}")
                    click.echo(output.text, nl=False)
    clear_request_id()

    if as_json:
        click.echo(json.dumps({"files": results}, indent=2))

    if failed:
        ctx.exit(1)
