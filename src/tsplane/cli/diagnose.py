"""tsplane diagnose command - report diagnostics for files."""

import json
from pathlib import Path
from typing import Any

import click

from tsplane.core.errors import TsPlaneError
from tsplane.core.logging import clear_request_id, set_request_id
from tsplane.engine.models import DiagnosticCategory
from tsplane.project.workspace import Workspace


@click.command()
@click.argument(
    "files",
    nargs=-1,
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def diagnose_command(ctx: click.Context, files: tuple[Path, ...], as_json: bool) -> None:
    """Print syntactic and semantic diagnostics for FILES.

    Each file is routed to the project whose tsconfig.json is its nearest
    ancestor. Exits with status 1 if any file has an error.
    """
    results: list[dict[str, Any]] = []
    error_count = 0
    failed = False

    with Workspace(ctx.obj["config"]) as workspace:
        for file in files:
            set_request_id()
            try:
                diagnostics = workspace.diagnose(str(file))
            except TsPlaneError as e:
                failed = True
                results.append({"file": str(file), "error": e.to_dict()})
                if not as_json:
                    click.echo(f"{file}: {e}", err=True)
                continue

            errors = sum(1 for d in diagnostics if d.category == DiagnosticCategory.ERROR)
            error_count += errors
            results.append(
                {"file": str(file), "diagnostics": [d.to_dict() for d in diagnostics]}
            )
            if not as_json:
                for diagnostic in diagnostics:
                    click.echo(diagnostic.format())
    clear_request_id()

    if as_json:
        click.echo(json.dumps({"files": results, "error_count": error_count}, indent=2))
    elif error_count:
        noun = "error" if error_count == 1 else "errors"
        click.echo(f"\nFound {error_count} {noun}.")

    if failed or error_count:
        ctx.exit(1)
