"""tsplane CLI - tsplane command."""

from pathlib import Path

import click

from tsplane.cli.compile import compile_command
from tsplane.cli.diagnose import diagnose_command
from tsplane.config.loader import load_config
from tsplane.core.errors import ConfigError
from tsplane.core.logging import configure_logging


@click.group()
@click.version_option(version="0.1.0", prog_name="tsplane")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Settings file (default: ~/.config/tsplane/config.yaml)",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, config_path: Path | None) -> None:
    """tsplane - diagnostics and emit across many TypeScript projects at once."""
    try:
        config = load_config(config_path)
    except ConfigError as e:
        raise click.ClickException(str(e)) from e

    logging_config = config.logging
    if verbose:
        logging_config = logging_config.model_copy(update={"level": "DEBUG"})
    configure_logging(config=logging_config)

    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["config"] = config


cli.add_command(diagnose_command, name="diagnose")
cli.add_command(compile_command, name="compile")


if __name__ == "__main__":
    cli()
