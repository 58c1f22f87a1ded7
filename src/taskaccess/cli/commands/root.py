"""Root CLI command registration."""

from __future__ import annotations

from pathlib import Path

import click
from pydantic import ValidationError

from taskaccess import __version__
from taskaccess.config import AccessConfig
from taskaccess.log import setup_logging

from .show_config import show_config
from .tasks import find_cmd, tasks_cmd


@click.group(invoke_without_command=True)
@click.option("--version", is_flag=True, help="Show version and exit")
@click.option("-v", "--verbose", is_flag=True, help="Log transport traffic and debug details")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Config file to read instead of the default location",
)
@click.pass_context
def cli(ctx: click.Context, version: bool, verbose: bool, config_path: Path | None) -> None:
    """Discover control task servers through the naming service."""
    if version:
        click.echo(f"taskaccess {__version__}")
        ctx.exit(0)

    setup_logging(verbose)
    try:
        ctx.obj = AccessConfig.load(config_path)
    except ValidationError as error:
        raise click.ClickException(f"Invalid configuration: {error}") from error

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


cli.add_command(tasks_cmd)
cli.add_command(find_cmd)
cli.add_command(show_config)
