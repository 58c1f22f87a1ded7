"""Configuration inspection command."""

from __future__ import annotations

import click

from taskaccess.config import AccessConfig
from taskaccess.paths import get_config_path


@click.command(name="show-config")
@click.option("--write", is_flag=True, help="Save the effective configuration to the config file")
@click.pass_obj
def show_config(config: AccessConfig, write: bool) -> None:
    """Print the effective configuration."""
    for key, value in config.model_dump().items():
        shown = "(unset)" if value is None else value
        click.echo(f"{key} = {shown}")

    if write:
        path = get_config_path()
        config.save(path)
        click.secho(f"Wrote {path}", fg="green")
