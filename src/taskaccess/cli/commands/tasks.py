"""Commands that walk the registry and talk to control tasks."""

from __future__ import annotations

import click

from taskaccess.access import TaskAccess
from taskaccess.config import AccessConfig
from taskaccess.errors import TaskAccessError

_PASSTHROUGH = {"ignore_unknown_options": True, "allow_extra_args": True}


def _start(config: AccessConfig, runtime_args: tuple[str, ...]) -> TaskAccess:
    args = list(runtime_args)
    access = TaskAccess(config)
    if not access.init(args):
        click.secho("Could not reach the naming service.", fg="red", err=True)
        raise click.exceptions.Exit(1)
    if args:
        click.secho(f"Ignoring extra arguments: {' '.join(args)}", fg="yellow", err=True)
    return access


@click.command(name="tasks", context_settings=_PASSTHROUGH)
@click.argument("runtime_args", nargs=-1, type=click.UNPROCESSED)
@click.pass_obj
def tasks_cmd(config: AccessConfig, runtime_args: tuple[str, ...]) -> None:
    """List every registered control task with its current state.

    Runtime options such as ``-ORBInitRef NameService=corbaloc:iiop:host:2809/NameService``
    are passed through to the transport.
    """
    access = _start(config, runtime_args)
    try:
        names = access.list_task_names()
        if not names:
            click.secho("No control tasks found.", fg="yellow")
            return
        for name in names:
            task = access.find_task(name)
            click.echo(f"{name}: {task.get_task_state()}")
    except TaskAccessError as error:
        click.secho(f"Error: {error}", fg="red", err=True)
        raise click.exceptions.Exit(1) from error
    finally:
        access.shutdown()


@click.command(name="find", context_settings=_PASSTHROUGH)
@click.argument("name")
@click.argument("runtime_args", nargs=-1, type=click.UNPROCESSED)
@click.pass_obj
def find_cmd(config: AccessConfig, name: str, runtime_args: tuple[str, ...]) -> None:
    """Connect to the control task NAME and show its details."""
    access = _start(config, runtime_args)
    try:
        task = access.find_task(name)
        click.secho(task.get_name(), bold=True)
        description = task.get_description()
        if description:
            click.echo(f"  Description: {description}")
        click.echo(f"  State: {task.get_task_state()}")
    except TaskAccessError as error:
        click.secho(f"Error: {error}", fg="red", err=True)
        raise click.exceptions.Exit(1) from error
    finally:
        access.shutdown()
