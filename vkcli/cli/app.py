"""Main Typer application — builds the command table and registers it.

Entry point: ``vkcli`` (configured via pyproject.toml [project.scripts]).

Commands: projects, list, show, exec, status, pick.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Callable
from typing import NamedTuple

import click
import typer

from vkcli.cli.commands.exec_cmd import exec_cmd
from vkcli.cli.commands.list_cmd import list_cmd
from vkcli.cli.commands.pick import pick_cmd
from vkcli.cli.commands.projects import projects_cmd
from vkcli.cli.commands.show import show_cmd
from vkcli.cli.commands.status import status_cmd
from vkcli.config import config


class CommandEntry(NamedTuple):
    name: str
    help: str
    callback: Callable[..., None]


COMMANDS: tuple[CommandEntry, ...] = (
    CommandEntry("projects", "List projects.", projects_cmd),
    CommandEntry("list", "List tasks of a project.", list_cmd),
    CommandEntry("show", "Show task detail (optionally with execution logs).", show_cmd),
    CommandEntry("exec", "Start a task attempt and watch it.", exec_cmd),
    CommandEntry("status", "Show the status of a task or attempt.", status_cmd),
    CommandEntry("pick", "Pick a project and task with fzf, then show it.", pick_cmd),
)


def build_app(commands: tuple[CommandEntry, ...] = COMMANDS) -> typer.Typer:
    """Create the Typer app from an explicit command table."""
    application = typer.Typer(
        name="vkcli",
        help="vkcli: monitor AI-driven task attempts from the terminal.",
        no_args_is_help=True,
        rich_markup_mode="rich",
        add_completion=False,
    )
    application.callback()(_root)
    for entry in commands:
        application.command(name=entry.name, help=entry.help)(entry.callback)
    return application


def _setup_logging(verbose: bool = False) -> None:
    level_name = "DEBUG" if verbose else config.log_level
    level = getattr(logging, level_name.upper(), logging.WARNING)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
        stream=sys.stderr,
    )


def _root(
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable DEBUG logging on stderr.",
    ),
) -> None:
    """vkcli: monitor AI-driven task attempts from the terminal."""
    _setup_logging(verbose=verbose)


app = build_app()


def main() -> None:
    """CLI entry point.  Usage errors exit with status 1."""
    command = typer.main.get_command(app)
    try:
        result = command.main(prog_name="vkcli", standalone_mode=False)
    except click.exceptions.Abort:
        click.echo("Aborted!", err=True)
        sys.exit(1)
    except click.ClickException as exc:
        exc.show()
        sys.exit(1)
    if isinstance(result, int) and result != 0:
        sys.exit(result)


if __name__ == "__main__":
    main()
