"""
tasklist CLI - Main application entry point.

This module sets up the Typer CLI application with all subcommands.
"""

import logging
import sys

import typer
from pydantic import ValidationError
from rich.console import Console

from tasklist import __version__
from tasklist.cli import doctor, task
from tasklist.cli.errors import ExitCode, print_invalid_config_error
from tasklist.core.config import load_config, load_layered_env

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

app = typer.Typer(
    name="tasklist",
    help="Personal task list with database storage and a file fallback",
    no_args_is_help=True,
    add_completion=False,
    context_settings={"help_option_names": ["--help", "-h"]},
)

console = Console()


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"tasklist version {__version__}")
        raise typer.Exit(ExitCode.SUCCESS)


def _configure_logging(level: int | str) -> None:
    logging.basicConfig(level=level, format=LOG_FORMAT, stream=sys.stderr, force=True)


@app.callback()
def main(
    ctx: typer.Context,
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Enable debug output with detailed logging",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
) -> None:
    """
    tasklist - keep a prioritized task list.

    Tasks are stored in a SQLite database. When the database cannot be
    opened, tasks are kept in a JSON fallback store instead.

    Quick Start:
        tasklist add "Buy groceries" -p high -c Shopping
        tasklist list --filter active
        tasklist toggle 1
        tasklist stats
        tasklist doctor
    """
    # Precedence: OS env > project .env > user .env
    load_layered_env()

    try:
        config = load_config(use_cache=False)
    except ValidationError as e:
        print_invalid_config_error(str(e))
        raise typer.Exit(ExitCode.USER_ERROR)

    _configure_logging(logging.DEBUG if debug else config.log_level)

    ctx.obj = {"debug": debug, "config": config}


app.command(name="list")(task.list_tasks)
app.command(name="add")(task.add)
app.command(name="edit")(task.edit)
app.command(name="toggle")(task.toggle)
app.command(name="delete")(task.delete)
app.command(name="stats")(task.stats)
app.command(name="doctor")(doctor.doctor)


def cli_main() -> None:
    """Main CLI entry point."""
    app()


__all__ = ["app", "cli_main"]
