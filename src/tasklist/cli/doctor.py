"""
tasklist CLI - Doctor command.

Show which storage this session will use and check that the database
works.
"""

import asyncio

import typer
from rich.console import Console

from tasklist.cli.errors import ExitCode
from tasklist.core.config import (
    TasklistConfig,
    load_config,
    resolve_database_path,
    resolve_fallback_dir,
)
from tasklist.core.tasks.bridge import DatabaseBridge, SqliteBridge
from tasklist.core.tasks.diagnostics import BridgeReport, exercise_bridge, probe_bridge

console = Console()


def _bridge_for(config: TasklistConfig) -> DatabaseBridge | None:
    if not config.storage.use_database:
        return None
    return SqliteBridge(resolve_database_path(config))


def _print_report(config: TasklistConfig, report: BridgeReport) -> None:
    console.print("\n[bold]Database:[/bold]")
    if report.available:
        console.print(f"[green]✓[/green] {report.detail}")
    else:
        console.print("[red]✗[/red] Database is not available")
        console.print(f"[dim]  {report.detail}[/dim]")
        console.print("[dim]  Tasks will be kept in the fallback store[/dim]")

    console.print("\n[bold]Environment:[/bold]")
    console.print(f"  Backend setting: {config.storage.backend}")
    console.print(f"  Database file:   {resolve_database_path(config)}")
    console.print(f"  Fallback store:  {resolve_fallback_dir(config)}")
    mode_style = "green" if report.available else "yellow"
    console.print(f"  Storage mode:    [{mode_style}]{report.storage_mode}[/{mode_style}]")


def doctor(
    ctx: typer.Context,
    exercise: bool = typer.Option(
        False,
        "--exercise",
        help="Run a create/insert/query/delete cycle against a scratch table",
    ),
) -> None:
    """
    Diagnose task storage.

    Examples:
        tasklist doctor
        tasklist doctor --exercise
    """
    config = (ctx.obj or {}).get("config") or load_config()
    bridge = _bridge_for(config)

    report = asyncio.run(probe_bridge(bridge))
    _print_report(config, report)

    if not exercise:
        return

    console.print("\n[bold]Database operations:[/bold]")
    if bridge is None or not report.available:
        console.print("[yellow]Skipped: database is not available[/yellow]")
        raise typer.Exit(ExitCode.GENERAL_ERROR)

    try:
        steps = asyncio.run(exercise_bridge(bridge))
    except Exception as e:
        console.print(f"[red]✗[/red] Database test failed: {e}")
        raise typer.Exit(ExitCode.GENERAL_ERROR)

    for step in steps:
        console.print(f"[green]✓[/green] {step}")
    console.print("\n[green]All database operations successful[/green]")
