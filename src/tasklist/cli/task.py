"""
tasklist CLI - task commands.

Every command opens a TaskStore for the configured storage, runs one
operation and exits. Storage selection (database or fallback store)
happens when the store is opened.
"""

import asyncio
import json
from collections.abc import Awaitable, Callable
from datetime import date
from typing import Any, TypeVar

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from tasklist.cli.errors import (
    ExitCode,
    print_error,
    print_invalid_input_error,
    print_storage_unavailable_error,
    print_task_not_found_error,
)
from tasklist.core.config import (
    TasklistConfig,
    load_config,
    resolve_database_path,
    resolve_fallback_dir,
)
from tasklist.core.tasks import (
    StoreState,
    Task,
    TaskFilter,
    TaskPriority,
    TaskStore,
    TaskStoreError,
    compute_stats,
    create_adapter,
    filter_tasks,
)

console = Console()

T = TypeVar("T")

_PRIORITY_STYLES = {
    TaskPriority.HIGH: "red",
    TaskPriority.MEDIUM: "yellow",
    TaskPriority.LOW: "green",
}


def _get_config(ctx: typer.Context) -> TasklistConfig:
    obj = ctx.obj or {}
    config = obj.get("config")
    if config is None:
        config = load_config()
    return config


def _is_debug(ctx: typer.Context) -> bool:
    return bool((ctx.obj or {}).get("debug"))


def open_store(config: TasklistConfig) -> TaskStore:
    """Build an uninitialized TaskStore for the configured storage."""
    adapter = create_adapter(
        use_database=config.storage.use_database,
        database_path=resolve_database_path(config),
        fallback_dir=resolve_fallback_dir(config),
        table_name=config.storage.table_name,
        fallback_key=config.storage.fallback_key,
    )
    return TaskStore(adapter, seed=config.seed_examples)


def _with_store(ctx: typer.Context, action: Callable[[TaskStore], Awaitable[T]]) -> T:
    """Open and initialize a store, then run ``action`` against it."""

    async def runner() -> T:
        store = open_store(_get_config(ctx))
        await store.initialize()
        if store.state == StoreState.ERRORED:
            detail = str(store.last_exception) if _is_debug(ctx) else None
            print_storage_unavailable_error(detail)
            raise typer.Exit(ExitCode.GENERAL_ERROR)
        return await action(store)

    return asyncio.run(runner())


def _parse_due(value: str | None) -> date | None:
    if value is None:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        print_invalid_input_error("Invalid due date", f"Expected YYYY-MM-DD, got '{value}'")
        raise typer.Exit(ExitCode.USER_ERROR)


def _first_validation_message(error: ValidationError) -> str:
    errors = error.errors()
    if not errors:
        return str(error)
    first = errors[0]
    loc = ".".join(str(part) for part in first.get("loc", ()))
    return f"{loc}: {first.get('msg')}" if loc else str(first.get("msg"))


def _report_store_error(ctx: typer.Context, error: TaskStoreError) -> None:
    reason = str(error.__cause__) if _is_debug(ctx) and error.__cause__ else None
    print_error(error.notice, reason=reason)


def _task_json(task: Task) -> dict[str, Any]:
    return task.to_record()


def _format_due(task: Task, today: date) -> str:
    if task.due_date is None:
        return ""
    text = task.due_date.isoformat()
    if task.is_overdue(today):
        return f"[red]{text} (overdue)[/red]"
    return text


def _render_table(tasks: list[Task], today: date) -> Table:
    table = Table(show_header=True, header_style="bold")
    table.add_column("ID", justify="right", style="cyan")
    table.add_column("", width=1)
    table.add_column("Title")
    table.add_column("Priority")
    table.add_column("Category", style="dim")
    table.add_column("Due")

    for task in tasks:
        style = _PRIORITY_STYLES[task.priority]
        title = escape(task.title)
        if task.completed:
            title = f"[dim strike]{title}[/dim strike]"
        table.add_row(
            str(task.id),
            "[green]✓[/green]" if task.completed else "○",
            title,
            f"[{style}]{task.priority.value}[/{style}]",
            escape(task.category or ""),
            _format_due(task, today),
        )
    return table


def list_tasks(
    ctx: typer.Context,
    task_filter: TaskFilter = typer.Option(
        TaskFilter.ALL,
        "--filter",
        "-f",
        help="Show all, active, completed, or one priority tier",
    ),
    search: str | None = typer.Option(
        None,
        "--search",
        "-s",
        help="Search title, description and category",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output as JSON",
    ),
) -> None:
    """
    List tasks, newest first.

    Examples:
        tasklist list
        tasklist list --filter active
        tasklist list --filter high --search backup
    """

    async def action(store: TaskStore) -> tuple[list[Task], str | None]:
        return filter_tasks(store.tasks, task_filter, search), store.backend_name

    tasks, backend_name = _with_store(ctx, action)

    if json_output:
        typer.echo(json.dumps([_task_json(t) for t in tasks], indent=2))
        return

    if not tasks:
        if search or task_filter != TaskFilter.ALL:
            console.print("[yellow]No tasks found[/yellow]")
            console.print("[dim]Try adjusting your search or filter criteria[/dim]")
        else:
            console.print("[yellow]No tasks yet[/yellow]")
            console.print("[dim]→ Try: tasklist add 'Your first task'[/dim]")
        return

    console.print(_render_table(tasks, date.today()))
    console.print(f"[dim]{len(tasks)} task(s) · storage: {backend_name}[/dim]")


def add(
    ctx: typer.Context,
    title: str = typer.Argument(..., help="Task title"),
    description: str | None = typer.Option(
        None,
        "--description",
        "-d",
        help="Task description",
    ),
    priority: TaskPriority = typer.Option(
        TaskPriority.MEDIUM,
        "--priority",
        "-p",
        help="Priority: low, medium, high",
    ),
    category: str | None = typer.Option(
        None,
        "--category",
        "-c",
        help="Category (e.g. Work, Personal)",
    ),
    due: str | None = typer.Option(
        None,
        "--due",
        help="Due date (YYYY-MM-DD)",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output as JSON",
    ),
) -> None:
    """
    Add a task.

    Examples:
        tasklist add "Buy milk" --priority low --category Shopping
        tasklist add "File taxes" --due 2024-04-15 -p high
    """
    fields = {
        "title": title,
        "description": description,
        "priority": priority,
        "category": category,
        "due_date": _parse_due(due),
    }

    async def action(store: TaskStore) -> Task:
        return await store.add(fields)

    try:
        task = _with_store(ctx, action)
    except ValidationError as e:
        print_invalid_input_error("Invalid task", _first_validation_message(e))
        raise typer.Exit(ExitCode.USER_ERROR)
    except TaskStoreError as e:
        _report_store_error(ctx, e)
        raise typer.Exit(ExitCode.GENERAL_ERROR)

    if json_output:
        typer.echo(json.dumps(_task_json(task), indent=2))
    else:
        console.print(f"[green]Added:[/green] {task.id} {escape(task.title)}")


def edit(
    ctx: typer.Context,
    task_id: int = typer.Argument(..., help="Task ID"),
    title: str | None = typer.Option(None, "--title", "-t", help="New title"),
    description: str | None = typer.Option(
        None,
        "--description",
        "-d",
        help="New description (empty string clears it)",
    ),
    priority: TaskPriority | None = typer.Option(
        None,
        "--priority",
        "-p",
        help="New priority: low, medium, high",
    ),
    category: str | None = typer.Option(
        None,
        "--category",
        "-c",
        help="New category (empty string clears it)",
    ),
    due: str | None = typer.Option(None, "--due", help="New due date (YYYY-MM-DD)"),
    clear_due: bool = typer.Option(False, "--clear-due", help="Remove the due date"),
) -> None:
    """
    Edit a task. Only the given fields change.

    Examples:
        tasklist edit 3 --priority high
        tasklist edit 3 --title "Update all dependencies" --clear-due
    """
    if due is not None and clear_due:
        print_error("Cannot use --due with --clear-due", solution="Remove one of the flags")
        raise typer.Exit(ExitCode.USER_ERROR)

    changes: dict[str, Any] = {}
    if title is not None:
        changes["title"] = title
    if description is not None:
        changes["description"] = description
    if priority is not None:
        changes["priority"] = priority
    if category is not None:
        changes["category"] = category
    if due is not None:
        changes["due_date"] = _parse_due(due)
    if clear_due:
        changes["due_date"] = None

    if not changes:
        print_error("Nothing to update", solution="Pass at least one of --title, -d, -p, -c, --due")
        raise typer.Exit(ExitCode.USER_ERROR)

    async def action(store: TaskStore) -> Task | None:
        if store.get(task_id) is None:
            return None
        return await store.update(task_id, changes)

    try:
        task = _with_store(ctx, action)
    except ValidationError as e:
        print_invalid_input_error("Invalid task", _first_validation_message(e))
        raise typer.Exit(ExitCode.USER_ERROR)
    except TaskStoreError as e:
        _report_store_error(ctx, e)
        raise typer.Exit(ExitCode.GENERAL_ERROR)

    if task is None:
        print_task_not_found_error(task_id)
        raise typer.Exit(ExitCode.GENERAL_ERROR)

    console.print(f"[green]Updated:[/green] {task.id} {escape(task.title)}")


def toggle(
    ctx: typer.Context,
    task_id: int = typer.Argument(..., help="Task ID"),
) -> None:
    """
    Mark a task completed, or reopen a completed one.

    Example:
        tasklist toggle 3
    """

    async def action(store: TaskStore) -> Task | None:
        return await store.toggle_complete(task_id)

    try:
        task = _with_store(ctx, action)
    except TaskStoreError as e:
        _report_store_error(ctx, e)
        raise typer.Exit(ExitCode.GENERAL_ERROR)

    if task is None:
        print_task_not_found_error(task_id)
        raise typer.Exit(ExitCode.GENERAL_ERROR)

    if task.completed:
        console.print(f"[green]✓ Completed:[/green] {task.id} {escape(task.title)}")
    else:
        console.print(f"[yellow]○ Reopened:[/yellow] {task.id} {escape(task.title)}")


def delete(
    ctx: typer.Context,
    task_id: int = typer.Argument(..., help="Task ID"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """
    Delete a task permanently.

    Example:
        tasklist delete 3 --yes
    """
    if not yes:
        typer.confirm(f"Delete task {task_id}?", abort=True)

    async def action(store: TaskStore) -> bool:
        if store.get(task_id) is None:
            return False
        return await store.delete(task_id)

    try:
        removed = _with_store(ctx, action)
    except TaskStoreError as e:
        _report_store_error(ctx, e)
        raise typer.Exit(ExitCode.GENERAL_ERROR)

    if not removed:
        print_task_not_found_error(task_id)
        raise typer.Exit(ExitCode.GENERAL_ERROR)

    console.print(f"[green]Deleted:[/green] {task_id}")


def stats(
    ctx: typer.Context,
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output as JSON",
    ),
) -> None:
    """
    Show task statistics.

    Example:
        tasklist stats
    """

    async def action(store: TaskStore) -> list[Task]:
        return list(store.tasks)

    summary = compute_stats(_with_store(ctx, action))

    if json_output:
        typer.echo(json.dumps(summary.to_dict(), indent=2))
        return

    table = Table(show_header=False, box=None)
    table.add_column("Metric", style="dim")
    table.add_column("Value", justify="right", style="bold")
    table.add_row("Total Tasks", str(summary.total))
    table.add_row("Completed", f"[green]{summary.completed}[/green]")
    table.add_row("Active", str(summary.active))
    table.add_row("High Priority", f"[red]{summary.high_priority}[/red]")
    table.add_row("Overdue", f"[magenta]{summary.overdue}[/magenta]")
    table.add_row("Completion Rate", f"{summary.completion_rate}%")
    console.print(table)
