"""
Error output and exit codes for tasklist commands.

Every failure is printed as a red problem line, an optional dim reason
and an optional "→ Try:" hint, so users always get a next step.
"""

from enum import IntEnum

from rich.console import Console

console = Console()


class ExitCode(IntEnum):
    """Process exit codes used by tasklist commands."""

    SUCCESS = 0
    """Command finished normally."""

    GENERAL_ERROR = 1
    """Storage failed, or the requested task does not exist."""

    USER_ERROR = 2
    """Bad arguments, task fields or configuration."""


def print_error(
    problem: str,
    *,
    reason: str | None = None,
    solution: str | None = None,
) -> None:
    """
    Print a problem line with optional reason and suggested fix.

    Args:
        problem: What failed, in a few words
        reason: Extra context, shown dimmed
        solution: Command or action for the user to try next

    Example:
        >>> print_error("Failed to add task", solution="tasklist doctor")
    """
    console.print(f"[red]Error:[/red] {problem}")
    if reason:
        console.print(f"[dim]{reason}[/dim]")
    if solution:
        console.print(f"[cyan]→ Try:[/cyan] {solution}")


def print_task_not_found_error(task_id: int) -> None:
    print_error(
        f"Task not found: {task_id}",
        reason="No task with this ID is stored; it may already be deleted",
        solution="tasklist list  # to see task IDs",
    )


def print_storage_unavailable_error(detail: str | None = None) -> None:
    """Neither the database nor the fallback store could be read."""
    print_error(
        "Failed to load tasks",
        reason=detail or "Neither the database nor the fallback store could be read",
        solution="tasklist doctor  # to inspect storage",
    )


def print_invalid_input_error(problem: str, detail: str) -> None:
    print_error(problem, reason=detail)


def print_invalid_config_error(detail: str) -> None:
    """The merged configuration failed validation."""
    print_error(
        "Invalid configuration",
        reason=detail,
        solution="Check .tasklist.json, ~/.config/tasklist/config.json and TASKLIST_* variables",
    )
