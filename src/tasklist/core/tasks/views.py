"""
Filtering, search and summary statistics over a task list.

These are pure functions over an already-loaded task sequence; they
never touch storage.
"""

from collections.abc import Iterable
from dataclasses import asdict, dataclass
from datetime import date
from enum import Enum

from .models import Task, TaskPriority


class TaskFilter(str, Enum):
    """Filter bar choices: status tiers and priority tiers."""

    ALL = "all"
    ACTIVE = "active"
    COMPLETED = "completed"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


def matches_search(task: Task, term: str) -> bool:
    """Case-insensitive substring match over title, description and category."""
    needle = term.lower()
    haystacks = (task.title, task.description, task.category)
    return any(h is not None and needle in h.lower() for h in haystacks)


def filter_tasks(
    tasks: Iterable[Task],
    task_filter: TaskFilter = TaskFilter.ALL,
    search: str | None = None,
) -> list[Task]:
    """
    Apply search text and a filter choice, preserving order.

    Args:
        tasks: Tasks to filter
        task_filter: Status or priority filter
        search: Optional free-text search term

    Returns:
        Matching tasks in their original order
    """
    result = list(tasks)

    if search:
        result = [t for t in result if matches_search(t, search)]

    if task_filter == TaskFilter.ACTIVE:
        result = [t for t in result if not t.completed]
    elif task_filter == TaskFilter.COMPLETED:
        result = [t for t in result if t.completed]
    elif task_filter in (TaskFilter.HIGH, TaskFilter.MEDIUM, TaskFilter.LOW):
        priority = TaskPriority(task_filter.value)
        result = [t for t in result if t.priority == priority]

    return result


@dataclass(frozen=True)
class TaskStats:
    """Summary counts shown above the task list."""

    total: int
    completed: int
    active: int
    high_priority: int
    overdue: int
    completion_rate: int

    def to_dict(self) -> dict[str, int]:
        return asdict(self)


def compute_stats(tasks: Iterable[Task], today: date | None = None) -> TaskStats:
    """
    Count tasks by status and priority.

    ``high_priority`` counts open high-priority tasks only, and
    ``completion_rate`` is a rounded percentage (0 for an empty list).
    """
    items = list(tasks)
    today = today or date.today()

    total = len(items)
    completed = sum(1 for t in items if t.completed)
    high_priority = sum(1 for t in items if t.priority == TaskPriority.HIGH and not t.completed)
    overdue = sum(1 for t in items if t.is_overdue(today))
    # Round half up, like the percentage shown in the UI
    rate = int(completed * 100 / total + 0.5) if total else 0

    return TaskStats(
        total=total,
        completed=completed,
        active=total - completed,
        high_priority=high_priority,
        overdue=overdue,
        completion_rate=rate,
    )
