"""
Task data models for tasklist.

Defines the Task model and the input shapes used to create and update
tasks. Field names are snake_case in Python and camelCase in storage
(``dueDate``, ``createdAt``, ``updatedAt``); both spellings are accepted
on input.
"""

from datetime import date, datetime, timedelta, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

CATEGORIES: tuple[str, ...] = (
    "Work",
    "Development",
    "Maintenance",
    "Meetings",
    "Personal",
    "Shopping",
    "Health",
)


class TaskPriority(str, Enum):
    """Task priority levels."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


def format_timestamp(value: datetime) -> str:
    """
    Format a timestamp as UTC ISO 8601 with millisecond precision.

    Every stored timestamp uses this exact shape so that string ordering
    in either backend matches chronological ordering.

    Example:
        >>> format_timestamp(datetime(2024, 1, 15, 9, 0, tzinfo=timezone.utc))
        '2024-01-15T09:00:00.000Z'
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def utc_now() -> datetime:
    """Current UTC time truncated to milliseconds."""
    now = datetime.now(timezone.utc)
    return now - timedelta(microseconds=now.microsecond % 1000)


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


def _as_utc(value: Any) -> Any:
    if isinstance(value, datetime) and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class TaskFields(BaseModel):
    """
    User-supplied fields for a new task.

    This is what the add form collects: no id and no timestamps.
    """

    title: str = Field(..., min_length=1, description="Task title")
    description: str | None = Field(default=None, description="Optional details")
    completed: bool = Field(default=False, description="Whether the task is done")
    priority: TaskPriority = Field(default=TaskPriority.MEDIUM, description="Priority tier")
    category: str | None = Field(default=None, description="Free-form category")
    due_date: date | None = Field(default=None, alias="dueDate", description="Due date")

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("title", mode="before")
    @classmethod
    def strip_title(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v

    @field_validator("description", "category", mode="before")
    @classmethod
    def blank_is_none(cls, v: Any) -> Any:
        return _blank_to_none(v)


class TaskDraft(TaskFields):
    """
    A task that has not been assigned an id yet.

    Carries the timestamps, so seeded historical tasks keep their
    original dates when inserted.
    """

    created_at: datetime = Field(..., alias="createdAt")
    updated_at: datetime = Field(..., alias="updatedAt")

    @field_validator("created_at", "updated_at", mode="after")
    @classmethod
    def ensure_aware(cls, v: datetime) -> datetime:
        return _as_utc(v)

    @field_serializer("created_at", "updated_at", when_used="json")
    def serialize_timestamp(self, v: datetime) -> str:
        return format_timestamp(v)

    def to_record(self) -> dict[str, Any]:
        """Serialize to a storage record keyed by stored (camelCase) names."""
        return self.model_dump(by_alias=True, mode="json")


class Task(TaskDraft):
    """
    A task in the list.

    Example:
        >>> task = Task(
        ...     id=1,
        ...     title="Buy milk",
        ...     priority="low",
        ...     createdAt="2024-01-15T09:00:00Z",
        ...     updatedAt="2024-01-15T09:00:00Z",
        ... )
        >>> task.completed
        False
        >>> task.to_record()["createdAt"]
        '2024-01-15T09:00:00.000Z'
    """

    id: int = Field(..., description="Unique task identifier")

    @classmethod
    def from_draft(cls, task_id: int, draft: TaskDraft) -> "Task":
        return cls(id=task_id, **draft.model_dump())

    def merged(self, changes: dict[str, Any]) -> "Task":
        """Return a copy with ``changes`` (python field names) applied and re-validated."""
        data = self.model_dump()
        data.update(changes)
        return Task(**data)

    def is_overdue(self, today: date | None = None) -> bool:
        """A task is overdue if it is open and its due date has passed."""
        if self.completed or self.due_date is None:
            return False
        return self.due_date < (today or date.today())


class TaskUpdate(BaseModel):
    """
    Partial task changes.

    Only fields that were explicitly set are applied, so passing
    ``description=None`` clears the description while leaving it out
    keeps the stored value.
    """

    title: str | None = Field(default=None, min_length=1)
    description: str | None = None
    completed: bool | None = None
    priority: TaskPriority | None = None
    category: str | None = None
    due_date: date | None = Field(default=None, alias="dueDate")

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    @field_validator("title", mode="before")
    @classmethod
    def strip_title(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v

    @field_validator("title", "completed", "priority", mode="after")
    @classmethod
    def not_clearable(cls, v: Any) -> Any:
        if v is None:
            raise ValueError("field cannot be cleared")
        return v

    @field_validator("description", "category", mode="before")
    @classmethod
    def blank_is_none(cls, v: Any) -> Any:
        return _blank_to_none(v)

    def changes(self) -> dict[str, Any]:
        """Explicitly set fields, keyed by python field name."""
        return self.model_dump(exclude_unset=True)


# Python field name -> stored column/record name
STORED_NAMES: dict[str, str] = {
    name: (info.alias or name) for name, info in Task.model_fields.items()
}


def changes_to_record(changes: dict[str, Any]) -> dict[str, Any]:
    """
    Convert partial changes (python field names) to a storage record.

    Keys become stored names and values become JSON-compatible, using the
    same formats as Task.to_record().

    Example:
        >>> changes_to_record({"due_date": date(2024, 1, 20), "priority": TaskPriority.HIGH})
        {'dueDate': '2024-01-20', 'priority': 'high'}
    """
    record: dict[str, Any] = {}
    for field_name, value in changes.items():
        if isinstance(value, datetime):
            value = format_timestamp(value)
        elif isinstance(value, date):
            value = value.isoformat()
        elif isinstance(value, Enum):
            value = value.value
        record[STORED_NAMES[field_name]] = value
    return record
