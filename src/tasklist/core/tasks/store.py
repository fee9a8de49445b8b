"""
Task store: the in-memory task list and its synchronization with storage.

The store owns the authoritative in-memory collection. Every mutation
is written to the persistence adapter first and applied to memory only
after the write succeeded, so memory never runs ahead of storage.

State machine:
    UNINITIALIZED -> INITIALIZING -> READY
                                  -> ERRORED (retry with initialize())

Ordering: the collection is newest first. New tasks are prepended and
the list is never re-sorted, so seed data must already be declared
newest first.
"""

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Any

from .adapter import PersistenceAdapter
from .errors import AdapterError, StoreNotReadyError, TaskStoreError
from .models import Task, TaskDraft, TaskFields, TaskUpdate, utc_now
from .seed import SEED_TASKS

logger = logging.getLogger(__name__)

_TICK = timedelta(milliseconds=1)


class StoreState(str, Enum):
    """Lifecycle states of a TaskStore session."""

    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"
    ERRORED = "errored"


class NoticeLevel(str, Enum):
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class Notice:
    """A short user-facing message about the outcome of an action."""

    level: NoticeLevel
    message: str


class TaskStore:
    """
    Owner of the in-memory task collection.

    Example:
        >>> store = TaskStore(adapter)
        >>> await store.initialize()
        >>> task = await store.add({"title": "Buy milk", "priority": "low"})
        >>> await store.toggle_complete(task.id)
        >>> await store.delete(task.id)
    """

    def __init__(
        self,
        adapter: PersistenceAdapter,
        *,
        seed: bool = True,
        seed_tasks: Iterable[TaskDraft] | None = None,
        clock: Callable[[], datetime] | None = None,
        on_notice: Callable[[Notice], None] | None = None,
    ):
        """
        Initialize the store.

        Args:
            adapter: Persistence adapter (initialized by initialize())
            seed: Insert example tasks when the store is empty on load
            seed_tasks: Override the example tasks
            clock: Returns the current time (defaults to UTC now, ms precision)
            on_notice: Called with every success/failure notice
        """
        self.adapter = adapter
        self.seed = seed
        self.seed_tasks: tuple[TaskDraft, ...] = (
            tuple(seed_tasks) if seed_tasks is not None else SEED_TASKS
        )
        self.clock = clock or utc_now
        self.on_notice = on_notice

        self.state = StoreState.UNINITIALIZED
        self.error: str | None = None
        self.last_exception: BaseException | None = None
        self.last_notice: Notice | None = None
        self._tasks: list[Task] = []

    # ---- read side ----

    @property
    def tasks(self) -> tuple[Task, ...]:
        """Snapshot of the collection, newest first."""
        return tuple(self._tasks)

    @property
    def loading(self) -> bool:
        return self.state == StoreState.INITIALIZING

    @property
    def backend_name(self) -> str | None:
        return self.adapter.backend_name

    def get(self, task_id: int) -> Task | None:
        for task in self._tasks:
            if task.id == task_id:
                return task
        return None

    # ---- helpers ----

    def _notify(self, level: NoticeLevel, message: str) -> None:
        notice = Notice(level, message)
        self.last_notice = notice
        if self.on_notice is not None:
            self.on_notice(notice)

    def _require_ready(self, operation: str) -> None:
        if self.state != StoreState.READY:
            raise StoreNotReadyError(f"Cannot {operation} while store is {self.state.value}")

    def _stamp(self, after: datetime | None = None) -> datetime:
        """Current time, bumped if needed so it is strictly later than ``after``."""
        now = self.clock()
        if after is not None and now <= after:
            now = after + _TICK
        return now

    def _fail(self, operation: str, notice: str, error: AdapterError,
              task_id: int | None = None) -> TaskStoreError:
        logger.error("%s failed (task_id=%s): %s", operation, task_id, error)
        self._notify(NoticeLevel.ERROR, notice)
        return TaskStoreError(notice, operation, task_id)

    # ---- lifecycle ----

    async def initialize(self) -> None:
        """
        Load tasks from storage, seeding examples on an empty first run.

        On success the store is READY. If no backend can be read the store
        is ERRORED, ``error`` holds a short message and this method can be
        called again to retry.
        """
        self.state = StoreState.INITIALIZING
        self.error = None
        self.last_exception = None

        try:
            loaded = await self.adapter.initialize()
            if not loaded and self.seed:
                loaded = await self._seed()
        except Exception as e:
            logger.error("Task store initialization failed: %s", e)
            self.last_exception = e
            self.error = "Failed to initialize storage"
            self.state = StoreState.ERRORED
            self._notify(NoticeLevel.ERROR, "Failed to load tasks")
            return

        self._tasks = list(loaded)
        self.state = StoreState.READY
        logger.info("Task store ready backend=%s total=%d", self.backend_name, len(self._tasks))

    async def _seed(self) -> list[Task]:
        seeded: list[Task] = []
        for draft in self.seed_tasks:
            task_id = await self.adapter.insert(draft)
            seeded.append(Task.from_draft(task_id, draft))
        logger.info("Seeded %d example task(s)", len(seeded))
        return seeded

    # ---- mutations ----

    async def add(self, fields: TaskFields | dict[str, Any]) -> Task:
        """
        Create a task.

        Args:
            fields: Title and optional description/completed/priority/
                category/due date

        Returns:
            The created task with its backend-assigned id

        Raises:
            StoreNotReadyError: If the store is not READY
            ValidationError: If the fields are invalid
            TaskStoreError: If the backend write failed (memory unchanged)
        """
        self._require_ready("add task")
        if not isinstance(fields, TaskFields):
            fields = TaskFields(**fields)

        now = self._stamp()
        draft = TaskDraft(**fields.model_dump(), created_at=now, updated_at=now)
        try:
            task_id = await self.adapter.insert(draft)
        except AdapterError as e:
            raise self._fail("add", "Failed to add task", e) from e

        task = Task.from_draft(task_id, draft)
        self._tasks.insert(0, task)
        logger.debug("Added task id=%s", task_id)
        self._notify(NoticeLevel.SUCCESS, "Task added successfully!")
        return task

    async def update(self, task_id: int, changes: TaskUpdate | dict[str, Any]) -> Task | None:
        """
        Apply a partial update.

        Only the supplied fields change; ``updated_at`` is always refreshed.
        Unknown ids are ignored without touching storage.

        Returns:
            The updated task, or None if no task with this id is loaded

        Raises:
            StoreNotReadyError: If the store is not READY
            ValidationError: If the changes are invalid
            TaskStoreError: If the backend write failed (memory unchanged)
        """
        self._require_ready("update task")
        if not isinstance(changes, TaskUpdate):
            changes = TaskUpdate(**changes)

        current = self.get(task_id)
        if current is None:
            logger.debug("Ignoring update for unknown task id=%s", task_id)
            return None

        values = changes.changes()
        values["updated_at"] = self._stamp(current.updated_at)

        try:
            await self.adapter.update(task_id, values)
        except AdapterError as e:
            raise self._fail("update", "Failed to update task", e, task_id) from e

        # Other writes may have landed while this one was in flight.
        latest = self.get(task_id)
        if latest is None:
            logger.debug("Task id=%s was deleted before its update completed", task_id)
            return None

        updated = latest.merged(values)
        self._tasks = [updated if t.id == task_id else t for t in self._tasks]
        self._notify(NoticeLevel.SUCCESS, "Task updated successfully!")
        return updated

    async def delete(self, task_id: int) -> bool:
        """
        Delete a task permanently.

        The success notice is only sent when a loaded task was removed.

        Returns:
            True if a loaded task was removed

        Raises:
            StoreNotReadyError: If the store is not READY
            TaskStoreError: If the backend write failed (memory unchanged)
        """
        self._require_ready("delete task")
        try:
            await self.adapter.delete(task_id)
        except AdapterError as e:
            raise self._fail("delete", "Failed to delete task", e, task_id) from e

        remaining = [t for t in self._tasks if t.id != task_id]
        removed = len(remaining) != len(self._tasks)
        self._tasks = remaining
        if removed:
            self._notify(NoticeLevel.SUCCESS, "Task deleted successfully!")
        return removed

    async def toggle_complete(self, task_id: int) -> Task | None:
        """
        Flip a task's completed flag.

        Unknown ids are ignored.

        Returns:
            The updated task, or None if no task with this id is loaded
        """
        self._require_ready("toggle task")
        current = self.get(task_id)
        if current is None:
            return None
        return await self.update(task_id, TaskUpdate(completed=not current.completed))
