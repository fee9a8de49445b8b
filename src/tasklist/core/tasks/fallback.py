"""
Fallback key-value backend.

Used when the structured database is absent or failed to initialize.
After the first load the in-memory list is the single source of truth;
the whole collection is serialized as one JSON array and written
through to the slot after every mutation so the next session can
restore it.

Blob format (camelCase records, newest first):
    [
        {
            "id": 2,
            "title": "Buy milk",
            "completed": false,
            "priority": "low",
            "createdAt": "2024-01-15T09:00:00.000Z",
            ...
        }
    ]
"""

import json
import logging
from typing import Any

from pydantic import ValidationError

from .backend import register_backend
from .errors import FallbackStoreError
from .models import Task, TaskDraft
from .slots import KeyValueSlot

logger = logging.getLogger(__name__)


def _newest_first(tasks: list[Task]) -> list[Task]:
    return sorted(tasks, key=lambda t: t.created_at, reverse=True)


@register_backend("fallback")
class FallbackBackend:
    """
    Task backend that keeps the task collection in a single slot.

    Example:
        >>> backend = FallbackBackend(MemorySlot())
        >>> await backend.ensure_schema()
        >>> task_id = await backend.insert(draft)
    """

    def __init__(self, slot: KeyValueSlot, key: str = "todos"):
        """
        Initialize the fallback backend.

        Args:
            slot: Durable key-value slot
            key: Slot key holding the serialized collection
        """
        self.slot = slot
        self.key = key
        self._tasks: list[Task] | None = None

    @property
    def name(self) -> str:
        return "fallback"

    async def ensure_schema(self) -> None:
        """Nothing to create: a missing key reads as an empty collection."""
        return

    def _read_blob(self) -> list[Task]:
        """
        Parse the stored collection.

        Raises:
            FallbackStoreError: If the blob is not a JSON array of valid tasks
        """
        raw = self.slot.read(self.key)
        if raw is None or not raw.strip():
            return []

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise FallbackStoreError(f"Failed to parse stored tasks under '{self.key}': {e}") from e

        if not isinstance(data, list):
            raise FallbackStoreError(f"Stored tasks under '{self.key}' must be a JSON array")

        try:
            tasks = [Task(**record) for record in data]
        except (TypeError, ValidationError) as e:
            raise FallbackStoreError(f"Invalid task record under '{self.key}': {e}") from e

        ids = [t.id for t in tasks]
        if len(ids) != len(set(ids)):
            raise FallbackStoreError(f"Duplicate task ids under '{self.key}'")
        return tasks

    def _write_through(self, tasks: list[Task]) -> None:
        blob = json.dumps([t.to_record() for t in tasks], indent=2, ensure_ascii=False)
        self.slot.write(self.key, blob)

    def _commit(self, tasks: list[Task]) -> None:
        # Only adopt the new list once it is safely written.
        self._write_through(tasks)
        self._tasks = tasks

    def _current(self) -> list[Task]:
        if self._tasks is None:
            self._tasks = _newest_first(self._read_blob())
        return self._tasks

    async def load_all(self) -> list[Task]:
        self._tasks = _newest_first(self._read_blob())
        logger.debug("Loaded %d task(s) from fallback slot '%s'", len(self._tasks), self.key)
        return list(self._tasks)

    async def insert(self, draft: TaskDraft) -> int:
        tasks = self._current()
        task_id = max((t.id for t in tasks), default=0) + 1
        self._commit([Task.from_draft(task_id, draft), *tasks])
        return task_id

    async def update(self, task_id: int, changes: dict[str, Any]) -> None:
        if not changes:
            return
        tasks = self._current()
        if not any(t.id == task_id for t in tasks):
            return
        self._commit([t.merged(changes) if t.id == task_id else t for t in tasks])

    async def delete(self, task_id: int) -> None:
        tasks = self._current()
        remaining = [t for t in tasks if t.id != task_id]
        if len(remaining) == len(tasks):
            return
        self._commit(remaining)
