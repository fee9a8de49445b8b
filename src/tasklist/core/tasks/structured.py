"""
Structured database backend.

Stores tasks as rows of a single table behind a DatabaseBridge. The
bridge stores ``completed`` as an integer, so every read and write goes
through the boolean translation helpers below.
"""

import logging
from typing import Any

from .backend import register_backend
from .bridge import DatabaseBridge, quote_identifier
from .models import Task, TaskDraft, changes_to_record

logger = logging.getLogger(__name__)

TASK_TABLE_SCHEMA = """
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    title TEXT NOT NULL,
    description TEXT,
    completed BOOLEAN DEFAULT 0,
    priority TEXT DEFAULT 'medium',
    category TEXT,
    dueDate TEXT,
    createdAt TEXT NOT NULL,
    updatedAt TEXT NOT NULL
"""


def bool_to_db(value: bool) -> int:
    """Translate a boolean to the 0/1 integer stored by the bridge."""
    return 1 if value else 0


def bool_from_db(value: Any) -> bool:
    """
    Translate a stored ``completed`` value back to a boolean.

    Bridges may hand back ints, bools or strings. Plain truthiness is
    wrong for strings ("0" is truthy), so strings are matched explicitly.

    Example:
        >>> bool_from_db(1), bool_from_db("0"), bool_from_db(None)
        (True, False, False)
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value == 1
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true")
    return False


@register_backend("structured")
class StructuredBackend:
    """
    Task backend that uses a host DatabaseBridge.

    Example:
        >>> backend = StructuredBackend(SqliteBridge(Path("tasks.db")))
        >>> await backend.ensure_schema()
        >>> tasks = await backend.load_all()
    """

    def __init__(self, bridge: DatabaseBridge, table_name: str = "todos"):
        """
        Initialize the structured backend.

        Args:
            bridge: Host database bridge
            table_name: Table holding the tasks
        """
        self.bridge = bridge
        self.table_name = table_name
        # Validate early; the name is interpolated into the load query.
        self._quoted_table = quote_identifier(table_name)

    @property
    def name(self) -> str:
        return "structured"

    async def ensure_schema(self) -> None:
        """
        Create the task table.

        Bridges may raise when the table already exists, so any failure
        here is logged and ignored. A genuinely broken database shows up
        on the following load instead.
        """
        try:
            await self.bridge.create_table(self.table_name, TASK_TABLE_SCHEMA)
        except Exception as e:
            logger.info("create_table for %s did not succeed (treated as existing): %s",
                        self.table_name, e)

    def _row_to_task(self, row: dict[str, Any]) -> Task:
        data = dict(row)
        data["id"] = int(data["id"])
        data["completed"] = bool_from_db(data.get("completed"))
        return Task(**data)

    async def load_all(self) -> list[Task]:
        rows = await self.bridge.query_data(
            f"SELECT * FROM {self._quoted_table} ORDER BY createdAt DESC", []
        )
        return [self._row_to_task(row) for row in rows]

    async def insert(self, draft: TaskDraft) -> int:
        record = draft.to_record()
        record["completed"] = bool_to_db(draft.completed)
        result = await self.bridge.insert_data(self.table_name, record)
        task_id = int(result["id"])
        logger.debug("Inserted task id=%s into %s", task_id, self.table_name)
        return task_id

    async def update(self, task_id: int, changes: dict[str, Any]) -> None:
        columns = changes_to_record(changes)
        if not columns:
            return
        if "completed" in columns:
            columns["completed"] = bool_to_db(bool(columns["completed"]))
        await self.bridge.update_data(self.table_name, columns, {"id": task_id})

    async def delete(self, task_id: int) -> None:
        await self.bridge.delete_data(self.table_name, {"id": task_id})
