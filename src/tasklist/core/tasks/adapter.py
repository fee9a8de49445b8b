"""
Persistence adapter with one-way fallback.

The adapter exposes the same CRUD surface as a single backend but picks
which backend is active when it is initialized:

1. No bridge supplied (capability absent) -> fallback backend
2. Bridge supplied -> structured backend; ensure_schema failures are
   ignored, but if the first load fails the adapter switches to the
   fallback backend for the rest of the session
3. The decision is never revisited: later mutation failures on the
   structured backend are reported to the caller, not papered over
"""

import logging
from pathlib import Path
from typing import Any

from .backend import PersistenceBackend, get_backend_class
from .bridge import DatabaseBridge, SqliteBridge
from .errors import AdapterError, FallbackStoreError
from .models import Task, TaskDraft
from .slots import FileSlot, KeyValueSlot

logger = logging.getLogger(__name__)


class PersistenceAdapter:
    """
    Backend-agnostic CRUD surface over tasks.

    Example:
        >>> adapter = PersistenceAdapter(SqliteBridge(db_path), FileSlot(data_dir))
        >>> tasks = await adapter.initialize()
        >>> adapter.backend_name
        'structured'
    """

    def __init__(
        self,
        bridge: DatabaseBridge | None,
        slot: KeyValueSlot,
        *,
        table_name: str = "todos",
        fallback_key: str = "todos",
    ):
        """
        Initialize the adapter.

        Args:
            bridge: Host database bridge, or None when the host has none
            slot: Durable slot used by the fallback backend
            table_name: Table used by the structured backend
            fallback_key: Slot key used by the fallback backend
        """
        self.bridge = bridge
        self.slot = slot
        self.table_name = table_name
        self.fallback_key = fallback_key

        self._active: PersistenceBackend | None = None
        self.degraded = False
        self.degrade_reason: str | None = None

    @property
    def active_backend(self) -> PersistenceBackend | None:
        return self._active

    @property
    def backend_name(self) -> str | None:
        return self._active.name if self._active is not None else None

    @property
    def initialized(self) -> bool:
        return self._active is not None

    def _make_fallback(self) -> PersistenceBackend:
        backend_class = get_backend_class("fallback")
        return backend_class(self.slot, self.fallback_key)  # type: ignore[call-arg]

    def _make_structured(self, bridge: DatabaseBridge) -> PersistenceBackend:
        backend_class = get_backend_class("structured")
        return backend_class(bridge, self.table_name)  # type: ignore[call-arg]

    def _degrade(self, reason: str) -> PersistenceBackend:
        self.degraded = True
        self.degrade_reason = reason
        self._active = self._make_fallback()
        return self._active

    async def _load_from(self, backend: PersistenceBackend) -> list[Task]:
        await backend.ensure_schema()
        return await backend.load_all()

    async def initialize(self) -> list[Task]:
        """
        Select the backend (first call only) and load all tasks.

        Returns:
            Tasks from the active backend, newest first

        Raises:
            FallbackStoreError: If the fallback backend cannot be read
        """
        if self._active is not None:
            # Backend already chosen for this session; just reload.
            return await self._load_from(self._active)

        if self.bridge is None:
            logger.info("No database bridge available; using fallback store '%s'",
                        self.fallback_key)
            return await self._load_fallback("absent")

        structured = self._make_structured(self.bridge)
        try:
            tasks = await self._load_from(structured)
        except Exception as e:
            logger.error("Database initialization failed, switching to fallback store: %s", e)
            return await self._load_fallback("failed")

        self._active = structured
        logger.debug("Using structured backend table=%s (%d tasks)", self.table_name, len(tasks))
        return tasks

    async def _load_fallback(self, reason: str) -> list[Task]:
        backend = self._degrade(reason)
        try:
            return await self._load_from(backend)
        except FallbackStoreError:
            raise
        except Exception as e:
            raise FallbackStoreError(f"Failed to load fallback store: {e}") from e

    def _require_active(self, operation: str, task_id: int | None = None) -> PersistenceBackend:
        if self._active is None:
            raise AdapterError(operation, task_id, "adapter not initialized")
        return self._active

    async def ensure_schema(self) -> None:
        backend = self._require_active("ensure_schema")
        await backend.ensure_schema()

    async def load_all(self) -> list[Task]:
        backend = self._require_active("load_all")
        try:
            return await backend.load_all()
        except Exception as e:
            raise AdapterError("load_all", detail=str(e)) from e

    async def insert(self, draft: TaskDraft) -> int:
        backend = self._require_active("insert")
        try:
            return await backend.insert(draft)
        except Exception as e:
            raise AdapterError("insert", detail=str(e)) from e

    async def update(self, task_id: int, changes: dict[str, Any]) -> None:
        backend = self._require_active("update", task_id)
        try:
            await backend.update(task_id, changes)
        except Exception as e:
            raise AdapterError("update", task_id, str(e)) from e

    async def delete(self, task_id: int) -> None:
        backend = self._require_active("delete", task_id)
        try:
            await backend.delete(task_id)
        except Exception as e:
            raise AdapterError("delete", task_id, str(e)) from e


def create_adapter(
    *,
    use_database: bool,
    database_path: Path,
    fallback_dir: Path,
    table_name: str = "todos",
    fallback_key: str = "todos",
) -> PersistenceAdapter:
    """
    Build an adapter for the command-line host.

    Args:
        use_database: If False, no bridge is supplied and the fallback
            store is used from the start
        database_path: SQLite file backing the bridge
        fallback_dir: Directory holding the fallback slot files
        table_name: Structured backend table
        fallback_key: Fallback slot key

    Returns:
        Uninitialized PersistenceAdapter
    """
    bridge: DatabaseBridge | None = SqliteBridge(database_path) if use_database else None
    return PersistenceAdapter(
        bridge,
        FileSlot(fallback_dir),
        table_name=table_name,
        fallback_key=fallback_key,
    )
