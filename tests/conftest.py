"""
Pytest configuration and shared fixtures.

Provides an in-memory database bridge, memory slots, deterministic
clocks, sample tasks and config isolation used across the test suite.
"""

from collections.abc import Sequence
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from tasklist.core.config import clear_cache
from tasklist.core.tasks import (
    BridgeError,
    MemorySlot,
    PersistenceAdapter,
    TaskDraft,
    TaskStore,
)

# ==============================================================================
# Fake Bridge
# ==============================================================================


class FakeBridge:
    """
    In-memory DatabaseBridge.

    Stores ``completed`` exactly as handed over (the structured backend
    writes 0/1), answers ``SELECT * FROM "<table>" ...`` and ``SELECT 1``
    queries, and can be told to fail individual operations.
    """

    def __init__(self, *, raise_on_existing_table: bool = True):
        self.tables: dict[str, dict[int, dict[str, Any]]] = {}
        self.next_ids: dict[str, int] = {}
        self.raise_on_existing_table = raise_on_existing_table
        self.fail: set[str] = set()
        self.calls: list[tuple[str, Any]] = []

    def _maybe_fail(self, operation: str) -> None:
        if operation in self.fail:
            raise BridgeError(f"{operation} exploded")

    async def create_table(self, table_name: str, schema: str) -> None:
        self.calls.append(("create_table", table_name))
        self._maybe_fail("create_table")
        if table_name in self.tables:
            if self.raise_on_existing_table:
                raise BridgeError(f"table {table_name} already exists")
            return
        self.tables[table_name] = {}
        self.next_ids[table_name] = 1

    def _table(self, table_name: str) -> dict[int, dict[str, Any]]:
        if table_name not in self.tables:
            raise BridgeError(f"no such table: {table_name}")
        return self.tables[table_name]

    async def insert_data(self, table_name: str, data: dict[str, Any]) -> dict[str, int]:
        self.calls.append(("insert_data", data))
        self._maybe_fail("insert_data")
        table = self._table(table_name)
        row_id = self.next_ids[table_name]
        self.next_ids[table_name] = row_id + 1
        table[row_id] = {**data, "id": row_id}
        return {"id": row_id}

    async def update_data(
        self, table_name: str, data: dict[str, Any], where: dict[str, Any]
    ) -> None:
        self.calls.append(("update_data", (data, where)))
        self._maybe_fail("update_data")
        for row in self._table(table_name).values():
            if all(row.get(k) == v for k, v in where.items()):
                row.update(data)

    async def delete_data(self, table_name: str, where: dict[str, Any]) -> None:
        self.calls.append(("delete_data", where))
        self._maybe_fail("delete_data")
        table = self._table(table_name)
        for row_id in [i for i, row in table.items() if all(row.get(k) == v for k, v in where.items())]:
            del table[row_id]

    async def query_data(self, query: str, params: Sequence[Any]) -> list[dict[str, Any]]:
        self.calls.append(("query_data", query))
        self._maybe_fail("query_data")
        if query.startswith("SELECT 1"):
            return [{"test": 1}]
        table_name = query.split('"')[1]
        rows = [dict(row) for row in self._table(table_name).values()]
        if "WHERE id = ?" in query:
            rows = [row for row in rows if row["id"] == params[0]]
        if "ORDER BY createdAt DESC" in query:
            rows.sort(key=lambda row: row["createdAt"], reverse=True)
        return rows


class SteppingClock:
    """Clock that advances by ``step`` on every call."""

    def __init__(self, start: datetime, step: timedelta = timedelta(seconds=1)):
        self.current = start
        self.step = step

    def __call__(self) -> datetime:
        value = self.current
        self.current = self.current + self.step
        return value


FIXED_NOW = datetime(2024, 2, 1, 12, 0, 0, tzinfo=timezone.utc)


# ==============================================================================
# Storage Fixtures
# ==============================================================================


@pytest.fixture
def bridge():
    """Provide an empty in-memory database bridge."""
    return FakeBridge()


@pytest.fixture
def slot():
    """Provide an empty memory slot."""
    return MemorySlot()


@pytest.fixture
def clock():
    """Provide a clock that advances one second per call from FIXED_NOW."""
    return SteppingClock(FIXED_NOW)


@pytest.fixture
def frozen_clock():
    """Provide a clock that always returns FIXED_NOW."""
    return lambda: FIXED_NOW


@pytest.fixture
def structured_store(bridge, slot, clock):
    """Provide an uninitialized, unseeded store over the fake bridge."""
    return TaskStore(PersistenceAdapter(bridge, slot), seed=False, clock=clock)


@pytest.fixture
def fallback_store(slot, clock):
    """Provide an uninitialized, unseeded store with no bridge."""
    return TaskStore(PersistenceAdapter(None, slot), seed=False, clock=clock)


# ==============================================================================
# Sample Data Fixtures
# ==============================================================================


def make_draft(title: str = "Sample task", created: str = "2024-01-10T08:00:00Z", **kwargs):
    """Build a TaskDraft with both timestamps set to ``created``."""
    return TaskDraft(title=title, createdAt=created, updatedAt=created, **kwargs)


@pytest.fixture
def sample_draft():
    """Provide a representative draft."""
    return make_draft(
        "Buy milk",
        description="2 litres",
        priority="low",
        category="Shopping",
        dueDate="2024-01-12",
    )


# ==============================================================================
# Config Isolation
# ==============================================================================


@pytest.fixture
def isolated_env(tmp_path, monkeypatch):
    """
    Isolate config, .env and data directories from the real user.

    Points XDG dirs and cwd at tmp_path, clears TASKLIST_* variables and
    the config cache. Returns the directory used for task data.
    """
    for name in (
        "TASKLIST_BACKEND",
        "TASKLIST_DB_PATH",
        "TASKLIST_FALLBACK_DIR",
        "TASKLIST_DATA_DIR",
        "TASKLIST_SEED",
        "TASKLIST_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)

    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    project = tmp_path / "project"
    project.mkdir()
    monkeypatch.chdir(project)

    clear_cache()
    yield tmp_path / "data" / "tasklist"
    clear_cache()
