"""
Host database bridge.

The structured backend talks to its database through a DatabaseBridge:
a small capability offering table creation, parameterized queries and
insert/update/delete by criteria. The host environment may or may not
provide one; absence is represented by passing ``None`` to the adapter.

SqliteBridge is the bridge used by the command-line host. It follows
SQLite conventions used elsewhere in the project:
- one connection per call, closed afterwards
- dict row factory for name-based access
- blocking work runs in a worker thread so callers can await it

Usage:
    bridge = SqliteBridge(Path("tasks.db"))
    await bridge.create_table("todos", "id INTEGER PRIMARY KEY AUTOINCREMENT, title TEXT")
    result = await bridge.insert_data("todos", {"title": "Buy milk"})
    rows = await bridge.query_data("SELECT * FROM todos WHERE id = ?", [result["id"]])
"""

import asyncio
import logging
import re
import sqlite3
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from .errors import BridgeError

logger = logging.getLogger(__name__)

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


@runtime_checkable
class DatabaseBridge(Protocol):
    """Protocol for a host-provided structured database capability."""

    async def create_table(self, table_name: str, schema: str) -> None:
        """
        Create a table.

        Whether an existing table is an error is up to the bridge;
        callers must tolerate both behaviours.
        """
        ...

    async def insert_data(self, table_name: str, data: dict[str, Any]) -> dict[str, int]:
        """Insert a row and return ``{"id": <assigned id>}``."""
        ...

    async def update_data(
        self, table_name: str, data: dict[str, Any], where: dict[str, Any]
    ) -> None:
        """Update rows matching every ``where`` column."""
        ...

    async def delete_data(self, table_name: str, where: dict[str, Any]) -> None:
        """Delete rows matching every ``where`` column."""
        ...

    async def query_data(self, query: str, params: Sequence[Any]) -> list[dict[str, Any]]:
        """Run a parameterized query and return rows as dicts."""
        ...


def dict_factory(cursor: sqlite3.Cursor, row: tuple[Any, ...]) -> dict[str, Any]:
    """
    Row factory that returns rows as dictionaries.

    Example:
        >>> conn = sqlite3.connect(":memory:")
        >>> conn.row_factory = dict_factory
        >>> conn.execute("SELECT 1 AS test").fetchone()
        {'test': 1}
    """
    fields = [column[0] for column in cursor.description]
    return dict(zip(fields, row))


def quote_identifier(name: str) -> str:
    """
    Validate and quote a table or column name.

    Raises:
        BridgeError: If the name is not a plain identifier
    """
    if not _IDENTIFIER.match(name):
        raise BridgeError(f"Invalid identifier: {name!r}")
    return f'"{name}"'


def _where_clause(where: dict[str, Any]) -> tuple[str, list[Any]]:
    if not where:
        raise BridgeError("Refusing to run without a WHERE clause")
    parts = [f"{quote_identifier(col)} = ?" for col in where]
    return " AND ".join(parts), list(where.values())


class SqliteBridge:
    """
    DatabaseBridge implementation on top of a local SQLite file.

    ``create_table`` issues a plain CREATE TABLE, so calling it for an
    existing table raises BridgeError like other hosts do.

    Example:
        >>> bridge = SqliteBridge(Path("/tmp/tasks.db"))
        >>> rows = await bridge.query_data("SELECT 1 AS test", [])
    """

    def __init__(self, db_path: Path | str, timeout: float = 30.0):
        self.db_path = Path(db_path)
        self.timeout = timeout

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(str(self.db_path), timeout=self.timeout)
        except (OSError, sqlite3.Error) as e:
            raise BridgeError(f"Cannot open {self.db_path}: {e}") from e
        conn.row_factory = dict_factory
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise BridgeError(str(e)) from e
        finally:
            conn.close()

    async def _run(self, fn: Any, *args: Any) -> Any:
        return await asyncio.to_thread(fn, *args)

    def _create_table(self, table_name: str, schema: str) -> None:
        with self._connect() as conn:
            conn.execute(f"CREATE TABLE {quote_identifier(table_name)} ({schema})")
        logger.debug("Created table %s in %s", table_name, self.db_path)

    def _insert(self, table_name: str, data: dict[str, Any]) -> dict[str, int]:
        if not data:
            raise BridgeError("insert_data requires at least one column")
        columns = ", ".join(quote_identifier(col) for col in data)
        placeholders = ", ".join("?" for _ in data)
        with self._connect() as conn:
            cur = conn.execute(
                f"INSERT INTO {quote_identifier(table_name)} ({columns}) VALUES ({placeholders})",
                list(data.values()),
            )
            rowid = cur.lastrowid
        if rowid is None:
            raise BridgeError(f"SQLite did not return lastrowid for {table_name} insert")
        return {"id": int(rowid)}

    def _update(self, table_name: str, data: dict[str, Any], where: dict[str, Any]) -> None:
        if not data:
            return
        assignments = ", ".join(f"{quote_identifier(col)} = ?" for col in data)
        clause, where_params = _where_clause(where)
        with self._connect() as conn:
            conn.execute(
                f"UPDATE {quote_identifier(table_name)} SET {assignments} WHERE {clause}",
                [*data.values(), *where_params],
            )

    def _delete(self, table_name: str, where: dict[str, Any]) -> None:
        clause, params = _where_clause(where)
        with self._connect() as conn:
            conn.execute(f"DELETE FROM {quote_identifier(table_name)} WHERE {clause}", params)

    def _query(self, query: str, params: Sequence[Any]) -> list[dict[str, Any]]:
        with self._connect() as conn:
            rows: list[dict[str, Any]] = conn.execute(query, list(params)).fetchall()
        return rows

    async def create_table(self, table_name: str, schema: str) -> None:
        await self._run(self._create_table, table_name, schema)

    async def insert_data(self, table_name: str, data: dict[str, Any]) -> dict[str, int]:
        result: dict[str, int] = await self._run(self._insert, table_name, data)
        return result

    async def update_data(
        self, table_name: str, data: dict[str, Any], where: dict[str, Any]
    ) -> None:
        await self._run(self._update, table_name, data, where)

    async def delete_data(self, table_name: str, where: dict[str, Any]) -> None:
        await self._run(self._delete, table_name, where)

    async def query_data(self, query: str, params: Sequence[Any]) -> list[dict[str, Any]]:
        rows: list[dict[str, Any]] = await self._run(self._query, query, params)
        return rows
