"""
Storage diagnostics.

Answers "which storage will this session use, and does the database
bridge actually work?" without touching the real task table.
"""

import logging
from dataclasses import dataclass
from enum import Enum

from .bridge import DatabaseBridge, quote_identifier

logger = logging.getLogger(__name__)

TEST_TABLE_SCHEMA = """
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    title TEXT NOT NULL,
    completed BOOLEAN DEFAULT 0
"""


class BridgeStatus(str, Enum):
    AVAILABLE = "available"
    UNAVAILABLE = "unavailable"


@dataclass(frozen=True)
class BridgeReport:
    """Result of probing a database bridge."""

    status: BridgeStatus
    detail: str

    @property
    def available(self) -> bool:
        return self.status == BridgeStatus.AVAILABLE

    @property
    def storage_mode(self) -> str:
        return "structured database" if self.available else "fallback store"


async def probe_bridge(bridge: DatabaseBridge | None) -> BridgeReport:
    """
    Check whether a bridge is present and answers a trivial query.

    Args:
        bridge: Bridge to probe, or None when the host has none

    Returns:
        BridgeReport describing availability
    """
    if bridge is None:
        return BridgeReport(BridgeStatus.UNAVAILABLE, "No database bridge is configured")

    try:
        await bridge.query_data("SELECT 1 AS test", [])
    except Exception as e:
        logger.error("Bridge query test failed: %s", e)
        return BridgeReport(BridgeStatus.UNAVAILABLE, f"Query test failed: {e}")

    return BridgeReport(BridgeStatus.AVAILABLE, "Database bridge is available and working")


async def exercise_bridge(bridge: DatabaseBridge, table_name: str = "test_todos") -> list[str]:
    """
    Run a create/insert/query/delete cycle against a scratch table.

    Args:
        bridge: Bridge to exercise
        table_name: Scratch table name

    Returns:
        Descriptions of the completed steps

    Raises:
        Exception: Whatever the bridge raises on the failing step
    """
    steps: list[str] = []

    try:
        await bridge.create_table(table_name, TEST_TABLE_SCHEMA)
        steps.append("Test table created")
    except Exception as e:
        # An earlier run may have left the table behind
        logger.debug("create_table(%s) failed, assuming it exists: %s", table_name, e)
        steps.append("Test table already present")

    result = await bridge.insert_data(table_name, {"title": "Test Task", "completed": 0})
    row_id = result["id"]
    steps.append(f"Test row inserted (id {row_id})")

    rows = await bridge.query_data(
        f"SELECT * FROM {quote_identifier(table_name)} WHERE id = ?", [row_id]
    )
    if len(rows) != 1:
        raise RuntimeError(f"Expected 1 row for id {row_id}, got {len(rows)}")
    steps.append("Test row queried back")

    await bridge.delete_data(table_name, {"id": row_id})
    steps.append("Test row deleted")

    return steps
