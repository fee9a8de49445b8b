"""
Unit tests for the persistence adapter.

Tests backend selection, one-way degradation to the fallback store,
error wrapping and re-initialization.
"""

import json

import pytest

from conftest import FakeBridge, make_draft
from tasklist.core.tasks import (
    AdapterError,
    FallbackStoreError,
    MemorySlot,
    PersistenceAdapter,
    create_adapter,
)
from tasklist.core.tasks.bridge import SqliteBridge
from tasklist.core.tasks.slots import FileSlot


class TestBackendSelection:
    """Test which backend initialize() picks."""

    @pytest.mark.asyncio
    async def test_bridge_present_uses_structured(self, bridge, slot):
        adapter = PersistenceAdapter(bridge, slot)
        assert await adapter.initialize() == []
        assert adapter.backend_name == "structured"
        assert adapter.degraded is False
        assert adapter.degrade_reason is None

    @pytest.mark.asyncio
    async def test_bridge_absent_uses_fallback(self, slot):
        """Test that no bridge means the fallback store from the start."""
        adapter = PersistenceAdapter(None, slot)
        await adapter.initialize()
        assert adapter.backend_name == "fallback"
        assert adapter.degraded is True
        assert adapter.degrade_reason == "absent"

    @pytest.mark.asyncio
    async def test_load_failure_degrades(self, bridge, slot):
        """Test that a failing first load switches to the fallback store."""
        bridge.fail.add("query_data")
        slot.write("todos", json.dumps([make_draft("Saved").to_record() | {"id": 4}]))

        adapter = PersistenceAdapter(bridge, slot)
        tasks = await adapter.initialize()

        assert adapter.backend_name == "fallback"
        assert adapter.degrade_reason == "failed"
        assert [t.title for t in tasks] == ["Saved"]

    @pytest.mark.asyncio
    async def test_schema_failure_alone_does_not_degrade(self, slot):
        """Test create_table failures are ignored when the table loads."""
        bridge = FakeBridge()
        await bridge.create_table("todos", "")
        bridge.fail.add("create_table")

        adapter = PersistenceAdapter(bridge, slot)
        await adapter.initialize()

        assert adapter.backend_name == "structured"

    @pytest.mark.asyncio
    async def test_unreadable_fallback_raises(self):
        """Test a corrupt fallback blob is reported, not hidden."""
        adapter = PersistenceAdapter(None, MemorySlot({"todos": "{oops"}))
        with pytest.raises(FallbackStoreError):
            await adapter.initialize()


class TestNoMidSessionFallback:
    """Test that the backend choice is never revisited."""

    @pytest.mark.asyncio
    async def test_mutation_failure_raises_adapter_error(self, bridge, slot, sample_draft):
        adapter = PersistenceAdapter(bridge, slot)
        await adapter.initialize()
        bridge.fail.add("insert_data")

        with pytest.raises(AdapterError) as exc_info:
            await adapter.insert(sample_draft)

        assert exc_info.value.operation == "insert"
        assert adapter.backend_name == "structured"
        assert slot.read("todos") is None

    @pytest.mark.asyncio
    async def test_update_and_delete_errors_carry_task_id(self, bridge, slot):
        adapter = PersistenceAdapter(bridge, slot)
        await adapter.initialize()
        bridge.fail.update({"update_data", "delete_data"})

        with pytest.raises(AdapterError) as update_error:
            await adapter.update(3, {"completed": True})
        with pytest.raises(AdapterError) as delete_error:
            await adapter.delete(3)

        assert update_error.value.task_id == 3
        assert delete_error.value.task_id == 3
        assert "update failed for task 3" in str(update_error.value)

    @pytest.mark.asyncio
    async def test_reinitialize_does_not_reprobe(self, bridge, slot):
        """Test that a second initialize reloads from the chosen backend."""
        adapter = PersistenceAdapter(bridge, slot)
        await adapter.initialize()
        backend = adapter.active_backend
        bridge.fail.add("create_table")

        await adapter.initialize()

        assert adapter.active_backend is backend
        assert adapter.backend_name == "structured"

    @pytest.mark.asyncio
    async def test_degraded_stays_degraded(self, bridge, slot):
        """Test recovery of the bridge does not switch back."""
        bridge.fail.add("query_data")
        adapter = PersistenceAdapter(bridge, slot)
        await adapter.initialize()
        bridge.fail.clear()

        await adapter.initialize()

        assert adapter.backend_name == "fallback"


class TestUninitialized:
    """Test use before initialize()."""

    @pytest.mark.asyncio
    async def test_crud_before_initialize(self, bridge, slot, sample_draft):
        adapter = PersistenceAdapter(bridge, slot)
        assert adapter.initialized is False
        assert adapter.backend_name is None
        with pytest.raises(AdapterError, match="not initialized"):
            await adapter.insert(sample_draft)


class TestCreateAdapter:
    """Test the command-line adapter factory."""

    def test_with_database(self, tmp_path):
        adapter = create_adapter(
            use_database=True,
            database_path=tmp_path / "tasks.db",
            fallback_dir=tmp_path,
        )
        assert isinstance(adapter.bridge, SqliteBridge)
        assert isinstance(adapter.slot, FileSlot)

    def test_without_database(self, tmp_path):
        adapter = create_adapter(
            use_database=False,
            database_path=tmp_path / "tasks.db",
            fallback_dir=tmp_path,
            fallback_key="work",
        )
        assert adapter.bridge is None
        assert adapter.fallback_key == "work"
