"""
Unit tests for the fallback key-value backend and its slots.

Tests id assignment, write-through persistence, ordering, corrupt
blobs and FileSlot atomic writes.
"""

import json

import pytest

from conftest import make_draft
from tasklist.core.tasks import FallbackStoreError, FileSlot, MemorySlot, TaskPriority
from tasklist.core.tasks.fallback import FallbackBackend


class TestMemorySlot:
    """Test the in-memory slot."""

    def test_missing_key(self):
        assert MemorySlot().read("todos") is None

    def test_write_then_read(self):
        slot = MemorySlot()
        slot.write("todos", "[]")
        assert slot.read("todos") == "[]"


class TestFileSlot:
    """Test the file-backed slot."""

    def test_missing_key(self, tmp_path):
        assert FileSlot(tmp_path).read("todos") is None

    def test_write_creates_directory(self, tmp_path):
        """Test that writing creates the slot directory."""
        slot = FileSlot(tmp_path / "nested" / "dir")
        slot.write("todos", '[{"id": 1}]')
        assert (tmp_path / "nested" / "dir" / "todos.json").exists()
        assert slot.read("todos") == '[{"id": 1}]'

    def test_overwrite_leaves_no_temp_files(self, tmp_path):
        """Test that atomic writes clean up after themselves."""
        slot = FileSlot(tmp_path)
        slot.write("todos", "[]")
        slot.write("todos", "[1]")
        assert [p.name for p in tmp_path.iterdir()] == ["todos.json"]
        assert slot.read("todos") == "[1]"

    def test_invalid_key(self, tmp_path):
        with pytest.raises(FallbackStoreError):
            FileSlot(tmp_path).write("../escape", "[]")


class TestFallbackBackend:
    """Test FallbackBackend CRUD."""

    @pytest.mark.asyncio
    async def test_empty_slot_loads_empty(self, slot):
        backend = FallbackBackend(slot)
        await backend.ensure_schema()
        assert await backend.load_all() == []

    @pytest.mark.asyncio
    async def test_insert_assigns_increasing_ids(self, slot):
        """Test ids are max(existing) + 1."""
        backend = FallbackBackend(slot)
        await backend.load_all()
        first = await backend.insert(make_draft("First"))
        second = await backend.insert(make_draft("Second"))
        assert (first, second) == (1, 2)

    @pytest.mark.asyncio
    async def test_ids_never_collide_after_delete(self, slot):
        """Test new ids are unique even after deleting tasks."""
        backend = FallbackBackend(slot)
        await backend.load_all()
        ids = [await backend.insert(make_draft(f"T{i}")) for i in range(3)]
        await backend.delete(ids[0])
        new_id = await backend.insert(make_draft("T4"))
        remaining = [t.id for t in await backend.load_all()]
        assert new_id not in ids[1:]
        assert len(remaining) == len(set(remaining))

    @pytest.mark.asyncio
    async def test_insert_writes_through(self, slot):
        """Test every insert rewrites the full collection, newest first."""
        backend = FallbackBackend(slot)
        await backend.load_all()
        await backend.insert(make_draft("First", created="2024-01-01T00:00:00Z"))
        await backend.insert(make_draft("Second", created="2024-01-02T00:00:00Z"))

        stored = json.loads(slot.read("todos"))
        assert [r["title"] for r in stored] == ["Second", "First"]
        assert stored[0]["createdAt"] == "2024-01-02T00:00:00.000Z"
        assert stored[0]["completed"] is False

    @pytest.mark.asyncio
    async def test_persists_across_sessions(self, slot):
        """Test a new backend over the same slot sees earlier writes."""
        backend = FallbackBackend(slot)
        await backend.load_all()
        task_id = await backend.insert(make_draft("Keep me", priority="high"))
        await backend.update(task_id, {"completed": True})

        reloaded = await FallbackBackend(slot).load_all()
        assert len(reloaded) == 1
        assert reloaded[0].title == "Keep me"
        assert reloaded[0].completed is True
        assert reloaded[0].priority == TaskPriority.HIGH

    @pytest.mark.asyncio
    async def test_load_sorts_newest_first(self):
        """Test load_all orders by created_at even if the blob does not."""
        records = [
            make_draft("Old", created="2024-01-01T00:00:00Z").to_record() | {"id": 1},
            make_draft("New", created="2024-01-05T00:00:00Z").to_record() | {"id": 2},
        ]
        slot = MemorySlot({"todos": json.dumps(records)})
        assert [t.title for t in await FallbackBackend(slot).load_all()] == ["New", "Old"]

    @pytest.mark.asyncio
    async def test_update_merges_fields(self, slot, sample_draft):
        """Test update changes only the supplied fields."""
        backend = FallbackBackend(slot)
        await backend.load_all()
        task_id = await backend.insert(sample_draft)

        await backend.update(task_id, {"category": None})

        (task,) = await backend.load_all()
        assert task.category is None
        assert task.description == "2 litres"

    @pytest.mark.asyncio
    async def test_update_unknown_id_is_noop(self, slot, sample_draft):
        backend = FallbackBackend(slot)
        await backend.load_all()
        await backend.insert(sample_draft)
        before = slot.read("todos")

        await backend.update(99, {"completed": True})

        assert slot.read("todos") == before

    @pytest.mark.asyncio
    async def test_delete_unknown_id_is_noop(self, slot, sample_draft):
        backend = FallbackBackend(slot)
        await backend.load_all()
        await backend.insert(sample_draft)

        await backend.delete(99)

        assert len(await backend.load_all()) == 1

    @pytest.mark.asyncio
    async def test_custom_key(self, slot, sample_draft):
        backend = FallbackBackend(slot, key="work")
        await backend.load_all()
        await backend.insert(sample_draft)
        assert slot.read("work") is not None
        assert slot.read("todos") is None


class TestCorruptBlob:
    """Test handling of unreadable stored collections."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "blob",
        [
            "{not json",
            '{"id": 1}',
            '[{"id": 1}]',
            json.dumps(
                [
                    make_draft("A").to_record() | {"id": 1},
                    make_draft("B").to_record() | {"id": 1},
                ]
            ),
        ],
        ids=["invalid-json", "not-array", "invalid-record", "duplicate-ids"],
    )
    async def test_corrupt_blob_raises(self, blob):
        with pytest.raises(FallbackStoreError):
            await FallbackBackend(MemorySlot({"todos": blob})).load_all()

    @pytest.mark.asyncio
    async def test_blank_blob_is_empty(self):
        assert await FallbackBackend(MemorySlot({"todos": "  "})).load_all() == []


class TestWriteFailure:
    """Test that a failed write leaves the in-memory list unchanged."""

    @pytest.mark.asyncio
    async def test_failed_write_not_adopted(self, sample_draft):
        class BrokenSlot(MemorySlot):
            def write(self, key, value):
                raise FallbackStoreError("disk full")

        slot = BrokenSlot()
        backend = FallbackBackend(slot)
        await backend.load_all()

        with pytest.raises(FallbackStoreError):
            await backend.insert(sample_draft)

        assert backend._current() == []
