# tests/test_storage.py

from __future__ import annotations

from pathlib import Path

import pytest

from taskpad.core.ports import TASKS_STORAGE_KEY
from taskpad.storage.memory_kv import InMemoryKeyValueStore
from taskpad.storage.sqlite_kv import SqliteKeyValueStore
from taskpad.tasks.task_models import Priority, TaskDraft
from taskpad.tasks.task_store import TaskStore


@pytest.mark.asyncio
async def test_sqlite_get_set_remove(tmp_path: Path) -> None:
    kv = SqliteKeyValueStore(tmp_path / "nested" / "kv.sqlite3")
    assert kv.db_path.exists()

    assert await kv.get("@tasks") is None

    await kv.set("@tasks", "[]")
    assert await kv.get("@tasks") == "[]"

    await kv.set("@tasks", '[{"x": "ü"}]')
    assert await kv.get("@tasks") == '[{"x": "ü"}]'

    await kv.remove("@tasks")
    assert await kv.get("@tasks") is None

    # Removing a missing key is fine.
    await kv.remove("@tasks")


@pytest.mark.asyncio
async def test_sqlite_values_survive_a_new_instance(tmp_path: Path) -> None:
    db = tmp_path / "kv.sqlite3"
    await SqliteKeyValueStore(db).set("@theme_mode", "dark")
    assert await SqliteKeyValueStore(db).get("@theme_mode") == "dark"


@pytest.mark.asyncio
async def test_task_store_persists_across_restarts(tmp_path: Path) -> None:
    db = tmp_path / "kv.sqlite3"

    async with TaskStore(SqliteKeyValueStore(db)) as store:
        milk = store.add(TaskDraft(text="Buy milk", priority="high"))
        store.add(TaskDraft(text="Walk dog"))
        assert milk is not None
        store.toggle_completion(milk.id)
        expected = store.tasks

    async with TaskStore(SqliteKeyValueStore(db)) as reopened:
        assert reopened.tasks == expected
        assert reopened.tasks[1].priority is Priority.HIGH
        assert reopened.tasks[1].completed is True


@pytest.mark.asyncio
async def test_in_memory_store() -> None:
    kv = InMemoryKeyValueStore({"a": "1"})
    assert await kv.get("a") == "1"
    await kv.set(TASKS_STORAGE_KEY, "[]")
    await kv.remove("a")
    await kv.remove("missing")
    assert kv.snapshot() == {TASKS_STORAGE_KEY: "[]"}
