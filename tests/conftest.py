# tests/conftest.py

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from types import SimpleNamespace

import pytest

from taskpad.tasks.task_models import Priority, Task

from .fakes import FakeKeyValueStore


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and bootstrap.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated from the environment and any local .env.
    """
    return SimpleNamespace(
        app_name="taskpad-test",
        log_level="DEBUG",
        console_enabled=False,
        storage_backend="memory",
        data_dir=tmp_path,
        kv_db_path=tmp_path / "storage.sqlite3",
        default_category_id="1",
    )


@pytest.fixture()
def kv() -> FakeKeyValueStore:
    return FakeKeyValueStore()


@pytest.fixture()
def full_task() -> Task:
    """A task with every optional field populated."""
    return Task(
        id="1700000000001",
        text="Buy milk",
        created_at=datetime(2026, 10, 1, 9, 30, 15, 123000, tzinfo=timezone.utc),
        completed=True,
        priority=Priority.HIGH,
        category_id="3",
        due_date=datetime(2026, 10, 2, 18, 0, tzinfo=timezone.utc),
        notes="2 litres, oat",
    )


@pytest.fixture()
def default_task() -> Task:
    """A task with every optional field at its default."""
    return Task(
        id="1700000000002",
        text="Walk dog",
        created_at=datetime(2026, 10, 1, 10, 0, tzinfo=timezone.utc),
    )
