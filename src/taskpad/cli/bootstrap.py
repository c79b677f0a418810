# src/taskpad/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires a concrete KeyValueStore into the TaskStore and loads it into AppState.
"""

from __future__ import annotations

import logging

from ..config import get_settings
from ..core.ports import KeyValueStore
from ..core.state import AppState
from ..storage.memory_kv import InMemoryKeyValueStore
from ..storage.sqlite_kv import SqliteKeyValueStore
from ..tasks.task_store import TaskStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.kv_db_path.parent.mkdir(parents=True, exist_ok=True)


def create_kv_store(settings) -> KeyValueStore:
    backend = str(getattr(settings, "storage_backend", "sqlite"))
    if backend == "memory":
        logger.info("Using in-memory storage; tasks will not survive a restart.")
        return InMemoryKeyValueStore()
    return SqliteKeyValueStore(settings.kv_db_path)


async def create_initial_state(*, settings=None, kv: KeyValueStore | None = None) -> AppState:
    """
    Build AppState and load the task store.

    Keeping settings (and the storage adapter) injectable makes the app easy to test.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    if kv is None:
        _ensure_local_dirs(settings)
        kv = create_kv_store(settings)

    store = TaskStore(kv, default_category_id=settings.default_category_id)
    await store.load()
    return AppState(settings=settings, store=store)


async def shutdown_state(state: AppState) -> None:
    """Best-effort shutdown: drain pending writes and dispose the store."""
    try:
        await state.store.close()
    except Exception:
        logger.exception("Failed to close the task store.")
