# src/taskpad/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The task store depends on this Protocol instead of a concrete storage backend.
On a phone this is the platform key-value store; here it can be SQLite, memory,
or a test fake.
"""

from typing import Protocol

TASKS_STORAGE_KEY = "@tasks"
# Owned by the theme preference module; listed so nothing else reuses the key.
THEME_STORAGE_KEY = "@theme_mode"


class KeyValueStore(Protocol):
    """
    Asynchronous string-keyed store of text blobs.

    get() returns None for a missing key. Failures are raised; callers decide
    whether a failure matters.
    """

    async def get(self, key: str) -> str | None: ...

    async def set(self, key: str, value: str) -> None: ...

    async def remove(self, key: str) -> None: ...
