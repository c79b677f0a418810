# tests/fakes.py

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass, field

from taskpad.tasks.task_store import TaskStore


@dataclass(slots=True)
class KvCall:
    op: str
    key: str
    value: str | None = None


@dataclass(slots=True)
class FakeKeyValueStore:
    """
    In-memory KeyValueStore for unit tests.

    - Records every call for assertions
    - Can fail reads/writes on demand
    - Can hold a get() until a test releases it (for load races)
    """

    data: dict[str, str] = field(default_factory=dict)
    calls: list[KvCall] = field(default_factory=list)
    fail_get: bool = False
    fail_set: bool = False
    fail_remove: bool = False
    _get_gates: list[asyncio.Event] = field(default_factory=list)

    def hold_next_get(self, gate: asyncio.Event) -> None:
        self._get_gates.append(gate)

    def writes(self) -> list[KvCall]:
        return [c for c in self.calls if c.op in ("set", "remove")]

    async def get(self, key: str) -> str | None:
        self.calls.append(KvCall("get", key))
        # Snapshot before waiting so a held get returns what was stored when it started.
        value = self.data.get(key)
        if self._get_gates:
            gate = self._get_gates.pop(0)
            await gate.wait()
        if self.fail_get:
            raise OSError("storage read failed")
        return value

    async def set(self, key: str, value: str) -> None:
        self.calls.append(KvCall("set", key, value))
        await asyncio.sleep(0)
        if self.fail_set:
            raise OSError("storage write failed")
        self.data[key] = value

    async def remove(self, key: str) -> None:
        self.calls.append(KvCall("remove", key))
        await asyncio.sleep(0)
        if self.fail_remove:
            raise OSError("storage remove failed")
        self.data.pop(key, None)


async def make_ready_store(kv: FakeKeyValueStore | None = None, **kwargs) -> TaskStore:
    store = TaskStore(kv if kv is not None else FakeKeyValueStore(), **kwargs)
    await store.load()
    return store


async def wait_until(predicate: Callable[[], bool], *, rounds: int = 200) -> None:
    """Yield to the event loop until predicate() holds."""
    for _ in range(rounds):
        if predicate():
            return
        await asyncio.sleep(0)
    raise AssertionError("condition not reached")
