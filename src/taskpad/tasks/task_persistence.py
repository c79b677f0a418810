# src/taskpad/tasks/task_persistence.py

from __future__ import annotations

"""
Ordered, fire-and-forget writes to the key-value store.

Mutations enqueue a full snapshot and return immediately. A single writer task
drains the queue in sequence order, so the stored blob always converges to the
most recent snapshot. Failed writes are logged and dropped (no retry, no
rollback of the in-memory change that produced them).
"""

import asyncio
import contextlib
import logging
from dataclasses import dataclass
from enum import StrEnum

from ..core.ports import KeyValueStore

logger = logging.getLogger(__name__)


class WriteOp(StrEnum):
    SET = "set"
    REMOVE = "remove"


@dataclass(slots=True)
class PendingWrite:
    seq: int
    op: WriteOp
    key: str
    value: str | None = None
    # Only set when the caller wants to know the outcome (e.g. clear_all).
    done: asyncio.Future[bool] | None = None


class PersistenceQueue:
    def __init__(self, kv: KeyValueStore) -> None:
        self._kv = kv
        self._queue: asyncio.Queue[PendingWrite] = asyncio.Queue()
        self._worker: asyncio.Task[None] | None = None
        self._seq = 0
        self.last_applied_seq = 0
        self.failed_writes = 0

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    @property
    def running(self) -> bool:
        return self._worker is not None and not self._worker.done()

    def start(self) -> None:
        """Start the writer task. Needs a running event loop; idempotent."""
        if self.running:
            return
        self._worker = asyncio.get_running_loop().create_task(self._run(), name="taskpad-writer")

    def enqueue_set(self, key: str, value: str) -> int:
        self._seq += 1
        self._queue.put_nowait(PendingWrite(seq=self._seq, op=WriteOp.SET, key=key, value=value))
        return self._seq

    def enqueue_remove(self, key: str) -> asyncio.Future[bool]:
        self._seq += 1
        fut: asyncio.Future[bool] = asyncio.get_running_loop().create_future()
        self._queue.put_nowait(PendingWrite(seq=self._seq, op=WriteOp.REMOVE, key=key, done=fut))
        return fut

    async def flush(self) -> None:
        """Wait until every write enqueued so far has been applied (or failed)."""
        if self._queue.empty() and not self.running:
            return
        self.start()
        await self._queue.join()

    async def close(self) -> None:
        await self.flush()
        worker, self._worker = self._worker, None
        if worker is None:
            return
        worker.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await worker

    async def _run(self) -> None:
        while True:
            item = await self._queue.get()
            try:
                ok = await self._apply(item)
                if item.done is not None and not item.done.done():
                    item.done.set_result(ok)
            finally:
                self._queue.task_done()

    async def _apply(self, item: PendingWrite) -> bool:
        try:
            if item.op is WriteOp.SET:
                await self._kv.set(item.key, item.value or "")
            else:
                await self._kv.remove(item.key)
        except Exception:
            self.failed_writes += 1
            logger.exception("Persistence %s failed seq=%s key=%s", item.op.value, item.seq, item.key)
            return False

        self.last_applied_seq = item.seq
        logger.debug("Persistence %s applied seq=%s key=%s", item.op.value, item.seq, item.key)
        return True
