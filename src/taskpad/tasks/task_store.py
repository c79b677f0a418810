# src/taskpad/tasks/task_store.py

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from dataclasses import replace
from datetime import datetime, timezone
from enum import StrEnum
from typing import Any

from ..core.ports import TASKS_STORAGE_KEY, KeyValueStore
from .task_models import (
    DEFAULT_CATEGORIES,
    DEFAULT_CATEGORY_ID,
    PATCHABLE_FIELDS,
    UNCATEGORIZED,
    Category,
    CategoryDraft,
    Priority,
    Task,
    TaskDraft,
    dump_tasks,
    load_tasks,
    parse_due_date,
    parse_flag,
)
from .task_persistence import PersistenceQueue
from .task_query import resolve_category

logger = logging.getLogger(__name__)


class StoreState(StrEnum):
    UNINITIALIZED = "uninitialized"
    LOADING = "loading"
    READY = "ready"
    DISPOSED = "disposed"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TaskStore:
    """
    Owner of the task collection and the category set.

    Lifecycle: construct -> load() -> READY -> close().

    - Mutations are synchronous and only accepted in READY; outside READY they
      return their failure sentinel (None/False).
    - Every task mutation enqueues a write of the whole collection. The caller
      never waits for it; a failed write is logged and the in-memory change stays.
    - Categories live only in memory (seeded with the defaults plus the
      UNCATEGORIZED sentinel); category changes never touch tasks.

    Concurrent load()/reload(): each load gets a generation number and only the
    most recently started one applies its result.
    """

    def __init__(
        self,
        kv: KeyValueStore,
        *,
        storage_key: str = TASKS_STORAGE_KEY,
        default_category_id: str = DEFAULT_CATEGORY_ID,
        categories: Iterable[Category] | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._kv = kv
        self._key = storage_key
        self._default_category_id = default_category_id
        self._clock = clock
        self._writes = PersistenceQueue(kv)

        seeded = DEFAULT_CATEGORIES if categories is None else tuple(categories)
        self._categories: list[Category] = [c for c in seeded if c.id != UNCATEGORIZED.id]
        self._categories.append(UNCATEGORIZED)

        self._tasks: list[Task] = []
        self._state = StoreState.UNINITIALIZED
        self._load_gen = 0
        self._last_id = 0

    # ---- read surface ----

    @property
    def state(self) -> StoreState:
        return self._state

    @property
    def is_loading(self) -> bool:
        return self._state in (StoreState.UNINITIALIZED, StoreState.LOADING)

    @property
    def tasks(self) -> list[Task]:
        return list(self._tasks)

    @property
    def categories(self) -> list[Category]:
        return list(self._categories)

    @property
    def persistence(self) -> PersistenceQueue:
        return self._writes

    def get(self, task_id: str) -> Task | None:
        idx = self._index_of(task_id)
        return None if idx is None else self._tasks[idx]

    def category_for(self, task: Task) -> Category:
        return resolve_category(task.category_id, self._categories)

    # ---- lifecycle ----

    async def load(self) -> None:
        """
        Read the stored collection.

        Missing key -> empty collection. Unreadable or corrupt data -> empty
        collection as well (logged), so a bad blob never blocks the app.
        """
        if self._state is StoreState.DISPOSED:
            logger.warning("load() on a disposed TaskStore ignored")
            return

        self._load_gen += 1
        gen = self._load_gen
        self._state = StoreState.LOADING

        # Reads must observe every write issued before this load started.
        self._writes.start()
        await self._writes.flush()

        tasks: list[Task] = []
        try:
            raw = await self._kv.get(self._key)
            if raw is None:
                logger.info("No stored tasks under key=%s", self._key)
            else:
                tasks = load_tasks(raw)
        except Exception:
            logger.exception("Failed to load tasks from key=%s; starting empty", self._key)
            tasks = []

        if self._state is StoreState.DISPOSED:
            return
        if gen != self._load_gen:
            logger.info("Discarding stale load gen=%s (latest=%s)", gen, self._load_gen)
            return

        self._tasks = tasks
        for t in tasks:
            self._observe_id(t.id)
        self._state = StoreState.READY
        logger.info("TaskStore ready key=%s total=%s", self._key, len(tasks))

    async def reload(self) -> None:
        """Throw away in-memory state and load again from storage."""
        logger.info("Reloading tasks from key=%s", self._key)
        await self.load()

    async def flush(self) -> None:
        await self._writes.flush()

    async def close(self) -> None:
        if self._state is StoreState.DISPOSED:
            return
        await self._writes.close()
        self._state = StoreState.DISPOSED
        logger.info("TaskStore closed key=%s", self._key)

    async def __aenter__(self) -> TaskStore:
        await self.load()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    # ---- task mutations ----

    def add(self, draft: TaskDraft | None) -> Task | None:
        if not self._accepting("add"):
            return None
        if draft is None:
            logger.warning("add: task draft is missing")
            return None

        text = (draft.text or "").strip()
        if not text:
            logger.warning("add: task text is empty")
            return None
        try:
            due_date = parse_due_date(draft.due_date)
        except ValueError:
            logger.warning("add: rejecting bad due date %r", draft.due_date)
            return None

        task = Task(
            id=self._new_id(),
            text=text,
            created_at=self._clock(),
            priority=Priority.parse(draft.priority),
            category_id=draft.category_id or self._default_category_id,
            due_date=due_date,
            notes=draft.notes or "",
        )
        self._tasks.insert(0, task)
        self._persist()
        logger.debug(
            "Task added id=%s priority=%s category=%s due=%s",
            task.id,
            task.priority.value,
            task.category_id,
            task.due_date,
        )
        return task

    def update(
        self,
        task_id: str,
        patch: Mapping[str, Any] | None = None,
        **fields: Any,
    ) -> Task | None:
        """
        Merge patch fields onto an existing task. id and created_at never change;
        unknown keys are ignored. A blank text, a non-boolean completed or an
        unparsable due_date rejects the whole patch.
        """
        if not self._accepting("update"):
            return None
        idx = self._index_of(task_id)
        if idx is None:
            logger.debug("update: no task id=%s", task_id)
            return None

        changes: dict[str, Any] = {}
        for name, value in {**(patch or {}), **fields}.items():
            if name not in PATCHABLE_FIELDS:
                logger.debug("update: ignoring field %s for id=%s", name, task_id)
                continue
            changes[name] = value

        if "text" in changes:
            text = str(changes["text"] or "").strip()
            if not text:
                logger.warning("update: rejecting empty text for id=%s", task_id)
                return None
            changes["text"] = text
        if "priority" in changes:
            changes["priority"] = Priority.parse(changes["priority"])
        if "category_id" in changes:
            changes["category_id"] = str(changes["category_id"] or self._default_category_id)
        try:
            if "completed" in changes:
                changes["completed"] = parse_flag(changes["completed"])
            if "due_date" in changes:
                changes["due_date"] = parse_due_date(changes["due_date"])
        except ValueError as e:
            logger.warning("update: rejecting patch for id=%s: %s", task_id, e)
            return None
        if "notes" in changes:
            changes["notes"] = str(changes["notes"] or "")

        updated = replace(self._tasks[idx], **changes)
        self._tasks[idx] = updated
        self._persist()
        logger.debug("Task updated id=%s fields=%s", task_id, sorted(changes))
        return updated

    def delete(self, task_id: str) -> bool:
        if not self._accepting("delete"):
            return False
        idx = self._index_of(task_id)
        if idx is None:
            logger.debug("delete: no task id=%s", task_id)
            return False

        del self._tasks[idx]
        self._persist()
        logger.debug("Task deleted id=%s", task_id)
        return True

    def toggle_completion(self, task_id: str) -> Task | None:
        if not self._accepting("toggle_completion"):
            return None
        idx = self._index_of(task_id)
        if idx is None:
            logger.debug("toggle_completion: no task id=%s", task_id)
            return None

        task = self._tasks[idx]
        toggled = replace(task, completed=not task.completed)
        self._tasks[idx] = toggled
        self._persist()
        logger.debug("Task toggled id=%s completed=%s", task_id, toggled.completed)
        return toggled

    async def clear_all(self) -> bool:
        """
        Drop every task and remove the stored key (not the same as storing []).

        Returns whether the removal reached storage; the in-memory collection is
        empty either way.
        """
        if not self._accepting("clear_all"):
            return False
        self._tasks = []
        ok = await self._writes.enqueue_remove(self._key)
        if ok:
            logger.info("All tasks cleared key=%s", self._key)
        return ok

    # ---- category mutations ----

    def add_category(self, draft: CategoryDraft | None) -> Category | None:
        if not self._accepting("add_category"):
            return None
        if draft is None or not (draft.name or "").strip():
            logger.warning("add_category: category name is empty")
            return None

        name = (draft.name or "").strip()
        category = Category(id=self._new_id(), name=name, color=draft.color or UNCATEGORIZED.color)
        # Keep the sentinel last.
        self._categories.insert(len(self._categories) - 1, category)
        logger.debug("Category added id=%s name=%s", category.id, category.name)
        return category

    def delete_category(self, category_id: str) -> bool:
        if not self._accepting("delete_category"):
            return False
        if category_id == UNCATEGORIZED.id:
            logger.debug("delete_category: the uncategorized sentinel cannot be removed")
            return False

        before = len(self._categories)
        self._categories = [c for c in self._categories if c.id != category_id]
        removed = len(self._categories) != before
        if removed:
            logger.debug("Category deleted id=%s", category_id)
        return removed

    # ---- helpers ----

    def _accepting(self, op: str) -> bool:
        if self._state is StoreState.READY:
            return True
        logger.warning("%s rejected: TaskStore is %s", op, self._state.value)
        return False

    def _persist(self) -> None:
        seq = self._writes.enqueue_set(self._key, dump_tasks(self._tasks))
        logger.debug("Queued tasks write seq=%s total=%s", seq, len(self._tasks))

    def _index_of(self, task_id: str) -> int | None:
        for i, t in enumerate(self._tasks):
            if t.id == task_id:
                return i
        return None

    def _observe_id(self, raw_id: str) -> None:
        try:
            n = int(raw_id)
        except ValueError:
            return
        self._last_id = max(self._last_id, n)

    def _new_id(self) -> str:
        """
        Millisecond timestamp id taken from the store clock, bumped so ids strictly increase within the
        session and never collide with a task or category id in use.
        """
        candidate = max(int(self._clock().timestamp() * 1000), self._last_id + 1)
        taken = {t.id for t in self._tasks} | {c.id for c in self._categories}
        while str(candidate) in taken:
            candidate += 1
        self._last_id = candidate
        return str(candidate)
