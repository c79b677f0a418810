# src/taskpad/tasks/task_models.py

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import date, datetime
from enum import StrEnum
from typing import Any

logger = logging.getLogger(__name__)


class Priority(StrEnum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @classmethod
    def parse(cls, raw: Any) -> Priority:
        """Lenient decode: anything unknown (or empty) means medium."""
        if isinstance(raw, Priority):
            return raw
        if not raw:
            return cls.MEDIUM
        try:
            return cls(str(raw).strip().lower())
        except ValueError:
            return cls.MEDIUM


@dataclass(slots=True, frozen=True)
class Category:
    id: str
    name: str
    color: str


# Sentinel for tasks whose category_id matches nothing in the category set.
UNCATEGORIZED = Category(id="uncategorized", name="Uncategorized", color="#8C8C8C")

DEFAULT_CATEGORY_ID = "1"

DEFAULT_CATEGORIES: tuple[Category, ...] = (
    Category(id="1", name="Personal", color="#4A6FFF"),
    Category(id="2", name="Work", color="#FF4D4F"),
    Category(id="3", name="Shopping", color="#FAAD14"),
    Category(id="4", name="Health", color="#52C41A"),
)


@dataclass(slots=True, frozen=True)
class Task:
    id: str
    text: str
    created_at: datetime

    completed: bool = False
    priority: Priority = Priority.MEDIUM
    category_id: str = DEFAULT_CATEGORY_ID
    due_date: datetime | None = None
    notes: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "text": self.text,
            "completed": self.completed,
            "priority": self.priority.value,
            "categoryId": self.category_id,
            "dueDate": format_timestamp(self.due_date) if self.due_date is not None else None,
            "notes": self.notes,
            "createdAt": format_timestamp(self.created_at),
        }

    @classmethod
    def from_dict(cls, data: Any) -> Task:
        """
        Build a Task from its stored JSON object.

        Raises ValueError if the entry is not an object or lacks id/text/createdAt.
        Optional fields fall back to their defaults.
        """
        if not isinstance(data, dict):
            raise ValueError(f"task entry must be an object, got {type(data).__name__}")

        task_id = data.get("id")
        text = data.get("text")
        if task_id is None or str(task_id) == "":
            raise ValueError("task entry is missing id")
        if not isinstance(text, str) or not text.strip():
            raise ValueError(f"task {task_id!r} is missing text")

        raw_created = data.get("createdAt")
        if not raw_created:
            raise ValueError(f"task {task_id!r} is missing createdAt")

        return cls(
            id=str(task_id),
            text=text,
            created_at=parse_timestamp(raw_created),
            completed=parse_flag(data.get("completed") or False),
            priority=Priority.parse(data.get("priority")),
            category_id=str(data.get("categoryId") or DEFAULT_CATEGORY_ID),
            due_date=parse_due_date(data.get("dueDate")),
            notes=str(data.get("notes") or ""),
        )


@dataclass(slots=True)
class TaskDraft:
    """Input for TaskStore.add(); everything except text is optional."""

    text: str | None
    priority: Priority | str | None = None
    category_id: str | None = None
    due_date: datetime | date | str | None = None
    notes: str | None = None


@dataclass(slots=True)
class CategoryDraft:
    name: str | None
    color: str = UNCATEGORIZED.color


@dataclass(slots=True, frozen=True)
class TaskCounts:
    total: int = 0
    active: int = 0
    completed: int = 0


# Fields a patch passed to TaskStore.update() may touch.
PATCHABLE_FIELDS = frozenset({"text", "completed", "priority", "category_id", "due_date", "notes"})


def format_timestamp(dt: datetime) -> str:
    s = dt.isoformat()
    if s.endswith("+00:00"):
        s = s[: -len("+00:00")] + "Z"
    return s


def parse_timestamp(raw: Any) -> datetime:
    if isinstance(raw, datetime):
        return raw
    if not isinstance(raw, str):
        raise ValueError(f"timestamp must be a string, got {type(raw).__name__}")
    try:
        return datetime.fromisoformat(raw)
    except ValueError as e:
        raise ValueError(f"bad timestamp {raw!r}") from e


def parse_due_date(raw: Any) -> datetime | None:
    """
    Optional due date from a datetime, a date (midnight) or an ISO string.
    None or "" means no due date; anything else raises ValueError.
    """
    if raw is None or raw == "":
        return None
    if isinstance(raw, date) and not isinstance(raw, datetime):
        return datetime(raw.year, raw.month, raw.day)
    return parse_timestamp(raw)


_TRUE_WORDS = frozenset({"true", "1", "yes", "on"})
_FALSE_WORDS = frozenset({"false", "0", "no", "off", ""})


def parse_flag(raw: Any) -> bool:
    """Strict bool decode: real bools, 0/1 and the usual words. Raises ValueError otherwise."""
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, int) and raw in (0, 1):
        return bool(raw)
    if isinstance(raw, str):
        word = raw.strip().lower()
        if word in _TRUE_WORDS:
            return True
        if word in _FALSE_WORDS:
            return False
    raise ValueError(f"not a boolean: {raw!r}")


def dump_tasks(tasks: list[Task]) -> str:
    """Serialize the whole collection as one JSON text blob."""
    return json.dumps([t.to_dict() for t in tasks], ensure_ascii=False)


def load_tasks(raw: str) -> list[Task]:
    """
    Parse a blob written by dump_tasks().

    Any malformed entry fails the whole blob (ValueError); the caller decides
    what to do with a corrupt store. Duplicate ids keep the first occurrence.
    """
    try:
        data = json.loads(raw)
    except (TypeError, json.JSONDecodeError) as e:
        raise ValueError("task blob is not valid JSON") from e

    if not isinstance(data, list):
        raise ValueError(f"task blob must be a JSON array, got {type(data).__name__}")

    out: list[Task] = []
    seen: set[str] = set()
    for item in data:
        task = Task.from_dict(item)
        if task.id in seen:
            logger.warning("Duplicate task id=%s in stored blob; keeping the first one", task.id)
            continue
        seen.add(task.id)
        out.append(task)
    return out
