# src/taskpad/tasks/task_query.py

from __future__ import annotations

"""
Read-only views over a task collection.

Nothing here mutates its input or touches storage; the list screen recomputes
these whenever the collection or the criteria change.
"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, replace

from .task_models import UNCATEGORIZED, Category, Priority, Task, TaskCounts


@dataclass(slots=True, frozen=True)
class FilterCriteria:
    category_id: str | None = None
    priority: Priority | str | None = None
    search_query: str = ""
    show_completed: bool = True

    @property
    def is_active(self) -> bool:
        return bool(
            self.category_id
            or self.priority
            or self.search_query.strip()
            or not self.show_completed
        )


def filter_tasks(
    tasks: Sequence[Task],
    criteria: FilterCriteria | None = None,
    **overrides: object,
) -> list[Task]:
    """
    Return the tasks matching every active criterion, in input order.

    Active criteria (AND-combined):
    - category_id: exact match
    - priority: exact match
    - search_query: trimmed, case-insensitive substring of the task text
    - show_completed=False: drop completed tasks

    Keyword overrides replace fields of `criteria`, so
    filter_tasks(tasks, show_completed=False) works without building a criteria object.
    """
    crit = criteria or FilterCriteria()
    if overrides:
        crit = replace(crit, **overrides)  # type: ignore[arg-type]

    query = (crit.search_query or "").strip().lower()
    priority = str(crit.priority).strip().lower() if crit.priority else None

    out: list[Task] = []
    for task in tasks:
        if not crit.show_completed and task.completed:
            continue
        if crit.category_id and task.category_id != crit.category_id:
            continue
        if priority is not None and task.priority != priority:
            continue
        if query and query not in task.text.lower():
            continue
        out.append(task)
    return out


def resolve_category(category_id: str | None, categories: Iterable[Category]) -> Category:
    """Category with this id, or the UNCATEGORIZED sentinel for unknown/dangling ids."""
    if category_id:
        for cat in categories:
            if cat.id == category_id:
                return cat
    return UNCATEGORIZED


def count_tasks(tasks: Iterable[Task]) -> TaskCounts:
    total = 0
    completed = 0
    for t in tasks:
        total += 1
        if t.completed:
            completed += 1
    return TaskCounts(total=total, active=total - completed, completed=completed)
