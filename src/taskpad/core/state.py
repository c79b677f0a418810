# src/taskpad/core/state.py

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ..tasks.task_models import Task
from ..tasks.task_query import FilterCriteria, filter_tasks
from ..tasks.task_store import TaskStore


@dataclass
class AppState:
    """
    Explicit context passed to every presentation-layer handler.

    The store is owned here (built in cli/bootstrap.py) and disposed on shutdown;
    nothing reaches for a module-level store.
    """

    settings: Any
    store: TaskStore

    # Current list filter, changed by /filter and applied by /list.
    criteria: FilterCriteria = field(default_factory=FilterCriteria)

    def visible_tasks(self) -> list[Task]:
        return filter_tasks(self.store.tasks, self.criteria)
