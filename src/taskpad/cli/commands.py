# src/taskpad/cli/commands.py

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable
from dataclasses import replace
from datetime import datetime
from typing import cast

from ..core.state import AppState
from ..tasks.task_models import CategoryDraft, Priority, Task, TaskDraft
from ..tasks.task_query import FilterCriteria, count_tasks, resolve_category

CommandEmitter = Callable[[str], None]
CommandResult = str | Awaitable[str]
CommandHandler2 = Callable[[AppState, list[str]], CommandResult]
CommandHandler3 = Callable[[AppState, list[str], CommandEmitter | None], CommandResult]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)

_PRIORITIES = {p.value for p in Priority}


class CommandRegistry:
    """Simple slash-command registry used by the console connector (/help, /add, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    async def handle(
        self,
        state: AppState,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            nparams = len(inspect.signature(handler).parameters)
        except (TypeError, ValueError):
            nparams = 3

        if nparams >= 3:
            result = cast(CommandHandler3, handler)(state, args, emit)
        else:
            result = cast(CommandHandler2, handler)(state, args)

        if inspect.isawaitable(result):
            return await result
        return result

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


# ---- formatting ----


def _fmt_dt(dt: datetime | None) -> str:
    if dt is None:
        return "-"
    return dt.astimezone().strftime("%Y-%m-%d %H:%M")


def _plural(n: int, unit: str) -> str:
    return f"{n} {unit}" if n == 1 else f"{n} {unit}s"


def format_relative(dt: datetime, now: datetime | None = None) -> str:
    """Rough distance from now, e.g. "in 2 days" or "about 3 hours ago"."""
    now = now or datetime.now().astimezone()
    delta = (dt.astimezone() - now.astimezone()).total_seconds()
    minutes = abs(delta) / 60
    days = minutes / 1440

    if minutes < 0.75:
        span = "less than a minute"
    elif minutes < 45:
        span = _plural(max(1, round(minutes)), "minute")
    elif minutes < 1440:
        span = "about " + _plural(max(1, round(minutes / 60)), "hour")
    elif days < 30:
        span = _plural(max(1, round(days)), "day")
    elif days < 365:
        span = _plural(max(1, round(days / 30)), "month")
    else:
        span = "about " + _plural(max(1, round(days / 365)), "year")

    return f"in {span}" if delta > 0 else f"{span} ago"


def format_task_line(state: AppState, task: Task, now: datetime | None = None) -> str:
    mark = "x" if task.completed else " "
    cat = resolve_category(task.category_id, state.store.categories)
    due = ""
    if task.due_date:
        due = f" | due {_fmt_dt(task.due_date)} ({format_relative(task.due_date, now)})"
    return f"[{mark}] {task.id} ({task.priority.value}) {task.text} | {cat.name}{due}"


def format_task_details(state: AppState, task: Task) -> str:
    cat = state.store.category_for(task)
    return (
        f"Task {task.id}\n"
        f"  Text: {task.text}\n"
        f"  Status: {'completed' if task.completed else 'active'}\n"
        f"  Priority: {task.priority.value}\n"
        f"  Category: {cat.name}\n"
        f"  Created: {_fmt_dt(task.created_at)}\n"
        f"  Due: {_fmt_dt(task.due_date) if task.due_date else 'No due date'}\n"
        f"  Notes: {task.notes or '-'}"
    )


def parse_due(raw: str) -> datetime | None:
    """Accept ISO dates/datetimes ("2026-10-20", "2026-10-20T18:00"); None if unparsable."""
    try:
        return datetime.fromisoformat(raw.strip())
    except ValueError:
        return None


# ---- handlers ----


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_add(state: AppState, args: list[str]) -> str:
    """
    /add <text> [!high|!medium|!low] [#<category id>] [due:<ISO date>]
    """
    words: list[str] = []
    draft = TaskDraft(text=None)

    for tok in args:
        if tok.startswith("!") and tok[1:].lower() in _PRIORITIES:
            draft.priority = tok[1:].lower()
        elif tok.startswith("#") and len(tok) > 1:
            draft.category_id = tok[1:]
        elif tok.lower().startswith("due:"):
            due = parse_due(tok[4:])
            if due is None:
                return f"Bad due date: {tok[4:]!r}. Use YYYY-MM-DD or YYYY-MM-DDTHH:MM."
            draft.due_date = due
        else:
            words.append(tok)

    draft.text = " ".join(words)
    task = state.store.add(draft)
    if task is None:
        return "Task text cannot be empty."
    return f"Added: {format_task_line(state, task)}"


def cmd_list(state: AppState, args: list[str]) -> str:
    visible = state.visible_tasks()
    if not visible:
        if state.criteria.is_active:
            return "No tasks match your filters."
        return "No tasks yet. Add one with /add <text>."

    n = len(visible)
    lines = [f"{n} {'task' if n == 1 else 'tasks'}:"]
    lines.extend(format_task_line(state, t) for t in visible)
    return "\n".join(lines)


def cmd_filter(state: AppState, args: list[str]) -> str:
    """
    /filter                 -> show current filter
    /filter clear           -> reset
    /filter cat <id>|off
    /filter prio <p>|off
    /filter search <text>   (no text -> clear search)
    /filter done on|off     (show completed tasks)
    """
    crit = state.criteria
    if args:
        sub = args[0].lower()
        rest = args[1:]
        value = " ".join(rest)

        if sub == "clear":
            crit = FilterCriteria()
        elif sub in ("cat", "category"):
            crit = replace(crit, category_id=None if value in ("", "off") else value)
        elif sub in ("prio", "priority"):
            if value not in ("", "off") and value.lower() not in _PRIORITIES:
                return "Usage: /filter prio high|medium|low|off"
            crit = replace(crit, priority=None if value in ("", "off") else value.lower())
        elif sub == "search":
            crit = replace(crit, search_query=value)
        elif sub == "done":
            if value.lower() not in ("on", "off"):
                return "Usage: /filter done on|off"
            crit = replace(crit, show_completed=value.lower() == "on")
        else:
            return "Unknown /filter subcommand. Use: clear | cat | prio | search | done."

        state.criteria = crit

    cat = resolve_category(crit.category_id, state.store.categories).name if crit.category_id else "any"
    return (
        "Filter:\n"
        f"  Category: {cat}\n"
        f"  Priority: {crit.priority or 'any'}\n"
        f"  Search: {crit.search_query.strip() or '-'}\n"
        f"  Show completed: {'yes' if crit.show_completed else 'no'}"
    )


def cmd_show(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /show <task id>"
    task = state.store.get(args[0])
    if task is None:
        return f"No task with id {args[0]}."
    return format_task_details(state, task)


def cmd_edit(state: AppState, args: list[str]) -> str:
    """
    /edit <id> text <new text>
    /edit <id> prio high|medium|low
    /edit <id> cat <category id>
    /edit <id> due <ISO date>|none
    /edit <id> notes <text>
    """
    if len(args) < 2:
        return "Usage: /edit <id> text|prio|cat|due|notes <value>"

    task_id, field_name, value = args[0], args[1].lower(), " ".join(args[2:])
    if state.store.get(task_id) is None:
        return f"No task with id {task_id}."

    patch: dict[str, object]
    if field_name == "text":
        patch = {"text": value}
    elif field_name in ("prio", "priority"):
        if value.lower() not in _PRIORITIES:
            return "Usage: /edit <id> prio high|medium|low"
        patch = {"priority": value.lower()}
    elif field_name in ("cat", "category"):
        patch = {"category_id": value}
    elif field_name == "due":
        if value.lower() in ("", "none", "off"):
            patch = {"due_date": None}
        else:
            due = parse_due(value)
            if due is None:
                return f"Bad due date: {value!r}. Use YYYY-MM-DD or YYYY-MM-DDTHH:MM."
            patch = {"due_date": due}
    elif field_name == "notes":
        patch = {"notes": value}
    else:
        return f"Unknown field {field_name!r}. Use text|prio|cat|due|notes."

    updated = state.store.update(task_id, patch)
    if updated is None:
        return "Task text cannot be empty."
    return f"Updated: {format_task_line(state, updated)}"


def cmd_done(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /done <task id>"
    task = state.store.toggle_completion(args[0])
    if task is None:
        return f"No task with id {args[0]}."
    return f"{'Completed' if task.completed else 'Reopened'}: {task.text}"


def cmd_rm(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /rm <task id>"
    if not state.store.delete(args[0]):
        return f"No task with id {args[0]}."
    return f"Deleted task {args[0]}."


def cmd_cats(state: AppState, args: list[str]) -> str:
    lines = ["Categories:"]
    for c in state.store.categories:
        lines.append(f"  {c.id}  {c.name} ({c.color})")
    return "\n".join(lines)


def cmd_cat(state: AppState, args: list[str]) -> str:
    """
    /cat add <name> [#RRGGBB]
    /cat rm <id>
    """
    if not args:
        return "Usage: /cat add <name> [#RRGGBB] | /cat rm <id>"

    sub, rest = args[0].lower(), args[1:]
    if sub == "add":
        color = None
        if rest and rest[-1].startswith("#"):
            color = rest[-1]
            rest = rest[:-1]
        draft = CategoryDraft(name=" ".join(rest))
        if color:
            draft.color = color
        cat = state.store.add_category(draft)
        if cat is None:
            return "Category name cannot be empty."
        return f"Added category {cat.id} {cat.name}."

    if sub in ("rm", "del", "delete"):
        if not rest:
            return "Usage: /cat rm <id>"
        if not state.store.delete_category(rest[0]):
            return f"Cannot remove category {rest[0]}."
        return f"Removed category {rest[0]}. Its tasks are now shown as uncategorized."

    return "Usage: /cat add <name> [#RRGGBB] | /cat rm <id>"


async def cmd_clear(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    if not args or args[0].lower() != "yes":
        return "This deletes every task. Confirm with /clear yes"
    if emit:
        emit("Clearing all tasks...")
    ok = await state.store.clear_all()
    if not ok:
        logger.warning("clear_all did not reach storage")
        return "Tasks cleared in this session, but storage could not be wiped (see log)."
    return "All tasks cleared."


async def cmd_reload(state: AppState, args: list[str]) -> str:
    await state.store.reload()
    return f"Reloaded {len(state.store.tasks)} tasks from storage."


def cmd_status(state: AppState, args: list[str]) -> str:
    counts = count_tasks(state.store.tasks)
    writes = state.store.persistence
    backend = getattr(state.settings, "storage_backend", "?")
    return (
        "Status:\n"
        f"  Store: {state.store.state.value}\n"
        f"  Tasks: {counts.total} ({counts.active} active, {counts.completed} completed)\n"
        f"  Storage: {backend}, {writes.pending} pending writes, {writes.failed_writes} failed"
    )


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register(
    "add", cmd_add, help_text="Add a task: /add <text> [!high] [#<cat id>] [due:YYYY-MM-DD]."
)
registry.register("list", cmd_list, help_text="List tasks matching the current filter.", aliases=["ls"])
registry.register(
    "filter", cmd_filter, help_text="Filter the list: /filter cat|prio|search|done|clear ..."
)
registry.register("show", cmd_show, help_text="Show task details: /show <id>.")
registry.register("edit", cmd_edit, help_text="Edit a task: /edit <id> text|prio|cat|due|notes <value>.")
registry.register("done", cmd_done, help_text="Toggle completion: /done <id>.", aliases=["toggle"])
registry.register("rm", cmd_rm, help_text="Delete a task: /rm <id>.", aliases=["del"])
registry.register("cats", cmd_cats, help_text="List categories.")
registry.register("cat", cmd_cat, help_text="Manage categories: /cat add <name> [#color] | /cat rm <id>.")
registry.register("clear", cmd_clear, help_text="Delete every task: /clear yes.")
registry.register("reload", cmd_reload, help_text="Reload tasks from storage.")
registry.register("status", cmd_status, help_text="Show task counts and storage state.")
