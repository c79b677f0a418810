# tests/test_task_models.py

from __future__ import annotations

import json
from datetime import date, datetime

import pytest

from taskpad.tasks.task_models import (
    DEFAULT_CATEGORY_ID,
    Priority,
    Task,
    dump_tasks,
    load_tasks,
    parse_due_date,
    parse_flag,
)


def test_round_trip_full_and_default_tasks(full_task: Task, default_task: Task) -> None:
    tasks = [full_task, default_task]
    assert load_tasks(dump_tasks(tasks)) == tasks


def test_wire_format_uses_camel_case_and_iso_timestamps(full_task: Task, default_task: Task) -> None:
    data = json.loads(dump_tasks([full_task, default_task]))

    assert data[0] == {
        "id": "1700000000001",
        "text": "Buy milk",
        "completed": True,
        "priority": "high",
        "categoryId": "3",
        "dueDate": "2026-10-02T18:00:00Z",
        "notes": "2 litres, oat",
        "createdAt": "2026-10-01T09:30:15.123000Z",
    }
    assert data[1]["dueDate"] is None
    assert data[1]["notes"] == ""
    assert data[1]["completed"] is False
    assert data[1]["priority"] == "medium"
    assert data[1]["categoryId"] == DEFAULT_CATEGORY_ID


def test_load_accepts_blob_written_by_the_mobile_app() -> None:
    raw = json.dumps(
        [
            {
                "id": "1728640000000",
                "createdAt": "2024-10-11T09:46:40.000Z",
                "completed": False,
                "text": "Call mom",
                "priority": "low",
                "categoryId": "1",
                "dueDate": None,
                "notes": "",
            }
        ]
    )
    [task] = load_tasks(raw)
    assert task.id == "1728640000000"
    assert task.priority is Priority.LOW
    assert task.created_at.year == 2024
    assert task.created_at.utcoffset() is not None


@pytest.mark.parametrize(
    "raw",
    [
        "not json",
        '{"id": "1"}',
        '[{"id": "1", "createdAt": "2026-10-01T10:00:00Z"}]',
        '[{"id": "1", "text": "   ", "createdAt": "2026-10-01T10:00:00Z"}]',
        '[{"text": "x", "createdAt": "2026-10-01T10:00:00Z"}]',
        '[{"id": "1", "text": "x", "createdAt": "yesterday"}]',
        '[{"id": "1", "text": "x"}]',
        "[42]",
    ],
)
def test_load_rejects_malformed_blobs(raw: str) -> None:
    with pytest.raises(ValueError):
        load_tasks(raw)


def test_load_tolerates_unknown_priority_and_missing_optionals() -> None:
    [task] = load_tasks('[{"id": 7, "text": "x", "createdAt": "2026-10-01T10:00:00Z", "priority": "urgent"}]')
    assert task.id == "7"
    assert task.priority is Priority.MEDIUM
    assert task.category_id == DEFAULT_CATEGORY_ID
    assert task.due_date is None
    assert task.notes == ""
    assert task.completed is False


def test_load_decodes_string_flags_and_date_only_due() -> None:
    raw = json.dumps(
        [
            {"id": "1", "text": "a", "createdAt": "2026-10-01T10:00:00Z", "completed": "false", "dueDate": "2026-10-20"},
            {"id": "2", "text": "b", "createdAt": "2026-10-01T10:00:00Z", "completed": "true", "dueDate": ""},
            {"id": "3", "text": "c", "createdAt": "2026-10-01T10:00:00Z", "completed": None},
        ]
    )
    a, b, c = load_tasks(raw)
    assert (a.completed, b.completed, c.completed) == (False, True, False)
    assert a.due_date == datetime(2026, 10, 20)
    assert b.due_date is None


@pytest.mark.parametrize(
    "entry",
    [
        {"completed": "maybe"},
        {"completed": 2},
        {"dueDate": "next week"},
    ],
)
def test_load_rejects_bad_flag_or_due_date(entry: dict) -> None:
    raw = json.dumps([{"id": "1", "text": "a", "createdAt": "2026-10-01T10:00:00Z", **entry}])
    with pytest.raises(ValueError):
        load_tasks(raw)


def test_parse_helpers() -> None:
    assert parse_flag(True) is True
    assert parse_flag(0) is False
    assert parse_flag(" Yes ") is True
    with pytest.raises(ValueError):
        parse_flag("nope")

    assert parse_due_date(None) is None
    assert parse_due_date(date(2026, 1, 2)) == datetime(2026, 1, 2)
    with pytest.raises(ValueError):
        parse_due_date(object())


def test_load_keeps_first_of_duplicate_ids() -> None:
    raw = json.dumps(
        [
            {"id": "1", "text": "first", "createdAt": "2026-10-01T10:00:00Z"},
            {"id": "1", "text": "second", "createdAt": "2026-10-01T11:00:00Z"},
        ]
    )
    tasks = load_tasks(raw)
    assert [t.text for t in tasks] == ["first"]


def test_priority_parse() -> None:
    assert Priority.parse("HIGH") is Priority.HIGH
    assert Priority.parse(Priority.LOW) is Priority.LOW
    assert Priority.parse(None) is Priority.MEDIUM
    assert Priority.parse("") is Priority.MEDIUM
    assert Priority.parse("whatever") is Priority.MEDIUM
