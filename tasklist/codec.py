"""Encoding and decoding of the persisted task list.

The stored value is a JSON array of task records. Decoding is strict about
structure but tolerant of older records: any field listed in
``RECORD_DEFAULTS`` that is missing from a record is filled in before
validation. Anything else that does not fit the record shape makes the
whole value unreadable.
"""

import json
from typing import Any

from pydantic import TypeAdapter, ValidationError

from tasklist.errors import StorageReadFailure
from tasklist.models import Task

# Field -> value used when a stored record predates the field.
RECORD_DEFAULTS: dict[str, Any] = {"completed": False}

_TASK_LIST = TypeAdapter(list[Task])


def apply_defaults(record: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of ``record`` with missing defaulted fields filled in."""
    filled = dict(record)
    for field, default in RECORD_DEFAULTS.items():
        filled.setdefault(field, default)
    return filled


def decode_tasks(raw: str) -> list[Task]:
    """Decode a stored value into tasks, raising StorageReadFailure on any mismatch."""
    try:
        data = json.loads(raw)
    except (TypeError, ValueError, RecursionError) as exc:
        raise StorageReadFailure(f"stored value is not valid JSON: {exc}") from exc

    if not isinstance(data, list):
        raise StorageReadFailure(f"expected a JSON array of tasks, got {type(data).__name__}")

    records = []
    for index, record in enumerate(data):
        if not isinstance(record, dict):
            raise StorageReadFailure(f"record {index} is {type(record).__name__}, not an object")
        records.append(apply_defaults(record))

    try:
        tasks = _TASK_LIST.validate_python(records)
    except ValidationError as exc:
        raise StorageReadFailure(f"stored tasks do not match the record shape: {exc}") from exc

    seen: set[str] = set()
    for task in tasks:
        if task.id in seen:
            raise StorageReadFailure(f"duplicate task id {task.id!r}")
        seen.add(task.id)
    return tasks


def encode_tasks(tasks: list[Task] | tuple[Task, ...]) -> str:
    """Serialize the whole list in the stored record shape."""
    return _TASK_LIST.dump_json(list(tasks), by_alias=True).decode("utf-8")
