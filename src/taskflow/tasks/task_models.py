# src/taskflow/tasks/task_models.py

from __future__ import annotations

import json
import logging
import math
import uuid
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import UTC, date, datetime
from enum import StrEnum
from typing import Any, Literal

logger = logging.getLogger(__name__)


class TaskStatus(StrEnum):
    """
    Board column a task sits in.

    The values are part of the persisted format; do not rename them.
    """

    TODO = "todo"
    IN_PROGRESS = "inProgress"
    DONE = "done"

    @classmethod
    def from_raw(cls, raw: Any) -> TaskStatus | None:
        """Lenient parse for stored data: accepts legacy spellings, None on junk."""
        if isinstance(raw, cls):
            return raw
        if not isinstance(raw, str):
            return None
        raw = raw.strip()
        try:
            return cls(raw)
        except ValueError:
            return _LEGACY_STATUS.get(raw.lower())


_LEGACY_STATUS = {
    "in-progress": TaskStatus.IN_PROGRESS,
    "in_progress": TaskStatus.IN_PROGRESS,
    "inprogress": TaskStatus.IN_PROGRESS,
    "doing": TaskStatus.IN_PROGRESS,
}


class TaskPriority(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


PRIORITY_ALL: Literal["all"] = "all"
PriorityFilter = TaskPriority | Literal["all"]


@dataclass(frozen=True, slots=True)
class Column:
    """Static column descriptor: status value + i18n label key."""

    id: TaskStatus
    label_key: str


COLUMNS: tuple[Column, ...] = (
    Column(TaskStatus.TODO, "board.toDo"),
    Column(TaskStatus.IN_PROGRESS, "board.inProgress"),
    Column(TaskStatus.DONE, "board.done"),
)

ColumnTaskMap = dict[TaskStatus, list[str]]
# Per-column ordered task ids; built fresh for each reorder decision.


@dataclass(frozen=True, slots=True)
class Task:
    id: str
    title: str
    description: str
    priority: TaskPriority
    status: TaskStatus
    due_date: datetime
    order: int
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True, slots=True)
class NotFound:
    task_id: str


@dataclass(frozen=True, slots=True)
class ValidationFailure:
    errors: tuple[str, ...]

    def __str__(self) -> str:
        return "; ".join(self.errors)


def new_task_id() -> str:
    return str(uuid.uuid4())


def utc_now() -> datetime:
    return datetime.now(UTC)


def as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def parse_datetime(raw: Any) -> datetime | None:
    """datetime / date / ISO-8601 string (trailing Z allowed) -> aware UTC datetime."""
    if isinstance(raw, datetime):
        return as_utc(raw)
    if isinstance(raw, date):
        return datetime(raw.year, raw.month, raw.day, tzinfo=UTC)
    if isinstance(raw, str) and raw.strip():
        try:
            return as_utc(datetime.fromisoformat(raw.strip()))
        except ValueError:
            return None
    return None


# ---- input validation ----

# Form field name -> Task attribute.
_INPUT_FIELDS = {
    "title": "title",
    "description": "description",
    "priority": "priority",
    "status": "status",
    "dueDate": "due_date",
    "due_date": "due_date",
}
_READ_ONLY_FIELDS = {"id", "order", "createdAt", "created_at", "updatedAt", "updated_at"}
_REQUIRED = ("title", "description", "priority", "status", "due_date")


def validate_task_fields(
    data: Mapping[str, Any], *, partial: bool = False
) -> dict[str, Any] | ValidationFailure:
    """
    Check create/update input and convert it to Task attribute values.

    partial=False (create): every field is required.
    partial=True (update): only the provided fields are checked.
    Nothing is mutated here; callers apply the result only when it is a dict.
    """
    errors: list[str] = []
    out: dict[str, Any] = {}
    rejected: set[str] = set()

    for name, raw in data.items():
        if name in _READ_ONLY_FIELDS:
            errors.append(f"{name} is read-only")
            continue
        attr = _INPUT_FIELDS.get(name)
        if attr is None:
            errors.append(f"unknown field: {name}")
            continue

        if attr in ("title", "description"):
            if not isinstance(raw, str) or not raw.strip():
                rejected.add(attr)
                errors.append(f"{name} must be a non-empty string")
            else:
                out[attr] = raw
        elif attr == "priority":
            try:
                out[attr] = TaskPriority(raw)
            except ValueError:
                rejected.add(attr)
                errors.append(f"priority must be one of {[p.value for p in TaskPriority]}, got {raw!r}")
        elif attr == "status":
            try:
                out[attr] = TaskStatus(raw)
            except ValueError:
                rejected.add(attr)
                errors.append(f"status must be one of {[s.value for s in TaskStatus]}, got {raw!r}")
        else:
            due = parse_datetime(raw)
            if due is None:
                rejected.add(attr)
                errors.append(f"{name} is not a valid date: {raw!r}")
            else:
                out[attr] = due

    if not partial:
        for attr in _REQUIRED:
            if attr not in out and attr not in rejected:
                errors.append(f"{_label(attr)} is required")

    if errors:
        return ValidationFailure(tuple(errors))
    return out


def _label(attr: str) -> str:
    return "dueDate" if attr == "due_date" else attr


# ---- persisted format ----


def task_to_dict(task: Task) -> dict[str, Any]:
    """Serialize to the persisted record (camelCase keys, ISO timestamps)."""
    return {
        "id": task.id,
        "title": task.title,
        "description": task.description,
        "priority": task.priority.value,
        "status": task.status.value,
        "dueDate": task.due_date.isoformat(),
        "order": task.order,
        "createdAt": task.created_at.isoformat(),
        "updatedAt": task.updated_at.isoformat(),
    }


def task_from_dict(data: Mapping[str, Any]) -> Task:
    """Deserialize one persisted record. Raises ValueError on a malformed record."""
    if not isinstance(data, Mapping):
        raise ValueError(f"task record must be an object, got {type(data).__name__}")

    task_id = data.get("id")
    if not isinstance(task_id, str) or not task_id:
        raise ValueError("task record has no id")

    title = data.get("title")
    description = data.get("description", "")
    if not isinstance(title, str) or not isinstance(description, str):
        raise ValueError(f"task {task_id}: title/description must be strings")

    try:
        priority = TaskPriority(data.get("priority"))
    except ValueError:
        raise ValueError(f"task {task_id}: bad priority {data.get('priority')!r}") from None

    status = TaskStatus.from_raw(data.get("status"))
    if status is None:
        raise ValueError(f"task {task_id}: bad status {data.get('status')!r}")

    order = data.get("order", 0)
    if (
        isinstance(order, bool)
        or not isinstance(order, (int, float))
        or (isinstance(order, float) and not math.isfinite(order))
        or order != int(order)
    ):
        raise ValueError(f"task {task_id}: order must be an integer, got {order!r}")

    due_date = parse_datetime(data.get("dueDate"))
    created_at = parse_datetime(data.get("createdAt"))
    if due_date is None or created_at is None:
        raise ValueError(f"task {task_id}: dueDate/createdAt must be ISO timestamps")
    updated_at = parse_datetime(data.get("updatedAt")) or created_at

    return Task(
        id=task_id,
        title=title,
        description=description,
        priority=priority,
        status=status,
        due_date=due_date,
        order=int(order),
        created_at=created_at,
        updated_at=updated_at,
    )


def dumps_tasks(tasks: Iterable[Task]) -> str:
    return json.dumps([task_to_dict(t) for t in tasks], ensure_ascii=False)


def loads_tasks(raw: str) -> list[Task]:
    """
    Parse a persisted task collection.

    Raises ValueError when the payload as a whole is unusable (not JSON, not a list).
    Individual malformed records are skipped with a warning.
    """
    data = json.loads(raw)
    if not isinstance(data, list):
        raise ValueError(f"task collection must be a JSON array, got {type(data).__name__}")

    tasks: list[Task] = []
    seen: set[str] = set()
    for i, item in enumerate(data):
        try:
            task = task_from_dict(item)
        except ValueError as exc:
            logger.warning("Skipping stored task #%d: %s", i, exc)
            continue
        if task.id in seen:
            logger.warning("Skipping stored task #%d: duplicate id %s", i, task.id)
            continue
        seen.add(task.id)
        tasks.append(task)
    return tasks
