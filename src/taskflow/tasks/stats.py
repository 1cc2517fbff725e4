# src/taskflow/tasks/stats.py

from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timedelta

from .task_models import COLUMNS, Task, TaskPriority, TaskStatus, as_utc

PRIORITY_ORDER = (TaskPriority.HIGH, TaskPriority.MEDIUM, TaskPriority.LOW)


@dataclass(frozen=True, slots=True)
class WeekBucket:
    label: str  # e.g. "Mar 4"
    start: datetime
    count: int


@dataclass(frozen=True, slots=True)
class BoardStats:
    total: int
    completed: int
    completion_rate: int  # percent, 0..100
    due_soon: int
    overdue: int
    by_status: dict[TaskStatus, int]
    by_priority: dict[TaskPriority, int]
    upcoming: list[Task]
    weekly_velocity: list[WeekBucket]


def compute_board_stats(
    tasks: Iterable[Task],
    *,
    now: datetime,
    due_soon_days: int = 7,
    upcoming_limit: int = 5,
    weeks: int = 6,
) -> BoardStats:
    """
    Summary numbers for the statistics page.

    - due_soon: open tasks due within 0..due_soon_days calendar days (UTC dates)
    - overdue: open tasks whose due timestamp is already past
    - upcoming: open tasks, earliest due first
    - weekly_velocity: tasks created per Monday-started week, oldest week first
    """
    items = list(tasks)
    now = as_utc(now)
    today = now.date()

    total = len(items)
    open_tasks = [t for t in items if t.status != TaskStatus.DONE]
    completed = total - len(open_tasks)
    completion_rate = 0 if total == 0 else math.floor(completed * 100 / total + 0.5)

    due_soon = sum(1 for t in open_tasks if 0 <= (t.due_date.date() - today).days <= due_soon_days)
    overdue = sum(1 for t in open_tasks if t.due_date < now)

    by_status = {c.id: sum(1 for t in items if t.status == c.id) for c in COLUMNS}
    by_priority = {p: sum(1 for t in items if t.priority == p) for p in PRIORITY_ORDER}

    upcoming = sorted(open_tasks, key=lambda t: t.due_date)[: max(0, upcoming_limit)]

    this_monday = (now - timedelta(days=now.weekday())).replace(
        hour=0, minute=0, second=0, microsecond=0
    )
    velocity: list[WeekBucket] = []
    for back in range(weeks - 1, -1, -1):
        start = this_monday - timedelta(weeks=back)
        end = start + timedelta(days=7)
        count = sum(1 for t in items if start <= t.created_at < end)
        velocity.append(WeekBucket(label=f"{start:%b} {start.day}", start=start, count=count))

    return BoardStats(
        total=total,
        completed=completed,
        completion_rate=completion_rate,
        due_soon=due_soon,
        overdue=overdue,
        by_status=by_status,
        by_priority=by_priority,
        upcoming=upcoming,
        weekly_velocity=velocity,
    )
