# src/taskflow/tasks/seed.py

from __future__ import annotations

from datetime import datetime, timedelta

from .task_models import Task, TaskPriority, TaskStatus, as_utc, new_task_id

_SEED = (
    (
        "Plan sprint backlog",
        "Outline key deliverables and assign owners for the upcoming sprint.",
        TaskPriority.HIGH,
        TaskStatus.TODO,
        3,
    ),
    (
        "Design dashboard mockups",
        "Ensure mobile responsiveness and finalize typography scale.",
        TaskPriority.MEDIUM,
        TaskStatus.IN_PROGRESS,
        5,
    ),
    (
        "Team retrospective notes",
        "Compile feedback from the team and highlight key action items.",
        TaskPriority.LOW,
        TaskStatus.DONE,
        10,
    ),
)


def default_tasks(now: datetime) -> list[Task]:
    """Sample board shown on first run: one task per column."""
    now = as_utc(now)
    return [
        Task(
            id=new_task_id(),
            title=title,
            description=description,
            priority=priority,
            status=status,
            due_date=now + timedelta(days=days),
            order=0,
            created_at=now,
            updated_at=now,
        )
        for title, description, priority, status, days in _SEED
    ]
