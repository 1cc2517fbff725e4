# src/taskflow/tasks/projection.py

from __future__ import annotations

"""
Filter/search projection.

Pure functions over a snapshot of the task collection. Nothing here mutates
tasks; grouping only partitions and sorts.
"""

from collections.abc import Iterable
from dataclasses import dataclass

from .task_models import COLUMNS, PRIORITY_ALL, PriorityFilter, Task, TaskPriority, TaskStatus


@dataclass(frozen=True, slots=True)
class FilterState:
    search_term: str = ""
    priority_filter: PriorityFilter = PRIORITY_ALL


def parse_priority_filter(raw: str | TaskPriority) -> PriorityFilter:
    """Raises ValueError for anything other than "all" or a priority value."""
    if raw == PRIORITY_ALL:
        return PRIORITY_ALL
    try:
        return TaskPriority(raw)
    except ValueError:
        raise ValueError(
            f"priority filter must be 'all' or one of {[p.value for p in TaskPriority]}, got {raw!r}"
        ) from None


def matches_search(task: Task, search_term: str) -> bool:
    term = search_term.strip().lower()
    if not term:
        return True
    return term in task.title.lower() or term in task.description.lower()


def matches_priority(task: Task, priority_filter: PriorityFilter) -> bool:
    return priority_filter == PRIORITY_ALL or task.priority == priority_filter


def is_visible(task: Task, state: FilterState) -> bool:
    return matches_search(task, state.search_term) and matches_priority(task, state.priority_filter)


def filter_tasks(tasks: Iterable[Task], state: FilterState) -> list[Task]:
    return [t for t in tasks if is_visible(t, state)]


def group_by_status(tasks: Iterable[Task]) -> dict[TaskStatus, list[Task]]:
    """
    Partition by status, each column sorted by order ascending.

    sorted() is stable, so equal orders keep their storage order.
    """
    grouped: dict[TaskStatus, list[Task]] = {c.id: [] for c in COLUMNS}
    for task in tasks:
        grouped[task.status].append(task)
    return {status: sorted(col, key=lambda t: t.order) for status, col in grouped.items()}


def grouped_view(tasks: Iterable[Task], state: FilterState) -> dict[TaskStatus, list[Task]]:
    return group_by_status(filter_tasks(tasks, state))
