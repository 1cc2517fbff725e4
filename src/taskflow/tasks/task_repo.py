# src/taskflow/tasks/task_repo.py

from __future__ import annotations

import logging
from collections.abc import Callable, Collection, Iterable, Mapping, Sequence
from dataclasses import replace
from datetime import datetime
from typing import Any

from ..core.ports import ChangeListener, Clock, KeyValueStore
from ..storage.slot import PersistenceWarning, StorageSlot
from .projection import FilterState, group_by_status, grouped_view, parse_priority_filter
from .seed import default_tasks
from .stats import BoardStats, compute_board_stats
from .task_models import (
    COLUMNS,
    Column,
    ColumnTaskMap,
    NotFound,
    PriorityFilter,
    Task,
    TaskStatus,
    ValidationFailure,
    as_utc,
    dumps_tasks,
    loads_tasks,
    new_task_id,
    utc_now,
    validate_task_fields,
)

logger = logging.getLogger(__name__)

DEFAULT_TASKS_KEY = "taskflow-tasks"

_COLUMN_IDS = {c.id.value: c.id for c in COLUMNS}


class TaskRepository:
    """
    Owner of the canonical task collection.

    Every mutation happens in memory first and is then written to the durable
    store under one key (the whole collection as a JSON array). A failed write
    is logged, kept in last_persistence_warning and reported to listeners;
    the in-memory state is not rolled back.

    Results are returned, not raised:
    - create -> Task | ValidationFailure
    - update -> Task | NotFound | ValidationFailure
    - delete -> Task | NotFound

    Tasks are frozen dataclasses, so snapshots and views never expose
    anything that could change the canonical collection.

    Column ranks are kept compact (0..n-1) after load, delete, status moves and reorder.
    """

    def __init__(
        self,
        store: KeyValueStore,
        key: str = DEFAULT_TASKS_KEY,
        *,
        serializer: Callable[[Iterable[Task]], str] = dumps_tasks,
        deserializer: Callable[[str], list[Task]] = loads_tasks,
        clock: Clock = utc_now,
        seed_on_empty: bool = True,
        due_soon_days: int = 7,
    ) -> None:
        self._slot: StorageSlot[Any] = StorageSlot(
            store, key, serializer=serializer, deserializer=deserializer
        )
        self._clock = clock
        self._seed_on_empty = seed_on_empty
        self._due_soon_days = due_soon_days
        self._filter = FilterState()
        self._listeners: list[ChangeListener] = []
        self._view_cache: dict[TaskStatus, list[Task]] | None = None
        self._tasks: list[Task] = []
        self.last_persistence_warning: PersistenceWarning | None = None
        self._load()

    # ---- loading ----

    def _load(self) -> None:
        tasks, warning = self._slot.read()
        if warning is not None:
            self.last_persistence_warning = warning

        if tasks is None:
            source = "seed" if self._seed_on_empty else "empty"
            tasks = default_tasks(self._now()) if self._seed_on_empty else []
        else:
            source = "store"

        self._tasks = _compact(list(tasks), {c.id for c in COLUMNS})
        self._view_cache = None
        logger.info(
            "TaskRepository loaded key=%s source=%s total=%d", self._slot.key, source, len(self._tasks)
        )

    def reload(self) -> None:
        """
        Re-read the collection from the store, dropping in-memory state.

        Used to pick up writes made by another process (last writer wins).
        """
        self._load()
        self._notify("reloaded")

    # ---- read API ----

    @property
    def columns(self) -> tuple[Column, ...]:
        return COLUMNS

    @property
    def filter_state(self) -> FilterState:
        return self._filter

    def snapshot(self) -> list[Task]:
        """Full collection in storage order, unfiltered."""
        return list(self._tasks)

    def get(self, task_id: str) -> Task | None:
        idx = self._index_of(task_id)
        return None if idx is None else self._tasks[idx]

    def grouped_view(self) -> dict[TaskStatus, list[Task]]:
        """Filtered tasks per column, sorted by order."""
        if self._view_cache is None:
            self._view_cache = grouped_view(self._tasks, self._filter)
        return {status: list(col) for status, col in self._view_cache.items()}

    def column_layout(self) -> ColumnTaskMap:
        """Unfiltered per-column id sequences; the starting point for drag-and-drop."""
        return {status: [t.id for t in col] for status, col in group_by_status(self._tasks).items()}

    def stats(self, *, now: datetime | None = None, due_soon_days: int | None = None) -> BoardStats:
        if due_soon_days is None:
            due_soon_days = self._due_soon_days
        return compute_board_stats(self._tasks, now=now or self._now(), due_soon_days=due_soon_days)

    # ---- filter state ----

    def set_search_term(self, term: str) -> None:
        if term == self._filter.search_term:
            return
        self._filter = replace(self._filter, search_term=term)
        self._view_cache = None
        self._notify("filter_changed")

    def set_priority_filter(self, priority: str) -> None:
        """Accepts "all" or a priority value; raises ValueError otherwise."""
        parsed: PriorityFilter = parse_priority_filter(priority)
        if parsed == self._filter.priority_filter:
            return
        self._filter = replace(self._filter, priority_filter=parsed)
        self._view_cache = None
        self._notify("filter_changed")

    # ---- mutations ----

    def create(self, data: Mapping[str, Any]) -> Task | ValidationFailure:
        fields = validate_task_fields(data)
        if isinstance(fields, ValidationFailure):
            logger.info("create rejected: %s", fields)
            return fields

        now = self._now()
        task = Task(
            id=new_task_id(),
            order=self._next_order(fields["status"]),
            created_at=now,
            updated_at=now,
            **fields,
        )
        self._tasks.append(task)
        logger.debug("Task created id=%s status=%s order=%s", task.id, task.status, task.order)
        self._commit("created")
        return task

    def update(self, task_id: str, changes: Mapping[str, Any]) -> Task | NotFound | ValidationFailure:
        idx = self._index_of(task_id)
        if idx is None:
            return NotFound(task_id)

        fields = validate_task_fields(changes, partial=True)
        if isinstance(fields, ValidationFailure):
            logger.info("update rejected id=%s: %s", task_id, fields)
            return fields

        current = self._tasks[idx]
        new_status = fields.get("status", current.status)
        order = current.order
        if new_status != current.status:
            order = self._next_order(new_status)

        updated = replace(current, **fields, order=order, updated_at=self._now())
        self._tasks[idx] = updated
        if new_status != current.status:
            self._tasks = _compact(self._tasks, {current.status})
            updated = self._tasks[idx]

        logger.debug("Task updated id=%s fields=%s", task_id, sorted(fields))
        self._commit("updated")
        return updated

    def delete(self, task_id: str) -> Task | NotFound:
        idx = self._index_of(task_id)
        if idx is None:
            return NotFound(task_id)

        removed = self._tasks.pop(idx)
        self._tasks = _compact(self._tasks, {removed.status})
        logger.debug("Task deleted id=%s", task_id)
        self._commit("deleted")
        return removed

    def reorder(self, column_map: Mapping[str, Sequence[str]]) -> bool:
        """
        Apply a ColumnTaskMap: each listed task takes that column as status and
        its list index as order. Unlisted tasks keep their column and relative
        position, though their rank may be renumbered; unknown columns and ids
        are ignored. updated_at is not touched.

        Returns True if any task moved.
        """
        placement: dict[str, tuple[TaskStatus, int]] = {}
        for raw_status, ids in column_map.items():
            status = _COLUMN_IDS.get(str(raw_status))
            if status is None:
                logger.warning("reorder: ignoring unknown column %r", raw_status)
                continue
            for index, task_id in enumerate(ids):
                if task_id in placement:
                    logger.warning("reorder: %s listed more than once; keeping first", task_id)
                    continue
                placement[task_id] = (status, index)

        known = {t.id for t in self._tasks}
        unknown = [i for i in placement if i not in known]
        if unknown:
            logger.warning("reorder: ignoring %d unknown id(s): %s", len(unknown), unknown[:5])

        result: list[Task] = []
        for task in self._tasks:
            target = placement.get(task.id)
            if target is None or target == (task.status, task.order):
                result.append(task)
            else:
                result.append(replace(task, status=target[0], order=target[1]))

        # A partial map can leave rank collisions or gaps; listed tasks win ties.
        result = _compact(result, {c.id for c in COLUMNS}, first=placement.keys())
        if result == self._tasks:
            return False

        self._tasks = result
        self._commit("reordered")
        return True

    # ---- change notification ----

    def subscribe(self, listener: ChangeListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: ChangeListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self, event: str) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception("Change listener failed event=%s", event)

    # ---- internals ----

    def _now(self) -> datetime:
        return as_utc(self._clock())

    def _index_of(self, task_id: str) -> int | None:
        for i, task in enumerate(self._tasks):
            if task.id == task_id:
                return i
        return None

    def _next_order(self, status: TaskStatus) -> int:
        orders = [t.order for t in self._tasks if t.status == status]
        return max(orders) + 1 if orders else 0

    def _commit(self, event: str) -> None:
        self._view_cache = None
        warning = self._slot.write(self._tasks)
        self.last_persistence_warning = warning
        self._notify(event)
        if warning is not None:
            self._notify("persistence_warning")


def _compact(
    tasks: list[Task], statuses: set[TaskStatus], *, first: Collection[str] = ()
) -> list[Task]:
    """
    Renumber the given columns to 0..n-1, keeping relative order.

    Ties go to ids in `first`, then to storage position. Storage order is preserved.
    """
    rank: dict[str, int] = {}
    for status in statuses:
        col = sorted(
            (t for t in tasks if t.status == status),
            key=lambda t: (t.order, t.id not in first),
        )
        for i, task in enumerate(col):
            rank[task.id] = i

    out: list[Task] = []
    for task in tasks:
        new_order = rank.get(task.id, task.order)
        out.append(task if new_order == task.order else replace(task, order=new_order))
    return out
