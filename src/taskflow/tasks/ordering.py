# src/taskflow/tasks/ordering.py

from __future__ import annotations

"""
Drag-and-drop ordering.

compute_move() takes the current per-column id sequences and a drag result
(dragged task id + the id it was dropped on, either a task or a column) and
returns the new per-column sequences. It is pure: the input is never mutated
and ambiguous input yields an unchanged copy (a cancelled drag).

Dropping on a task inserts at that task's index. Within one column this is a
list move: everything between the old and new position shifts by one.
"""

import logging
from collections.abc import Mapping, Sequence

from .task_models import COLUMNS, ColumnTaskMap, TaskStatus

logger = logging.getLogger(__name__)

_COLUMN_IDS = {c.id.value: c.id for c in COLUMNS}


def copy_layout(layout: Mapping[TaskStatus, Sequence[str]]) -> ColumnTaskMap:
    """Fresh lists for every column; missing columns become empty."""
    return {c.id: list(layout.get(c.id, ())) for c in COLUMNS}


def find_column(layout: Mapping[TaskStatus, Sequence[str]], task_id: str) -> TaskStatus | None:
    for status, ids in layout.items():
        if task_id in ids:
            return status
    return None


def compute_move(
    layout: Mapping[TaskStatus, Sequence[str]],
    active_id: str,
    over_id: str,
    *,
    origin: TaskStatus | None = None,
) -> ColumnTaskMap:
    current = copy_layout(layout)

    if active_id == over_id:
        return current

    if origin is None:
        origin = find_column(current, active_id)
    else:
        resolved = _COLUMN_IDS.get(str(origin))
        if resolved is None or active_id not in current[resolved]:
            logger.warning("Drag ignored: %s is not in origin column %r", active_id, origin)
            return current
        origin = resolved

    over_column = _COLUMN_IDS.get(over_id)
    destination = over_column if over_column is not None else find_column(current, over_id)

    if origin is None or destination is None:
        logger.debug("Drag ignored: unresolved origin=%s destination=%s", origin, destination)
        return current

    if origin == destination:
        ids = current[origin]
        new_index = len(ids) - 1 if over_column is not None else ids.index(over_id)
        ids.remove(active_id)
        ids.insert(new_index, active_id)
        return current

    source_ids = [i for i in current[origin] if i != active_id]
    dest_ids = [i for i in current[destination] if i != active_id]
    if over_column is not None:
        new_index = len(dest_ids)
    else:
        new_index = dest_ids.index(over_id)
    dest_ids.insert(new_index, active_id)

    current[origin] = source_ids
    current[destination] = dest_ids
    return current

