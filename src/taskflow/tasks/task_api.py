# src/taskflow/tasks/task_api.py

from __future__ import annotations

import logging

from .ordering import compute_move
from .task_repo import TaskRepository

logger = logging.getLogger(__name__)


def handle_drag_end(repo: TaskRepository, active_id: str, over_id: str | None) -> bool:
    """
    Drag-and-drop completion: compute the new layout and apply it.

    over_id is the task or column id under the pointer on drop (None when
    dropped outside any target). Returns True if the board changed.
    """
    if not over_id:
        return False

    layout = repo.column_layout()
    new_layout = compute_move(layout, active_id, over_id)
    if new_layout == layout:
        return False

    logger.debug("Drag end active=%s over=%s", active_id, over_id)
    return repo.reorder(new_layout)
