# src/taskflow/core/state.py

from __future__ import annotations

from dataclasses import dataclass

from ..config import Settings
from ..storage.buffered import BufferedKeyValueStore
from ..tasks.task_repo import TaskRepository
from .ports import KeyValueStore


@dataclass
class BoardState:
    """Everything the presentation layer needs, wired once and passed explicitly."""

    settings: Settings
    store: KeyValueStore
    repo: TaskRepository
    buffer: BufferedKeyValueStore | None = None
