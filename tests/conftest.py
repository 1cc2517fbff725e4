# tests/conftest.py

from __future__ import annotations

from pathlib import Path

import pytest

from taskflow.config import Settings
from taskflow.tasks.task_repo import TaskRepository

from .fakes import FakeClock, RecordingStore


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    """Settings pointing at a per-test tmp dir (no env reads)."""
    return Settings(
        app_name="taskflow-test",
        log_level="DEBUG",
        data_dir=tmp_path / "data",
        store_db_path=tmp_path / "data" / "store.sqlite3",
        tasks_key="taskflow-tasks",
        seed_on_empty=False,
        buffered_writes=False,
        flush_interval_seconds=0.01,
        due_soon_days=7,
    )


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def store() -> RecordingStore:
    return RecordingStore()


@pytest.fixture()
def repo(store: RecordingStore, clock: FakeClock) -> TaskRepository:
    """Empty repository (no seed) over an in-memory store."""
    return TaskRepository(store, clock=clock, seed_on_empty=False)

