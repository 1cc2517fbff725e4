# tests/fakes.py

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Any

from taskflow.storage.kv_store import MemoryKeyValueStore
from taskflow.tasks.task_models import Task
from taskflow.tasks.task_repo import TaskRepository


class FakeClock:
    """
    Controllable clock for deterministic timestamps.

    Each call returns the current value; advance() moves it forward.
    """

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2024, 3, 6, 9, 30, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


class RecordingStore(MemoryKeyValueStore):
    """Memory store that records every set() for assertions."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        super().__init__(initial)
        self.writes: list[tuple[str, str]] = []

    def set(self, key: str, value: str) -> None:
        self.writes.append((key, value))
        super().set(key, value)


class FailingStore(MemoryKeyValueStore):
    """
    Store that can be told to fail, like browser storage with quota denied.
    """

    def __init__(
        self,
        initial: dict[str, str] | None = None,
        *,
        fail_reads: bool = False,
        fail_writes: bool = True,
    ) -> None:
        super().__init__(initial)
        self.fail_reads = fail_reads
        self.fail_writes = fail_writes
        self.write_attempts = 0

    def get(self, key: str) -> str | None:
        if self.fail_reads:
            raise OSError("storage disabled")
        return super().get(key)

    def set(self, key: str, value: str) -> None:
        self.write_attempts += 1
        if self.fail_writes:
            raise OSError("quota exceeded")
        super().set(key, value)

    def remove(self, key: str) -> None:
        if self.fail_writes:
            raise OSError("quota exceeded")
        super().remove(key)


# ---- builders ----


def task_input(title: str = "Write report", **overrides: Any) -> dict[str, Any]:
    data: dict[str, Any] = {
        "title": title,
        "description": f"{title} details",
        "priority": "medium",
        "status": "todo",
        "dueDate": "2024-03-20",
    }
    data.update(overrides)
    return data


def make(repo: TaskRepository, title: str, **overrides: Any) -> Task:
    created = repo.create(task_input(title, **overrides))
    assert isinstance(created, Task), created
    return created


def ids(tasks: list[Task]) -> list[str]:
    return [t.id for t in tasks]
