# tests/test_task_repo.py

from __future__ import annotations

import json

import pytest

from taskflow.tasks.task_models import (
    NotFound,
    Task,
    TaskPriority,
    TaskStatus,
    ValidationFailure,
    dumps_tasks,
    loads_tasks,
    task_to_dict,
)
from taskflow.tasks.task_repo import TaskRepository

from .fakes import FailingStore, FakeClock, RecordingStore, ids, make, task_input


def test_create_on_empty_store(repo: TaskRepository, store: RecordingStore) -> None:
    task = make(repo, "A")

    assert repo.snapshot() == [task]
    assert task.order == 0
    assert task.created_at == task.updated_at
    assert task.status is TaskStatus.TODO
    assert store.writes and json.loads(store.writes[-1][1])[0]["id"] == task.id


def test_create_orders_strictly_increase_per_column(repo: TaskRepository) -> None:
    orders = [make(repo, f"T{i}").order for i in range(5)]
    other = make(repo, "elsewhere", status="done")

    assert orders == sorted(set(orders))
    assert orders[0] == 0
    assert other.order == 0


def test_create_assigns_unique_ids(repo: TaskRepository) -> None:
    a = make(repo, "A")
    b = make(repo, "B")
    assert a.id and b.id and a.id != b.id


def test_create_rejects_invalid_input_without_side_effects(
    repo: TaskRepository, store: RecordingStore
) -> None:
    result = repo.create(task_input(priority="urgent"))

    assert isinstance(result, ValidationFailure)
    assert repo.snapshot() == []
    assert store.writes == []


def test_update_merges_only_given_fields(repo: TaskRepository, clock: FakeClock) -> None:
    task = make(repo, "A", priority="low")
    clock.advance(minutes=5)

    updated = repo.update(task.id, {"title": "A2"})

    assert isinstance(updated, Task)
    assert updated.title == "A2"
    assert updated.priority is TaskPriority.LOW
    assert updated.description == task.description
    assert updated.order == task.order
    assert updated.created_at == task.created_at
    assert updated.updated_at == clock.now
    assert repo.get(task.id) == updated


def test_update_status_change_places_task_last(repo: TaskRepository) -> None:
    make(repo, "P0", status="inProgress")
    make(repo, "P1", status="inProgress")
    moving = make(repo, "T0")
    make(repo, "T1")

    updated = repo.update(moving.id, {"status": "inProgress"})

    assert isinstance(updated, Task)
    others = [t.order for t in repo.snapshot() if t.status is TaskStatus.IN_PROGRESS and t.id != moving.id]
    assert all(updated.order >= o for o in others)
    assert ids(repo.grouped_view()[TaskStatus.IN_PROGRESS])[-1] == moving.id
    # The column it left is renumbered.
    assert [t.order for t in repo.grouped_view()[TaskStatus.TODO]] == [0]


def test_update_same_status_keeps_order(repo: TaskRepository) -> None:
    make(repo, "A")
    b = make(repo, "B")
    updated = repo.update(b.id, {"status": "todo", "priority": "high"})
    assert isinstance(updated, Task)
    assert updated.order == b.order


def test_update_missing_id_is_not_found(repo: TaskRepository, store: RecordingStore) -> None:
    make(repo, "A")
    writes = len(store.writes)

    result = repo.update("missing-id", {"title": "x"})

    assert result == NotFound("missing-id")
    assert len(store.writes) == writes


def test_update_invalid_input_leaves_task_untouched(repo: TaskRepository) -> None:
    task = make(repo, "A")
    result = repo.update(task.id, {"dueDate": "whenever", "title": "B"})
    assert isinstance(result, ValidationFailure)
    assert repo.get(task.id) == task


def test_delete_returns_removed_task(repo: TaskRepository) -> None:
    a = make(repo, "A")
    b = make(repo, "B")
    c = make(repo, "C")

    removed = repo.delete(b.id)

    assert removed == b
    assert ids(repo.snapshot()) == [a.id, c.id]
    assert [t.order for t in repo.grouped_view()[TaskStatus.TODO]] == [0, 1]


def test_delete_missing_id_changes_nothing(repo: TaskRepository, store: RecordingStore) -> None:
    make(repo, "A")
    before = repo.snapshot()
    writes = len(store.writes)

    assert repo.delete("missing-id") == NotFound("missing-id")
    assert repo.snapshot() == before
    assert len(store.writes) == writes


def test_reorder_moves_between_columns_without_touching_updated_at(
    repo: TaskRepository, clock: FakeClock
) -> None:
    t1 = make(repo, "T1")
    t2 = make(repo, "T2")
    clock.advance(hours=1)

    changed = repo.reorder({"todo": [t1.id], "inProgress": [t2.id], "done": []})

    assert changed
    grouped = repo.grouped_view()
    assert ids(grouped[TaskStatus.TODO]) == [t1.id]
    moved = grouped[TaskStatus.IN_PROGRESS][0]
    assert moved.id == t2.id and moved.order == 0
    assert moved.updated_at == t2.updated_at


def test_reorder_with_current_layout_is_a_no_op(repo: TaskRepository, store: RecordingStore) -> None:
    make(repo, "A")
    b = make(repo, "B")
    make(repo, "C", status="done")
    repo.delete(b.id)
    before = repo.snapshot()
    writes = len(store.writes)

    assert repo.reorder(repo.column_layout()) is False
    assert repo.snapshot() == before
    assert len(store.writes) == writes


def test_reorder_ignores_unknown_ids_and_columns(repo: TaskRepository) -> None:
    a = make(repo, "A")
    b = make(repo, "B")

    repo.reorder({"todo": ["ghost", b.id], "archive": [a.id]})

    assert repo.get(b.id).order == 1  # type: ignore[union-attr]
    assert repo.get(a.id) == a


def test_reorder_never_drops_unlisted_tasks(repo: TaskRepository) -> None:
    make(repo, "A")
    make(repo, "B")
    make(repo, "C", status="done")

    repo.reorder({"todo": [], "inProgress": [], "done": []})

    assert len(repo.snapshot()) == 3


def test_reorder_duplicate_id_keeps_first_placement(repo: TaskRepository) -> None:
    a = make(repo, "A")
    repo.reorder({"inProgress": [a.id], "done": [a.id]})
    assert repo.get(a.id).status is TaskStatus.IN_PROGRESS  # type: ignore[union-attr]


def test_partial_reorder_keeps_ranks_compact(repo: TaskRepository) -> None:
    a = make(repo, "A")
    b = make(repo, "B")
    c = make(repo, "C")

    assert repo.reorder({"todo": [c.id]}) is True

    todo = repo.grouped_view()[TaskStatus.TODO]
    assert ids(todo) == [c.id, a.id, b.id]
    assert [t.order for t in todo] == [0, 1, 2]
    assert repo.reorder(repo.column_layout()) is False


def test_partial_reorder_into_other_column_closes_gap(repo: TaskRepository) -> None:
    a = make(repo, "A")
    b = make(repo, "B")
    c = make(repo, "C")
    d = make(repo, "D", status="done")

    repo.reorder({"done": [b.id, d.id]})

    grouped = repo.grouped_view()
    assert [(t.id, t.order) for t in grouped[TaskStatus.TODO]] == [(a.id, 0), (c.id, 1)]
    assert [(t.id, t.order) for t in grouped[TaskStatus.DONE]] == [(b.id, 0), (d.id, 1)]
    assert repo.reorder(repo.column_layout()) is False


def test_grouped_view_filters_by_search_and_priority(repo: TaskRepository) -> None:
    hit = make(repo, "Sprint planning", priority="high")
    make(repo, "Sprint demo", priority="low")
    make(repo, "Refactor", description="before the SPRINT ends", priority="high", status="done")
    make(repo, "Groceries", priority="high")

    repo.set_search_term("sprint")
    repo.set_priority_filter("high")
    grouped = repo.grouped_view()

    assert ids(grouped[TaskStatus.TODO]) == [hit.id]
    assert [t.title for t in grouped[TaskStatus.DONE]] == ["Refactor"]
    assert grouped[TaskStatus.IN_PROGRESS] == []
    # Filtering is a view only.
    assert len(repo.snapshot()) == 4


def test_grouped_view_recomputes_after_mutation(repo: TaskRepository) -> None:
    repo.set_search_term("alpha")
    assert repo.grouped_view()[TaskStatus.TODO] == []
    task = make(repo, "Alpha")
    assert ids(repo.grouped_view()[TaskStatus.TODO]) == [task.id]


def test_grouped_view_returns_independent_lists(repo: TaskRepository) -> None:
    make(repo, "A")
    view = repo.grouped_view()
    view[TaskStatus.TODO].clear()
    assert len(repo.grouped_view()[TaskStatus.TODO]) == 1


def test_set_priority_filter_rejects_unknown_value(repo: TaskRepository) -> None:
    with pytest.raises(ValueError):
        repo.set_priority_filter("urgent")
    assert repo.filter_state.priority_filter == "all"


def test_listeners_receive_events(repo: TaskRepository) -> None:
    events: list[str] = []
    repo.subscribe(events.append)

    task = make(repo, "A")
    repo.update(task.id, {"title": "B"})
    repo.set_search_term("b")
    repo.set_search_term("b")
    repo.delete(task.id)
    repo.unsubscribe(events.append)
    make(repo, "C")

    assert events == ["created", "updated", "filter_changed", "deleted"]


def test_failing_listener_does_not_break_mutation(repo: TaskRepository) -> None:
    def boom(event: str) -> None:
        raise RuntimeError(event)

    repo.subscribe(boom)
    assert isinstance(repo.create(task_input()), Task)


def test_state_survives_new_repository(store: RecordingStore, clock: FakeClock) -> None:
    first = TaskRepository(store, clock=clock, seed_on_empty=False)
    a = make(first, "A")
    b = make(first, "B", status="done")

    second = TaskRepository(store, clock=clock, seed_on_empty=False)

    assert second.snapshot() == [a, b]


def test_snapshot_round_trips_through_codec(repo: TaskRepository) -> None:
    make(repo, "A")
    make(repo, "B", status="inProgress", priority="high")
    snap = repo.snapshot()
    assert loads_tasks(dumps_tasks(snap)) == snap


def test_write_failure_keeps_in_memory_state(clock: FakeClock) -> None:
    store = FailingStore(fail_writes=True)
    repo = TaskRepository(store, clock=clock, seed_on_empty=False)
    events: list[str] = []
    repo.subscribe(events.append)

    task = repo.create(task_input())

    assert isinstance(task, Task)
    assert repo.snapshot() == [task]
    assert repo.last_persistence_warning is not None
    assert repo.last_persistence_warning.operation == "write"
    assert events == ["created", "persistence_warning"]

    store.fail_writes = False
    make(repo, "B")
    assert repo.last_persistence_warning is None


def test_unreadable_store_falls_back_to_seed(clock: FakeClock) -> None:
    repo = TaskRepository(FailingStore(fail_reads=True), clock=clock)
    assert len(repo.snapshot()) == 3
    assert repo.last_persistence_warning is not None
    assert repo.last_persistence_warning.operation == "read"


def test_corrupt_payload_falls_back_to_empty_when_seeding_disabled(clock: FakeClock) -> None:
    store = RecordingStore({"taskflow-tasks": "{not json"})
    repo = TaskRepository(store, clock=clock, seed_on_empty=False)
    assert repo.snapshot() == []
    assert repo.last_persistence_warning is not None
    # Nothing is written until the first mutation.
    assert store.writes == []


def test_seed_has_one_task_per_column(clock: FakeClock) -> None:
    store = RecordingStore()
    repo = TaskRepository(store, clock=clock)
    grouped = repo.grouped_view()
    assert [len(grouped[s]) for s in TaskStatus] == [1, 1, 1]
    assert grouped[TaskStatus.TODO][0].title == "Plan sprint backlog"
    assert store.writes == []


def test_load_compacts_column_ranks(clock: FakeClock) -> None:
    seed = TaskRepository(RecordingStore(), clock=clock)
    records = [task_to_dict(t) for t in seed.snapshot()]
    records[0]["order"] = 9007199254740991
    extra = dict(records[0], id="second", order=5)
    store = RecordingStore({"taskflow-tasks": json.dumps(records + [extra])})

    repo = TaskRepository(store, clock=clock)

    todo = repo.grouped_view()[TaskStatus.TODO]
    assert [t.id for t in todo] == ["second", records[0]["id"]]
    assert [t.order for t in todo] == [0, 1]


def test_record_with_infinite_order_does_not_drop_valid_tasks(clock: FakeClock) -> None:
    seed = TaskRepository(RecordingStore(), clock=clock)
    good = task_to_dict(seed.snapshot()[0])
    bad = json.dumps(dict(good, id="bad", order=0)).replace('"order": 0', '"order": 1e400')
    store = RecordingStore({"taskflow-tasks": f"[{json.dumps(good)}, {bad}]"})

    repo = TaskRepository(store, clock=clock, seed_on_empty=False)
    assert repo.last_persistence_warning is None
    make(repo, "new")

    stored = loads_tasks(store.get("taskflow-tasks") or "[]")
    assert [t.title for t in stored] == [good["title"], "new"]


def test_reload_picks_up_external_writes(store: RecordingStore, clock: FakeClock) -> None:
    repo = TaskRepository(store, clock=clock, seed_on_empty=False)
    make(repo, "mine")

    other = TaskRepository(store, clock=clock, seed_on_empty=False)
    theirs = make(other, "theirs")

    repo.reload()
    assert theirs in repo.snapshot()
    assert len(repo.snapshot()) == 2


def test_reload_notifies_without_writing(store: RecordingStore, clock: FakeClock) -> None:
    repo = TaskRepository(store, clock=clock, seed_on_empty=False)
    make(repo, "A")
    events: list[str] = []
    repo.subscribe(events.append)
    writes = len(store.writes)

    repo.reload()

    assert events == ["reloaded"]
    assert len(store.writes) == writes
