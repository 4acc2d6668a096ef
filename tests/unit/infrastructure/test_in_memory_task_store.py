"""
Name: InMemoryTaskStore Tests

Responsibilities:
  - Staged writes are invisible until commit and dropped on rollback
  - Lane uniqueness is enforced at commit
  - Lane locks time out as ConflictError
  - Failure injection is consumed once
"""

from datetime import datetime, timezone
from uuid import uuid4

import pytest

from taskboard.crosscutting.exceptions import ConflictError, StorageError
from taskboard.domain.audit import AuditEntry, ChangeKind
from taskboard.domain.entities import Task, TaskPriority, TaskStatus
from taskboard.infrastructure.repositories.in_memory import InMemoryTaskStore

pytestmark = pytest.mark.unit

T0 = datetime(2025, 3, 1, tzinfo=timezone.utc)


def _task(board_id, position, status=TaskStatus.TO_DO, title="t") -> Task:
    return Task(
        id=uuid4(),
        board_id=board_id,
        title=title,
        status=status,
        priority=TaskPriority.MEDIUM,
        position=position,
        created_by=uuid4(),
        created_at=T0,
        updated_at=T0,
    )


def _entry(task: Task) -> AuditEntry:
    return AuditEntry(
        task_id=task.id,
        board_id=task.board_id,
        actor_id=task.created_by,
        field_name="task",
        old_value=None,
        new_value=task.title,
        change_kind=ChangeKind.CREATE,
        changed_at=T0,
    )


def test_staged_writes_are_visible_only_after_commit(store, board):
    task = _task(board.id, 0)
    with store.unit_of_work() as uow:
        uow.lock_lanes([task.lane])
        uow.insert_task(task)

        assert uow.get_task(task.id) == task
        assert uow.count_lane(board.id, TaskStatus.TO_DO) == 1
        assert store.get_task(task.id) is None

        uow.commit()

    assert store.get_task(task.id) == task


def test_leaving_the_block_without_commit_rolls_back(store, board):
    task = _task(board.id, 0)
    with store.unit_of_work() as uow:
        uow.insert_task(task)
        uow.append_audit([_entry(task)])

    assert store.get_task(task.id) is None
    assert store.list_history(task.id) == []


def test_exception_inside_block_rolls_back_and_releases_locks(store, board):
    lane = (board.id, TaskStatus.TO_DO)
    with pytest.raises(RuntimeError):
        with store.unit_of_work() as uow:
            uow.lock_lanes([lane])
            uow.insert_task(_task(board.id, 0))
            raise RuntimeError("boom")

    with store.unit_of_work() as uow:
        uow.lock_lanes([lane])
        assert uow.count_lane(*lane) == 0


def test_append_audit_assigns_increasing_sequences(store, board):
    tasks = [_task(board.id, i) for i in range(3)]
    with store.unit_of_work() as uow:
        for task in tasks:
            uow.insert_task(task)
        stored = uow.append_audit([_entry(t) for t in tasks])
        uow.commit()

    sequences = [e.sequence for e in stored]
    assert sequences == sorted(sequences)
    assert len(set(sequences)) == 3
    assert store.list_history(tasks[1].id) == [stored[1]]


def test_duplicate_position_is_rejected_at_commit(store, board):
    with store.unit_of_work() as uow:
        uow.insert_task(_task(board.id, 0, title="first"))
        uow.commit()

    with store.unit_of_work() as uow:
        uow.insert_task(_task(board.id, 0, title="clash"))
        with pytest.raises(ConflictError):
            uow.commit()

    assert [t.title for t in store.list_lane(board.id, TaskStatus.TO_DO)] == ["first"]


def test_shift_positions_respects_bounds(store, board):
    with store.unit_of_work() as uow:
        for i in range(5):
            uow.insert_task(_task(board.id, i, title=str(i)))
        uow.commit()

    with store.unit_of_work() as uow:
        assert uow.shift_positions(board.id, TaskStatus.TO_DO, start=4, delta=1) == 1
        assert uow.shift_positions(board.id, TaskStatus.TO_DO, start=1, end=2, delta=10) == 2
        positions = {t.title: t.position for t in uow.list_lane(board.id, TaskStatus.TO_DO)}

    assert positions == {"0": 0, "1": 11, "2": 12, "3": 3, "4": 5}


def test_lock_timeout_raises_conflict(board):
    store = InMemoryTaskStore(lock_timeout_seconds=0.01)
    lane = (board.id, TaskStatus.REVIEW)

    holder = store.unit_of_work()
    holder.lock_lanes([lane])
    try:
        with pytest.raises(ConflictError):
            with store.unit_of_work() as uow:
                uow.lock_lanes([lane])
    finally:
        holder.rollback()


def test_relocking_a_held_lane_is_a_noop(store, board):
    lane = (board.id, TaskStatus.DONE)
    with store.unit_of_work() as uow:
        uow.lock_lanes([lane])
        uow.lock_lanes([lane, (board.id, "DONE")])


def test_completed_unit_of_work_cannot_be_reused(store, board):
    uow = store.unit_of_work()
    uow.commit()
    with pytest.raises(RuntimeError):
        uow.insert_task(_task(board.id, 0))


def test_injected_failure_fires_once(store, board):
    store.inject_failure("insert_task")

    with store.unit_of_work() as uow:
        with pytest.raises(StorageError):
            uow.insert_task(_task(board.id, 0))
        uow.insert_task(_task(board.id, 0))
        uow.commit()

    assert len(store.list_lane(board.id, TaskStatus.TO_DO)) == 1


def test_injected_commit_failure_discards_everything(store, board):
    store.inject_failure("commit", ConflictError("lost"))
    task = _task(board.id, 0)

    with store.unit_of_work() as uow:
        uow.insert_task(task)
        uow.append_audit([_entry(task)])
        with pytest.raises(ConflictError):
            uow.commit()

    assert store.get_task(task.id) is None
    assert store.list_history(task.id) == []
