"""
Name: PostgreSQL Task Store Integration Tests

Responsibilities:
  - Run the mutation pipeline against the real schema
  - Prove lane density under concurrent writers (advisory locks)
  - Prove atomicity and history retention on PostgreSQL
"""

from concurrent.futures import ThreadPoolExecutor

import pytest

from taskboard.application import (
    BoardProvisioner,
    BoardStatisticsAggregator,
    CreateTaskInput,
    TaskMutationCoordinator,
    TaskPatch,
)
from taskboard.crosscutting.exceptions import ConflictError
from taskboard.domain.audit import ChangeKind
from taskboard.domain.entities import MemberRole, TaskStatus
from taskboard.infrastructure.repositories.postgres import PostgresTaskStore

pytestmark = pytest.mark.integration


@pytest.fixture
def pg_store() -> PostgresTaskStore:
    return PostgresTaskStore(lock_timeout_seconds=2.0)


@pytest.fixture
def owner(pg_user):
    return pg_user("owner")


@pytest.fixture
def pg_board(pg_store, owner):
    return BoardProvisioner(pg_store).create_board("Integration", owner.id)


@pytest.fixture
def pg_coordinator(pg_store) -> TaskMutationCoordinator:
    return TaskMutationCoordinator(pg_store)


def _lane(pg_store, board, status=TaskStatus.TO_DO):
    return [(t.title, t.position) for t in pg_store.list_lane(board.id, status)]


def test_board_owner_is_member(pg_store, pg_board, owner):
    members = pg_store.list_members(pg_board.id)
    assert [(m.user_id, m.role) for m in members] == [(owner.id, MemberRole.OWNER)]


def test_create_move_reorder_delete(pg_store, pg_board, pg_coordinator, owner):
    tasks = [
        pg_coordinator.create(CreateTaskInput(board_id=pg_board.id, title=t), owner.id)
        for t in ("a", "b", "c")
    ]

    pg_coordinator.update(tasks[0].id, TaskPatch(status=TaskStatus.DONE), owner.id)
    assert _lane(pg_store, pg_board) == [("b", 0), ("c", 1)]
    assert _lane(pg_store, pg_board, TaskStatus.DONE) == [("a", 0)]

    pg_coordinator.reorder(tasks[2].id, 0, owner.id)
    assert _lane(pg_store, pg_board) == [("c", 0), ("b", 1)]

    pg_coordinator.delete(tasks[2].id, owner.id)
    assert _lane(pg_store, pg_board) == [("b", 0)]

    history = pg_store.list_history(tasks[2].id)
    assert [e.change_kind for e in history] == [ChangeKind.CREATE, ChangeKind.DELETE]


def test_concurrent_creates_keep_lane_dense(pg_store, pg_board, pg_coordinator, owner):
    def worker(i):
        return pg_coordinator.create(
            CreateTaskInput(
                board_id=pg_board.id, title=f"t{i}", status=TaskStatus.REVIEW
            ),
            owner.id,
        )

    with ThreadPoolExecutor(max_workers=4) as pool:
        created = list(pool.map(worker, range(8)))

    assert sorted(t.position for t in created) == list(range(8))
    positions = [p for _, p in _lane(pg_store, pg_board, TaskStatus.REVIEW)]
    assert positions == list(range(8))


def test_held_lane_lock_times_out_as_conflict(pg_board, owner):
    store = PostgresTaskStore(lock_timeout_seconds=0.2)
    coordinator = TaskMutationCoordinator(store)

    with store.unit_of_work() as holder:
        holder.lock_lanes([(pg_board.id, TaskStatus.TO_DO)])
        with pytest.raises(ConflictError):
            coordinator.create(
                CreateTaskInput(board_id=pg_board.id, title="blocked"), owner.id
            )
        holder.rollback()


def test_statistics_on_postgres(pg_store, pg_board, pg_coordinator, owner):
    pg_coordinator.create(
        CreateTaskInput(
            board_id=pg_board.id,
            title="mine",
            priority="URGENT",
            assignee_id=owner.id,
        ),
        owner.id,
    )
    aggregator = BoardStatisticsAggregator(pg_store)

    board_stats = aggregator.board_statistics(pg_board.id)
    user_stats = aggregator.user_statistics(owner.id)

    assert (board_stats.total_tasks, board_stats.urgent_count) == (1, 1)
    assert (user_stats.boards_count, user_stats.assigned_tasks_count) == (1, 1)
