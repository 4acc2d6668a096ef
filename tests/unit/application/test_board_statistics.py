"""
Unit tests for BoardStatisticsAggregator.
"""

from datetime import timedelta
from uuid import uuid4

import pytest

from taskboard.application import CreateTaskInput, TaskPatch
from taskboard.crosscutting.exceptions import NotFoundError
from taskboard.domain.entities import TaskPriority, TaskStatus

pytestmark = pytest.mark.unit


@pytest.fixture
def busy_board(coordinator, board, alice, bob, clock):
    """
    TO_DO:       urgent (bob, overdue), plain
    IN_PROGRESS: high (alice, due tomorrow)
    DONE:        urgent (bob, past due but finished)
    """

    def add(title, **fields):
        return coordinator.create(
            CreateTaskInput(board_id=board.id, title=title, **fields), alice.id
        )

    yesterday = clock.now - timedelta(days=1)
    add("urgent", priority=TaskPriority.URGENT, assignee_id=bob.id, due_date=yesterday)
    add("plain")
    add(
        "high",
        status=TaskStatus.IN_PROGRESS,
        priority=TaskPriority.HIGH,
        assignee_id=alice.id,
        due_date=clock.now + timedelta(days=1),
    )
    add(
        "finished",
        status=TaskStatus.DONE,
        priority=TaskPriority.URGENT,
        assignee_id=bob.id,
        due_date=yesterday,
    )
    return board


class TestBoardStatistics:
    def test_rollup(self, aggregator, busy_board):
        stats = aggregator.board_statistics(busy_board.id)

        assert stats.board_name == "Sprint 12"
        assert stats.total_tasks == 4
        assert stats.status_counts == {
            TaskStatus.TO_DO: 2,
            TaskStatus.IN_PROGRESS: 1,
            TaskStatus.REVIEW: 0,
            TaskStatus.DONE: 1,
        }
        assert stats.urgent_count == 2
        assert stats.high_priority_count == 1
        assert stats.overdue_count == 1
        assert stats.assigned_users_count == 2

    def test_explicit_now_changes_overdue(self, aggregator, busy_board, clock):
        later = clock.now + timedelta(days=2)
        assert aggregator.board_statistics(busy_board.id, now=later).overdue_count == 2

    def test_empty_board(self, aggregator, board):
        stats = aggregator.board_statistics(board.id)

        assert stats.total_tasks == 0
        assert set(stats.status_counts.values()) == {0}
        assert stats.assigned_users_count == 0

    def test_repeatable_without_mutations(self, aggregator, busy_board):
        assert aggregator.board_statistics(busy_board.id) == aggregator.board_statistics(
            busy_board.id
        )

    def test_reflects_committed_moves(self, aggregator, coordinator, busy_board, alice, store):
        plain = next(t for t in store.list_board_tasks(busy_board.id) if t.title == "plain")
        coordinator.update(plain.id, TaskPatch(status=TaskStatus.REVIEW), alice.id)

        stats = aggregator.board_statistics(busy_board.id)
        assert stats.status_counts[TaskStatus.TO_DO] == 1
        assert stats.status_counts[TaskStatus.REVIEW] == 1

    def test_unknown_board_is_not_found(self, aggregator):
        with pytest.raises(NotFoundError):
            aggregator.board_statistics(uuid4())


class TestUserStatistics:
    def test_assignee_rollup_across_member_boards(
        self, aggregator, provisioner, busy_board, bob
    ):
        provisioner.add_member(busy_board.id, bob.id)

        stats = aggregator.user_statistics(bob.id)

        assert stats.boards_count == 1
        assert stats.assigned_tasks_count == 2
        assert stats.status_counts[TaskStatus.TO_DO] == 1
        assert stats.status_counts[TaskStatus.DONE] == 1
        assert stats.overdue_count == 1

    def test_tasks_on_boards_without_membership_are_ignored(
        self, aggregator, busy_board, bob
    ):
        stats = aggregator.user_statistics(bob.id)

        assert stats.boards_count == 0
        assert stats.assigned_tasks_count == 0

    def test_owner_counts_own_board(self, aggregator, busy_board, alice):
        stats = aggregator.user_statistics(alice.id)

        assert stats.boards_count == 1
        assert stats.assigned_tasks_count == 1
        assert stats.status_counts[TaskStatus.IN_PROGRESS] == 1

    def test_unknown_user_is_not_found(self, aggregator):
        with pytest.raises(NotFoundError):
            aggregator.user_statistics(uuid4())
