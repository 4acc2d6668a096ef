"""
Unit tests for task board domain entities and lane ordering helpers.
"""

from datetime import datetime, timedelta, timezone
from uuid import UUID, uuid4

import pytest

from taskboard.domain.entities import Task, TaskPriority, TaskStatus, as_utc
from taskboard.domain.repositories import lane_sort_key

pytestmark = pytest.mark.unit

NOW = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)


def _task(**overrides) -> Task:
    data = dict(
        id=uuid4(),
        board_id=uuid4(),
        title="Write release notes",
        status=TaskStatus.TO_DO,
        priority=TaskPriority.MEDIUM,
        position=0,
        created_by=uuid4(),
        created_at=NOW,
        updated_at=NOW,
    )
    data.update(overrides)
    return Task(**data)


class TestTaskOverdue:
    def test_past_due_open_task_is_overdue(self):
        task = _task(due_date=NOW - timedelta(minutes=1))
        assert task.is_overdue(NOW) is True

    def test_done_task_is_never_overdue(self):
        task = _task(status=TaskStatus.DONE, due_date=NOW - timedelta(days=3))
        assert task.is_overdue(NOW) is False

    def test_due_exactly_now_is_not_overdue(self):
        assert _task(due_date=NOW).is_overdue(NOW) is False

    def test_task_without_due_date_is_not_overdue(self):
        assert _task().is_overdue(NOW) is False


class TestTaskValueSemantics:
    def test_lane_is_board_and_status(self):
        task = _task(status=TaskStatus.REVIEW)
        assert task.lane == (task.board_id, TaskStatus.REVIEW)

    def test_with_changes_returns_new_snapshot(self):
        task = _task()
        moved = task.with_changes(status=TaskStatus.DONE, position=4)

        assert moved is not task
        assert task.status is TaskStatus.TO_DO
        assert (moved.status, moved.position) == (TaskStatus.DONE, 4)

    def test_task_is_immutable(self):
        task = _task()
        with pytest.raises(AttributeError):
            task.title = "changed"  # type: ignore[misc]


class TestAsUtc:
    def test_naive_datetime_is_read_as_utc(self):
        naive = datetime(2025, 1, 1, 8, 30)
        assert as_utc(naive) == datetime(2025, 1, 1, 8, 30, tzinfo=timezone.utc)

    def test_aware_datetime_is_converted(self):
        plus_three = timezone(timedelta(hours=3))
        value = datetime(2025, 1, 1, 11, 30, tzinfo=plus_three)
        assert as_utc(value) == datetime(2025, 1, 1, 8, 30, tzinfo=timezone.utc)

    def test_none_passes_through(self):
        assert as_utc(None) is None


class TestLaneSortKey:
    def test_orders_by_board_then_status_order(self):
        low = UUID("00000000-0000-0000-0000-000000000001")
        high = UUID("ffffffff-0000-0000-0000-000000000000")
        lanes = [
            (high, TaskStatus.TO_DO),
            (low, TaskStatus.DONE),
            (low, TaskStatus.TO_DO),
            (low, TaskStatus.REVIEW),
        ]

        assert sorted(lanes, key=lane_sort_key) == [
            (low, TaskStatus.TO_DO),
            (low, TaskStatus.REVIEW),
            (low, TaskStatus.DONE),
            (high, TaskStatus.TO_DO),
        ]

    def test_accepts_raw_status_values(self):
        board_id = uuid4()
        assert lane_sort_key((board_id, "IN_PROGRESS")) == (str(board_id), 1)
