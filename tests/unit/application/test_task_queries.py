"""
Unit tests for TaskQueries (committed reads).
"""

from uuid import uuid4

import pytest

from taskboard.application import CreateTaskInput
from taskboard.crosscutting.exceptions import NotFoundError
from taskboard.domain.audit import ChangeKind
from taskboard.domain.entities import TaskStatus

pytestmark = pytest.mark.unit


@pytest.fixture
def seeded(coordinator, board, alice):
    def add(title, status=TaskStatus.TO_DO):
        return coordinator.create(
            CreateTaskInput(board_id=board.id, title=title, status=status), alice.id
        )

    return {
        "a": add("a"),
        "b": add("b"),
        "w": add("w", TaskStatus.IN_PROGRESS),
        "d": add("d", TaskStatus.DONE),
    }


def test_board_lanes_include_empty_lanes_in_status_order(queries, board, seeded):
    lanes = queries.board_lanes(board.id)

    assert list(lanes) == list(TaskStatus)
    assert [t.title for t in lanes[TaskStatus.TO_DO]] == ["a", "b"]
    assert [t.title for t in lanes[TaskStatus.IN_PROGRESS]] == ["w"]
    assert lanes[TaskStatus.REVIEW] == []
    assert [t.position for t in lanes[TaskStatus.DONE]] == [0]


def test_lane_accepts_raw_status(queries, board, seeded):
    assert [t.title for t in queries.lane(board.id, "TO_DO")] == ["a", "b"]


def test_lane_of_unknown_board_is_not_found(queries):
    with pytest.raises(NotFoundError):
        queries.lane(uuid4(), TaskStatus.TO_DO)


def test_get_task(queries, seeded):
    assert queries.get_task(seeded["w"].id) == seeded["w"]
    with pytest.raises(NotFoundError):
        queries.get_task(uuid4())


def test_history_of_deleted_task_is_still_readable(queries, coordinator, alice, seeded):
    coordinator.delete(seeded["a"].id, alice.id)

    history = queries.history(seeded["a"].id)

    assert [e.change_kind for e in history] == [ChangeKind.CREATE, ChangeKind.DELETE]
    assert [e.sequence for e in history] == sorted(e.sequence for e in history)


def test_history_of_unknown_task_is_not_found(queries):
    with pytest.raises(NotFoundError):
        queries.history(uuid4())
