"""
===============================================================================
COMPONENT: Board Statistics Aggregator
===============================================================================

Business Goal:
    Dashboard rollups of a board (tasks per lane, urgent/high counts,
    overdue work, distinct assignees) and of a user across the boards they
    belong to.

-------------------------------------------------------------------------------
CRC CARD (Class-Responsibility-Collaborator)
-------------------------------------------------------------------------------
Class:
    BoardStatisticsAggregator

Responsibilities:
    - Scan committed tasks and count them.
    - Treat "overdue" as due_date < now and status != DONE.

Collaborators:
    - TaskStore (read methods)
    - domain.statistics: BoardStatistics, UserStatistics

Constraints:
    - Pure reads: never opens a unit of work, never writes.
    - Two calls with no mutation in between return equal results
      (given the same `now`).
===============================================================================
"""

from __future__ import annotations

from datetime import datetime
from typing import Callable, Optional
from uuid import UUID

from ..crosscutting.exceptions import NotFoundError
from ..domain.entities import TaskPriority, as_utc, utcnow
from ..domain.repositories import TaskStore
from ..domain.statistics import BoardStatistics, UserStatistics, empty_status_counts


class BoardStatisticsAggregator:
    def __init__(
        self, store: TaskStore, clock: Callable[[], datetime] = utcnow
    ) -> None:
        self._store = store
        self._clock = clock

    def board_statistics(
        self, board_id: UUID, now: Optional[datetime] = None
    ) -> BoardStatistics:
        board = self._store.get_board(board_id)
        if board is None:
            raise NotFoundError("Board", board_id)

        now = as_utc(now) or self._clock()
        tasks = self._store.list_board_tasks(board_id)

        status_counts = empty_status_counts()
        for task in tasks:
            status_counts[task.status] += 1

        return BoardStatistics(
            board_id=board.id,
            board_name=board.name,
            total_tasks=len(tasks),
            status_counts=status_counts,
            urgent_count=sum(1 for t in tasks if t.priority is TaskPriority.URGENT),
            high_priority_count=sum(
                1 for t in tasks if t.priority is TaskPriority.HIGH
            ),
            overdue_count=sum(1 for t in tasks if t.is_overdue(now)),
            assigned_users_count=len(
                {t.assignee_id for t in tasks if t.assignee_id is not None}
            ),
        )

    def user_statistics(
        self, user_id: UUID, now: Optional[datetime] = None
    ) -> UserStatistics:
        if not self._store.user_exists(user_id):
            raise NotFoundError("User", user_id)

        now = as_utc(now) or self._clock()
        board_ids = self._store.list_member_board_ids(user_id)
        tasks = (
            self._store.list_tasks_assigned_to(user_id, board_ids) if board_ids else []
        )

        status_counts = empty_status_counts()
        for task in tasks:
            status_counts[task.status] += 1

        return UserStatistics(
            user_id=user_id,
            boards_count=len(board_ids),
            assigned_tasks_count=len(tasks),
            status_counts=status_counts,
            overdue_count=sum(1 for t in tasks if t.is_overdue(now)),
        )
