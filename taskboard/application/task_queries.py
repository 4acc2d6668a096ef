"""
Read-side queries over committed task state.

Collaborators:
  - TaskStore (read methods only, never a unit of work)
"""

from __future__ import annotations

from typing import Dict, List
from uuid import UUID

from ..crosscutting.exceptions import NotFoundError
from ..domain.audit import AuditEntry
from ..domain.entities import Board, BoardMember, Task, TaskStatus
from ..domain.repositories import TaskStore


class TaskQueries:
    def __init__(self, store: TaskStore) -> None:
        self._store = store

    def get_task(self, task_id: UUID) -> Task:
        task = self._store.get_task(task_id)
        if task is None:
            raise NotFoundError("Task", task_id)
        return task

    def get_board(self, board_id: UUID) -> Board:
        board = self._store.get_board(board_id)
        if board is None:
            raise NotFoundError("Board", board_id)
        return board

    def lane(self, board_id: UUID, status: TaskStatus) -> List[Task]:
        """Tasks of one lane ordered by position."""
        self.get_board(board_id)
        return self._store.list_lane(board_id, TaskStatus(status))

    def board_lanes(self, board_id: UUID) -> Dict[TaskStatus, List[Task]]:
        """Every lane of the board (empty lanes included), each ordered by position."""
        self.get_board(board_id)
        lanes: Dict[TaskStatus, List[Task]] = {status: [] for status in TaskStatus}
        for task in self._store.list_board_tasks(board_id):
            lanes[task.status].append(task)
        for tasks in lanes.values():
            tasks.sort(key=lambda t: t.position)
        return lanes

    def members(self, board_id: UUID) -> List[BoardMember]:
        self.get_board(board_id)
        return self._store.list_members(board_id)

    def history(self, task_id: UUID) -> List[AuditEntry]:
        """
        Audit trail of a task, oldest first.

        Deleted tasks keep their history; only an id that never had any
        entry (and is not a live task) is unknown.
        """
        entries = self._store.list_history(task_id)
        if not entries and self._store.get_task(task_id) is None:
            raise NotFoundError("Task", task_id)
        return entries
