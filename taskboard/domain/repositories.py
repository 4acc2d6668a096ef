"""
CRC — domain/repositories.py

Name
- Task storage contracts (Protocols)

Responsibilities
- Define the persistence ports of the task board (read side + unit of work).
- Keep application code independent from PostgreSQL / in-memory storage.
- Make lane locking an explicit, declared part of every mutation.

Collaborators
- domain.entities: Task, Board, BoardMember, TaskStatus
- domain.audit: AuditEntry
- infrastructure.repositories: postgres / in_memory implementations

Constraints
- Pure interfaces only: no side effects, no SQL.
- Implementations MUST match method signatures exactly.

Notes
- A TaskUnitOfWork is a context manager: leaving the block without commit()
  rolls back every staged write and releases every lane lock.
- Read methods on TaskStore only ever observe committed state.
"""

from __future__ import annotations

from typing import Iterable, List, Optional, Protocol, Sequence
from uuid import UUID

from .audit import AuditEntry
from .entities import Board, BoardMember, Task, TaskStatus

Lane = tuple[UUID, TaskStatus]

_STATUS_ORDER = {status: index for index, status in enumerate(TaskStatus)}


def lane_sort_key(lane: Lane) -> tuple[str, int]:
    """Canonical lock order: board id text, then the lane order of the status."""
    board_id, status = lane
    return (str(board_id), _STATUS_ORDER[TaskStatus(status)])


class TaskUnitOfWork(Protocol):
    """
    R: One atomic mutation against task storage.

    Implementations must provide:
      - Lane locks acquired up front, in canonical order, held until the end
      - Reads that see the unit's own staged writes
      - All-or-nothing commit of tasks, positions and audit entries
    """

    def __enter__(self) -> "TaskUnitOfWork": ...

    def __exit__(self, exc_type, exc, tb) -> None: ...

    def lock_lanes(self, lanes: Iterable[Lane]) -> None:
        """
        R: Acquire exclusive locks on the given (board, status) lanes.

        Raises:
            ConflictError: lock not acquired within the configured timeout.
        """
        ...

    def get_board(self, board_id: UUID) -> Optional[Board]:
        """R: Load a board."""
        ...

    def user_exists(self, user_id: UUID) -> bool:
        """R: True if the identity service knows this user."""
        ...

    def get_task(self, task_id: UUID) -> Optional[Task]:
        """R: Load a task (None if absent or deleted)."""
        ...

    def list_lane(self, board_id: UUID, status: TaskStatus) -> List[Task]:
        """R: Tasks of a lane ordered by position."""
        ...

    def count_lane(self, board_id: UUID, status: TaskStatus) -> int:
        """R: Number of tasks in a lane."""
        ...

    def insert_task(self, task: Task) -> None:
        """R: Stage a new task."""
        ...

    def update_task(self, task: Task) -> None:
        """R: Stage the new snapshot of an existing task."""
        ...

    def delete_task(self, task_id: UUID) -> None:
        """R: Stage the removal of a task."""
        ...

    def shift_positions(
        self,
        board_id: UUID,
        status: TaskStatus,
        *,
        start: int,
        end: Optional[int] = None,
        delta: int,
    ) -> int:
        """
        R: Add `delta` to the position of every task of the lane whose position
        lies in [start, end] (end=None means unbounded).

        Returns:
            Number of tasks shifted.
        """
        ...

    def append_audit(self, entries: Sequence[AuditEntry]) -> List[AuditEntry]:
        """R: Stage audit entries; returns them with their sequence assigned."""
        ...

    def insert_board(self, board: Board) -> None:
        """R: Stage a new board."""
        ...

    def add_member(self, member: BoardMember) -> None:
        """R: Stage a board membership (idempotent per board/user)."""
        ...

    def commit(self) -> None:
        """R: Publish every staged write atomically and release the locks."""
        ...

    def rollback(self) -> None:
        """R: Discard every staged write and release the locks."""
        ...


class TaskStore(Protocol):
    """
    R: Committed-state reads + factory of units of work.
    """

    def unit_of_work(self) -> TaskUnitOfWork:
        """R: Start a new atomic mutation."""
        ...

    def get_task(self, task_id: UUID) -> Optional[Task]:
        ...

    def get_board(self, board_id: UUID) -> Optional[Board]:
        ...

    def user_exists(self, user_id: UUID) -> bool:
        ...

    def list_lane(self, board_id: UUID, status: TaskStatus) -> List[Task]:
        """R: Committed tasks of a lane ordered by position."""
        ...

    def list_board_tasks(self, board_id: UUID) -> List[Task]:
        """R: Every committed task of a board (status, position order)."""
        ...

    def list_history(self, task_id: UUID) -> List[AuditEntry]:
        """R: Audit entries of a task ordered by sequence (ascending)."""
        ...

    def list_member_board_ids(self, user_id: UUID) -> List[UUID]:
        """R: Boards the user belongs to."""
        ...

    def list_members(self, board_id: UUID) -> List[BoardMember]:
        ...

    def list_tasks_assigned_to(
        self, user_id: UUID, board_ids: Sequence[UUID]
    ) -> List[Task]:
        """R: Tasks assigned to the user, restricted to the given boards."""
        ...
