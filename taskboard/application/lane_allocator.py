"""
===============================================================================
COMPONENT: Lane Position Allocator
===============================================================================

Business Goal:
    Keep every (board, status) lane dense: the positions of its n tasks are
    exactly {0, ..., n-1}, whatever sequence of creates, lane changes,
    reorders and deletes happened before.

-------------------------------------------------------------------------------
CRC CARD (Class-Responsibility-Collaborator)
-------------------------------------------------------------------------------
Class:
    LanePositionAllocator

Responsibilities:
    - Give a new task the tail slot of its lane.
    - Close the hole left by a task leaving a lane.
    - Move a task to the tail of another lane.
    - Open the slot for an in-lane move.

Collaborators:
    - TaskUnitOfWork: count_lane / shift_positions

Constraints:
    - Every method runs inside a unit of work that already holds the lock of
      each lane it touches. The allocator never locks on its own.
    - Stateless: one instance can be shared by every request.
===============================================================================
"""

from __future__ import annotations

from uuid import UUID

from ..domain.entities import TaskStatus
from ..domain.repositories import TaskUnitOfWork


class LanePositionAllocator:
    def allocate_on_insert(
        self, uow: TaskUnitOfWork, board_id: UUID, status: TaskStatus
    ) -> int:
        """Tail slot of the lane (its current size)."""
        return uow.count_lane(board_id, status)

    def close_gap(
        self,
        uow: TaskUnitOfWork,
        board_id: UUID,
        status: TaskStatus,
        removed_position: int,
    ) -> int:
        """
        Pull every task after `removed_position` one slot forward.

        Removing the last slot (or the only task) shifts nothing.

        Returns:
            Number of tasks shifted.
        """
        return uow.shift_positions(
            board_id, status, start=removed_position + 1, end=None, delta=-1
        )

    def relocate(
        self,
        uow: TaskUnitOfWork,
        board_id: UUID,
        new_status: TaskStatus,
        old_status: TaskStatus,
        old_position: int,
    ) -> int:
        """
        Position of a task moving from `old_status` to `new_status`.

        The old lane is compacted and the task lands at the tail of the new
        lane. Staying in the same lane keeps `old_position`.
        """
        if new_status == old_status:
            return old_position

        self.close_gap(uow, board_id, old_status, old_position)
        return self.allocate_on_insert(uow, board_id, new_status)

    def shift_within_lane(
        self,
        uow: TaskUnitOfWork,
        board_id: UUID,
        status: TaskStatus,
        old_position: int,
        target_position: int,
    ) -> int:
        """
        Make room for a task moving from `old_position` to `target_position`
        in the same lane. Tasks strictly between the two slots (plus the one
        at the target) move by one toward the vacated slot.

        Returns:
            Number of tasks shifted.
        """
        if target_position == old_position:
            return 0
        if target_position < old_position:
            return uow.shift_positions(
                board_id,
                status,
                start=target_position,
                end=old_position - 1,
                delta=1,
            )
        return uow.shift_positions(
            board_id,
            status,
            start=old_position + 1,
            end=target_position,
            delta=-1,
        )
