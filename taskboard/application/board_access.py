"""
===============================================================================
BOARD ACCESS (membership resolution)
===============================================================================

Business Goal:
    Every board- or task-scoped call is made on behalf of an actor. Before the
    mutation pipeline or a read runs, resolve which board the call touches and
    check the actor's membership there, in one place for every route.

-------------------------------------------------------------------------------
CRC CARD (Class-Responsibility-Collaborator)
-------------------------------------------------------------------------------
Class:
    BoardAccess

Responsibilities:
    - Board scope: board must exist (404), actor must be a member (403).
    - Task scope: find the task's board, from the live task or, for a deleted
      task, from its history; then apply the board scope.
    - Member management: only OWNER and ADMIN members.
    - User statistics: visible to the user and to anyone sharing a board.

Collaborators:
    - TaskStore: committed reads (get_board, list_members, get_task, ...)
    - domain.board_policy: role rules

Notes:
    - Checks run on committed state outside the mutation's unit of work.
      A task never changes board, so the resolved board stays valid.
===============================================================================
"""

from __future__ import annotations

from typing import Optional
from uuid import UUID

from ..crosscutting.exceptions import AccessDeniedError, NotFoundError
from ..crosscutting.logger import logger
from ..domain.board_policy import can_manage_members, can_work_on_board
from ..domain.entities import Board, MemberRole
from ..domain.repositories import TaskStore


class BoardAccess:
    def __init__(self, store: TaskStore) -> None:
        self._store = store

    def member_role(self, board_id: UUID, user_id: UUID) -> Optional[MemberRole]:
        for member in self._store.list_members(board_id):
            if member.user_id == user_id:
                return member.role
        return None

    def require_member(self, board_id: UUID, actor_id: UUID) -> Board:
        board = self._store.get_board(board_id)
        if board is None:
            raise NotFoundError("Board", board_id)
        if not can_work_on_board(self.member_role(board_id, actor_id)):
            self._deny("board access denied", board_id, actor_id)
        return board

    def require_task_member(self, task_id: UUID, actor_id: UUID) -> Board:
        """Board of `task_id` once the actor is known to be a member of it."""
        task = self._store.get_task(task_id)
        if task is not None:
            board_id = task.board_id
        else:
            history = self._store.list_history(task_id)
            if not history:
                raise NotFoundError("Task", task_id)
            board_id = history[0].board_id
        return self.require_member(board_id, actor_id)

    def require_member_manager(self, board_id: UUID, actor_id: UUID) -> Board:
        board = self.require_member(board_id, actor_id)
        if not can_manage_members(self.member_role(board_id, actor_id)):
            self._deny("only board owners and admins add members", board_id, actor_id)
        return board

    def require_user_visible(self, user_id: UUID, actor_id: UUID) -> None:
        if user_id == actor_id:
            return
        if not self._store.user_exists(user_id):
            raise NotFoundError("User", user_id)
        shared = set(self._store.list_member_board_ids(user_id)) & set(
            self._store.list_member_board_ids(actor_id)
        )
        if not shared:
            raise AccessDeniedError("user shares no board with the caller")

    @staticmethod
    def _deny(message: str, board_id: UUID, actor_id: UUID) -> None:
        logger.info(
            "board access denied",
            extra={"board_id": str(board_id), "actor_id": str(actor_id)},
        )
        raise AccessDeniedError(message)
