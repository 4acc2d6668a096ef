"""
===============================================================================
USE CASE: Board provisioning
===============================================================================

Business Goal:
    Create boards and memberships. The board owner always becomes an OWNER
    member of the board, in the same transaction as the board itself.

-------------------------------------------------------------------------------
CRC CARD (Class-Responsibility-Collaborator)
-------------------------------------------------------------------------------
Class:
    BoardProvisioner

Responsibilities:
    - Validate board name / owner.
    - Insert the board and run the post-create hooks in one unit of work.
    - Add members to an existing board (any role but OWNER).

Collaborators:
    - TaskStore / TaskUnitOfWork: insert_board / add_member
    - add_owner_membership: default post-create hook

Notes:
    - Lives outside the task mutation pipeline: no lane is locked here.
===============================================================================
"""

from __future__ import annotations

from datetime import datetime
from typing import Callable, Optional, Sequence
from uuid import UUID, uuid4

from ..crosscutting.exceptions import NotFoundError, ValidationError
from ..crosscutting.logger import logger
from ..domain.board_policy import can_grant_role
from ..domain.entities import Board, BoardMember, MemberRole, utcnow
from ..domain.repositories import TaskStore, TaskUnitOfWork

BoardHook = Callable[[TaskUnitOfWork, Board], None]

MAX_BOARD_NAME_CHARS = 100


def add_owner_membership(uow: TaskUnitOfWork, board: Board) -> None:
    """Post-create hook: the owner joins the board as OWNER."""
    uow.add_member(
        BoardMember(
            board_id=board.id,
            user_id=board.owner_user_id,
            role=MemberRole.OWNER,
            joined_at=board.created_at,
        )
    )


class BoardProvisioner:
    def __init__(
        self,
        store: TaskStore,
        *,
        hooks: Optional[Sequence[BoardHook]] = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._store = store
        self._hooks: tuple[BoardHook, ...] = (
            tuple(hooks) if hooks is not None else (add_owner_membership,)
        )
        self._clock = clock

    def create_board(
        self, name: str, owner_user_id: UUID, description: Optional[str] = None
    ) -> Board:
        normalized = (name or "").strip()
        if not normalized:
            raise ValidationError("board name is required", field="name")
        if len(normalized) > MAX_BOARD_NAME_CHARS:
            raise ValidationError(
                f"board name exceeds {MAX_BOARD_NAME_CHARS} characters", field="name"
            )

        board = Board(
            id=uuid4(),
            name=normalized,
            owner_user_id=owner_user_id,
            description=description,
            created_at=self._clock(),
        )
        with self._store.unit_of_work() as uow:
            if not uow.user_exists(owner_user_id):
                raise ValidationError(
                    f"Owner '{owner_user_id}' does not exist", field="owner_user_id"
                )
            uow.insert_board(board)
            for hook in self._hooks:
                hook(uow, board)
            uow.commit()

        logger.info(
            "board created",
            extra={"board_id": str(board.id), "owner_user_id": str(owner_user_id)},
        )
        return board

    def add_member(
        self, board_id: UUID, user_id: UUID, role: MemberRole = MemberRole.MEMBER
    ) -> BoardMember:
        try:
            role = MemberRole(role)
        except ValueError as exc:
            raise ValidationError(f"unknown role {role!r}", field="role") from exc
        if not can_grant_role(role):
            raise ValidationError("the OWNER role cannot be granted", field="role")
        member = BoardMember(
            board_id=board_id,
            user_id=user_id,
            role=role,
            joined_at=self._clock(),
        )
        with self._store.unit_of_work() as uow:
            if uow.get_board(board_id) is None:
                raise NotFoundError("Board", board_id)
            if not uow.user_exists(user_id):
                raise ValidationError(
                    f"User '{user_id}' does not exist", field="user_id"
                )
            uow.add_member(member)
            uow.commit()

        logger.info(
            "board member added",
            extra={
                "board_id": str(board_id),
                "user_id": str(user_id),
                "role": member.role.value,
            },
        )
        return member
