"""
===============================================================================
CRC CARD — dependencies.py (route guards)
===============================================================================

Responsibilities:
  - Turn "authenticated actor" into "actor allowed on this board" for every
    board- and task-scoped route, before the handler body runs.
  - Read the scope from the path (`board_id` / `task_id` / `user_id`).

Collaborators:
  - identity.auth.require_actor (401)
  - application.BoardAccess (404 unknown board/task/user, 403 non-member)
  - container.get_board_access
===============================================================================
"""

from __future__ import annotations

from uuid import UUID

from fastapi import Depends

from taskboard.application import BoardAccess
from taskboard.container import get_board_access
from taskboard.identity.auth import require_actor

_actor = require_actor()


def board_member(
    board_id: UUID,
    actor_id: UUID = Depends(_actor),
    access: BoardAccess = Depends(get_board_access),
) -> UUID:
    access.require_member(board_id, actor_id)
    return actor_id


def board_manager(
    board_id: UUID,
    actor_id: UUID = Depends(_actor),
    access: BoardAccess = Depends(get_board_access),
) -> UUID:
    access.require_member_manager(board_id, actor_id)
    return actor_id


def task_member(
    task_id: UUID,
    actor_id: UUID = Depends(_actor),
    access: BoardAccess = Depends(get_board_access),
) -> UUID:
    access.require_task_member(task_id, actor_id)
    return actor_id


def user_viewer(
    user_id: UUID,
    actor_id: UUID = Depends(_actor),
    access: BoardAccess = Depends(get_board_access),
) -> UUID:
    access.require_user_visible(user_id, actor_id)
    return actor_id
