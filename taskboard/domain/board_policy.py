"""
===============================================================================
CRC CARD — domain/board_policy.py
===============================================================================

Module:
    Board access policy

Responsibilities:
    - Decide, from a membership role alone, what an actor may do on a board.
    - Stay pure: no storage, no HTTP (BoardAccess fetches the role).

Rules:
    - Any member (OWNER, ADMIN, MEMBER) reads and mutates the board's tasks.
    - Only OWNER and ADMIN add members.
    - Nobody grants OWNER; it is assigned when the board is created.
===============================================================================
"""

from __future__ import annotations

from typing import Optional

from .entities import MemberRole

_MANAGER_ROLES = frozenset({MemberRole.OWNER, MemberRole.ADMIN})


def can_work_on_board(role: Optional[MemberRole]) -> bool:
    return role is not None


def can_manage_members(role: Optional[MemberRole]) -> bool:
    return role in _MANAGER_ROLES


def can_grant_role(role: MemberRole) -> bool:
    return role is not MemberRole.OWNER
