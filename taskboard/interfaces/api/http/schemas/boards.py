"""
HTTP schemas for boards and statistics rollups.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from taskboard.domain.entities import Board, BoardMember, MemberRole, TaskStatus
from taskboard.domain.statistics import BoardStatistics, UserStatistics


class CreateBoardReq(BaseModel):
    name: str = Field(..., description="Board name")
    description: str | None = None


class BoardRes(BaseModel):
    id: UUID
    name: str
    owner_user_id: UUID
    description: str | None = None
    created_at: datetime | None = None

    @classmethod
    def from_board(cls, board: Board) -> "BoardRes":
        return cls(
            id=board.id,
            name=board.name,
            owner_user_id=board.owner_user_id,
            description=board.description,
            created_at=board.created_at,
        )


class AddMemberReq(BaseModel):
    user_id: UUID
    role: MemberRole = Field(
        default=MemberRole.MEMBER, description="ADMIN or MEMBER; OWNER is never granted"
    )


class BoardMemberRes(BaseModel):
    board_id: UUID
    user_id: UUID
    role: MemberRole
    joined_at: datetime | None = None

    @classmethod
    def from_member(cls, member: BoardMember) -> "BoardMemberRes":
        return cls(
            board_id=member.board_id,
            user_id=member.user_id,
            role=member.role,
            joined_at=member.joined_at,
        )


class BoardMembersRes(BaseModel):
    board_id: UUID
    members: list[BoardMemberRes]


class BoardStatisticsRes(BaseModel):
    board_id: UUID
    board_name: str
    total_tasks: int
    status_counts: dict[TaskStatus, int]
    urgent_count: int
    high_priority_count: int
    overdue_count: int
    assigned_users_count: int

    @classmethod
    def from_stats(cls, stats: BoardStatistics) -> "BoardStatisticsRes":
        return cls(
            board_id=stats.board_id,
            board_name=stats.board_name,
            total_tasks=stats.total_tasks,
            status_counts=dict(stats.status_counts),
            urgent_count=stats.urgent_count,
            high_priority_count=stats.high_priority_count,
            overdue_count=stats.overdue_count,
            assigned_users_count=stats.assigned_users_count,
        )


class UserStatisticsRes(BaseModel):
    user_id: UUID
    boards_count: int
    assigned_tasks_count: int
    status_counts: dict[TaskStatus, int]
    overdue_count: int

    @classmethod
    def from_stats(cls, stats: UserStatistics) -> "UserStatisticsRes":
        return cls(
            user_id=stats.user_id,
            boards_count=stats.boards_count,
            assigned_tasks_count=stats.assigned_tasks_count,
            status_counts=dict(stats.status_counts),
            overdue_count=stats.overdue_count,
        )
