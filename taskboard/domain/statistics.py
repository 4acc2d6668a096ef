"""Read-only rollups served by the board statistics aggregator."""

from __future__ import annotations

from dataclasses import dataclass, field
from uuid import UUID

from .entities import TaskStatus


def empty_status_counts() -> dict[TaskStatus, int]:
    """Every status present, zero-filled."""
    return {status: 0 for status in TaskStatus}


@dataclass(frozen=True)
class BoardStatistics:
    board_id: UUID
    board_name: str
    total_tasks: int = 0
    status_counts: dict[TaskStatus, int] = field(default_factory=empty_status_counts)
    urgent_count: int = 0
    high_priority_count: int = 0
    overdue_count: int = 0
    assigned_users_count: int = 0


@dataclass(frozen=True)
class UserStatistics:
    user_id: UUID
    boards_count: int = 0
    assigned_tasks_count: int = 0
    status_counts: dict[TaskStatus, int] = field(default_factory=empty_status_counts)
    overdue_count: int = 0
