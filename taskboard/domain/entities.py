"""
===============================================================================
CRC CARD — domain/entities.py
===============================================================================

Module:
    Domain entities (Task, Board, BoardMember, User)

Responsibilities:
    - Define the core business structures (no infrastructure).
    - Provide the canonical status/priority/role vocabularies.
    - Keep tasks immutable: every change produces a new snapshot.

Collaborators:
    - domain.repositories: persist/load these entities.
    - application: builds and consumes them.
    - interfaces/api: serializes them to DTOs.

Principles:
    - No DB/FastAPI dependencies.
    - Data + minimal behavior.
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Optional
from uuid import UUID


def utcnow() -> datetime:
    """Current UTC time (timezone-aware)."""
    return datetime.now(timezone.utc)


def as_utc(value: datetime | None) -> datetime | None:
    """Naive datetimes are interpreted as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


# ---------------------------------------------------------------------------
# Vocabularies
# ---------------------------------------------------------------------------


class TaskStatus(str, Enum):
    """Lane a task lives in. Order of declaration is the board's lane order."""

    TO_DO = "TO_DO"
    IN_PROGRESS = "IN_PROGRESS"
    REVIEW = "REVIEW"
    DONE = "DONE"


class TaskPriority(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    URGENT = "URGENT"


class MemberRole(str, Enum):
    OWNER = "OWNER"
    ADMIN = "ADMIN"
    MEMBER = "MEMBER"


# ---------------------------------------------------------------------------
# Task
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Task:
    """
    A card on a board.

    Invariants:
      - position >= 0 and unique within (board_id, status)
      - id, board_id and created_by never change
    """

    id: UUID
    board_id: UUID
    title: str
    status: TaskStatus
    priority: TaskPriority
    position: int
    created_by: UUID
    created_at: datetime
    updated_at: datetime
    description: Optional[str] = None
    due_date: Optional[datetime] = None
    assignee_id: Optional[UUID] = None

    @property
    def lane(self) -> tuple[UUID, TaskStatus]:
        return (self.board_id, self.status)

    def is_overdue(self, now: datetime) -> bool:
        """Past due and not finished."""
        return (
            self.due_date is not None
            and self.due_date < now
            and self.status is not TaskStatus.DONE
        )

    def with_changes(self, **changes) -> "Task":
        return replace(self, **changes)


# ---------------------------------------------------------------------------
# Board / membership / user
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Board:
    id: UUID
    name: str
    owner_user_id: UUID
    description: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class BoardMember:
    board_id: UUID
    user_id: UUID
    role: MemberRole = MemberRole.MEMBER
    joined_at: Optional[datetime] = None


@dataclass(frozen=True)
class User:
    """Owned by the identity service. The core only checks existence."""

    id: UUID
    username: str
    email: str
