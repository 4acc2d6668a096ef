"""
===============================================================================
CRC CARD — domain/__init__.py
===============================================================================

Module:
    Domain layer exports (public domain API)

Responsibilities:
    - Centralize exports for clean imports in application/interfaces.
    - Keep the domain "surface area" stable.

Rules:
    - Only re-exports domain contracts/entities.
    - No infrastructure imports here.
===============================================================================
"""

from .audit import TASK_FIELD, AuditEntry, ChangeKind
from .entities import (
    Board,
    BoardMember,
    MemberRole,
    Task,
    TaskPriority,
    TaskStatus,
    User,
)
from .repositories import Lane, TaskStore, TaskUnitOfWork
from .statistics import BoardStatistics, UserStatistics

__all__ = [
    # Entities
    "Board",
    "BoardMember",
    "MemberRole",
    "Task",
    "TaskPriority",
    "TaskStatus",
    "User",
    # Audit
    "AuditEntry",
    "ChangeKind",
    "TASK_FIELD",
    # Statistics
    "BoardStatistics",
    "UserStatistics",
    # Ports
    "Lane",
    "TaskStore",
    "TaskUnitOfWork",
]
