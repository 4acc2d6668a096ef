"""
===============================================================================
CRC CARD — domain/audit.py
===============================================================================

Module:
    Task change audit model (domain)

Responsibilities:
    - Define the immutable AuditEntry written for every task mutation.
    - Keep the audit contract independent from storage.

Collaborators:
    - application.change_recorder: builds entries.
    - domain.repositories.TaskUnitOfWork: appends them.

Notes:
    - Append-only: never edited nor deleted, survives task deletion.
    - `sequence` is assigned by storage and totally orders entries.
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from uuid import UUID


class ChangeKind(str, Enum):
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


# Field name used for whole-task CREATE/DELETE entries.
TASK_FIELD = "task"


@dataclass(frozen=True, slots=True)
class AuditEntry:
    """One field-level change of one task."""

    task_id: UUID
    board_id: UUID
    actor_id: UUID
    field_name: str
    old_value: str | None
    new_value: str | None
    change_kind: ChangeKind
    changed_at: datetime
    sequence: int | None = None
