"""
===============================================================================
COMPONENT: Change Recorder
===============================================================================

Business Goal:
    Turn a task mutation into field-level audit entries: who changed which
    field, from what, to what, and when.

-------------------------------------------------------------------------------
CRC CARD (Class-Responsibility-Collaborator)
-------------------------------------------------------------------------------
Class:
    ChangeRecorder

Responsibilities:
    - One CREATE entry per created task, one DELETE entry per deleted task.
    - One UPDATE entry per tracked field whose value changed.
    - Serialize values to canonical text (enums by value, dates ISO-8601,
      ids as UUID text).

Collaborators:
    - domain.audit.AuditEntry
    - TaskMutationCoordinator (writes the entries in its unit of work)

Constraints:
    - Builds entries only; never writes. A failed commit therefore leaves
      no entry behind.
    - position, created_at and updated_at are never tracked.
===============================================================================
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Callable, List
from uuid import UUID

from ..domain.audit import TASK_FIELD, AuditEntry, ChangeKind
from ..domain.entities import Task, as_utc, utcnow

# (audit field name, task attribute) in emission order.
TRACKED_FIELDS: tuple[tuple[str, str], ...] = (
    ("title", "title"),
    ("description", "description"),
    ("status", "status"),
    ("priority", "priority"),
    ("due_date", "due_date"),
    ("assigned_to", "assignee_id"),
)


def serialize_value(value: object) -> str | None:
    """Canonical text form of a tracked value (None stays None)."""
    if value is None:
        return None
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, datetime):
        return as_utc(value).isoformat()
    if isinstance(value, UUID):
        return str(value)
    return str(value)


class ChangeRecorder:
    def __init__(self, clock: Callable[[], datetime] = utcnow) -> None:
        self._clock = clock

    def record_create(self, task: Task, actor_id: UUID) -> AuditEntry:
        return self._entry(
            task,
            actor_id,
            field_name=TASK_FIELD,
            old_value=None,
            new_value=task.title,
            kind=ChangeKind.CREATE,
        )

    def record_update(self, old: Task, new: Task, actor_id: UUID) -> List[AuditEntry]:
        """
        One entry per tracked field that differs between the two snapshots.

        Values are compared by their canonical text, so None only equals None
        and datetimes compare as UTC instants.
        """
        entries: List[AuditEntry] = []
        changed_at = self._clock()
        for field_name, attr in TRACKED_FIELDS:
            old_value = serialize_value(getattr(old, attr))
            new_value = serialize_value(getattr(new, attr))
            if old_value == new_value:
                continue
            entries.append(
                self._entry(
                    new,
                    actor_id,
                    field_name=field_name,
                    old_value=old_value,
                    new_value=new_value,
                    kind=ChangeKind.UPDATE,
                    changed_at=changed_at,
                )
            )
        return entries

    def record_delete(self, task: Task, actor_id: UUID) -> AuditEntry:
        return self._entry(
            task,
            actor_id,
            field_name=TASK_FIELD,
            old_value=task.title,
            new_value=None,
            kind=ChangeKind.DELETE,
        )

    def _entry(
        self,
        task: Task,
        actor_id: UUID,
        *,
        field_name: str,
        old_value: str | None,
        new_value: str | None,
        kind: ChangeKind,
        changed_at: datetime | None = None,
    ) -> AuditEntry:
        return AuditEntry(
            task_id=task.id,
            board_id=task.board_id,
            actor_id=actor_id,
            field_name=field_name,
            old_value=old_value,
            new_value=new_value,
            change_kind=kind,
            changed_at=changed_at or self._clock(),
        )
