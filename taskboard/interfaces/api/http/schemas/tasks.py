"""
===============================================================================
CRC CARD — schemas/tasks.py
===============================================================================

Module:
    HTTP schemas for tasks, lanes and task history

Responsibilities:
    - Request/response DTOs for the task endpoints.
    - Shape validation only; business limits (title length, blank titles,
      lane bounds) are enforced by the core so every caller gets them.
    - PATCH keeps "absent" apart from "null" through model_fields_set.

Collaborators:
    - domain.entities (TaskStatus, TaskPriority, Task)
    - domain.audit (AuditEntry, ChangeKind)
===============================================================================
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from taskboard.domain.audit import AuditEntry, ChangeKind
from taskboard.domain.entities import Task, TaskPriority, TaskStatus


# -----------------------------------------------------------------------------
# Requests
# -----------------------------------------------------------------------------
class CreateTaskReq(BaseModel):
    """Request to create a task on a board."""

    model_config = ConfigDict(extra="forbid")

    title: str = Field(..., description="Task title (trimmed, non-blank)")
    description: str | None = Field(default=None)
    status: TaskStatus = Field(default=TaskStatus.TO_DO, description="Initial lane")
    priority: TaskPriority = Field(default=TaskPriority.MEDIUM)
    due_date: datetime | None = Field(
        default=None, description="Naive values are read as UTC"
    )
    assignee_id: UUID | None = Field(default=None)


class UpdateTaskReq(BaseModel):
    """
    Partial update. Omitted fields are untouched; explicit null clears
    description, due_date or assignee_id.
    """

    model_config = ConfigDict(extra="forbid")

    title: str | None = None
    description: str | None = None
    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    due_date: datetime | None = None
    assignee_id: UUID | None = None


class ReorderTaskReq(BaseModel):
    """Move a task inside its lane."""

    target_position: int = Field(..., ge=0, description="0-based slot in the lane")


# -----------------------------------------------------------------------------
# Responses
# -----------------------------------------------------------------------------
class TaskRes(BaseModel):
    id: UUID
    board_id: UUID
    title: str
    description: str | None = None
    status: TaskStatus
    priority: TaskPriority
    position: int
    due_date: datetime | None = None
    created_by: UUID
    assignee_id: UUID | None = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_task(cls, task: Task) -> "TaskRes":
        return cls(
            id=task.id,
            board_id=task.board_id,
            title=task.title,
            description=task.description,
            status=task.status,
            priority=task.priority,
            position=task.position,
            due_date=task.due_date,
            created_by=task.created_by,
            assignee_id=task.assignee_id,
            created_at=task.created_at,
            updated_at=task.updated_at,
        )


class LaneRes(BaseModel):
    board_id: UUID
    status: TaskStatus
    tasks: list[TaskRes]


class BoardLanesRes(BaseModel):
    board_id: UUID
    lanes: list[LaneRes]


class AuditEntryRes(BaseModel):
    sequence: int | None = None
    task_id: UUID
    board_id: UUID
    actor_id: UUID
    field_name: str
    old_value: str | None = None
    new_value: str | None = None
    change_kind: ChangeKind
    changed_at: datetime

    @classmethod
    def from_entry(cls, entry: AuditEntry) -> "AuditEntryRes":
        return cls(
            sequence=entry.sequence,
            task_id=entry.task_id,
            board_id=entry.board_id,
            actor_id=entry.actor_id,
            field_name=entry.field_name,
            old_value=entry.old_value,
            new_value=entry.new_value,
            change_kind=entry.change_kind,
            changed_at=entry.changed_at,
        )


class TaskHistoryRes(BaseModel):
    task_id: UUID
    entries: list[AuditEntryRes]
