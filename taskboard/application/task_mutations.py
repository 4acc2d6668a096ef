"""
===============================================================================
COMPONENT: Task Mutation Coordinator
===============================================================================

Business Goal:
    Create, update, delete and reorder tasks so that, for every call, the
    task row, the lane positions and the audit entries change together or
    not at all, even when many callers mutate the same board concurrently.

Why (Context):
    - Lane order is shared state: two creates in the same lane must not get
      the same slot, and a delete must close its hole.
    - The audit trail is only trustworthy if it is written in the same
      transaction as the change it describes.

-------------------------------------------------------------------------------
CRC CARD (Class-Responsibility-Collaborator)
-------------------------------------------------------------------------------
Class:
    TaskMutationCoordinator

Responsibilities:
    - Validate mutation input (title, description, enums, patch shape).
    - Run load -> lock lanes -> re-read -> compute -> write -> record -> commit
      inside one unit of work.
    - Detect a task that changed lane between the optimistic read and the
      lock and abort with ConflictError.
    - Log every committed mutation.

Collaborators:
    - TaskStore / TaskUnitOfWork: storage + lane locks
    - LanePositionAllocator: positions
    - ChangeRecorder: audit entries

-------------------------------------------------------------------------------
INPUTS / OUTPUTS
-------------------------------------------------------------------------------
Inputs:
    - CreateTaskInput, TaskPatch (UNSET = "not provided", None = "clear")
    - actor_id: already authenticated user

Outputs:
    - Task snapshot after the mutation (the removed snapshot for delete)

Error Mapping:
    - ValidationError: malformed input, unknown creator/assignee,
      reorder target out of range
    - NotFoundError: unknown board, unknown or deleted task
    - ConflictError: lane lock timeout / lost race (retryable)
    - StorageError: persistence failure (never retried here)
===============================================================================
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, fields
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Iterator, Optional, Type, TypeVar
from uuid import UUID, uuid4

from ..crosscutting.exceptions import (
    ConflictError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from ..crosscutting.logger import logger
from ..domain.entities import Task, TaskPriority, TaskStatus, as_utc, utcnow
from ..domain.repositories import TaskStore, TaskUnitOfWork
from .change_recorder import ChangeRecorder
from .lane_allocator import LanePositionAllocator

E = TypeVar("E", bound=Enum)


class _Unset:
    """Marker for "field not provided" in a patch."""

    _instance: Optional["_Unset"] = None

    def __new__(cls) -> "_Unset":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Any = _Unset()


@dataclass(frozen=True)
class CreateTaskInput:
    board_id: UUID
    title: str
    description: Optional[str] = None
    status: TaskStatus = TaskStatus.TO_DO
    priority: TaskPriority = TaskPriority.MEDIUM
    due_date: Optional[datetime] = None
    assignee_id: Optional[UUID] = None


@dataclass(frozen=True)
class TaskPatch:
    """
    Partial update of a task.

    A field left as UNSET is untouched; a field set to None is cleared
    (only description, due_date and assignee_id can be cleared).
    """

    title: Any = UNSET
    description: Any = UNSET
    status: Any = UNSET
    priority: Any = UNSET
    due_date: Any = UNSET
    assignee_id: Any = UNSET

    def provided(self) -> dict[str, Any]:
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name) is not UNSET
        }


class TaskMutationCoordinator:
    def __init__(
        self,
        store: TaskStore,
        *,
        allocator: LanePositionAllocator | None = None,
        recorder: ChangeRecorder | None = None,
        max_title_chars: int = 200,
        max_description_chars: int = 10_000,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._store = store
        self._allocator = allocator or LanePositionAllocator()
        self._recorder = recorder or ChangeRecorder(clock=clock)
        self._max_title_chars = max_title_chars
        self._max_description_chars = max_description_chars
        self._clock = clock

    # =========================================================================
    # Commands
    # =========================================================================

    def create(self, data: CreateTaskInput, actor_id: UUID) -> Task:
        """Append a new task at the tail of its lane and record CREATE."""
        # ---------------------------------------------------------------------
        # 1) Validate input (no storage touched yet).
        # ---------------------------------------------------------------------
        title = self._validate_title(data.title)
        description = self._validate_description(data.description)
        due_date = _validate_due_date(data.due_date)
        status = _coerce_enum(TaskStatus, data.status, "status")
        priority = _coerce_enum(TaskPriority, data.priority, "priority")

        with self._mutation("create", board_id=data.board_id):
            with self._store.unit_of_work() as uow:
                # -------------------------------------------------------------
                # 2) Lock the destination lane, then check references.
                # -------------------------------------------------------------
                uow.lock_lanes([(data.board_id, status)])

                if uow.get_board(data.board_id) is None:
                    raise NotFoundError("Board", data.board_id)
                if not uow.user_exists(actor_id):
                    raise ValidationError(
                        f"Creator '{actor_id}' does not exist", field="created_by"
                    )
                self._validate_assignee(uow, data.assignee_id)

                # -------------------------------------------------------------
                # 3) Allocate, persist, record, commit.
                # -------------------------------------------------------------
                position = self._allocator.allocate_on_insert(
                    uow, data.board_id, status
                )
                now = self._clock()
                task = Task(
                    id=uuid4(),
                    board_id=data.board_id,
                    title=title,
                    description=description,
                    status=status,
                    priority=priority,
                    position=position,
                    due_date=due_date,
                    created_by=actor_id,
                    assignee_id=data.assignee_id,
                    created_at=now,
                    updated_at=now,
                )
                uow.insert_task(task)
                uow.append_audit([self._recorder.record_create(task, actor_id)])
                uow.commit()

        logger.info(
            "task created",
            extra={
                "task_id": str(task.id),
                "board_id": str(task.board_id),
                "status": task.status.value,
                "position": task.position,
                "audit_entries": 1,
            },
        )
        return task

    def update(self, task_id: UUID, patch: TaskPatch, actor_id: UUID) -> Task:
        """
        Apply a partial update. A status change moves the task to the tail of
        the new lane; any other change keeps its position.
        """
        changes = self._validate_patch(patch)

        with self._mutation("update", task_id=task_id):
            with self._store.unit_of_work() as uow:
                # -------------------------------------------------------------
                # 1) Optimistic read to learn which lanes are involved.
                # -------------------------------------------------------------
                seen = self._require_task(uow, task_id)
                new_status = changes.get("status", seen.status)

                # -------------------------------------------------------------
                # 2) Lock and re-read under the lock.
                # -------------------------------------------------------------
                uow.lock_lanes({seen.lane, (seen.board_id, new_status)})
                current = self._reread_locked(uow, seen)

                if "assignee_id" in changes:
                    self._validate_assignee(uow, changes["assignee_id"])

                # -------------------------------------------------------------
                # 3) Merge and diff. Nothing changed means nothing is written.
                # -------------------------------------------------------------
                merged = current.with_changes(**changes)
                entries = self._recorder.record_update(current, merged, actor_id)
                if not entries:
                    logger.info(
                        "task update is a no-op",
                        extra={"task_id": str(task_id)},
                    )
                    return current

                # -------------------------------------------------------------
                # 4) Reposition (only on lane change), persist, record, commit.
                # -------------------------------------------------------------
                position = self._allocator.relocate(
                    uow,
                    current.board_id,
                    merged.status,
                    current.status,
                    current.position,
                )
                updated = merged.with_changes(
                    position=position, updated_at=self._clock()
                )
                uow.update_task(updated)
                uow.append_audit(entries)
                uow.commit()

        logger.info(
            "task updated",
            extra={
                "task_id": str(updated.id),
                "board_id": str(updated.board_id),
                "status": updated.status.value,
                "position": updated.position,
                "audit_entries": len(entries),
                "fields": [e.field_name for e in entries],
            },
        )
        return updated

    def delete(self, task_id: UUID, actor_id: UUID) -> Task:
        """Remove a task, close its gap and record DELETE. Returns the removed snapshot."""
        with self._mutation("delete", task_id=task_id):
            with self._store.unit_of_work() as uow:
                seen = self._require_task(uow, task_id)
                uow.lock_lanes([seen.lane])
                current = self._reread_locked(uow, seen)

                uow.delete_task(current.id)
                self._allocator.close_gap(
                    uow, current.board_id, current.status, current.position
                )
                uow.append_audit([self._recorder.record_delete(current, actor_id)])
                uow.commit()

        logger.info(
            "task deleted",
            extra={
                "task_id": str(current.id),
                "board_id": str(current.board_id),
                "status": current.status.value,
                "position": current.position,
                "audit_entries": 1,
            },
        )
        return current

    def reorder(self, task_id: UUID, target_position: int, actor_id: UUID) -> Task:
        """Move a task inside its lane. Position is not audited."""
        if (
            isinstance(target_position, bool)
            or not isinstance(target_position, int)
            or target_position < 0
        ):
            raise ValidationError(
                "target_position must be a non-negative integer",
                field="target_position",
            )

        with self._mutation("reorder", task_id=task_id):
            with self._store.unit_of_work() as uow:
                seen = self._require_task(uow, task_id)
                uow.lock_lanes([seen.lane])
                current = self._reread_locked(uow, seen)

                lane_size = uow.count_lane(current.board_id, current.status)
                if target_position > lane_size - 1:
                    raise ValidationError(
                        f"target_position must be within [0, {lane_size - 1}]",
                        field="target_position",
                    )
                if target_position == current.position:
                    return current

                self._allocator.shift_within_lane(
                    uow,
                    current.board_id,
                    current.status,
                    current.position,
                    target_position,
                )
                updated = current.with_changes(
                    position=target_position, updated_at=self._clock()
                )
                uow.update_task(updated)
                uow.commit()

        logger.info(
            "task reordered",
            extra={
                "task_id": str(updated.id),
                "board_id": str(updated.board_id),
                "status": updated.status.value,
                "from_position": current.position,
                "position": updated.position,
            },
        )
        return updated

    # =========================================================================
    # Private helpers
    # =========================================================================

    @contextmanager
    def _mutation(self, operation: str, **ids: UUID) -> Iterator[None]:
        extra = {"operation": operation, **{k: str(v) for k, v in ids.items()}}
        try:
            yield
        except ConflictError as exc:
            logger.warning(
                "task mutation lost a lane race",
                extra={**extra, "error_id": exc.error_id, "reason": exc.message},
            )
            raise
        except StorageError as exc:
            logger.exception(
                "task mutation failed in storage",
                extra={**extra, "error_id": exc.error_id},
            )
            raise

    @staticmethod
    def _require_task(uow: TaskUnitOfWork, task_id: UUID) -> Task:
        task = uow.get_task(task_id)
        if task is None:
            raise NotFoundError("Task", task_id)
        return task

    def _reread_locked(self, uow: TaskUnitOfWork, seen: Task) -> Task:
        current = self._require_task(uow, seen.id)
        if current.lane != seen.lane:
            raise ConflictError(
                f"Task '{seen.id}' moved from {seen.status.value} to "
                f"{current.status.value} while waiting for the lane lock"
            )
        return current

    @staticmethod
    def _validate_assignee(uow: TaskUnitOfWork, assignee_id: UUID | None) -> None:
        if assignee_id is not None and not uow.user_exists(assignee_id):
            raise ValidationError(
                f"Assignee '{assignee_id}' does not exist", field="assignee_id"
            )

    def _validate_title(self, raw: Any) -> str:
        if raw is None or not isinstance(raw, str):
            raise ValidationError("title is required", field="title")
        title = raw.strip()
        if not title:
            raise ValidationError("title must not be blank", field="title")
        if len(title) > self._max_title_chars:
            raise ValidationError(
                f"title exceeds {self._max_title_chars} characters", field="title"
            )
        return title

    def _validate_description(self, raw: Any) -> Optional[str]:
        if raw is None:
            return None
        if not isinstance(raw, str):
            raise ValidationError("description must be text", field="description")
        if len(raw) > self._max_description_chars:
            raise ValidationError(
                f"description exceeds {self._max_description_chars} characters",
                field="description",
            )
        return raw

    def _validate_patch(self, patch: TaskPatch) -> dict[str, Any]:
        provided = patch.provided()
        if not provided:
            raise ValidationError("patch must provide at least one field")

        changes: dict[str, Any] = {}
        for name, value in provided.items():
            if name == "title":
                changes[name] = self._validate_title(value)
            elif name == "description":
                changes[name] = self._validate_description(value)
            elif name == "status":
                changes[name] = _coerce_enum(TaskStatus, value, name)
            elif name == "priority":
                changes[name] = _coerce_enum(TaskPriority, value, name)
            elif name == "due_date":
                changes[name] = _validate_due_date(value)
            else:
                changes[name] = value
        return changes


def _validate_due_date(raw: Any) -> Optional[datetime]:
    if raw is None:
        return None
    if not isinstance(raw, datetime):
        raise ValidationError("due_date must be a datetime", field="due_date")
    return as_utc(raw)


def _coerce_enum(enum_type: Type[E], value: Any, field_name: str) -> E:
    if value is None:
        raise ValidationError(f"{field_name} cannot be cleared", field=field_name)
    try:
        return enum_type(value)
    except ValueError as exc:
        allowed = ", ".join(m.value for m in enum_type)
        raise ValidationError(
            f"{field_name} must be one of: {allowed}", field=field_name
        ) from exc
