"""
===============================================================================
CRC CARD — taskboard/interfaces/api/http/routers/tasks.py
===============================================================================

Class/Module:
    Task Router

Responsibilities:
    - Expose the task mutation pipeline over HTTP (create / update / delete /
      reorder) plus task lookup and history.
    - Convert requests into core inputs (CreateTaskInput, TaskPatch).
    - Re-submit mutations that lost a lane race (ConflictError) under the
      configured retry policy.
    - Core errors travel to api/exception_handlers.py unchanged.

Collaborators:
    - taskboard.application (TaskMutationCoordinator, TaskQueries)
    - dependencies.board_member / task_member (actor must belong to the board)
    - taskboard.container (DI factories)
    - conflict_retry.call_with_conflict_retry
    - schemas.tasks (pydantic DTOs)

Patterns:
    - Controller / Router
    - Adapter (HTTP -> core)
===============================================================================
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends

from taskboard.application import (
    CreateTaskInput,
    TaskMutationCoordinator,
    TaskPatch,
    TaskQueries,
)
from taskboard.container import get_task_mutation_coordinator, get_task_queries

from ..conflict_retry import call_with_conflict_retry
from ..dependencies import board_member, task_member
from ..schemas.tasks import (
    AuditEntryRes,
    CreateTaskReq,
    ReorderTaskReq,
    TaskHistoryRes,
    TaskRes,
    UpdateTaskReq,
)

router = APIRouter()


@router.post(
    "/boards/{board_id}/tasks",
    response_model=TaskRes,
    status_code=201,
    tags=["tasks"],
)
def create_task(
    board_id: UUID,
    req: CreateTaskReq,
    coordinator: TaskMutationCoordinator = Depends(get_task_mutation_coordinator),
    actor_id: UUID = Depends(board_member),
):
    input_data = CreateTaskInput(
        board_id=board_id,
        title=req.title,
        description=req.description,
        status=req.status,
        priority=req.priority,
        due_date=req.due_date,
        assignee_id=req.assignee_id,
    )
    task = call_with_conflict_retry(coordinator.create, input_data, actor_id)
    return TaskRes.from_task(task)


@router.get("/tasks/{task_id}", response_model=TaskRes, tags=["tasks"])
def get_task(
    task_id: UUID,
    queries: TaskQueries = Depends(get_task_queries),
    _actor_id: UUID = Depends(task_member),
):
    return TaskRes.from_task(queries.get_task(task_id))


@router.patch("/tasks/{task_id}", response_model=TaskRes, tags=["tasks"])
def update_task(
    task_id: UUID,
    req: UpdateTaskReq,
    coordinator: TaskMutationCoordinator = Depends(get_task_mutation_coordinator),
    actor_id: UUID = Depends(task_member),
):
    # Only the fields present in the body; explicit nulls are kept.
    patch = TaskPatch(**req.model_dump(exclude_unset=True))
    task = call_with_conflict_retry(coordinator.update, task_id, patch, actor_id)
    return TaskRes.from_task(task)


@router.delete("/tasks/{task_id}", response_model=TaskRes, tags=["tasks"])
def delete_task(
    task_id: UUID,
    coordinator: TaskMutationCoordinator = Depends(get_task_mutation_coordinator),
    actor_id: UUID = Depends(task_member),
):
    removed = call_with_conflict_retry(coordinator.delete, task_id, actor_id)
    return TaskRes.from_task(removed)


@router.post("/tasks/{task_id}/reorder", response_model=TaskRes, tags=["tasks"])
def reorder_task(
    task_id: UUID,
    req: ReorderTaskReq,
    coordinator: TaskMutationCoordinator = Depends(get_task_mutation_coordinator),
    actor_id: UUID = Depends(task_member),
):
    task = call_with_conflict_retry(
        coordinator.reorder, task_id, req.target_position, actor_id
    )
    return TaskRes.from_task(task)


@router.get(
    "/tasks/{task_id}/history", response_model=TaskHistoryRes, tags=["tasks"]
)
def get_task_history(
    task_id: UUID,
    queries: TaskQueries = Depends(get_task_queries),
    _actor_id: UUID = Depends(task_member),
):
    entries = queries.history(task_id)
    return TaskHistoryRes(
        task_id=task_id, entries=[AuditEntryRes.from_entry(e) for e in entries]
    )
