# taskboard/crosscutting/exceptions.py
"""
===============================================================================
MODULE: Task board error kinds
===============================================================================

The mutation pipeline fails in exactly four ways:

  ValidationError  bad input (fix the request)          -> 422
  NotFoundError    unknown/deleted task, board or user  -> 404
  ConflictError    lost a lane race, nothing persisted  -> 409, retryable
  StorageError     database trouble                     -> 503

AccessDeniedError (403) is raised before the pipeline runs, by BoardAccess,
when the actor is not a member of the board.

Each instance carries a stable `error_code`, a per-occurrence `error_id` for
log correlation, and a message that never contains secrets. The mapping to
HTTP lives in api/exception_handlers.py.
===============================================================================
"""

from __future__ import annotations

from uuid import uuid4


class TaskBoardError(Exception):
    error_code: str = "TASKBOARD_ERROR"
    retryable: bool = False

    def __init__(
        self,
        message: str,
        error_id: str | None = None,
        original_error: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_id = error_id or uuid4().hex
        self.original_error = original_error


class ValidationError(TaskBoardError):
    error_code = "VALIDATION_ERROR"

    def __init__(self, message: str, *, field: str | None = None, error_id: str | None = None):
        super().__init__(message, error_id=error_id)
        self.field = field


class NotFoundError(TaskBoardError):
    error_code = "NOT_FOUND"

    def __init__(self, resource: str, identifier: object, *, error_id: str | None = None):
        super().__init__(f"{resource} '{identifier}' not found", error_id=error_id)
        self.resource = resource
        self.identifier = str(identifier)


class ConflictError(TaskBoardError):
    """The lane changed under us; the transaction was rolled back."""

    error_code = "CONFLICT"
    retryable = True


class StorageError(TaskBoardError):
    error_code = "DATABASE_ERROR"


class AccessDeniedError(TaskBoardError):
    """The actor is authenticated but not allowed on this board."""

    error_code = "FORBIDDEN"
