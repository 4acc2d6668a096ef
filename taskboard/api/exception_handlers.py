"""
===============================================================================
CRC CARD — taskboard/api/exception_handlers.py (centralized exception mapping)
===============================================================================

Responsibilities:
  - Translate core errors into RFC7807 HTTP responses.
  - Log errors with request_id + error_id.
  - Never leak internals on untyped errors.

Mapping:
  ValidationError   -> 422 VALIDATION_ERROR
  AccessDeniedError -> 403 FORBIDDEN
  NotFoundError     -> 404 NOT_FOUND
  ConflictError     -> 409 CONFLICT (Retry-After: 1)
  StorageError      -> 503 DATABASE_ERROR
  TaskBoardError    -> 500 INTERNAL_ERROR

Collaborators:
  - crosscutting.error_responses: AppHTTPException, ErrorCode, app_exception_handler
  - crosscutting.exceptions: TaskBoardError and subclasses
===============================================================================
"""

from __future__ import annotations

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ..crosscutting.config import get_settings
from ..crosscutting.error_responses import (
    AppHTTPException,
    ErrorCode,
    app_exception_handler,
)
from ..crosscutting.exceptions import (
    AccessDeniedError,
    ConflictError,
    NotFoundError,
    StorageError,
    TaskBoardError,
    ValidationError,
)
from ..crosscutting.logger import logger


def _request_id_from(request: Request) -> str | None:
    return getattr(getattr(request, "state", None), "request_id", None)


async def _handle_core_error(
    request: Request,
    *,
    exc: TaskBoardError,
    code: ErrorCode,
    status_code: int,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    request_id = _request_id_from(request)

    log = logger.error if status_code >= 500 else logger.info
    log(
        "core error",
        extra={
            "code": code.value,
            "error_id": exc.error_id,
            "reason": exc.message,
            "request_id": request_id,
        },
    )

    errors: list[dict] = [{"error_id": exc.error_id}]
    field = getattr(exc, "field", None)
    if field:
        errors.insert(0, {"field": field, "msg": exc.message})

    app_exc = AppHTTPException(
        status_code, code, exc.message, errors=errors, headers=headers
    )
    return await app_exception_handler(request, app_exc)


async def validation_error_handler(
    request: Request, exc: ValidationError
) -> JSONResponse:
    return await _handle_core_error(
        request, exc=exc, code=ErrorCode.VALIDATION_ERROR, status_code=422
    )


async def access_denied_handler(
    request: Request, exc: AccessDeniedError
) -> JSONResponse:
    return await _handle_core_error(
        request, exc=exc, code=ErrorCode.FORBIDDEN, status_code=403
    )


async def not_found_error_handler(request: Request, exc: NotFoundError) -> JSONResponse:
    return await _handle_core_error(
        request, exc=exc, code=ErrorCode.NOT_FOUND, status_code=404
    )


async def conflict_error_handler(request: Request, exc: ConflictError) -> JSONResponse:
    return await _handle_core_error(
        request,
        exc=exc,
        code=ErrorCode.CONFLICT,
        status_code=409,
        headers={"Retry-After": "1"},
    )


async def storage_error_handler(request: Request, exc: StorageError) -> JSONResponse:
    return await _handle_core_error(
        request, exc=exc, code=ErrorCode.DATABASE_ERROR, status_code=503
    )


async def taskboard_error_handler(request: Request, exc: TaskBoardError) -> JSONResponse:
    return await _handle_core_error(
        request, exc=exc, code=ErrorCode.INTERNAL_ERROR, status_code=500
    )


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Pydantic/FastAPI request validation -> RFC7807 422."""
    errors = [
        {
            "field": ".".join(str(part) for part in err.get("loc", ())),
            "msg": err.get("msg", ""),
        }
        for err in exc.errors()
    ]
    app_exc = AppHTTPException(
        status_code=422,
        code=ErrorCode.VALIDATION_ERROR,
        detail="Request validation failed",
        errors=errors,
    )
    return await app_exception_handler(request, app_exc)


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Untyped errors: full log, generic response."""
    request_id = _request_id_from(request)

    logger.error(
        "unhandled exception",
        exc_info=True,
        extra={"request_id": request_id, "error": str(exc)},
    )

    detail = str(exc) if not get_settings().is_production() else "Internal error."
    app_exc = AppHTTPException(
        status_code=500,
        code=ErrorCode.INTERNAL_ERROR,
        detail=detail,
    )
    return await app_exception_handler(request, app_exc)


def register_exception_handlers(app) -> None:
    """
    Register handlers on the FastAPI app.

    The generic Exception handler goes last as the fallback.
    """
    app.add_exception_handler(ValidationError, validation_error_handler)
    app.add_exception_handler(AccessDeniedError, access_denied_handler)
    app.add_exception_handler(NotFoundError, not_found_error_handler)
    app.add_exception_handler(ConflictError, conflict_error_handler)
    app.add_exception_handler(StorageError, storage_error_handler)
    app.add_exception_handler(TaskBoardError, taskboard_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(AppHTTPException, app_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)


__all__ = ["register_exception_handlers"]
