"""
===============================================================================
MODULE: Problem Details error bodies (RFC 7807)
===============================================================================

Every non-2xx answer of the task board API is `application/problem+json`:

    {"type": "about:blank/not_found", "title": "Not Found", "status": 404,
     "detail": "...", "code": "NOT_FOUND", "instance": "<url>",
     "errors": [{"field": "...", "msg": "..."}, {"request_id": "..."}]}

Clients branch on `code`; operators correlate on `request_id` / `error_id`.

-------------------------------------------------------------------------------
CRC (Component Card)
-------------------------------------------------------------------------------
Component:
  ErrorCode / ErrorDetail / AppHTTPException

Responsibilities:
  - Stable error code vocabulary
  - Problem Details payload + OpenAPI documentation of it
  - Render AppHTTPException as a response

Collaborators:
  - api/exception_handlers.py (core errors -> AppHTTPException)
  - identity/auth.py (401 with WWW-Authenticate)
===============================================================================
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

PROBLEM_JSON_MEDIA_TYPE = "application/problem+json"


class ErrorCode(str, Enum):
    VALIDATION_ERROR = "VALIDATION_ERROR"
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    DATABASE_ERROR = "DATABASE_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class ErrorDetail(BaseModel):
    """Problem Details body plus the `code` and `errors` extensions."""

    type: str = "about:blank"
    title: str
    status: int
    detail: str
    code: ErrorCode
    instance: str | None = None
    errors: list[dict[str, Any]] | None = None


class AppHTTPException(HTTPException):
    """HTTPException carrying an ErrorCode and optional per-field details."""

    def __init__(
        self,
        status_code: int,
        code: ErrorCode,
        detail: str,
        errors: list[dict[str, Any]] | None = None,
        headers: dict[str, str] | None = None,
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)
        self.code = code
        self.errors = errors


def unauthorized(detail: str = "Authentication required") -> AppHTTPException:
    return AppHTTPException(
        401, ErrorCode.UNAUTHORIZED, detail, headers={"WWW-Authenticate": "Bearer"}
    )


def _documented(description: str) -> dict[str, Any]:
    return {
        "description": description,
        "model": ErrorDetail,
        "content": {
            PROBLEM_JSON_MEDIA_TYPE: {
                "schema": {"$ref": "#/components/schemas/ErrorDetail"}
            }
        },
    }


# Attached to the /v1 router so every route documents the problem body.
OPENAPI_ERROR_RESPONSES = {
    str(status): _documented(text)
    for status, text in (
        (401, "Missing or invalid bearer token"),
        (403, "Caller is not allowed on this board"),
        (404, "Board, task or user not found"),
        (409, "Concurrent lane change, retry the request"),
        (422, "Invalid input"),
        (503, "Storage unavailable"),
    )
}
OPENAPI_ERROR_RESPONSES["default"] = _documented("Unexpected error")


async def app_exception_handler(
    request: Request, exc: AppHTTPException
) -> JSONResponse:
    """Render an AppHTTPException, appending the request id to `errors`."""
    errors = list(exc.errors or [])
    request_id = getattr(request.state, "request_id", None)
    if request_id and not any("request_id" in item for item in errors):
        errors.append({"request_id": request_id})

    body = ErrorDetail(
        type=f"about:blank/{exc.code.value.lower()}",
        title=exc.code.value.replace("_", " ").title(),
        status=exc.status_code,
        detail=str(exc.detail),
        code=exc.code,
        instance=str(request.url),
        errors=errors or None,
    )
    return JSONResponse(
        body.model_dump(mode="json", exclude_none=True),
        status_code=exc.status_code,
        headers=exc.headers,
        media_type=PROBLEM_JSON_MEDIA_TYPE,
    )
