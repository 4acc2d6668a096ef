# taskboard/crosscutting/middleware.py
"""
===============================================================================
MODULE: RequestContextMiddleware
===============================================================================

Per request:
  1. Take X-Request-Id from the client (if sane) or mint a UUID4
  2. Publish request_id/method/path to taskboard/context.py
  3. Echo X-Request-Id on the response
  4. Emit one access log line (skipped for /healthz) and reset the context
===============================================================================
"""

from __future__ import annotations

import time
import uuid
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from ..context import clear_context, set_request_context
from .logger import logger

REQUEST_ID_HEADER = "X-Request-Id"
MAX_REQUEST_ID_LENGTH = 128
UNLOGGED_PATHS = frozenset({"/healthz"})


def _request_id_for(request: Request) -> str:
    supplied = (request.headers.get(REQUEST_ID_HEADER) or "").strip()
    if supplied and len(supplied) <= MAX_REQUEST_ID_LENGTH:
        return supplied
    return str(uuid.uuid4())


class RequestContextMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = _request_id_for(request)
        request.state.request_id = request_id
        set_request_context(
            request_id=request_id, method=request.method, path=request.url.path
        )

        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            logger.exception(
                "request failed", extra={"latency_ms": _elapsed_ms(started)}
            )
            clear_context()
            raise

        response.headers[REQUEST_ID_HEADER] = request_id
        if request.url.path not in UNLOGGED_PATHS:
            logger.info(
                "request completed",
                extra={
                    "status_code": response.status_code,
                    "latency_ms": _elapsed_ms(started),
                },
            )
        clear_context()
        return response


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)
