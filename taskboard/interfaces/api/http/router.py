"""
===============================================================================
CRC CARD — router.py (root router / composition)
===============================================================================

Responsibilities:
  - Define the root APIRouter included by FastAPI under "/v1".
  - Attach the RFC7807 error responses to OpenAPI.
  - Compose the feature routers (boards, tasks).
===============================================================================
"""

from __future__ import annotations

from fastapi import APIRouter

from ....crosscutting.error_responses import OPENAPI_ERROR_RESPONSES
from .routers.boards import router as boards_router
from .routers.tasks import router as tasks_router


def build_router() -> APIRouter:
    """Root v1 router (a factory keeps imports free of side effects)."""
    api_router = APIRouter(responses=OPENAPI_ERROR_RESPONSES)
    api_router.include_router(boards_router)
    api_router.include_router(tasks_router)
    return api_router


router = build_router()

__all__ = ["router", "build_router"]
