"""
Name: Task Board ASGI application

Responsibilities:
  - Build the FastAPI app: error handlers, middleware, /v1 routes, /healthz
  - Own the process lifecycle: open the psycopg pool on startup (PostgreSQL
    store only) and close it on shutdown

Collaborators:
  - container.uses_in_memory_store: decides whether a pool is needed
  - crosscutting.middleware.RequestContextMiddleware: X-Request-Id + access log
  - interfaces.api.http.router: board, task and statistics endpoints

Notes:
  - Starlette runs the last added middleware first, so CORS answers
    preflights before the request context is set up
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pydantic import ValidationError as SettingsValidationError

from .. import __version__
from ..container import uses_in_memory_store
from ..crosscutting.config import get_settings
from ..crosscutting.logger import logger
from ..crosscutting.middleware import RequestContextMiddleware
from ..infrastructure.db.pool import close_pool, init_pool
from ..interfaces.api.http.router import router
from .exception_handlers import register_exception_handlers

DEFAULT_CORS_ORIGINS = ["http://localhost:3000"]


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    backend = "memory" if uses_in_memory_store() else "postgres"

    if backend == "postgres":
        init_pool(
            database_url=settings.database_url,
            min_size=settings.db_pool_min_size,
            max_size=settings.db_pool_max_size,
        )
    logger.info(
        "Task board API starting up",
        extra={
            "app_env": settings.app_env,
            "storage_backend": backend,
            "lane_lock_timeout_seconds": settings.lane_lock_timeout_seconds,
            "conflict_retry_attempts": settings.conflict_retry_attempts,
        },
    )
    try:
        yield
    finally:
        if backend == "postgres":
            close_pool()
        logger.info("Task board API shutting down")


def _cors_origins() -> list[str]:
    # Importing the app (OpenAPI export, tooling) must work without DATABASE_URL.
    try:
        return get_settings().get_allowed_origins_list()
    except SettingsValidationError:
        return DEFAULT_CORS_ORIGINS


app = FastAPI(
    title="Task Board API",
    version=__version__,
    lifespan=lifespan,
    openapi_tags=[
        {"name": "boards", "description": "Board provisioning and lanes"},
        {"name": "tasks", "description": "Task mutations and history"},
        {"name": "statistics", "description": "Board and user rollups"},
    ],
)
register_exception_handlers(app)

app.add_middleware(RequestContextMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins(),
    allow_credentials=False,
    allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "X-Request-Id"],
)
app.include_router(router, prefix="/v1")


@app.get("/healthz", tags=["health"])
def healthz():
    return {"ok": True}
