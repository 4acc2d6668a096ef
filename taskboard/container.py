"""
===============================================================================
CRC CARD — taskboard/container.py (Composition Root / manual DI)
===============================================================================

Responsibilities:
  - Compose the task store and the application services (DIP).
  - Expose factories for FastAPI (Depends).
  - Keep singletons cached (lru_cache).
  - Centralize runtime decisions based on Settings.

Collaborators:
  - crosscutting.config.get_settings
  - domain.repositories.TaskStore (port)
  - infrastructure.repositories.* (implementations)
  - application.* (services)

Notes:
  - No business logic here.
  - No FastAPI imports here (factories only).
===============================================================================
"""

from __future__ import annotations

from functools import lru_cache

from .application import (
    BoardAccess,
    BoardProvisioner,
    BoardStatisticsAggregator,
    TaskMutationCoordinator,
    TaskQueries,
)
from .crosscutting.config import get_settings
from .domain.repositories import TaskStore
from .infrastructure.repositories import InMemoryTaskStore, PostgresTaskStore


def uses_in_memory_store() -> bool:
    """Test environments (and STORAGE_BACKEND=memory) run without PostgreSQL."""
    settings = get_settings()
    return settings.is_test() or settings.storage_backend == "memory"


@lru_cache(maxsize=1)
def get_task_store() -> TaskStore:
    settings = get_settings()
    if uses_in_memory_store():
        return InMemoryTaskStore(
            lock_timeout_seconds=settings.lane_lock_timeout_seconds
        )
    return PostgresTaskStore(lock_timeout_seconds=settings.lane_lock_timeout_seconds)


@lru_cache(maxsize=1)
def get_task_mutation_coordinator() -> TaskMutationCoordinator:
    settings = get_settings()
    return TaskMutationCoordinator(
        get_task_store(),
        max_title_chars=settings.max_title_chars,
        max_description_chars=settings.max_description_chars,
    )


@lru_cache(maxsize=1)
def get_task_queries() -> TaskQueries:
    return TaskQueries(get_task_store())


@lru_cache(maxsize=1)
def get_board_statistics_aggregator() -> BoardStatisticsAggregator:
    return BoardStatisticsAggregator(get_task_store())


@lru_cache(maxsize=1)
def get_board_access() -> BoardAccess:
    return BoardAccess(get_task_store())


@lru_cache(maxsize=1)
def get_board_provisioner() -> BoardProvisioner:
    return BoardProvisioner(get_task_store())


def reset_container() -> None:
    """Drop every cached singleton (tests, settings reload)."""
    for factory in (
        get_task_store,
        get_task_mutation_coordinator,
        get_task_queries,
        get_board_statistics_aggregator,
        get_board_provisioner,
        get_board_access,
    ):
        factory.cache_clear()
