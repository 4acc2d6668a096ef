"""
===============================================================================
CRC CARD — infrastructure/db/pool.py
===============================================================================

Component:
  Process-wide psycopg connection pool

Responsibilities:
  - Open it once at startup (api lifespan / integration conftest).
  - Hand it to the PostgreSQL task store.
  - Close it at shutdown; closing twice is harmless.
  - Give every new connection a UTC session TimeZone and the
    statement_timeout guardrail.

Collaborators:
  - psycopg_pool.ConnectionPool
  - crosscutting.config (db_statement_timeout_ms)
===============================================================================
"""

from __future__ import annotations

import threading
from typing import Optional

from psycopg_pool import ConnectionPool

from ...crosscutting.config import get_settings
from ...crosscutting.logger import logger
from .errors import PoolAlreadyInitializedError, PoolNotInitializedError


class _PoolHolder:
    def __init__(self) -> None:
        self.pool: Optional[ConnectionPool] = None
        self.lock = threading.Lock()


_holder = _PoolHolder()


def _configure_connection(conn) -> None:
    # timestamptz values come back in UTC, whatever the server default is
    conn.execute("SET TimeZone = 'UTC'")
    timeout_ms = int(get_settings().db_statement_timeout_ms)
    if timeout_ms > 0:
        conn.execute(f"SET statement_timeout = {timeout_ms}")
    conn.commit()


def init_pool(database_url: str, min_size: int, max_size: int) -> ConnectionPool:
    with _holder.lock:
        if _holder.pool is not None:
            raise PoolAlreadyInitializedError("init_pool() called twice.")
        _holder.pool = ConnectionPool(
            conninfo=database_url,
            min_size=min_size,
            max_size=max_size,
            configure=_configure_connection,
            open=True,
        )
    logger.info("DB pool opened", extra={"min_size": min_size, "max_size": max_size})
    return _holder.pool


def get_pool() -> ConnectionPool:
    pool = _holder.pool
    if pool is None:
        raise PoolNotInitializedError("DB pool is not open; call init_pool() first.")
    return pool


def close_pool() -> None:
    with _holder.lock:
        pool, _holder.pool = _holder.pool, None
    if pool is None:
        return
    pool.close()
    logger.info("DB pool closed")
