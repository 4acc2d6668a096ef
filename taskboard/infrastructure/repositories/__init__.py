"""
============================================================
CRC CARD — infrastructure/repositories/__init__.py
============================================================
Module: infrastructure.repositories (public export surface)

Responsibilities:
  - Expose the concrete task stores (Postgres and in-memory) from one place.

Collaborators:
  - postgres.task_store (raw SQL)
  - in_memory.task_store (tests / local dev)
============================================================
"""

from .in_memory import InMemoryTaskStore
from .postgres import PostgresTaskStore

__all__ = ["InMemoryTaskStore", "PostgresTaskStore"]
