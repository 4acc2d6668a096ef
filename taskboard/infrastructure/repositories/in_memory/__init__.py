"""
In-memory repository implementations.

For tests and local development. NOT FOR PRODUCTION.
Data is lost on process restart.
"""

from .task_store import InMemoryTaskStore, InMemoryTaskUnitOfWork

__all__ = ["InMemoryTaskStore", "InMemoryTaskUnitOfWork"]
