"""
PostgreSQL repository implementations (raw SQL, psycopg 3).
"""

from .task_store import PostgresTaskStore, PostgresTaskUnitOfWork

__all__ = ["PostgresTaskStore", "PostgresTaskUnitOfWork"]
