"""
Alembic environment for the task board schema.

The revisions are plain DDL (op.create_table / op.execute); there are no ORM
models, so autogenerate has nothing to compare against.

URL resolution: DATABASE_URL wins over alembic.ini, and the plain libpq
scheme is rewritten to SQLAlchemy's psycopg 3 dialect.
"""

import os
from logging.config import fileConfig

from alembic import context
from sqlalchemy import engine_from_config, pool

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

_LIBPQ_SCHEMES = ("postgresql://", "postgres://")


def database_url() -> str:
    url = os.environ.get("DATABASE_URL") or config.get_main_option("sqlalchemy.url")
    for scheme in _LIBPQ_SCHEMES:
        if url.startswith(scheme):
            return "postgresql+psycopg://" + url[len(scheme):]
    return url


if context.is_offline_mode():
    # SQL script output: `alembic upgrade head --sql`
    context.configure(
        url=database_url(),
        target_metadata=None,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()
else:
    section = config.get_section(config.config_ini_section) or {}
    section["sqlalchemy.url"] = database_url()
    engine = engine_from_config(section, prefix="sqlalchemy.", poolclass=pool.NullPool)
    with engine.connect() as connection:
        context.configure(connection=connection, target_metadata=None)
        with context.begin_transaction():
            context.run_migrations()
