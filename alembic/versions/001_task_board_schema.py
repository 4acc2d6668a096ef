"""
============================================================
CRC CARD — 001_task_board_schema (Alembic migration)
============================================================
Responsibilities:
  - Create the task board schema from scratch (baseline).
  - Enforce lane density at the storage level: one task per
    (board_id, status, position).

Collaborators:
  - PostgreSQL 14+ (hashtextextended for lane advisory locks)
  - infrastructure.repositories.postgres.task_store (uses this schema)

Policy:
  - BASELINE migration. Downgrade drops every table.
  - Naming convention:
      pk_<table>, uq_<table>_<col>, ix_<table>_<col>,
      fk_<table>_<col>__<ref_table>, ck_<table>_<col>
  - uq_tasks_lane_position is DEFERRABLE INITIALLY DEFERRED: a
    position shift updates many rows in one statement and the
    intermediate states may collide until commit.
============================================================
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "001_task_board_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

_STATUSES = "'TO_DO','IN_PROGRESS','REVIEW','DONE'"
_PRIORITIES = "'LOW','MEDIUM','HIGH','URGENT'"
_ROLES = "'OWNER','ADMIN','MEMBER'"


def _created_at() -> sa.Column:
    return sa.Column(
        "created_at",
        sa.DateTime(timezone=True),
        server_default=sa.text("now()"),
        nullable=False,
    )


def upgrade() -> None:
    # =========================================================
    # 1) USERS (mirror of the identity service)
    # =========================================================
    op.create_table(
        "users",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("username", sa.String(100), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        _created_at(),
        sa.PrimaryKeyConstraint("id", name="pk_users"),
        sa.UniqueConstraint("username", name="uq_users_username"),
        sa.UniqueConstraint("email", name="uq_users_email"),
    )

    # =========================================================
    # 2) BOARDS + MEMBERSHIP
    # =========================================================
    op.create_table(
        "boards",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("owner_user_id", postgresql.UUID(as_uuid=True), nullable=False),
        _created_at(),
        sa.PrimaryKeyConstraint("id", name="pk_boards"),
        sa.ForeignKeyConstraint(
            ["owner_user_id"],
            ["users.id"],
            name="fk_boards_owner_user_id__users",
        ),
    )
    op.create_index("ix_boards_owner_user_id", "boards", ["owner_user_id"])

    op.create_table(
        "board_members",
        sa.Column("board_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column(
            "role",
            sa.String(20),
            nullable=False,
            server_default=sa.text("'MEMBER'"),
        ),
        sa.Column(
            "joined_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("board_id", "user_id", name="pk_board_members"),
        sa.ForeignKeyConstraint(
            ["board_id"],
            ["boards.id"],
            name="fk_board_members_board_id__boards",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["user_id"],
            ["users.id"],
            name="fk_board_members_user_id__users",
            ondelete="CASCADE",
        ),
        sa.CheckConstraint(f"role IN ({_ROLES})", name="ck_board_members_role"),
    )
    op.create_index("ix_board_members_user_id", "board_members", ["user_id"])

    # =========================================================
    # 3) TASKS
    # =========================================================
    op.create_table(
        "tasks",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("board_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("priority", sa.String(20), nullable=False),
        sa.Column("position", sa.Integer, nullable=False),
        sa.Column("due_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_by", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("assignee_id", postgresql.UUID(as_uuid=True), nullable=True),
        _created_at(),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id", name="pk_tasks"),
        sa.ForeignKeyConstraint(
            ["board_id"],
            ["boards.id"],
            name="fk_tasks_board_id__boards",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["created_by"],
            ["users.id"],
            name="fk_tasks_created_by__users",
        ),
        sa.ForeignKeyConstraint(
            ["assignee_id"],
            ["users.id"],
            name="fk_tasks_assignee_id__users",
            ondelete="SET NULL",
        ),
        sa.CheckConstraint(f"status IN ({_STATUSES})", name="ck_tasks_status"),
        sa.CheckConstraint(f"priority IN ({_PRIORITIES})", name="ck_tasks_priority"),
        sa.CheckConstraint("position >= 0", name="ck_tasks_position"),
    )
    op.execute(
        "ALTER TABLE tasks ADD CONSTRAINT uq_tasks_lane_position "
        "UNIQUE (board_id, status, position) DEFERRABLE INITIALLY DEFERRED"
    )
    op.create_index("ix_tasks_assignee_id", "tasks", ["assignee_id"])

    # =========================================================
    # 4) TASK HISTORY (append-only, survives task deletion)
    # =========================================================
    op.create_table(
        "task_history",
        sa.Column("sequence", sa.BigInteger, sa.Identity(), nullable=False),
        # No FK to tasks: DELETE entries must outlive the task row.
        sa.Column("task_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("board_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("actor_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("field_name", sa.String(50), nullable=False),
        sa.Column("old_value", sa.Text, nullable=True),
        sa.Column("new_value", sa.Text, nullable=True),
        sa.Column("change_kind", sa.String(20), nullable=False),
        sa.Column("changed_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("sequence", name="pk_task_history"),
        sa.CheckConstraint(
            "change_kind IN ('CREATE','UPDATE','DELETE')",
            name="ck_task_history_change_kind",
        ),
    )
    op.create_index(
        "ix_task_history_task_id_sequence", "task_history", ["task_id", "sequence"]
    )


def downgrade() -> None:
    op.drop_table("task_history")
    op.drop_table("tasks")
    op.drop_table("board_members")
    op.drop_table("boards")
    op.drop_table("users")
