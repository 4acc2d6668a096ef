"""
============================================================
CRC CARD — infrastructure/repositories/postgres/task_store.py
============================================================
Classes: PostgresTaskStore, PostgresTaskUnitOfWork

Responsibilities:
  - Persist boards, members, tasks and task_history in PostgreSQL.
  - One unit of work = one transaction on one pooled connection.
  - Lane locks = pg_advisory_xact_lock on a hash of "board:status", taken in
    canonical order and released by COMMIT/ROLLBACK.
  - Map driver errors to the core taxonomy:
      lock timeout / serialization / deadlock / unique violation -> ConflictError
      anything else -> StorageError

Collaborators:
  - psycopg_pool.ConnectionPool (injected or the global pool)
  - crosscutting.exceptions / crosscutting.logger

Constraints / Notes:
  - Queries are ALWAYS parameterized.
  - uq_tasks_lane_position is DEFERRABLE INITIALLY DEFERRED: positions may
    collide inside the transaction while a lane is being shifted; the
    constraint is checked at COMMIT.
  - task_history has no FK to tasks: history survives task deletion.
============================================================
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterable, Iterator, List, Optional, Sequence
from uuid import UUID

from psycopg import Connection, errors
from psycopg import Error as PsycopgError
from psycopg_pool import ConnectionPool

from ....crosscutting.exceptions import ConflictError, StorageError
from ....crosscutting.logger import logger
from ....domain.audit import AuditEntry, ChangeKind
from ....domain.entities import (
    Board,
    BoardMember,
    MemberRole,
    Task,
    TaskPriority,
    TaskStatus,
    as_utc,
)
from ....domain.repositories import Lane, lane_sort_key

_CONFLICT_ERRORS = (
    errors.LockNotAvailable,
    errors.SerializationFailure,
    errors.DeadlockDetected,
    errors.UniqueViolation,
)

_TASK_COLUMNS = """
    id, board_id, title, description, status, priority, position,
    due_date, created_by, assignee_id, created_at, updated_at
"""

_HISTORY_COLUMNS = """
    sequence, task_id, board_id, actor_id, field_name, old_value, new_value,
    change_kind, changed_at
"""

_BOARD_COLUMNS = "id, name, owner_user_id, description, created_at"


def _row_to_task(row: tuple) -> Task:
    return Task(
        id=row[0],
        board_id=row[1],
        title=row[2],
        description=row[3],
        status=TaskStatus(row[4]),
        priority=TaskPriority(row[5]),
        position=row[6],
        due_date=as_utc(row[7]),
        created_by=row[8],
        assignee_id=row[9],
        created_at=row[10],
        updated_at=row[11],
    )


def _row_to_entry(row: tuple) -> AuditEntry:
    return AuditEntry(
        sequence=row[0],
        task_id=row[1],
        board_id=row[2],
        actor_id=row[3],
        field_name=row[4],
        old_value=row[5],
        new_value=row[6],
        change_kind=ChangeKind(row[7]),
        changed_at=row[8],
    )


def _row_to_board(row: tuple) -> Board:
    return Board(
        id=row[0],
        name=row[1],
        owner_user_id=row[2],
        description=row[3],
        created_at=row[4],
    )


@contextmanager
def _translate_errors(operation: str, **extra: object) -> Iterator[None]:
    """Map psycopg errors to ConflictError / StorageError (chained)."""
    try:
        yield
    except _CONFLICT_ERRORS as exc:
        raise ConflictError(
            f"{operation}: concurrent lane modification ({type(exc).__name__})",
            original_error=exc,
        ) from exc
    except PsycopgError as exc:
        logger.exception(
            "PostgresTaskStore: database error",
            extra={"operation": operation, **extra, "error": str(exc)},
        )
        raise StorageError(f"{operation} failed: {exc}", original_error=exc) from exc


# ---------------------------------------------------------------------------
# SQL shared by the store (committed reads) and the unit of work
# ---------------------------------------------------------------------------


def _select_task(conn: Connection, task_id: UUID) -> Optional[Task]:
    row = conn.execute(
        f"SELECT {_TASK_COLUMNS} FROM tasks WHERE id = %s", (task_id,)
    ).fetchone()
    return _row_to_task(row) if row else None


def _select_board(conn: Connection, board_id: UUID) -> Optional[Board]:
    row = conn.execute(
        f"SELECT {_BOARD_COLUMNS} FROM boards WHERE id = %s", (board_id,)
    ).fetchone()
    return _row_to_board(row) if row else None


def _user_exists(conn: Connection, user_id: UUID) -> bool:
    row = conn.execute("SELECT 1 FROM users WHERE id = %s", (user_id,)).fetchone()
    return row is not None


def _select_lane(conn: Connection, board_id: UUID, status: TaskStatus) -> List[Task]:
    rows = conn.execute(
        f"""
        SELECT {_TASK_COLUMNS} FROM tasks
        WHERE board_id = %s AND status = %s
        ORDER BY position ASC
        """,
        (board_id, TaskStatus(status).value),
    ).fetchall()
    return [_row_to_task(r) for r in rows]


class PostgresTaskStore:
    """PostgreSQL task storage (raw SQL, psycopg 3)."""

    def __init__(
        self, pool: ConnectionPool | None = None, *, lock_timeout_seconds: float = 5.0
    ):
        # Tests may inject their own pool; production uses the global one.
        self._pool = pool
        self._lock_timeout_ms = max(1, int(lock_timeout_seconds * 1000))

    def _get_pool(self) -> ConnectionPool:
        if self._pool is not None:
            return self._pool

        from ...db.pool import get_pool

        return get_pool()

    def unit_of_work(self) -> "PostgresTaskUnitOfWork":
        return PostgresTaskUnitOfWork(self._get_pool(), self._lock_timeout_ms)

    # ------------------------------------------------------------
    # Committed reads
    # ------------------------------------------------------------
    def get_task(self, task_id: UUID) -> Optional[Task]:
        with _translate_errors("get_task", task_id=str(task_id)):
            with self._get_pool().connection() as conn:
                return _select_task(conn, task_id)

    def get_board(self, board_id: UUID) -> Optional[Board]:
        with _translate_errors("get_board", board_id=str(board_id)):
            with self._get_pool().connection() as conn:
                return _select_board(conn, board_id)

    def user_exists(self, user_id: UUID) -> bool:
        with _translate_errors("user_exists"):
            with self._get_pool().connection() as conn:
                return _user_exists(conn, user_id)

    def list_lane(self, board_id: UUID, status: TaskStatus) -> List[Task]:
        with _translate_errors("list_lane", board_id=str(board_id)):
            with self._get_pool().connection() as conn:
                return _select_lane(conn, board_id, status)

    def list_board_tasks(self, board_id: UUID) -> List[Task]:
        with _translate_errors("list_board_tasks", board_id=str(board_id)):
            with self._get_pool().connection() as conn:
                rows = conn.execute(
                    f"""
                    SELECT {_TASK_COLUMNS} FROM tasks
                    WHERE board_id = %s
                    ORDER BY array_position(
                        ARRAY['TO_DO','IN_PROGRESS','REVIEW','DONE'], status
                    ), position
                    """,
                    (board_id,),
                ).fetchall()
        return [_row_to_task(r) for r in rows]

    def list_history(self, task_id: UUID) -> List[AuditEntry]:
        with _translate_errors("list_history", task_id=str(task_id)):
            with self._get_pool().connection() as conn:
                rows = conn.execute(
                    f"""
                    SELECT {_HISTORY_COLUMNS} FROM task_history
                    WHERE task_id = %s
                    ORDER BY sequence ASC
                    """,
                    (task_id,),
                ).fetchall()
        return [_row_to_entry(r) for r in rows]

    def list_member_board_ids(self, user_id: UUID) -> List[UUID]:
        with _translate_errors("list_member_board_ids"):
            with self._get_pool().connection() as conn:
                rows = conn.execute(
                    """
                    SELECT board_id FROM board_members
                    WHERE user_id = %s
                    ORDER BY joined_at ASC, board_id ASC
                    """,
                    (user_id,),
                ).fetchall()
        return [r[0] for r in rows]

    def list_members(self, board_id: UUID) -> List[BoardMember]:
        with _translate_errors("list_members", board_id=str(board_id)):
            with self._get_pool().connection() as conn:
                rows = conn.execute(
                    """
                    SELECT board_id, user_id, role, joined_at FROM board_members
                    WHERE board_id = %s
                    ORDER BY joined_at ASC, user_id ASC
                    """,
                    (board_id,),
                ).fetchall()
        return [
            BoardMember(board_id=r[0], user_id=r[1], role=MemberRole(r[2]), joined_at=r[3])
            for r in rows
        ]

    def list_tasks_assigned_to(
        self, user_id: UUID, board_ids: Sequence[UUID]
    ) -> List[Task]:
        if not board_ids:
            return []
        with _translate_errors("list_tasks_assigned_to"):
            with self._get_pool().connection() as conn:
                rows = conn.execute(
                    f"""
                    SELECT {_TASK_COLUMNS} FROM tasks
                    WHERE assignee_id = %s AND board_id = ANY(%s)
                    ORDER BY board_id, array_position(
                        ARRAY['TO_DO','IN_PROGRESS','REVIEW','DONE'], status
                    ), position
                    """,
                    (user_id, list(board_ids)),
                ).fetchall()
        return [_row_to_task(r) for r in rows]


class PostgresTaskUnitOfWork:
    """One transaction on a dedicated pooled connection."""

    def __init__(self, pool: ConnectionPool, lock_timeout_ms: int) -> None:
        self._pool = pool
        self._lock_timeout_ms = lock_timeout_ms
        self._conn: Connection | None = None
        self._locked: set[Lane] = set()

    def __enter__(self) -> "PostgresTaskUnitOfWork":
        with _translate_errors("begin"):
            self._conn = self._pool.getconn()
        try:
            with _translate_errors("begin"):
                self._conn.execute(
                    "SELECT set_config('lock_timeout', %s, true)",
                    (f"{self._lock_timeout_ms}ms",),
                )
        except Exception:
            self.rollback()
            raise
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if self._conn is not None:
            self.rollback()

    @property
    def _c(self) -> Connection:
        if self._conn is None:
            raise RuntimeError("unit of work is not active")
        return self._conn

    # ------------------------------------------------------------
    # Locks
    # ------------------------------------------------------------
    def lock_lanes(self, lanes: Iterable[Lane]) -> None:
        wanted = sorted(
            {(b, TaskStatus(s)) for b, s in lanes} - self._locked, key=lane_sort_key
        )
        for board_id, status in wanted:
            key = f"{board_id}:{status.value}"
            with _translate_errors("lock_lanes", lane=key):
                self._c.execute(
                    "SELECT pg_advisory_xact_lock(hashtextextended(%s, 0))", (key,)
                )
            self._locked.add((board_id, status))

    # ------------------------------------------------------------
    # Reads (inside the transaction)
    # ------------------------------------------------------------
    def get_board(self, board_id: UUID) -> Optional[Board]:
        with _translate_errors("get_board", board_id=str(board_id)):
            return _select_board(self._c, board_id)

    def user_exists(self, user_id: UUID) -> bool:
        with _translate_errors("user_exists"):
            return _user_exists(self._c, user_id)

    def get_task(self, task_id: UUID) -> Optional[Task]:
        with _translate_errors("get_task", task_id=str(task_id)):
            return _select_task(self._c, task_id)

    def list_lane(self, board_id: UUID, status: TaskStatus) -> List[Task]:
        with _translate_errors("list_lane", board_id=str(board_id)):
            return _select_lane(self._c, board_id, status)

    def count_lane(self, board_id: UUID, status: TaskStatus) -> int:
        with _translate_errors("count_lane", board_id=str(board_id)):
            row = self._c.execute(
                "SELECT COUNT(*) FROM tasks WHERE board_id = %s AND status = %s",
                (board_id, TaskStatus(status).value),
            ).fetchone()
        return int(row[0])

    # ------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------
    def insert_task(self, task: Task) -> None:
        with _translate_errors("insert_task", task_id=str(task.id)):
            self._c.execute(
                f"""
                INSERT INTO tasks ({_TASK_COLUMNS})
                VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
                """,
                (
                    task.id,
                    task.board_id,
                    task.title,
                    task.description,
                    task.status.value,
                    task.priority.value,
                    task.position,
                    task.due_date,
                    task.created_by,
                    task.assignee_id,
                    task.created_at,
                    task.updated_at,
                ),
            )

    def update_task(self, task: Task) -> None:
        with _translate_errors("update_task", task_id=str(task.id)):
            self._c.execute(
                """
                UPDATE tasks
                SET title = %s, description = %s, status = %s, priority = %s,
                    position = %s, due_date = %s, assignee_id = %s, updated_at = %s
                WHERE id = %s
                """,
                (
                    task.title,
                    task.description,
                    task.status.value,
                    task.priority.value,
                    task.position,
                    task.due_date,
                    task.assignee_id,
                    task.updated_at,
                    task.id,
                ),
            )

    def delete_task(self, task_id: UUID) -> None:
        with _translate_errors("delete_task", task_id=str(task_id)):
            self._c.execute("DELETE FROM tasks WHERE id = %s", (task_id,))

    def shift_positions(
        self,
        board_id: UUID,
        status: TaskStatus,
        *,
        start: int,
        end: Optional[int] = None,
        delta: int,
    ) -> int:
        with _translate_errors("shift_positions", board_id=str(board_id)):
            cur = self._c.execute(
                """
                UPDATE tasks SET position = position + %s
                WHERE board_id = %s AND status = %s
                  AND position >= %s
                  AND (%s::integer IS NULL OR position <= %s::integer)
                """,
                (delta, board_id, TaskStatus(status).value, start, end, end),
            )
        return cur.rowcount

    def append_audit(self, entries: Sequence[AuditEntry]) -> List[AuditEntry]:
        stored: List[AuditEntry] = []
        with _translate_errors("append_audit"):
            for e in entries:
                row = self._c.execute(
                    """
                    INSERT INTO task_history
                        (task_id, board_id, actor_id, field_name, old_value,
                         new_value, change_kind, changed_at)
                    VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
                    RETURNING sequence
                    """,
                    (
                        e.task_id,
                        e.board_id,
                        e.actor_id,
                        e.field_name,
                        e.old_value,
                        e.new_value,
                        e.change_kind.value,
                        e.changed_at,
                    ),
                ).fetchone()
                stored.append(
                    AuditEntry(
                        task_id=e.task_id,
                        board_id=e.board_id,
                        actor_id=e.actor_id,
                        field_name=e.field_name,
                        old_value=e.old_value,
                        new_value=e.new_value,
                        change_kind=e.change_kind,
                        changed_at=e.changed_at,
                        sequence=row[0],
                    )
                )
        return stored

    def insert_board(self, board: Board) -> None:
        with _translate_errors("insert_board", board_id=str(board.id)):
            self._c.execute(
                f"INSERT INTO boards ({_BOARD_COLUMNS}) VALUES (%s, %s, %s, %s, %s)",
                (
                    board.id,
                    board.name,
                    board.owner_user_id,
                    board.description,
                    board.created_at,
                ),
            )

    def add_member(self, member: BoardMember) -> None:
        with _translate_errors("add_member", board_id=str(member.board_id)):
            self._c.execute(
                """
                INSERT INTO board_members (board_id, user_id, role, joined_at)
                VALUES (%s, %s, %s, COALESCE(%s, now()))
                ON CONFLICT (board_id, user_id) DO NOTHING
                """,
                (member.board_id, member.user_id, member.role.value, member.joined_at),
            )

    # ------------------------------------------------------------
    # Completion
    # ------------------------------------------------------------
    def commit(self) -> None:
        conn = self._c
        try:
            with _translate_errors("commit"):
                conn.commit()
        except Exception:
            self.rollback()
            raise
        self._finish()

    def rollback(self) -> None:
        conn = self._conn
        if conn is None:
            return
        try:
            with _translate_errors("rollback"):
                conn.rollback()
        finally:
            self._finish()

    def _finish(self) -> None:
        conn, self._conn = self._conn, None
        self._locked.clear()
        if conn is not None:
            self._pool.putconn(conn)
