"""
============================================================
CRC CARD — infrastructure/repositories/in_memory/task_store.py
============================================================
Classes: InMemoryTaskStore, InMemoryTaskUnitOfWork

Responsibilities:
  - Keep boards, members, users, tasks and audit entries in memory
    (tests / local dev).
  - Serialize mutations per (board, status) lane with one Lock per lane,
    acquired in canonical order with a bounded wait.
  - Stage every write in the unit of work and publish it at commit under a
    short store-wide mutex, so readers only ever see committed state.
  - Check lane uniqueness at commit, like the deferred constraint in
    PostgreSQL.
  - Offer failure injection so tests can prove atomicity.

Collaborators:
  - domain.repositories.TaskStore / TaskUnitOfWork (contracts)
  - crosscutting.exceptions (ConflictError / StorageError)

Notes:
  - Ordering mirrors Postgres: lanes by position, history by sequence.
  - Entities are frozen dataclasses, so returned lists never alias state.
============================================================
"""

from __future__ import annotations

import itertools
from collections import Counter
from dataclasses import replace
from threading import Lock, RLock
from typing import Dict, Iterable, List, Optional, Sequence
from uuid import UUID

from ....crosscutting.exceptions import ConflictError, StorageError
from ....domain.audit import AuditEntry
from ....domain.entities import Board, BoardMember, Task, TaskStatus, User
from ....domain.repositories import Lane, lane_sort_key

_STATUS_ORDER = {status: index for index, status in enumerate(TaskStatus)}


class InMemoryTaskStore:
    """
    Thread-safe in-memory task storage.

    Mental model:
    - the dicts are the "tables"
    - _mutex protects them and is only held for short reads/publishes
    - lane locks are held for a whole unit of work

    One Lock is created per lane on first use and kept for the life of the
    store (boards x 4 lanes). Fine for tests and local runs; long-lived
    deployments use the PostgreSQL store, whose advisory locks hold no
    process memory.
    """

    def __init__(self, *, lock_timeout_seconds: float = 5.0) -> None:
        self._mutex = RLock()
        self._lock_timeout_seconds = lock_timeout_seconds
        self._lane_locks: Dict[Lane, Lock] = {}
        self._users: Dict[UUID, User] = {}
        self._boards: Dict[UUID, Board] = {}
        self._members: Dict[tuple[UUID, UUID], BoardMember] = {}
        self._tasks: Dict[UUID, Task] = {}
        self._history: List[AuditEntry] = []
        self._sequence = itertools.count(1)
        self._fail_on: Dict[str, Exception] = {}

    # =========================================================
    # Identity mirror + test hooks
    # =========================================================
    def add_user(self, user: User) -> User:
        """R: Register a user known to the identity service."""
        with self._mutex:
            self._users[user.id] = user
        return user

    def inject_failure(self, operation: str, error: Exception | None = None) -> None:
        """
        R: Make the next call to `operation` (e.g. "append_audit", "commit")
        inside a unit of work raise. Consumed on first use.
        """
        with self._mutex:
            self._fail_on[operation] = error or StorageError(
                f"injected failure on {operation}"
            )

    def _maybe_fail(self, operation: str) -> None:
        with self._mutex:
            error = self._fail_on.pop(operation, None)
        if error is not None:
            raise error

    # =========================================================
    # Unit of work plumbing
    # =========================================================
    def unit_of_work(self) -> "InMemoryTaskUnitOfWork":
        return InMemoryTaskUnitOfWork(self)

    def _lane_lock(self, lane: Lane) -> Lock:
        with self._mutex:
            lock = self._lane_locks.get(lane)
            if lock is None:
                lock = self._lane_locks[lane] = Lock()
            return lock

    def _next_sequence(self) -> int:
        with self._mutex:
            return next(self._sequence)

    # =========================================================
    # Committed reads
    # =========================================================
    def get_task(self, task_id: UUID) -> Optional[Task]:
        with self._mutex:
            return self._tasks.get(task_id)

    def get_board(self, board_id: UUID) -> Optional[Board]:
        with self._mutex:
            return self._boards.get(board_id)

    def user_exists(self, user_id: UUID) -> bool:
        with self._mutex:
            return user_id in self._users

    def list_lane(self, board_id: UUID, status: TaskStatus) -> List[Task]:
        with self._mutex:
            tasks = [t for t in self._tasks.values() if t.lane == (board_id, status)]
        return sorted(tasks, key=lambda t: t.position)

    def list_board_tasks(self, board_id: UUID) -> List[Task]:
        with self._mutex:
            tasks = [t for t in self._tasks.values() if t.board_id == board_id]
        return sorted(tasks, key=lambda t: (_STATUS_ORDER[t.status], t.position))

    def list_history(self, task_id: UUID) -> List[AuditEntry]:
        with self._mutex:
            entries = [e for e in self._history if e.task_id == task_id]
        return sorted(entries, key=lambda e: e.sequence or 0)

    def list_member_board_ids(self, user_id: UUID) -> List[UUID]:
        with self._mutex:
            return [m.board_id for m in self._members.values() if m.user_id == user_id]

    def list_members(self, board_id: UUID) -> List[BoardMember]:
        with self._mutex:
            return [m for m in self._members.values() if m.board_id == board_id]

    def list_tasks_assigned_to(
        self, user_id: UUID, board_ids: Sequence[UUID]
    ) -> List[Task]:
        boards = set(board_ids)
        with self._mutex:
            tasks = [
                t
                for t in self._tasks.values()
                if t.assignee_id == user_id and t.board_id in boards
            ]
        return sorted(
            tasks, key=lambda t: (str(t.board_id), _STATUS_ORDER[t.status], t.position)
        )

    # =========================================================
    # Publish (called by the unit of work)
    # =========================================================
    def _publish(
        self,
        tasks: Dict[UUID, Optional[Task]],
        boards: List[Board],
        members: List[BoardMember],
        history: List[AuditEntry],
    ) -> None:
        with self._mutex:
            self._check_lane_uniqueness(tasks)
            for board in boards:
                self._boards[board.id] = board
            for member in members:
                self._members.setdefault((member.board_id, member.user_id), member)
            for task_id, task in tasks.items():
                if task is None:
                    self._tasks.pop(task_id, None)
                else:
                    self._tasks[task_id] = task
            self._history.extend(history)

    def _check_lane_uniqueness(self, staged: Dict[UUID, Optional[Task]]) -> None:
        touched: set[Lane] = set()
        for task_id, task in staged.items():
            if task is not None:
                touched.add(task.lane)
            previous = self._tasks.get(task_id)
            if previous is not None:
                touched.add(previous.lane)

        merged = {**self._tasks, **staged}
        for lane in touched:
            positions = Counter(
                t.position for t in merged.values() if t is not None and t.lane == lane
            )
            duplicated = [p for p, n in positions.items() if n > 1]
            if duplicated:
                raise ConflictError(
                    f"Duplicate positions {sorted(duplicated)} in lane "
                    f"{lane[0]}/{lane[1].value}"
                )


class InMemoryTaskUnitOfWork:
    """
    One atomic mutation against InMemoryTaskStore.

    Reads see committed state overlaid with this unit's staged writes.
    """

    def __init__(self, store: InMemoryTaskStore) -> None:
        self._store = store
        self._held: List[Lock] = []
        self._held_lanes: set[Lane] = set()
        self._tasks: Dict[UUID, Optional[Task]] = {}
        self._boards: List[Board] = []
        self._members: List[BoardMember] = []
        self._history: List[AuditEntry] = []
        self._closed = False

    def __enter__(self) -> "InMemoryTaskUnitOfWork":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if not self._closed:
            self.rollback()

    # =========================================================
    # Locks
    # =========================================================
    def lock_lanes(self, lanes: Iterable[Lane]) -> None:
        self._ensure_open()
        wanted = sorted(
            {(b, TaskStatus(s)) for b, s in lanes} - self._held_lanes,
            key=lane_sort_key,
        )
        for lane in wanted:
            lock = self._store._lane_lock(lane)
            if not lock.acquire(timeout=self._store._lock_timeout_seconds):
                raise ConflictError(
                    f"Timed out waiting for lane {lane[0]}/{lane[1].value}"
                )
            self._held.append(lock)
            self._held_lanes.add(lane)

    def _release(self) -> None:
        while self._held:
            self._held.pop().release()
        self._held_lanes.clear()

    # =========================================================
    # Reads (staged overlay)
    # =========================================================
    def get_board(self, board_id: UUID) -> Optional[Board]:
        for board in self._boards:
            if board.id == board_id:
                return board
        return self._store.get_board(board_id)

    def user_exists(self, user_id: UUID) -> bool:
        return self._store.user_exists(user_id)

    def get_task(self, task_id: UUID) -> Optional[Task]:
        if task_id in self._tasks:
            return self._tasks[task_id]
        return self._store.get_task(task_id)

    def list_lane(self, board_id: UUID, status: TaskStatus) -> List[Task]:
        lane = (board_id, TaskStatus(status))
        with self._store._mutex:
            merged = {**self._store._tasks, **self._tasks}
        tasks = [t for t in merged.values() if t is not None and t.lane == lane]
        return sorted(tasks, key=lambda t: t.position)

    def count_lane(self, board_id: UUID, status: TaskStatus) -> int:
        return len(self.list_lane(board_id, status))

    # =========================================================
    # Staged writes
    # =========================================================
    def insert_task(self, task: Task) -> None:
        self._ensure_open()
        self._store._maybe_fail("insert_task")
        self._tasks[task.id] = task

    def update_task(self, task: Task) -> None:
        self._ensure_open()
        self._store._maybe_fail("update_task")
        self._tasks[task.id] = task

    def delete_task(self, task_id: UUID) -> None:
        self._ensure_open()
        self._store._maybe_fail("delete_task")
        self._tasks[task_id] = None

    def shift_positions(
        self,
        board_id: UUID,
        status: TaskStatus,
        *,
        start: int,
        end: Optional[int] = None,
        delta: int,
    ) -> int:
        self._ensure_open()
        self._store._maybe_fail("shift_positions")
        shifted = 0
        for task in self.list_lane(board_id, status):
            if task.position < start or (end is not None and task.position > end):
                continue
            self._tasks[task.id] = replace(task, position=task.position + delta)
            shifted += 1
        return shifted

    def append_audit(self, entries: Sequence[AuditEntry]) -> List[AuditEntry]:
        self._ensure_open()
        self._store._maybe_fail("append_audit")
        stored = [replace(e, sequence=self._store._next_sequence()) for e in entries]
        self._history.extend(stored)
        return stored

    def insert_board(self, board: Board) -> None:
        self._ensure_open()
        self._boards.append(board)

    def add_member(self, member: BoardMember) -> None:
        self._ensure_open()
        self._members.append(member)

    # =========================================================
    # Completion
    # =========================================================
    def commit(self) -> None:
        self._ensure_open()
        try:
            self._store._maybe_fail("commit")
            self._store._publish(self._tasks, self._boards, self._members, self._history)
        except Exception:
            self.rollback()
            raise
        self._closed = True
        self._release()

    def rollback(self) -> None:
        self._tasks.clear()
        self._boards.clear()
        self._members.clear()
        self._history.clear()
        self._closed = True
        self._release()

    def _ensure_open(self) -> None:
        if self._closed:
            raise RuntimeError("unit of work already completed")
