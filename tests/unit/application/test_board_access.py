"""
Unit tests for BoardAccess (membership checks ahead of reads and mutations).
"""

from uuid import uuid4

import pytest

from taskboard.application import BoardAccess, CreateTaskInput
from taskboard.crosscutting.exceptions import AccessDeniedError, NotFoundError
from taskboard.domain.entities import MemberRole, User

pytestmark = pytest.mark.unit


@pytest.fixture
def access(store) -> BoardAccess:
    return BoardAccess(store)


@pytest.fixture
def task(coordinator, board, alice):
    return coordinator.create(CreateTaskInput(board_id=board.id, title="Ship"), alice.id)


class TestBoardScope:
    def test_owner_is_a_member(self, access, board, alice):
        assert access.require_member(board.id, alice.id) == board
        assert access.member_role(board.id, alice.id) is MemberRole.OWNER

    def test_non_member_is_denied(self, access, board, bob):
        assert access.member_role(board.id, bob.id) is None
        with pytest.raises(AccessDeniedError):
            access.require_member(board.id, bob.id)

    def test_added_member_is_let_in(self, access, provisioner, board, bob):
        provisioner.add_member(board.id, bob.id)
        assert access.require_member(board.id, bob.id) == board

    def test_unknown_board_is_not_found(self, access, alice):
        with pytest.raises(NotFoundError):
            access.require_member(uuid4(), alice.id)


class TestTaskScope:
    def test_live_task_resolves_to_its_board(self, access, task, board, alice):
        assert access.require_task_member(task.id, alice.id) == board

    def test_non_member_is_denied_on_task(self, access, task, bob):
        with pytest.raises(AccessDeniedError):
            access.require_task_member(task.id, bob.id)

    def test_deleted_task_resolves_through_history(
        self, access, coordinator, task, board, alice, bob
    ):
        coordinator.delete(task.id, alice.id)

        assert access.require_task_member(task.id, alice.id) == board
        with pytest.raises(AccessDeniedError):
            access.require_task_member(task.id, bob.id)

    def test_unknown_task_is_not_found(self, access, alice):
        with pytest.raises(NotFoundError):
            access.require_task_member(uuid4(), alice.id)


class TestMemberManagement:
    def test_owner_and_admin_manage_members(self, access, provisioner, board, alice, bob):
        provisioner.add_member(board.id, bob.id, MemberRole.ADMIN)

        assert access.require_member_manager(board.id, alice.id) == board
        assert access.require_member_manager(board.id, bob.id) == board

    def test_plain_member_cannot_manage_members(self, access, provisioner, board, bob):
        provisioner.add_member(board.id, bob.id)
        with pytest.raises(AccessDeniedError):
            access.require_member_manager(board.id, bob.id)


class TestUserVisibility:
    def test_self_is_always_visible(self, access, bob):
        access.require_user_visible(bob.id, bob.id)

    def test_board_mates_see_each_other(self, access, provisioner, board, alice, bob):
        provisioner.add_member(board.id, bob.id)

        access.require_user_visible(bob.id, alice.id)
        access.require_user_visible(alice.id, bob.id)

    def test_strangers_are_denied(self, access, store, board, alice):
        carol = store.add_user(User(id=uuid4(), username="carol", email="carol@example.com"))
        with pytest.raises(AccessDeniedError):
            access.require_user_visible(carol.id, alice.id)

    def test_unknown_user_is_not_found(self, access, alice):
        with pytest.raises(NotFoundError):
            access.require_user_visible(uuid4(), alice.id)
