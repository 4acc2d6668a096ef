"""
===============================================================================
CRC CARD — taskboard/interfaces/api/http/routers/boards.py
===============================================================================

Class/Module:
    Board Router

Responsibilities:
    - Board provisioning (owner = authenticated actor).
    - Membership: list members, add members (OWNER/ADMIN only).
    - Lane reads (whole board or one lane, ordered by position).
    - Board and user statistics rollups.

Collaborators:
    - taskboard.application (BoardProvisioner, TaskQueries,
      BoardStatisticsAggregator)
    - taskboard.identity.auth.require_actor (board creation)
    - dependencies.board_member / board_manager / user_viewer (everything else)
    - taskboard.container (DI factories)
===============================================================================
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends

from taskboard.application import (
    BoardProvisioner,
    BoardStatisticsAggregator,
    TaskQueries,
)
from taskboard.container import (
    get_board_provisioner,
    get_board_statistics_aggregator,
    get_task_queries,
)
from taskboard.domain.entities import TaskStatus
from taskboard.identity.auth import require_actor

from ..dependencies import board_manager, board_member, user_viewer
from ..schemas.boards import (
    AddMemberReq,
    BoardMemberRes,
    BoardMembersRes,
    BoardRes,
    BoardStatisticsRes,
    CreateBoardReq,
    UserStatisticsRes,
)
from ..schemas.tasks import BoardLanesRes, LaneRes, TaskRes

router = APIRouter()


@router.post("/boards", response_model=BoardRes, status_code=201, tags=["boards"])
def create_board(
    req: CreateBoardReq,
    provisioner: BoardProvisioner = Depends(get_board_provisioner),
    actor_id: UUID = Depends(require_actor()),
):
    board = provisioner.create_board(
        name=req.name, owner_user_id=actor_id, description=req.description
    )
    return BoardRes.from_board(board)


@router.get("/boards/{board_id}/lanes", response_model=BoardLanesRes, tags=["boards"])
def get_board_lanes(
    board_id: UUID,
    queries: TaskQueries = Depends(get_task_queries),
    _actor_id: UUID = Depends(board_member),
):
    lanes = queries.board_lanes(board_id)
    return BoardLanesRes(
        board_id=board_id,
        lanes=[
            LaneRes(
                board_id=board_id,
                status=status,
                tasks=[TaskRes.from_task(t) for t in tasks],
            )
            for status, tasks in lanes.items()
        ],
    )


@router.get(
    "/boards/{board_id}/lanes/{status}", response_model=LaneRes, tags=["boards"]
)
def get_lane(
    board_id: UUID,
    status: TaskStatus,
    queries: TaskQueries = Depends(get_task_queries),
    _actor_id: UUID = Depends(board_member),
):
    tasks = queries.lane(board_id, status)
    return LaneRes(
        board_id=board_id,
        status=status,
        tasks=[TaskRes.from_task(t) for t in tasks],
    )


@router.get(
    "/boards/{board_id}/statistics",
    response_model=BoardStatisticsRes,
    tags=["statistics"],
)
def get_board_statistics(
    board_id: UUID,
    aggregator: BoardStatisticsAggregator = Depends(get_board_statistics_aggregator),
    _actor_id: UUID = Depends(board_member),
):
    return BoardStatisticsRes.from_stats(aggregator.board_statistics(board_id))


@router.get(
    "/users/{user_id}/statistics",
    response_model=UserStatisticsRes,
    tags=["statistics"],
)
def get_user_statistics(
    user_id: UUID,
    aggregator: BoardStatisticsAggregator = Depends(get_board_statistics_aggregator),
    _actor_id: UUID = Depends(user_viewer),
):
    return UserStatisticsRes.from_stats(aggregator.user_statistics(user_id))


@router.get(
    "/boards/{board_id}/members", response_model=BoardMembersRes, tags=["boards"]
)
def list_board_members(
    board_id: UUID,
    queries: TaskQueries = Depends(get_task_queries),
    _actor_id: UUID = Depends(board_member),
):
    return BoardMembersRes(
        board_id=board_id,
        members=[BoardMemberRes.from_member(m) for m in queries.members(board_id)],
    )


@router.post(
    "/boards/{board_id}/members",
    response_model=BoardMemberRes,
    status_code=201,
    tags=["boards"],
)
def add_board_member(
    board_id: UUID,
    req: AddMemberReq,
    provisioner: BoardProvisioner = Depends(get_board_provisioner),
    _actor_id: UUID = Depends(board_manager),
):
    member = provisioner.add_member(board_id, req.user_id, req.role)
    return BoardMemberRes.from_member(member)
