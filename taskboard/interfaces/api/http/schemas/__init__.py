"""Pydantic DTOs of the HTTP API."""

from .boards import (
    AddMemberReq,
    BoardMemberRes,
    BoardMembersRes,
    BoardRes,
    BoardStatisticsRes,
    CreateBoardReq,
    UserStatisticsRes,
)
from .tasks import (
    AuditEntryRes,
    BoardLanesRes,
    CreateTaskReq,
    LaneRes,
    ReorderTaskReq,
    TaskHistoryRes,
    TaskRes,
    UpdateTaskReq,
)

__all__ = [
    "AddMemberReq",
    "AuditEntryRes",
    "BoardLanesRes",
    "BoardMemberRes",
    "BoardMembersRes",
    "BoardRes",
    "BoardStatisticsRes",
    "CreateBoardReq",
    "CreateTaskReq",
    "LaneRes",
    "ReorderTaskReq",
    "TaskHistoryRes",
    "TaskRes",
    "UpdateTaskReq",
    "UserStatisticsRes",
]
