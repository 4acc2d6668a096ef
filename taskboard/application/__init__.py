"""
Application layer: the task mutation pipeline and its read-side companions.
"""

from .board_access import BoardAccess
from .board_provisioning import BoardProvisioner, add_owner_membership
from .board_statistics import BoardStatisticsAggregator
from .change_recorder import ChangeRecorder
from .lane_allocator import LanePositionAllocator
from .task_mutations import UNSET, CreateTaskInput, TaskMutationCoordinator, TaskPatch
from .task_queries import TaskQueries

__all__ = [
    "BoardAccess",
    "BoardProvisioner",
    "BoardStatisticsAggregator",
    "ChangeRecorder",
    "CreateTaskInput",
    "LanePositionAllocator",
    "TaskMutationCoordinator",
    "TaskPatch",
    "TaskQueries",
    "UNSET",
    "add_owner_membership",
]
