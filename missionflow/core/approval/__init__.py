"""Approval workflow module for missionflow.

Implements the sequential mission approval state machine. The service
layer lives in ``missionflow.core.approval.service``.
"""

from .errors import (
    WorkflowError,
    OutOfOrderError,
    AlreadyDecidedError,
    MissingCommentError,
    UnknownRoleError,
    LifecycleError,
    UnknownMissionTypeError,
    NotAssigneeError,
)
from .states import (
    ApprovalRole,
    StepStatus,
    Decision,
    MissionStatus,
    LifecycleTransition,
    DEFAULT_CHAIN,
)
from .models import ApprovalStep, Mission, build_approval_chain, derive_approval_status
from .machine import (
    ApprovalStateMachine,
    find_next_actionable_step,
    decide,
    pending_for,
    advance_mission,
    is_terminal,
)

__all__ = [
    "WorkflowError",
    "OutOfOrderError",
    "AlreadyDecidedError",
    "MissingCommentError",
    "UnknownRoleError",
    "LifecycleError",
    "UnknownMissionTypeError",
    "NotAssigneeError",
    "ApprovalRole",
    "StepStatus",
    "Decision",
    "MissionStatus",
    "LifecycleTransition",
    "DEFAULT_CHAIN",
    "ApprovalStep",
    "Mission",
    "build_approval_chain",
    "derive_approval_status",
    "ApprovalStateMachine",
    "find_next_actionable_step",
    "decide",
    "pending_for",
    "advance_mission",
    "is_terminal",
]
