"""Validation errors raised by the mission approval workflow.

Every error carries a stable ``code`` so callers can map it to a specific
user-facing message instead of a generic failure.
"""

from typing import Optional


class WorkflowError(Exception):
    """Base class for approval workflow validation errors."""

    code = "workflow_error"

    def __init__(self, message: str, mission_id: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.mission_id = mission_id


class OutOfOrderError(WorkflowError):
    """Raised when a role decides before every earlier step is approved."""

    code = "out_of_order"

    def __init__(self, mission_id: Optional[str], role, expected_role):
        super().__init__(
            f"{role.label} cannot decide yet: waiting on {expected_role.label}",
            mission_id,
        )
        self.role = role
        self.expected_role = expected_role


class AlreadyDecidedError(WorkflowError):
    """Raised when the approval chain is already fully approved or rejected."""

    code = "already_decided"

    def __init__(self, mission_id: Optional[str], status=None):
        super().__init__("This mission already has a final decision", mission_id)
        self.status = status


class MissingCommentError(WorkflowError):
    """Raised when a rejection is submitted without a justification."""

    code = "missing_comment"

    def __init__(self, mission_id: Optional[str], role=None):
        super().__init__("A comment is required to reject", mission_id)
        self.role = role


class UnknownRoleError(WorkflowError):
    """Raised when a decision names a role outside the mission's chain."""

    code = "unknown_role"

    def __init__(self, role, mission_id: Optional[str] = None):
        label = getattr(role, "label", role)
        if mission_id is None:
            message = f"Unknown approval role: {label!r}"
        else:
            message = f"{label} is not part of this mission's approval chain"
        super().__init__(message, mission_id)
        self.role = role


class LifecycleError(WorkflowError):
    """Raised when a mission is moved along its lifecycle out of order."""

    code = "invalid_lifecycle_transition"

    def __init__(self, mission_id: Optional[str], status, transition):
        super().__init__(
            f"Cannot {transition.value} a mission that is {status.value}",
            mission_id,
        )
        self.status = status
        self.transition = transition


class UnknownMissionTypeError(WorkflowError):
    """Raised when a mission is created with a type no workflow declares."""

    code = "unknown_mission_type"

    def __init__(self, mission_type: str, known_types=()):
        message = f"Unknown mission type: {mission_type!r}"
        if known_types:
            message += f" (expected one of: {', '.join(known_types)})"
        super().__init__(message)
        self.mission_type = mission_type


class NotAssigneeError(WorkflowError):
    """Raised when someone other than the assignee moves a mission along its lifecycle."""

    code = "not_assignee"

    def __init__(self, mission_id: Optional[str], actor: Optional[str], assigned_to: Optional[str]):
        if assigned_to is None:
            message = "This mission has no assignee yet"
        else:
            message = f"Only {assigned_to} can carry out this mission"
        super().__init__(message, mission_id)
        self.actor = actor
        self.assigned_to = assigned_to
