"""Mission approval roles, statuses and transition tables.

Approval chain (total order, no parallel branches):

    ┌─────────────────┐   ┌─────────┐   ┌──────┐   ┌──────────┐
    │ DEPARTMENT_HEAD │──►│ FINANCE │──►│  HR  │──►│ DIRECTOR │
    └─────────────────┘   └─────────┘   └──────┘   └──────────┘

Each step:  PENDING ──approve──► APPROVED
                    └──reject───► REJECTED   (comment required)

Mission status:
    any step REJECTED          → REJECTED
    every step APPROVED        → ASSIGNED ─accept─► ACCEPTED ─start─► IN_PROGRESS ─complete─► COMPLETED
    otherwise                  → PENDING
"""

from enum import Enum
from typing import Dict, Iterable, NamedTuple, Optional, Set, Tuple

from .errors import UnknownRoleError


class ApprovalRole(str, Enum):
    """Roles that sign off on a mission, declared in approval order."""

    DEPARTMENT_HEAD = "department_head"
    FINANCE = "finance"
    HR = "hr"
    DIRECTOR = "director"

    @property
    def label(self) -> str:
        return ROLE_LABELS[self]

    @property
    def order(self) -> int:
        return ROLE_ORDER[self]

    @classmethod
    def from_label(cls, label) -> "ApprovalRole":
        """Resolve a role from its value, name or a legacy display label.

        Raises:
            UnknownRoleError: If the label matches no approval role
        """
        if isinstance(label, cls):
            return label
        key = str(label).strip().lower()
        role = LEGACY_ROLE_LABELS.get(key)
        if role is None:
            raise UnknownRoleError(label)
        return role


# Canonical ordering table
ROLE_ORDER: Dict[ApprovalRole, int] = {role: i for i, role in enumerate(ApprovalRole)}

DEFAULT_CHAIN: Tuple[ApprovalRole, ...] = tuple(ApprovalRole)

ROLE_LABELS: Dict[ApprovalRole, str] = {
    ApprovalRole.DEPARTMENT_HEAD: "Department Head",
    ApprovalRole.FINANCE: "Finance",
    ApprovalRole.HR: "HR",
    ApprovalRole.DIRECTOR: "Director",
}

# Free-text labels used by older screens and imports
LEGACY_ROLE_LABELS: Dict[str, ApprovalRole] = {
    "department_head": ApprovalRole.DEPARTMENT_HEAD,
    "department head": ApprovalRole.DEPARTMENT_HEAD,
    "chef": ApprovalRole.DEPARTMENT_HEAD,
    "chef de département": ApprovalRole.DEPARTMENT_HEAD,
    "chef de departement": ApprovalRole.DEPARTMENT_HEAD,
    "finance": ApprovalRole.FINANCE,
    "hr": ApprovalRole.HR,
    "rh": ApprovalRole.HR,
    "director": ApprovalRole.DIRECTOR,
    "directeur": ApprovalRole.DIRECTOR,
    "director_general": ApprovalRole.DIRECTOR,
}


class StepStatus(str, Enum):
    """Status of a single approval step."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class Decision(str, Enum):
    """Decisions an approver can submit."""

    APPROVE = "approve"
    REJECT = "reject"


class MissionStatus(str, Enum):
    """Overall mission status."""

    # Driven by the approval chain
    PENDING = "pending"
    ASSIGNED = "assigned"
    REJECTED = "rejected"

    # Driven by the assignee once the chain is approved
    ACCEPTED = "accepted"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class LifecycleTransition(str, Enum):
    """Actions that move an approved mission towards completion."""

    ACCEPT = "accept"
    START = "start"
    COMPLETE = "complete"


class DecisionRule(NamedTuple):
    """Defines what a decision does to a pending step."""
    decision: Decision
    to_status: StepStatus
    requires_comment: bool = False


class LifecycleRule(NamedTuple):
    """Defines a valid post-approval status move."""
    from_status: MissionStatus
    to_status: MissionStatus
    transition: LifecycleTransition


DECISION_RULES: list[DecisionRule] = [
    DecisionRule(Decision.APPROVE, StepStatus.APPROVED),
    DecisionRule(Decision.REJECT, StepStatus.REJECTED, requires_comment=True),
]

LIFECYCLE_RULES: list[LifecycleRule] = [
    LifecycleRule(MissionStatus.ASSIGNED, MissionStatus.ACCEPTED, LifecycleTransition.ACCEPT),
    LifecycleRule(MissionStatus.ACCEPTED, MissionStatus.IN_PROGRESS, LifecycleTransition.START),
    LifecycleRule(MissionStatus.IN_PROGRESS, MissionStatus.COMPLETED, LifecycleTransition.COMPLETE),
]

DECISION_TARGETS: Dict[Decision, DecisionRule] = {rule.decision: rule for rule in DECISION_RULES}
LIFECYCLE_TARGETS: Dict[tuple[MissionStatus, LifecycleTransition], LifecycleRule] = {
    (rule.from_status, rule.transition): rule for rule in LIFECYCLE_RULES
}

# A step never leaves these
TERMINAL_STEP_STATUSES: Set[StepStatus] = {
    StepStatus.APPROVED,
    StepStatus.REJECTED,
}

# Statuses owned by the approval chain
APPROVAL_STATUSES: Set[MissionStatus] = {
    MissionStatus.PENDING,
    MissionStatus.ASSIGNED,
    MissionStatus.REJECTED,
}

# Statuses reached only after every approver signed off
POST_APPROVAL_STATUSES: Set[MissionStatus] = {
    MissionStatus.ACCEPTED,
    MissionStatus.IN_PROGRESS,
    MissionStatus.COMPLETED,
}


def get_decision_rule(decision: Decision) -> DecisionRule:
    """Get the rule applied when a step receives ``decision``."""
    return DECISION_TARGETS[Decision(decision)]


def get_lifecycle_rule(
    from_status: MissionStatus, transition: LifecycleTransition
) -> Optional[LifecycleRule]:
    """Get the lifecycle rule for a status/action combination."""
    return LIFECYCLE_TARGETS.get((from_status, transition))


def canonical_order(roles: Iterable) -> Tuple[ApprovalRole, ...]:
    """Resolve roles and sort them by the canonical approval order.

    Raises:
        UnknownRoleError: If a role cannot be resolved
        ValueError: If a role is listed twice
    """
    resolved = [ApprovalRole.from_label(role) for role in roles]
    if len(set(resolved)) != len(resolved):
        raise ValueError("Approval chain lists a role more than once")
    return tuple(sorted(resolved, key=lambda role: ROLE_ORDER[role]))
