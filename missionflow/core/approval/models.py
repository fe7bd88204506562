"""In-memory mission and approval step snapshots.

Both types are frozen: a decision produces a new snapshot instead of
mutating the one a caller is holding.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Dict, Iterable, Optional, Sequence, Tuple

from .states import (
    DEFAULT_CHAIN,
    POST_APPROVAL_STATUSES,
    ROLE_ORDER,
    ApprovalRole,
    MissionStatus,
    StepStatus,
    canonical_order,
)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class ApprovalStep:
    """One role's checkpoint in a mission's approval chain."""

    role: ApprovalRole
    status: StepStatus = StepStatus.PENDING
    approver: Optional[str] = None
    decided_at: Optional[datetime] = None
    comment: Optional[str] = None

    def __post_init__(self):
        if self.status == StepStatus.PENDING:
            if self.approver is not None or self.decided_at is not None or self.comment:
                raise ValueError(
                    f"Pending {self.role.label} step cannot carry a decision"
                )
            return

        if not self.approver or self.decided_at is None:
            raise ValueError(
                f"{self.status.value.capitalize()} {self.role.label} step needs an approver and a date"
            )
        if self.status == StepStatus.REJECTED and not (self.comment and self.comment.strip()):
            raise ValueError(f"Rejected {self.role.label} step needs a comment")

    @property
    def is_pending(self) -> bool:
        return self.status == StepStatus.PENDING

    def to_dict(self) -> Dict[str, Any]:
        """Serialize using the field names the web client expects."""
        return {
            "role": self.role.value,
            "status": self.status.value,
            "approver": self.approver,
            "date": self.decided_at.isoformat() if self.decided_at else None,
            "comment": self.comment,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ApprovalStep":
        """Parse a serialized step. Legacy role labels are accepted."""
        decided_at = data.get("date")
        if isinstance(decided_at, str):
            decided_at = datetime.fromisoformat(decided_at)
        return cls(
            role=ApprovalRole.from_label(data["role"]),
            status=StepStatus(data.get("status", StepStatus.PENDING.value)),
            approver=data.get("approver") or None,
            decided_at=decided_at,
            comment=data.get("comment") or None,
        )


def validate_chain(steps: Sequence[ApprovalStep]) -> None:
    """Check that a chain is non-empty with unique roles in canonical order.

    Raises:
        ValueError: If the chain is malformed
    """
    if not steps:
        raise ValueError("Approval chain must contain at least one step")

    roles = [step.role for step in steps]
    if len(set(roles)) != len(roles):
        raise ValueError("Approval chain lists a role more than once")

    orders = [ROLE_ORDER[role] for role in roles]
    if orders != sorted(orders):
        raise ValueError(
            "Approval chain is out of order: "
            + " -> ".join(role.label for role in roles)
        )


def build_approval_chain(roles: Iterable = DEFAULT_CHAIN) -> Tuple[ApprovalStep, ...]:
    """Create a fresh chain with every step pending."""
    steps = tuple(ApprovalStep(role=role) for role in canonical_order(roles))
    validate_chain(steps)
    return steps


def derive_approval_status(steps: Iterable[ApprovalStep]) -> MissionStatus:
    """Mission status as a pure function of its approval steps."""
    statuses = [step.status for step in steps]
    if StepStatus.REJECTED in statuses:
        return MissionStatus.REJECTED
    if statuses and all(status == StepStatus.APPROVED for status in statuses):
        return MissionStatus.ASSIGNED
    return MissionStatus.PENDING


@dataclass(frozen=True)
class Mission:
    """A travel mission and its approval chain.

    Descriptive fields are carried through untouched; only
    ``approval_status`` and ``lifecycle_status`` drive behaviour.
    """

    id: str
    title: str
    approval_status: Tuple[ApprovalStep, ...]
    destination: str = ""
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    budget: int = 0
    budget_code: str = ""
    department: str = ""
    mission_type: str = ""
    description: str = ""
    requested_by: Optional[str] = None
    assigned_to: Optional[str] = None
    lifecycle_status: Optional[MissionStatus] = None
    version: int = 0
    created_at: Optional[datetime] = None
    extra_data: Dict[str, Any] = field(default_factory=dict, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "approval_status", tuple(self.approval_status))
        validate_chain(self.approval_status)

        if self.lifecycle_status is not None:
            if self.lifecycle_status not in POST_APPROVAL_STATUSES:
                raise ValueError(
                    f"{self.lifecycle_status.value} is not a lifecycle status"
                )
            if self.approval_outcome != MissionStatus.ASSIGNED:
                raise ValueError("Only a fully approved mission can move past assignment")

    @property
    def approval_outcome(self) -> MissionStatus:
        """Status derived from the approval chain alone."""
        return derive_approval_status(self.approval_status)

    @property
    def status(self) -> MissionStatus:
        outcome = self.approval_outcome
        if outcome == MissionStatus.ASSIGNED and self.lifecycle_status is not None:
            return self.lifecycle_status
        return outcome

    @property
    def roles(self) -> Tuple[ApprovalRole, ...]:
        return tuple(step.role for step in self.approval_status)

    def step_for(self, role: ApprovalRole) -> Optional[ApprovalStep]:
        for step in self.approval_status:
            if step.role == role:
                return step
        return None
