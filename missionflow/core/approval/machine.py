"""Mission approval state machine.

The module-level functions are the single implementation of the
sequencing rule; every queue, dashboard and handler goes through them.
``ApprovalStateMachine`` wraps one mission snapshot and adds decision
history and callback hooks on top.
"""

import uuid
from dataclasses import replace
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Optional, Union

from missionflow.common.logger import get_logger

from .errors import (
    AlreadyDecidedError,
    LifecycleError,
    MissingCommentError,
    OutOfOrderError,
    UnknownRoleError,
)
from .models import ApprovalStep, Mission, utcnow
from .states import (
    ApprovalRole,
    Decision,
    LifecycleTransition,
    StepStatus,
    get_decision_rule,
    get_lifecycle_rule,
)

logger = get_logger("approval")

RoleLike = Union[ApprovalRole, str]


def _next_actionable_index(mission: Mission) -> Optional[int]:
    for index, step in enumerate(mission.approval_status):
        if step.status == StepStatus.APPROVED:
            continue
        if step.status == StepStatus.PENDING:
            return index
        # Rejected: the chain is frozen
        return None
    return None


def find_next_actionable_step(mission: Mission) -> Optional[ApprovalStep]:
    """Return the first pending step whose predecessors are all approved.

    Returns ``None`` when the chain is fully approved or contains a rejection.
    """
    index = _next_actionable_index(mission)
    return mission.approval_status[index] if index is not None else None


def is_terminal(mission: Mission) -> bool:
    """True once the chain is fully approved or rejected."""
    return _next_actionable_index(mission) is None


def decide(
    mission: Mission,
    role: RoleLike,
    decision: Union[Decision, str],
    actor: str,
    comment: Optional[str] = None,
    *,
    decided_at: Optional[datetime] = None,
) -> Mission:
    """Record ``role``'s decision on the mission's actionable step.

    Args:
        mission: Current mission snapshot
        role: Role submitting the decision (enum, value or legacy label)
        decision: Approve or reject
        actor: Identity of the person deciding
        comment: Free text, required when rejecting
        decided_at: Decision timestamp, defaults to now (UTC)

    Returns:
        A new mission snapshot with exactly one step changed

    Raises:
        UnknownRoleError: If the role is not in the mission's chain
        AlreadyDecidedError: If the chain is already approved or rejected
        OutOfOrderError: If an earlier step is still pending
        MissingCommentError: If rejecting without a comment
    """
    role = ApprovalRole.from_label(role)
    rule = get_decision_rule(decision)

    if role not in mission.roles:
        raise UnknownRoleError(role, mission.id)

    index = _next_actionable_index(mission)
    if index is None:
        raise AlreadyDecidedError(mission.id, mission.status)

    step = mission.approval_status[index]
    if step.role != role:
        raise OutOfOrderError(mission.id, role, step.role)

    comment = comment.strip() if comment else None
    if rule.requires_comment and not comment:
        raise MissingCommentError(mission.id, role)

    if not actor or not actor.strip():
        raise ValueError("A decision must name the person who made it")

    decided = replace(
        step,
        status=rule.to_status,
        approver=actor.strip(),
        decided_at=decided_at or utcnow(),
        comment=comment,
    )
    steps = mission.approval_status[:index] + (decided,) + mission.approval_status[index + 1:]
    return replace(mission, approval_status=steps)


def pending_for(role: RoleLike, missions: Iterable[Mission]) -> List[Mission]:
    """Missions whose actionable step belongs to ``role``, in input order."""
    role = ApprovalRole.from_label(role)
    pending = []
    for mission in missions:
        step = find_next_actionable_step(mission)
        if step is not None and step.role == role:
            pending.append(mission)
    return pending


def advance_mission(mission: Mission, transition: Union[LifecycleTransition, str]) -> Mission:
    """Move an approved mission along accept → start → complete.

    Raises:
        LifecycleError: If the transition is not valid from the current status
    """
    transition = LifecycleTransition(transition)
    rule = get_lifecycle_rule(mission.status, transition)
    if rule is None:
        raise LifecycleError(mission.id, mission.status, transition)
    return replace(mission, lifecycle_status=rule.to_status)


class ApprovalStateMachine:
    """
    State machine for one mission's approval chain.

    Manages decisions on a mission snapshot with:
    - Validation of sequencing, terminality and comments
    - A record of every decision made through this instance
    - Callback hooks for side effects (notifications, audit)
    """

    def __init__(
        self,
        mission: Mission,
        *,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize the state machine.

        Args:
            mission: Current mission snapshot
            clock: Source of decision timestamps, defaults to UTC now
        """
        self._mission = mission
        self._clock = clock or utcnow
        self._history: list[Dict[str, Any]] = []
        self._callbacks: Dict[Decision, list[Callable]] = {}

    @property
    def mission(self) -> Mission:
        return self._mission

    @property
    def status(self):
        return self._mission.status

    @property
    def is_terminal(self) -> bool:
        return is_terminal(self._mission)

    @property
    def next_step(self) -> Optional[ApprovalStep]:
        return find_next_actionable_step(self._mission)

    def can_decide(self, role: RoleLike) -> bool:
        """Check whether ``role`` holds the actionable step."""
        step = self.next_step
        if step is None:
            return False
        try:
            return step.role == ApprovalRole.from_label(role)
        except UnknownRoleError:
            return False

    def decide(
        self,
        role: RoleLike,
        decision: Union[Decision, str],
        *,
        actor: str,
        comment: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Mission:
        """
        Apply a decision and keep the resulting snapshot.

        Raises:
            WorkflowError: Any of the validation errors raised by ``decide``
        """
        before = self._mission
        decision = Decision(decision)
        after = decide(
            before, role, decision, actor, comment, decided_at=self._clock()
        )

        role = ApprovalRole.from_label(role)
        step = after.step_for(role)
        record = {
            "id": str(uuid.uuid4()),
            "mission_id": after.id,
            "role": role.value,
            "decision": decision.value,
            "from_status": before.status.value,
            "to_status": after.status.value,
            "actor": step.approver,
            "comment": step.comment,
            "metadata": metadata or {},
            "timestamp": step.decided_at,
        }
        self._history.append(record)
        self._mission = after

        logger.info(
            f"Mission {after.id}: {role.label} {step.status.value} by {step.approver} "
            f"({before.status.value} -> {after.status.value})"
        )

        self._execute_callbacks(decision, record)
        return after

    def register_callback(
        self,
        decision: Decision,
        callback: Callable[[Dict[str, Any]], None],
    ) -> None:
        """Register a callback to be executed after a decision."""
        self._callbacks.setdefault(Decision(decision), []).append(callback)

    def get_history(self) -> list[Dict[str, Any]]:
        """Get the decisions made through this machine."""
        return self._history.copy()

    def _execute_callbacks(self, decision: Decision, record: Dict[str, Any]) -> None:
        for callback in self._callbacks.get(decision, []):
            try:
                callback(record)
            except Exception:
                # The decision already stands
                logger.exception(f"Callback error for {decision.value} on mission {record['mission_id']}")
