"""Approval service for managing mission approval workflows.

Provides high-level API for interacting with the approval state machine,
including persistence with optimistic versioning and audit logging.
"""

import uuid
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Optional, Union

from missionflow.common.config import WorkflowConfig
from missionflow.common.logger import get_logger
from missionflow.db.repository import ConcurrentUpdateError, MissionRepository

from .errors import NotAssigneeError, UnknownMissionTypeError, WorkflowError
from .machine import ApprovalStateMachine, advance_mission, pending_for
from .models import Mission, build_approval_chain, utcnow
from .states import ApprovalRole, Decision, LifecycleTransition

logger = get_logger("approval.service")


class MissionApprovalService:
    """
    High-level service for managing mission approvals.

    Handles:
    - Creating missions with the approval chain for their type
    - Recording decisions with versioned persistence
    - Role-specific pending queues
    - Batch decisions
    - Post-approval lifecycle moves
    """

    def __init__(
        self,
        repository: MissionRepository,
        workflow: Optional[WorkflowConfig] = None,
        *,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize the approval service.

        Args:
            repository: Persistence collaborator
            workflow: Approval chains per mission type
            clock: Source of decision timestamps
        """
        self.repository = repository
        self.workflow = workflow or WorkflowConfig()
        self.clock = clock or utcnow

    def create_mission(
        self,
        title: str,
        *,
        destination: str = "",
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        budget: int = 0,
        budget_code: str = "",
        department: str = "",
        mission_type: str = "",
        description: str = "",
        requested_by: Optional[str] = None,
        assigned_to: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Mission:
        """
        Create a new mission with every approval step pending.

        ``mission_type`` must be a built-in type or one the workflow file
        declares; an empty type takes the default chain.

        Returns:
            The stored mission

        Raises:
            UnknownMissionTypeError: If the mission type is not known
        """
        if start_date and end_date and end_date < start_date:
            raise ValueError("A mission cannot end before it starts")

        mission_type = (mission_type or "").strip().lower()
        if mission_type and not self.workflow.is_known_type(mission_type):
            raise UnknownMissionTypeError(mission_type, self.workflow.known_types)

        mission = Mission(
            id=str(uuid.uuid4()),
            title=title,
            approval_status=build_approval_chain(self.workflow.chain_for(mission_type)),
            destination=destination,
            start_date=start_date,
            end_date=end_date,
            budget=budget,
            budget_code=budget_code,
            department=department,
            mission_type=mission_type,
            description=description,
            requested_by=requested_by,
            assigned_to=(assigned_to or "").strip() or None,
            created_at=self.clock(),
            extra_data=metadata or {},
        )
        stored = self.repository.add_mission(mission)
        logger.info(
            f"Mission {stored.id} created for {department or 'no department'}: "
            + " -> ".join(role.label for role in stored.roles)
        )
        return stored

    def get_mission(self, mission_id: str) -> Mission:
        """Get a mission by ID. Raises MissionNotFoundError."""
        return self.repository.load_mission(mission_id)

    def list_missions(self, *, department: Optional[str] = None) -> List[Mission]:
        return self.repository.list_missions(department=department)

    def decide(
        self,
        mission_id: str,
        role: Union[ApprovalRole, str],
        decision: Union[Decision, str],
        *,
        actor: str,
        comment: Optional[str] = None,
        expected_version: Optional[int] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Mission:
        """
        Record a decision on a mission.

        Args:
            mission_id: ID of the mission
            role: Role submitting the decision
            decision: Approve or reject
            actor: Identity of the person deciding
            comment: Comment (required for rejections)
            expected_version: Version of the snapshot the actor was shown
            metadata: Additional metadata for the audit trail

        Returns:
            Updated mission

        Raises:
            MissionNotFoundError: If the mission does not exist
            WorkflowError: If the decision is invalid
            ConcurrentUpdateError: If the mission changed since it was read
        """
        mission = self.repository.load_mission(mission_id)
        if expected_version is not None and mission.version != expected_version:
            raise ConcurrentUpdateError(mission_id, expected_version, mission.version)

        machine = ApprovalStateMachine(mission, clock=self.clock)
        machine.decide(role, decision, actor=actor, comment=comment, metadata=metadata)

        saved = self.repository.save_mission(machine.mission, expected_version=mission.version)
        for record in machine.get_history():
            self.repository.record_decision(record)

        return saved

    def approve(self, mission_id: str, role, *, actor: str, **kwargs) -> Mission:
        return self.decide(mission_id, role, Decision.APPROVE, actor=actor, **kwargs)

    def reject(self, mission_id: str, role, *, actor: str, comment: str, **kwargs) -> Mission:
        return self.decide(mission_id, role, Decision.REJECT, actor=actor, comment=comment, **kwargs)

    def pending_for(
        self,
        role: Union[ApprovalRole, str],
        *,
        department: Optional[str] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> List[Mission]:
        """Missions currently waiting on ``role``, oldest first."""
        pending = pending_for(role, self.repository.list_missions(department=department))
        if limit is None:
            return pending[offset:]
        return pending[offset:offset + limit]

    def batch_decide(
        self,
        mission_ids: List[str],
        role: Union[ApprovalRole, str],
        decision: Union[Decision, str],
        *,
        actor: str,
        comment: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Apply the same decision to several missions.

        Returns:
            Summary of results
        """
        results = {"decided": [], "failed": []}

        for mission_id in mission_ids:
            try:
                self.decide(mission_id, role, decision, actor=actor, comment=comment)
                results["decided"].append(mission_id)
            except (WorkflowError, LookupError, ConcurrentUpdateError) as e:
                logger.warning(f"Batch {Decision(decision).value} skipped mission {mission_id}: {e}")
                results["failed"].append({
                    "id": mission_id,
                    "code": getattr(e, "code", type(e).__name__),
                    "error": str(e),
                })

        return results

    def advance(
        self,
        mission_id: str,
        transition: Union[LifecycleTransition, str],
        *,
        actor: str,
        expected_version: Optional[int] = None,
    ) -> Mission:
        """
        Move an approved mission to accepted, in progress or completed.

        Only the employee the mission is assigned to may move it.

        Raises:
            NotAssigneeError: If ``actor`` is not the assignee
            LifecycleError: If the move is not valid from the current status
            ConcurrentUpdateError: If the mission changed since it was read
        """
        mission = self.repository.load_mission(mission_id)
        if expected_version is not None and mission.version != expected_version:
            raise ConcurrentUpdateError(mission_id, expected_version, mission.version)
        if mission.assigned_to is None or (actor or "").strip() != mission.assigned_to:
            raise NotAssigneeError(mission_id, actor, mission.assigned_to)

        updated = advance_mission(mission, transition)
        saved = self.repository.save_mission(updated, expected_version=mission.version)
        logger.info(
            f"Mission {mission_id}: {mission.status.value} -> {saved.status.value} by {actor}"
        )
        return saved

    def get_history(self, mission_id: str) -> List[Dict[str, Any]]:
        """Get the decision history for a mission."""
        return self.repository.get_history(mission_id)
