"""Approval workflow API endpoints."""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from missionflow.api.deps import CurrentUser, get_current_user, get_db, get_mission_service
from missionflow.api.schemas.common import PaginatedResponse
from missionflow.api.schemas.missions import (
    BatchDecisionRequest,
    BatchDecisionResponse,
    DecisionHistoryResponse,
    DecisionRequest,
    MissionResponse,
)
from missionflow.core.approval.service import MissionApprovalService
from missionflow.core.approval.states import ApprovalRole, Decision
from missionflow.core.rbac import DECISION_PERMISSIONS, require_permission

router = APIRouter(prefix="/approvals", tags=["approvals"])


def _acting_role(current_user: CurrentUser) -> ApprovalRole:
    role = current_user.approval_role
    if role is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Your role does not take part in mission approvals",
        )
    return role


@router.get("/pending", response_model=PaginatedResponse[MissionResponse])
@require_permission("approvals:list")
async def list_pending_approvals(
    service: MissionApprovalService = Depends(get_mission_service),
    current_user: CurrentUser = Depends(get_current_user),
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
    role: Optional[str] = Query(None, description="Approval role; defaults to the caller's"),
    department: Optional[str] = None,
):
    """List missions whose next approval step belongs to a role."""
    queue_role = ApprovalRole.from_label(role) if role else _acting_role(current_user)

    pending = service.pending_for(queue_role, department=department)
    return PaginatedResponse[MissionResponse].paginate(pending, page, per_page, MissionResponse.from_mission)


@router.post("/batch/approve", response_model=BatchDecisionResponse)
@require_permission(DECISION_PERMISSIONS[Decision.APPROVE])
async def batch_approve(
    batch: BatchDecisionRequest,
    db: Session = Depends(get_db),
    service: MissionApprovalService = Depends(get_mission_service),
    current_user: CurrentUser = Depends(get_current_user),
):
    """Approve several missions at the caller's step."""
    result = service.batch_decide(
        batch.mission_ids,
        _acting_role(current_user),
        Decision.APPROVE,
        actor=current_user.name,
        comment=batch.comment,
    )
    db.commit()
    return BatchDecisionResponse(**result)


@router.post("/batch/reject", response_model=BatchDecisionResponse)
@require_permission(DECISION_PERMISSIONS[Decision.REJECT])
async def batch_reject(
    batch: BatchDecisionRequest,
    db: Session = Depends(get_db),
    service: MissionApprovalService = Depends(get_mission_service),
    current_user: CurrentUser = Depends(get_current_user),
):
    """Reject several missions at the caller's step."""
    result = service.batch_decide(
        batch.mission_ids,
        _acting_role(current_user),
        Decision.REJECT,
        actor=current_user.name,
        comment=batch.comment,
    )
    db.commit()
    return BatchDecisionResponse(**result)


@router.post("/{mission_id}/approve", response_model=MissionResponse)
@require_permission(DECISION_PERMISSIONS[Decision.APPROVE])
async def approve_mission(
    mission_id: str,
    action: DecisionRequest,
    db: Session = Depends(get_db),
    service: MissionApprovalService = Depends(get_mission_service),
    current_user: CurrentUser = Depends(get_current_user),
):
    """Approve the caller's step on a mission."""
    mission = service.decide(
        mission_id,
        _acting_role(current_user),
        Decision.APPROVE,
        actor=current_user.name,
        comment=action.comment,
        expected_version=action.version,
    )
    db.commit()
    return MissionResponse.from_mission(mission)


@router.post("/{mission_id}/reject", response_model=MissionResponse)
@require_permission(DECISION_PERMISSIONS[Decision.REJECT])
async def reject_mission(
    mission_id: str,
    action: DecisionRequest,
    db: Session = Depends(get_db),
    service: MissionApprovalService = Depends(get_mission_service),
    current_user: CurrentUser = Depends(get_current_user),
):
    """Reject a mission at the caller's step. A comment is required."""
    mission = service.decide(
        mission_id,
        _acting_role(current_user),
        Decision.REJECT,
        actor=current_user.name,
        comment=action.comment,
        expected_version=action.version,
    )
    db.commit()
    return MissionResponse.from_mission(mission)


@router.get("/{mission_id}/history", response_model=List[DecisionHistoryResponse])
@require_permission("approvals:read")
async def get_approval_history(
    mission_id: str,
    service: MissionApprovalService = Depends(get_mission_service),
    current_user: CurrentUser = Depends(get_current_user),
):
    """Get the decisions recorded on a mission, oldest first."""
    return [DecisionHistoryResponse(**record) for record in service.get_history(mission_id)]
