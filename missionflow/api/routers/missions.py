"""Mission API endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from missionflow.api.deps import CurrentUser, get_current_user, get_db, get_mission_service
from missionflow.api.schemas.common import PaginatedResponse
from missionflow.api.schemas.missions import LifecycleAction, MissionCreate, MissionResponse
from missionflow.core.approval.service import MissionApprovalService
from missionflow.core.approval.states import LifecycleTransition, MissionStatus
from missionflow.core.rbac import require_permission

router = APIRouter(prefix="/missions", tags=["missions"])


@router.post("", response_model=MissionResponse, status_code=status.HTTP_201_CREATED)
@require_permission("missions:create")
async def create_mission(
    payload: MissionCreate,
    db: Session = Depends(get_db),
    service: MissionApprovalService = Depends(get_mission_service),
    current_user: CurrentUser = Depends(get_current_user),
):
    """Submit a mission; every approval step starts pending."""
    mission = service.create_mission(
        payload.title,
        destination=payload.destination,
        start_date=payload.start_date,
        end_date=payload.end_date,
        budget=payload.budget,
        budget_code=payload.budget_code,
        department=payload.department,
        mission_type=payload.mission_type,
        description=payload.description,
        requested_by=current_user.name,
        assigned_to=payload.assigned_to,
    )
    db.commit()
    return MissionResponse.from_mission(mission)


@router.get("", response_model=PaginatedResponse[MissionResponse])
@require_permission("missions:list")
async def list_missions(
    service: MissionApprovalService = Depends(get_mission_service),
    current_user: CurrentUser = Depends(get_current_user),
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
    department: Optional[str] = None,
    mission_status: Optional[MissionStatus] = Query(None, alias="status"),
):
    """List missions, oldest first."""
    missions = service.list_missions(department=department)
    if mission_status:
        missions = [m for m in missions if m.status == mission_status]

    return PaginatedResponse[MissionResponse].paginate(missions, page, per_page, MissionResponse.from_mission)


@router.get("/{mission_id}", response_model=MissionResponse)
@require_permission("missions:read")
async def get_mission(
    mission_id: str,
    service: MissionApprovalService = Depends(get_mission_service),
    current_user: CurrentUser = Depends(get_current_user),
):
    """Get a specific mission with its approval chain."""
    return MissionResponse.from_mission(service.get_mission(mission_id))


async def _advance(
    mission_id: str,
    transition: LifecycleTransition,
    action: Optional[LifecycleAction],
    db: Session,
    service: MissionApprovalService,
    current_user: CurrentUser,
) -> MissionResponse:
    mission = service.advance(
        mission_id,
        transition,
        actor=current_user.name,
        expected_version=action.version if action else None,
    )
    db.commit()
    return MissionResponse.from_mission(mission)


@router.post("/{mission_id}/accept", response_model=MissionResponse)
@require_permission("missions:update")
async def accept_mission(
    mission_id: str,
    action: Optional[LifecycleAction] = None,
    db: Session = Depends(get_db),
    service: MissionApprovalService = Depends(get_mission_service),
    current_user: CurrentUser = Depends(get_current_user),
):
    """Accept a mission as its assignee."""
    return await _advance(mission_id, LifecycleTransition.ACCEPT, action, db, service, current_user)


@router.post("/{mission_id}/start", response_model=MissionResponse)
@require_permission("missions:update")
async def start_mission(
    mission_id: str,
    action: Optional[LifecycleAction] = None,
    db: Session = Depends(get_db),
    service: MissionApprovalService = Depends(get_mission_service),
    current_user: CurrentUser = Depends(get_current_user),
):
    """Mark an accepted mission as in progress."""
    return await _advance(mission_id, LifecycleTransition.START, action, db, service, current_user)


@router.post("/{mission_id}/complete", response_model=MissionResponse)
@require_permission("missions:update")
async def complete_mission(
    mission_id: str,
    action: Optional[LifecycleAction] = None,
    db: Session = Depends(get_db),
    service: MissionApprovalService = Depends(get_mission_service),
    current_user: CurrentUser = Depends(get_current_user),
):
    """Mark a mission in progress as completed."""
    return await _advance(mission_id, LifecycleTransition.COMPLETE, action, db, service, current_user)
