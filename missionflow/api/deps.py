from dataclasses import dataclass, field
from functools import lru_cache
from typing import Generator, List, Optional

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from missionflow.common.config import WorkflowConfig, load_workflow_config
from missionflow.core.approval.service import MissionApprovalService
from missionflow.core.approval.states import ApprovalRole
from missionflow.core.config import get_settings
from missionflow.core.rbac.roles import UserRole, get_approval_role, get_role_permissions
from missionflow.db.session import SessionLocal
from missionflow.db.sql import SqlMissionRepository


@dataclass
class CurrentUser:
    """Identity supplied by the gateway in front of the API."""
    name: str
    role: UserRole
    permissions: List[str] = field(default_factory=list)

    @property
    def approval_role(self) -> Optional[ApprovalRole]:
        return get_approval_role(self.role)


def get_db() -> Generator:
    """Database session dependency."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_current_user(
    x_user_name: Optional[str] = Header(default=None),
    x_user_role: Optional[str] = Header(default=None),
) -> CurrentUser:
    """Read the caller's identity from the ``X-User-Name``/``X-User-Role`` headers."""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not identify the caller",
    )

    if not x_user_name or not x_user_name.strip() or not x_user_role:
        raise credentials_exception

    try:
        role = UserRole(x_user_role.strip().upper())
    except ValueError:
        raise credentials_exception

    return CurrentUser(
        name=x_user_name.strip(),
        role=role,
        permissions=get_role_permissions(role),
    )


@lru_cache
def get_workflow_config() -> WorkflowConfig:
    return load_workflow_config(get_settings().workflow_config_path)


def get_mission_service(
    db: Session = Depends(get_db),
    workflow: WorkflowConfig = Depends(get_workflow_config),
) -> MissionApprovalService:
    return MissionApprovalService(SqlMissionRepository(db), workflow)
