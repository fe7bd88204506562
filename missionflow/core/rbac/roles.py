"""User roles of the mission management system.

Each role carries a permission set and, for the four approvers, the
approval step it signs:

1. Admin - Full access, no approval step
2. Director General - Final approval
3. Department Head - First approval, creates missions
4. Finance - Budget approval
5. HR - Availability approval
6. Employee - Views and carries out assigned missions
"""

from enum import Enum
from typing import Dict, List, Optional

from missionflow.core.approval.states import ApprovalRole
from .permissions import (
    DECISION_ACTIONS,
    READ_ACTIONS,
    WILDCARD,
    Action,
    Resource,
    permissions_for,
)


class UserRole(str, Enum):
    ADMIN = "ADMIN"
    DIRECTOR_GENERAL = "DIRECTOR_GENERAL"
    DEPARTMENT_HEAD = "DEPARTMENT_HEAD"
    FINANCE = "FINANCE"
    HR = "HR"
    EMPLOYEE = "EMPLOYEE"


ADMIN_PERMISSIONS = [f"{WILDCARD}:{WILDCARD}"]

# Approvers see every mission and decide on their own step
APPROVER_PERMISSIONS = (
    permissions_for(Resource.MISSIONS, READ_ACTIONS)
    + permissions_for(Resource.APPROVALS, READ_ACTIONS | DECISION_ACTIONS)
)

DEPARTMENT_HEAD_PERMISSIONS = APPROVER_PERMISSIONS + permissions_for(
    Resource.MISSIONS, [Action.CREATE]
)

EMPLOYEE_PERMISSIONS = (
    permissions_for(Resource.MISSIONS, READ_ACTIONS | {Action.UPDATE})
    + permissions_for(Resource.APPROVALS, [Action.READ])
)


ROLE_PERMISSIONS: Dict[UserRole, List[str]] = {
    UserRole.ADMIN: ADMIN_PERMISSIONS,
    UserRole.DIRECTOR_GENERAL: APPROVER_PERMISSIONS,
    UserRole.DEPARTMENT_HEAD: DEPARTMENT_HEAD_PERMISSIONS,
    UserRole.FINANCE: APPROVER_PERMISSIONS,
    UserRole.HR: APPROVER_PERMISSIONS,
    UserRole.EMPLOYEE: EMPLOYEE_PERMISSIONS,
}

APPROVAL_ROLES: Dict[UserRole, ApprovalRole] = {
    UserRole.DEPARTMENT_HEAD: ApprovalRole.DEPARTMENT_HEAD,
    UserRole.FINANCE: ApprovalRole.FINANCE,
    UserRole.HR: ApprovalRole.HR,
    UserRole.DIRECTOR_GENERAL: ApprovalRole.DIRECTOR,
}


def get_role_permissions(role: UserRole) -> List[str]:
    """Get permissions list for a user role."""
    return list(ROLE_PERMISSIONS[UserRole(role)])


def get_approval_role(role: UserRole) -> Optional[ApprovalRole]:
    """Get the approval step a user role signs, if any."""
    return APPROVAL_ROLES.get(UserRole(role))
