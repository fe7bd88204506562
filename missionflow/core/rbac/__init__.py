"""Role-based access control for the mission API."""

from .permissions import Permission, Resource, Action, PERMISSION_DEFINITIONS, DECISION_PERMISSIONS
from .checker import PermissionChecker, check_permissions, has_permission, require_permission
from .roles import UserRole, get_role_permissions, get_approval_role

__all__ = [
    "Permission",
    "Resource",
    "Action",
    "PERMISSION_DEFINITIONS",
    "DECISION_PERMISSIONS",
    "PermissionChecker",
    "check_permissions",
    "has_permission",
    "require_permission",
    "UserRole",
    "get_role_permissions",
    "get_approval_role",
]
