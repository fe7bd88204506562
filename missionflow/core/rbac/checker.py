"""Permission checks for API endpoints."""

from functools import wraps
from typing import Callable, Iterable, List, Union

from fastapi import HTTPException, status

from .permissions import WILDCARD, Permission

PermissionLike = Union[str, Permission]


def _as_string(permission: PermissionLike) -> str:
    return str(permission)


class PermissionChecker:
    """Answers permission questions for one set of granted permissions."""

    def __init__(self, user_permissions: Iterable[str]):
        self.permissions = frozenset(user_permissions)

    def has_permission(self, permission: PermissionLike) -> bool:
        required = _as_string(permission)
        if required in self.permissions or f"{WILDCARD}:{WILDCARD}" in self.permissions:
            return True
        resource, sep, _ = required.partition(":")
        return bool(sep) and f"{resource}:{WILDCARD}" in self.permissions

    def has_any_permission(self, permissions: List[PermissionLike]) -> bool:
        return any(self.has_permission(p) for p in permissions)

    def has_all_permissions(self, permissions: List[PermissionLike]) -> bool:
        return all(self.has_permission(p) for p in permissions)

    def missing(self, permissions: Iterable[PermissionLike]) -> List[str]:
        """Required permissions this checker does not grant."""
        return [_as_string(p) for p in permissions if not self.has_permission(p)]


def has_permission(user, permission: PermissionLike) -> bool:
    """True if ``user`` (anything with a ``permissions`` list) holds ``permission``."""
    if not user:
        return False
    return PermissionChecker(user.permissions or []).has_permission(permission)


def check_permissions(user, permissions: List[PermissionLike], *, require_all: bool = False) -> None:
    """
    Raise the HTTP error an endpoint returns when ``user`` lacks access.

    Raises:
        HTTPException: 401 without a user, 403 without the permissions
    """
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )

    checker = PermissionChecker(user.permissions or [])
    missing = checker.missing(permissions)
    denied = bool(missing) if require_all else len(missing) == len(permissions)
    if denied:
        role = getattr(user, "role", None)
        joiner = " and " if require_all else " or "
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Role {getattr(role, 'value', role)} lacks {joiner.join(missing)}",
        )


def require_permission(*permissions: PermissionLike, require_all: bool = False):
    """
    Decorator for endpoints that take ``current_user`` as a keyword dependency.

    By default any one of ``permissions`` is enough.

    Usage:
        @router.post("/{mission_id}/approve")
        @require_permission("approvals:approve")
        async def approve_mission(..., current_user: CurrentUser = Depends(get_current_user)):
            ...
    """
    required = list(permissions)

    def decorator(func: Callable):
        @wraps(func)
        async def wrapper(*args, **kwargs):
            check_permissions(kwargs.get("current_user"), required, require_all=require_all)
            return await func(*args, **kwargs)

        return wrapper
    return decorator
