"""Permissions guarding the mission API.

A permission is written ``"resource:action"``, e.g. ``missions:create`` or
``approvals:reject``. ``resource:*`` and ``*:*`` are wildcards.
"""

from enum import Enum
from typing import FrozenSet, Iterable, NamedTuple

from missionflow.core.approval.states import Decision


class Resource(str, Enum):
    MISSIONS = "missions"         # Mission records and their lifecycle
    APPROVALS = "approvals"       # Pending queues, decisions and history


class Action(str, Enum):
    CREATE = "create"
    READ = "read"
    UPDATE = "update"             # accept / start / complete
    LIST = "list"
    APPROVE = "approve"
    REJECT = "reject"


WILDCARD = "*"


class Permission(NamedTuple):
    """A resource/action pair."""
    resource: Resource
    action: Action

    def __str__(self) -> str:
        return f"{self.resource.value}:{self.action.value}"

    @classmethod
    def from_string(cls, perm_str: str) -> "Permission":
        """Parse ``"missions:read"``. Wildcards are not permissions."""
        resource, sep, action = perm_str.partition(":")
        if not sep or ":" in action:
            raise ValueError(f"Invalid permission string: {perm_str!r}")
        return cls(Resource(resource), Action(action))


READ_ACTIONS: FrozenSet[Action] = frozenset([Action.READ, Action.LIST])
DECISION_ACTIONS: FrozenSet[Action] = frozenset([Action.APPROVE, Action.REJECT])

# Valid actions per resource
PERMISSION_MATRIX: dict[Resource, FrozenSet[Action]] = {
    Resource.MISSIONS: READ_ACTIONS | {Action.CREATE, Action.UPDATE},
    Resource.APPROVALS: READ_ACTIONS | DECISION_ACTIONS,
}

PERMISSION_DEFINITIONS: dict[str, Permission] = {
    str(Permission(resource, action)): Permission(resource, action)
    for resource, actions in PERMISSION_MATRIX.items()
    for action in actions
}

# Permission needed to submit each kind of decision
DECISION_PERMISSIONS: dict[Decision, str] = {
    Decision.APPROVE: str(Permission(Resource.APPROVALS, Action.APPROVE)),
    Decision.REJECT: str(Permission(Resource.APPROVALS, Action.REJECT)),
}


def is_valid_permission(perm_str: str) -> bool:
    return perm_str in PERMISSION_DEFINITIONS


def permissions_for(resource: Resource, actions: Iterable[Action]) -> list[str]:
    """Permission strings for several actions on one resource, in a stable order."""
    valid = PERMISSION_MATRIX[resource]
    result = []
    for action in actions:
        if action not in valid:
            raise ValueError(f"{action.value} is not an action on {resource.value}")
        result.append(str(Permission(resource, action)))
    return sorted(result)
