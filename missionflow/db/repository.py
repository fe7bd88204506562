"""Persistence collaborator for mission snapshots.

The approval core never touches storage; callers load a snapshot, apply a
decision and save it back through a ``MissionRepository``. Saves are
guarded by optimistic versioning so two concurrent writers cannot both
commit a decision made against the same snapshot.
"""

from typing import Any, Dict, List, Optional, Protocol

from missionflow.core.approval.models import Mission


class MissionNotFoundError(LookupError):
    """Raised when a mission id is unknown to the repository."""

    def __init__(self, mission_id: str):
        super().__init__(f"Mission {mission_id} not found")
        self.mission_id = mission_id


class ConcurrentUpdateError(Exception):
    """Raised when a save is based on a stale mission snapshot."""

    def __init__(self, mission_id: str, expected_version: int, actual_version: Optional[int] = None):
        super().__init__(
            f"Mission {mission_id} was changed by someone else "
            f"(expected version {expected_version}, found {actual_version})"
        )
        self.mission_id = mission_id
        self.expected_version = expected_version
        self.actual_version = actual_version


class MissionRepository(Protocol):
    """Protocol for mission persistence backends."""

    def add_mission(self, mission: Mission) -> Mission:
        """Persist a new mission and return it as stored."""

    def load_mission(self, mission_id: str) -> Mission:
        """Load a mission snapshot. Raises MissionNotFoundError."""

    def save_mission(self, mission: Mission, *, expected_version: int) -> Mission:
        """Store ``mission`` if the stored version still equals ``expected_version``.

        Returns the snapshot with its new version. Raises ConcurrentUpdateError
        when the stored version moved on.
        """

    def list_missions(self, *, department: Optional[str] = None) -> List[Mission]:
        """Return missions in creation order."""

    def record_decision(self, record: Dict[str, Any]) -> None:
        """Append a decision to the mission's audit trail."""

    def get_history(self, mission_id: str) -> List[Dict[str, Any]]:
        """Return a mission's decisions, oldest first."""
