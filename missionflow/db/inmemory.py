"""In-memory implementation of the mission repository."""

import threading
from dataclasses import replace
from typing import Any, Dict, List, Optional

from missionflow.core.approval.models import Mission, utcnow

from .repository import ConcurrentUpdateError, MissionNotFoundError, MissionRepository


class InMemoryMissionRepository(MissionRepository):
    """Store missions in local memory.

    Useful for tests or when no database is configured. Snapshots are
    immutable, so they are stored and handed out as-is. A lock makes the
    version check and the write a single step.
    """

    def __init__(self) -> None:
        self._missions: Dict[str, Mission] = {}
        self._history: Dict[str, List[Dict[str, Any]]] = {}
        self._lock = threading.Lock()

    def add_mission(self, mission: Mission) -> Mission:
        with self._lock:
            if mission.id in self._missions:
                raise ValueError(f"Mission {mission.id} already exists")
            stored = replace(mission, version=0, created_at=mission.created_at or utcnow())
            self._missions[mission.id] = stored
            self._history[mission.id] = []
            return stored

    def load_mission(self, mission_id: str) -> Mission:
        with self._lock:
            mission = self._missions.get(mission_id)
        if mission is None:
            raise MissionNotFoundError(mission_id)
        return mission

    def save_mission(self, mission: Mission, *, expected_version: int) -> Mission:
        with self._lock:
            current = self._missions.get(mission.id)
            if current is None:
                raise MissionNotFoundError(mission.id)
            if current.version != expected_version:
                raise ConcurrentUpdateError(mission.id, expected_version, current.version)
            stored = replace(mission, version=expected_version + 1)
            self._missions[mission.id] = stored
            return stored

    def list_missions(self, *, department: Optional[str] = None) -> List[Mission]:
        with self._lock:
            missions = list(self._missions.values())
        if department:
            missions = [m for m in missions if m.department == department]
        return missions

    def record_decision(self, record: Dict[str, Any]) -> None:
        with self._lock:
            if record["mission_id"] not in self._history:
                raise MissionNotFoundError(record["mission_id"])
            self._history[record["mission_id"]].append(dict(record))

    def get_history(self, mission_id: str) -> List[Dict[str, Any]]:
        with self._lock:
            if mission_id not in self._history:
                raise MissionNotFoundError(mission_id)
            return [dict(r) for r in self._history[mission_id]]
