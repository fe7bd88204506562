"""Persistence layer for missionflow."""

from .repository import ConcurrentUpdateError, MissionNotFoundError, MissionRepository
from .inmemory import InMemoryMissionRepository
from .sql import SqlMissionRepository

__all__ = [
    "ConcurrentUpdateError",
    "MissionNotFoundError",
    "MissionRepository",
    "InMemoryMissionRepository",
    "SqlMissionRepository",
]
