"""Database models for missionflow."""

from missionflow.db.models.mission import MissionRecord
from missionflow.db.models.approval import ApprovalHistory

__all__ = [
    "MissionRecord",
    "ApprovalHistory",
]
