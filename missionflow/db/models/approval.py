"""Approval history database model.

Records every decision taken on a mission's approval chain.
"""

import uuid
from datetime import datetime, timezone
from sqlalchemy import Column, String, DateTime, JSON, ForeignKey, Text, Integer
from sqlalchemy.orm import relationship

from missionflow.db.base import Base


class ApprovalHistory(Base):
    """
    Records all decisions for a mission.

    Provides a complete audit trail of the approval workflow.
    """
    __tablename__ = "approval_history"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    mission_id = Column(String(36), ForeignKey("missions.id", ondelete="CASCADE"), nullable=False, index=True)

    # Decision details
    role = Column(String(50), nullable=False)
    decision = Column(String(50), nullable=False)
    from_status = Column(String(50), nullable=False)
    to_status = Column(String(50), nullable=False)

    # Actor
    actor = Column(String(255), nullable=False)

    # Optional comment (required for rejections)
    comment = Column(Text, nullable=True)

    # Additional context
    extra_data = Column(JSON, nullable=False, default=dict)

    # Insertion order breaks ties between decisions stamped in the same instant
    sequence = Column(Integer, nullable=False, default=0)

    # Timestamp
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), index=True)

    # Relationships
    mission = relationship("MissionRecord", back_populates="history")

    def __repr__(self) -> str:
        return f"<ApprovalHistory {self.role} {self.decision}: {self.from_status} -> {self.to_status}>"
