"""Mission database model.

Approval steps live in a JSON column as the ordered list the web client
already understands: ``[{role, status, approver, date, comment}, ...]``.
"""

import uuid
from datetime import datetime, timezone
from sqlalchemy import Column, String, DateTime, Date, JSON, Integer, BigInteger, Text
from sqlalchemy.orm import relationship

from missionflow.db.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MissionRecord(Base):
    """
    Stored mission snapshot.

    ``version`` increases by one on every save and guards concurrent decisions.
    """
    __tablename__ = "missions"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    # Descriptive fields
    title = Column(String(255), nullable=False)
    destination = Column(String(255), nullable=False, default="")
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    budget = Column(BigInteger, nullable=False, default=0)  # BIF
    budget_code = Column(String(50), nullable=False, default="")
    department = Column(String(255), nullable=False, default="", index=True)
    mission_type = Column(String(50), nullable=False, default="")
    description = Column(Text, nullable=False, default="")
    requested_by = Column(String(255), nullable=True)
    assigned_to = Column(String(255), nullable=True, index=True)

    # Workflow state
    approval_status = Column(JSON, nullable=False, default=list)
    status = Column(String(50), nullable=False, default="pending", index=True)  # derived, written with the steps
    lifecycle_status = Column(String(50), nullable=True)
    version = Column(Integer, nullable=False, default=0)

    # Additional data
    extra_data = Column(JSON, nullable=False, default=dict)

    # Timestamps
    created_at = Column(DateTime(timezone=True), default=_utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    # Relationships
    history = relationship(
        "ApprovalHistory",
        back_populates="mission",
        order_by="ApprovalHistory.created_at",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<MissionRecord {self.title} [{self.status} v{self.version}]>"
