"""SQLAlchemy implementation of the mission repository."""

from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import and_, func, update
from sqlalchemy.orm import Session

from missionflow.core.approval.models import ApprovalStep, Mission
from missionflow.core.approval.states import MissionStatus
from missionflow.db.models import ApprovalHistory, MissionRecord

from .repository import ConcurrentUpdateError, MissionNotFoundError, MissionRepository


class SqlMissionRepository(MissionRepository):
    """
    Store missions through a SQLAlchemy session.

    Writes are flushed but never committed; the caller owns the transaction.
    ``save_mission`` issues ``UPDATE ... WHERE version = :expected`` so a
    writer holding a stale snapshot matches no row and loses.
    """

    def __init__(self, db: Session):
        self.db = db

    def add_mission(self, mission: Mission) -> Mission:
        record = MissionRecord(
            id=mission.id,
            title=mission.title,
            destination=mission.destination,
            start_date=mission.start_date,
            end_date=mission.end_date,
            budget=mission.budget,
            budget_code=mission.budget_code,
            department=mission.department,
            mission_type=mission.mission_type,
            description=mission.description,
            requested_by=mission.requested_by,
            assigned_to=mission.assigned_to,
            approval_status=[step.to_dict() for step in mission.approval_status],
            status=mission.status.value,
            lifecycle_status=mission.lifecycle_status.value if mission.lifecycle_status else None,
            version=0,
            extra_data=mission.extra_data or {},
        )
        if mission.created_at:
            record.created_at = mission.created_at

        self.db.add(record)
        self.db.flush()
        return self._to_mission(record)

    def load_mission(self, mission_id: str) -> Mission:
        record = (
            self.db.query(MissionRecord)
            .filter(MissionRecord.id == mission_id)
            .populate_existing()
            .first()
        )
        if not record:
            raise MissionNotFoundError(mission_id)
        return self._to_mission(record)

    def save_mission(self, mission: Mission, *, expected_version: int) -> Mission:
        result = self.db.execute(
            update(MissionRecord)
            .where(
                and_(
                    MissionRecord.id == mission.id,
                    MissionRecord.version == expected_version,
                )
            )
            .values(
                approval_status=[step.to_dict() for step in mission.approval_status],
                status=mission.status.value,
                lifecycle_status=mission.lifecycle_status.value if mission.lifecycle_status else None,
                version=expected_version + 1,
                updated_at=datetime.now(timezone.utc),
            )
            .execution_options(synchronize_session=False)
        )

        if result.rowcount != 1:
            current = (
                self.db.query(MissionRecord.version)
                .filter(MissionRecord.id == mission.id)
                .scalar()
            )
            if current is None:
                raise MissionNotFoundError(mission.id)
            raise ConcurrentUpdateError(mission.id, expected_version, current)

        return replace(mission, version=expected_version + 1)

    def list_missions(self, *, department: Optional[str] = None) -> List[Mission]:
        query = self.db.query(MissionRecord)
        if department:
            query = query.filter(MissionRecord.department == department)
        query = query.order_by(MissionRecord.created_at.asc(), MissionRecord.id.asc()).populate_existing()
        return [self._to_mission(r) for r in query.all()]

    def record_decision(self, record: Dict[str, Any]) -> None:
        mission_id = record["mission_id"]
        exists = self.db.query(MissionRecord.id).filter(MissionRecord.id == mission_id).first()
        if not exists:
            raise MissionNotFoundError(mission_id)

        count = (
            self.db.query(func.count(ApprovalHistory.id))
            .filter(ApprovalHistory.mission_id == mission_id)
            .scalar()
        )
        history = ApprovalHistory(
            id=record["id"],
            mission_id=mission_id,
            role=record["role"],
            decision=record["decision"],
            from_status=record["from_status"],
            to_status=record["to_status"],
            actor=record["actor"],
            comment=record.get("comment"),
            extra_data=record.get("metadata") or {},
            sequence=count + 1,
            created_at=record.get("timestamp") or datetime.now(timezone.utc),
        )
        self.db.add(history)
        self.db.flush()

    def get_history(self, mission_id: str) -> List[Dict[str, Any]]:
        exists = self.db.query(MissionRecord.id).filter(MissionRecord.id == mission_id).first()
        if not exists:
            raise MissionNotFoundError(mission_id)

        rows = (
            self.db.query(ApprovalHistory)
            .filter(ApprovalHistory.mission_id == mission_id)
            .order_by(ApprovalHistory.sequence.asc())
            .all()
        )
        return [
            {
                "id": h.id,
                "mission_id": h.mission_id,
                "role": h.role,
                "decision": h.decision,
                "from_status": h.from_status,
                "to_status": h.to_status,
                "actor": h.actor,
                "comment": h.comment,
                "metadata": h.extra_data or {},
                "timestamp": h.created_at,
            }
            for h in rows
        ]

    def _to_mission(self, record: MissionRecord) -> Mission:
        return Mission(
            id=record.id,
            title=record.title,
            approval_status=tuple(ApprovalStep.from_dict(s) for s in record.approval_status or []),
            destination=record.destination or "",
            start_date=record.start_date,
            end_date=record.end_date,
            budget=record.budget or 0,
            budget_code=record.budget_code or "",
            department=record.department or "",
            mission_type=record.mission_type or "",
            description=record.description or "",
            requested_by=record.requested_by,
            assigned_to=record.assigned_to,
            lifecycle_status=MissionStatus(record.lifecycle_status) if record.lifecycle_status else None,
            version=record.version,
            created_at=record.created_at,
            extra_data=dict(record.extra_data or {}),
        )
