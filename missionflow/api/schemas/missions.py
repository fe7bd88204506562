"""Mission and approval step schemas."""

from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, Field, model_validator

from missionflow.core.approval.machine import find_next_actionable_step
from missionflow.core.approval.models import ApprovalStep, Mission


class ApprovalStepResponse(BaseModel):
    role: str
    label: str
    status: str
    approver: Optional[str] = None
    date: Optional[datetime] = None
    comment: Optional[str] = None

    @classmethod
    def from_step(cls, step: ApprovalStep) -> "ApprovalStepResponse":
        return cls(label=step.role.label, **step.to_dict())


class MissionResponse(BaseModel):
    id: str
    title: str
    destination: str
    start_date: Optional[date]
    end_date: Optional[date]
    budget: int
    budget_code: str
    department: str
    mission_type: str
    description: str
    requested_by: Optional[str]
    assigned_to: Optional[str]
    status: str
    next_approver: Optional[str]
    version: int
    approval_status: List[ApprovalStepResponse]
    created_at: Optional[datetime]

    @classmethod
    def from_mission(cls, mission: Mission) -> "MissionResponse":
        next_step = find_next_actionable_step(mission)
        return cls(
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
            status=mission.status.value,
            next_approver=next_step.role.value if next_step else None,
            version=mission.version,
            approval_status=[ApprovalStepResponse.from_step(s) for s in mission.approval_status],
            created_at=mission.created_at,
        )


class MissionCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    destination: str = Field("", max_length=255)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    budget: int = Field(0, ge=0, description="Budget in BIF")
    budget_code: str = Field("", max_length=50)
    department: str = Field("", max_length=255)
    mission_type: str = "inspection"
    description: str = ""
    assigned_to: Optional[str] = Field(None, max_length=255, description="Employee who carries out the mission")

    @model_validator(mode="after")
    def check_dates(self):
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class LifecycleAction(BaseModel):
    version: Optional[int] = Field(None, description="Version of the mission the caller last saw")


class DecisionRequest(BaseModel):
    comment: Optional[str] = None
    version: Optional[int] = Field(None, description="Version of the mission the caller last saw")


class BatchDecisionRequest(BaseModel):
    mission_ids: List[str] = Field(..., min_length=1)
    comment: Optional[str] = None


class BatchDecisionResponse(BaseModel):
    decided: List[str] = []
    failed: List[dict] = []


class DecisionHistoryResponse(BaseModel):
    id: str
    role: str
    decision: str
    from_status: str
    to_status: str
    actor: str
    comment: Optional[str]
    timestamp: Optional[datetime]
