"""Daily health log and lab result Pydantic models."""

from datetime import date
from typing import Optional, List

from pydantic import BaseModel, field_validator

from .common import BaseResponse, TimestampMixin, blank_to_none


# Symptom flag -> label shown to users
SYMPTOMS = [
    ("has_nausea", "Mual"),
    ("has_dizziness", "Pusing"),
    ("has_weakness", "Lemas"),
    ("has_skin_rash", "Ruam Kulit"),
]


class HealthLog(TimestampMixin):
    """Row of `daily_health_logs`."""
    id: str
    patient_id: Optional[str] = None
    log_date: date
    has_nausea: bool = False
    has_dizziness: bool = False
    has_weakness: bool = False
    has_skin_rash: bool = False
    additional_notes: Optional[str] = None

    @field_validator("has_nausea", "has_dizziness", "has_weakness", "has_skin_rash", mode="before")
    @classmethod
    def null_is_false(cls, v):
        return bool(v)

    @property
    def active_symptoms(self) -> List[str]:
        return [label for key, label in SYMPTOMS if getattr(self, key)]


class HealthLogView(HealthLog):
    symptoms: List[str] = []
    is_today: bool = False


class HealthLogUpdate(BaseModel):
    """Today's symptom form."""
    has_nausea: bool = False
    has_dizziness: bool = False
    has_weakness: bool = False
    has_skin_rash: bool = False
    additional_notes: Optional[str] = None

    @field_validator("additional_notes")
    @classmethod
    def normalize_notes(cls, v):
        return blank_to_none(v)


class HealthLogOverview(BaseModel):
    today: Optional[HealthLogView] = None
    recent: List[HealthLogView]


class HealthLogOverviewResponse(BaseResponse):
    day: date
    data: HealthLogOverview


class HealthLogSaveResponse(BaseResponse):
    created: bool
    data: HealthLogView


class LabResult(TimestampMixin):
    """Row of `lab_results`."""
    id: str
    patient_id: Optional[str] = None
    image_url: str
    description: Optional[str] = None
    test_date: date


class LabResultResponse(BaseResponse):
    data: LabResult


class LabResultListResponse(BaseResponse):
    data: List[LabResult]
    total: int
    empty_message: Optional[str] = None
