"""Medication and control schedule Pydantic models."""

from datetime import date, datetime
from typing import Optional, List

from pydantic import BaseModel, Field, field_validator

from .common import BaseResponse, CommonValidators, ScheduleCard, TimestampMixin, blank_to_none


class MedicationSchedule(TimestampMixin):
    """Row of `medication_schedules`."""
    id: str
    patient_id: str
    medication_name: str
    dosage: str
    schedule_time: str
    notes: Optional[str] = None
    created_by: Optional[str] = None
    patient_name: Optional[str] = None
    card: Optional[ScheduleCard] = None


class MedicationScheduleCreate(BaseModel):
    """Admin form for a new medication schedule."""
    patient_id: str = Field(..., min_length=1)
    medication_name: str
    dosage: str
    schedule_time: str
    notes: Optional[str] = None

    @field_validator("medication_name", "dosage")
    @classmethod
    def validate_required(cls, v):
        return CommonValidators.validate_required_text(v)

    @field_validator("schedule_time")
    @classmethod
    def validate_time(cls, v):
        return CommonValidators.validate_time(v)

    @field_validator("notes")
    @classmethod
    def normalize_notes(cls, v):
        return blank_to_none(v)


class TodayMedication(BaseModel):
    """A schedule with its intake status for today."""
    schedule: MedicationSchedule
    taken: bool = False
    taken_at: Optional[datetime] = None


class TodayMedicationList(BaseResponse):
    day: date
    data: List[TodayMedication]
    total: int
    empty_message: Optional[str] = None


class MedicationLog(BaseModel):
    """Row of `medication_logs`."""
    id: Optional[str] = None
    patient_id: str
    schedule_id: str
    scheduled_date: date
    taken_at: Optional[datetime] = None


class MedicationLogResponse(BaseResponse):
    data: MedicationLog


class MedicationLogEntry(BaseModel):
    """Medication log joined with its schedule name and dosage."""
    id: str
    scheduled_date: date
    taken_at: Optional[datetime] = None
    medication_name: str = "Obat"
    dosage: Optional[str] = None


class PendingReminder(BaseModel):
    id: str
    medication_name: str
    dosage: str
    schedule_time: str
    notes: Optional[str] = None


class ReminderResponse(BaseResponse):
    show: bool
    data: List[PendingReminder]
    total: int


class ControlSchedule(TimestampMixin):
    """Row of `control_schedules`."""
    id: str
    patient_id: str
    scheduled_date: date
    scheduled_time: str
    location: Optional[str] = None
    notes: Optional[str] = None
    created_by: Optional[str] = None
    status: Optional[str] = None
    patient_name: Optional[str] = None
    card: Optional[ScheduleCard] = None


class ControlScheduleCreate(BaseModel):
    """Admin form for a new control visit."""
    patient_id: str = Field(..., min_length=1)
    scheduled_date: date
    scheduled_time: str
    location: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("scheduled_time")
    @classmethod
    def validate_time(cls, v):
        return CommonValidators.validate_time(v)

    @field_validator("location", "notes")
    @classmethod
    def normalize_optional(cls, v):
        return blank_to_none(v)


class ControlScheduleOverview(BaseModel):
    upcoming: List[ControlSchedule]
    past: List[ControlSchedule]


class ControlScheduleResponse(BaseResponse):
    data: ControlScheduleOverview
    total: int
    empty_message: Optional[str] = None


class PatientOption(BaseModel):
    user_id: str
    full_name: str


class ScheduleBoard(BaseModel):
    """Admin schedule management view."""
    patients: List[PatientOption]
    medication_schedules: List[MedicationSchedule]
    control_schedules: List[ControlSchedule]


class ScheduleBoardResponse(BaseResponse):
    data: ScheduleBoard


class MedicationScheduleResponse(BaseResponse):
    data: MedicationSchedule


class ControlScheduleItemResponse(BaseResponse):
    data: ControlSchedule
