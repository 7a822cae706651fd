"""Patient profile Pydantic models."""

from datetime import datetime
from typing import Optional, List

from pydantic import BaseModel, EmailStr, field_validator

from .common import BaseResponse, CommonValidators, TimestampMixin
from .records import HealthLog, LabResult
from .schedules import MedicationLogEntry


class Profile(TimestampMixin):
    """Row of the `profiles` table."""
    id: Optional[str] = None
    user_id: str
    full_name: str
    phone: Optional[str] = None


class ProfileView(BaseModel):
    """Editable account fields."""
    full_name: str
    phone: Optional[str] = None
    email: Optional[str] = None


class ProfileResponse(BaseResponse):
    data: ProfileView


class ProfileUpdate(BaseModel):
    """Account edit form."""
    full_name: str
    phone: Optional[str] = None
    email: Optional[EmailStr] = None
    password: Optional[str] = None

    @field_validator("full_name")
    @classmethod
    def validate_full_name(cls, v):
        return CommonValidators.validate_full_name(v)

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v):
        return CommonValidators.validate_phone(v)

    @field_validator("password")
    @classmethod
    def validate_password(cls, v):
        # Blank means "keep the current password"
        if v is None or v == "":
            return None
        return CommonValidators.validate_password(v)


class ProfileUpdateResult(BaseModel):
    profile: ProfileView
    signed_out: bool = False


class ProfileUpdateResponse(BaseResponse):
    data: ProfileUpdateResult


class PersonSummary(BaseModel):
    """Patient or staff entry in a list."""
    user_id: str
    full_name: str
    phone: Optional[str] = None
    created_at: Optional[datetime] = None
    is_self: bool = False


class PersonListResponse(BaseResponse):
    data: List[PersonSummary]
    total: int
    empty_message: Optional[str] = None


class PatientDetail(BaseModel):
    """Everything an admin sees on the patient detail page."""
    profile: Profile
    health_logs: List[HealthLog]
    lab_results: List[LabResult]
    medication_logs: List[MedicationLogEntry]


class PatientDetailResponse(BaseResponse):
    data: PatientDetail
