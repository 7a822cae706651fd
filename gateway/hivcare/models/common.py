"""Common Pydantic models and schemas."""

import re
from datetime import datetime, date
from enum import Enum
from typing import Optional, Dict, Any, List

from pydantic import BaseModel, Field, ConfigDict

from ..config import SECURITY_CONFIG


class BaseResponse(BaseModel):
    """Base response model."""
    success: bool = True
    message: Optional[str] = None
    timestamp: datetime = Field(default_factory=datetime.utcnow)


class ErrorResponse(BaseModel):
    """Error response model."""
    success: bool = False
    error: str
    code: Optional[str] = None
    details: Optional[Dict[str, Any]] = None
    timestamp: datetime = Field(default_factory=datetime.utcnow)


class HealthCheck(BaseModel):
    """Health check response."""
    status: str = "healthy"
    version: str
    environment: str
    services: Dict[str, str] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=datetime.utcnow)


class UserRole(str, Enum):
    """Application roles, mirrors the backend `app_role` enum."""
    PATIENT = "patient"
    ADMIN = "admin"


class NavItem(BaseModel):
    """Sidebar navigation entry."""
    href: str
    label: str
    icon: str


class MenuCard(BaseModel):
    """Dashboard menu card."""
    title: str
    description: str
    image: str
    href: str


class ScheduleCard(BaseModel):
    """Compact card for a medication or control schedule."""
    type: str
    title: str
    patient_name: Optional[str] = None
    subtitle: str
    location: Optional[str] = None


# Timestamp mixin
class TimestampMixin(BaseModel):
    """Mixin for timestamp fields."""
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


PHONE_PATTERN = re.compile(r"^08\d{8,11}$")
TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d(:[0-5]\d)?$")
YOUTUBE_PATTERN = re.compile(
    r"^(?:https?://)?(?:www\.|m\.)?"
    r"(?:youtube\.com/(?:watch\?(?:.*&)?v=|embed/|shorts/)|youtu\.be/)"
    r"([A-Za-z0-9_-]{11})"
)


# Common field validators
class CommonValidators:
    """Form validation rules shared by request schemas."""

    @staticmethod
    def validate_password(password: str) -> str:
        minimum = SECURITY_CONFIG["password_min_length"]
        if len(password) < minimum:
            raise ValueError(f"Password must be at least {minimum} characters")
        return password

    @staticmethod
    def validate_full_name(name: str) -> str:
        name = name.strip()
        if len(name) < SECURITY_CONFIG["full_name_min_length"]:
            raise ValueError("Name must be at least 2 characters")
        if len(name) > SECURITY_CONFIG["full_name_max_length"]:
            raise ValueError("Name is too long")
        return name

    @staticmethod
    def validate_phone(phone: Optional[str]) -> Optional[str]:
        """Indonesian mobile format, 08xxxxxxxx. Blank means no phone."""
        if phone is None or not phone.strip():
            return None
        phone = phone.strip()
        if not PHONE_PATTERN.match(phone):
            raise ValueError("Invalid phone number format. Use 08xxxxxxxx")
        return phone

    @staticmethod
    def validate_time(value: str) -> str:
        if not TIME_PATTERN.match(value):
            raise ValueError("Time must be in HH:MM format")
        return value

    @staticmethod
    def validate_required_text(value: str) -> str:
        if not value or not value.strip():
            raise ValueError("This field is required")
        return value.strip()


def youtube_video_id(url: str) -> Optional[str]:
    """Extract the 11-character video id from a YouTube URL."""
    match = YOUTUBE_PATTERN.match(url.strip())
    return match.group(1) if match else None


def blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def parse_date(value: Any) -> date:
    if isinstance(value, date) and not isinstance(value, datetime):
        return value
    if isinstance(value, datetime):
        return value.date()
    return date.fromisoformat(str(value)[:10])
