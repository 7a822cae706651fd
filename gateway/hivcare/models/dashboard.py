"""Dashboard and maintenance Pydantic models."""

from datetime import date
from typing import Optional, List

from pydantic import BaseModel

from .common import BaseResponse, MenuCard, UserRole


class PatientStats(BaseModel):
    total_meds: int = 0
    today_meds_taken: int = 0
    upcoming_control: Optional[str] = None
    today_log_exists: bool = False


class AdminStats(BaseModel):
    total_patients: int = 0
    total_articles: int = 0
    pending_controls: int = 0


class Dashboard(BaseModel):
    """Landing page for either role; exactly one stats block is set."""
    role: UserRole
    full_name: Optional[str] = None
    greeting: str
    day: date
    patient_stats: Optional[PatientStats] = None
    admin_stats: Optional[AdminStats] = None
    menu: List[MenuCard]


class DashboardResponse(BaseResponse):
    data: Dashboard


class MaintenanceStatus(BaseModel):
    enabled: bool
    can_access: bool
