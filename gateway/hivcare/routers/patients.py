"""Patient directory endpoints for medical staff."""

import asyncio
from typing import Optional

import structlog
from fastapi import APIRouter, Depends, HTTPException, status, Query

from ..config import TABLES
from ..db import db_manager, BackendError
from ..security import require_admin, User, audit_logger
from ..models.patients import (
    PatientDetail, PatientDetailResponse, PersonListResponse, PersonSummary, Profile,
)
from ..models.records import HealthLog, LabResult
from ..models.schedules import MedicationLogEntry
from ..services.people import profiles_for_role

logger = structlog.get_logger()
router = APIRouter()


@router.get("", response_model=PersonListResponse)
async def list_patients(
    search: Optional[str] = Query(None, description="Filter by patient name"),
    current_user: User = Depends(require_admin)
):
    """Patients ordered by name, optionally filtered."""
    try:
        profiles = await profiles_for_role("patient", search)
    except BackendError as e:
        logger.error("Failed to list patients", error=e.message)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to load patients"
        )

    empty_message = None
    if not profiles:
        empty_message = "Patient not found" if search else "No patients yet"

    return PersonListResponse(
        data=[PersonSummary(**p) for p in profiles],
        total=len(profiles),
        empty_message=empty_message,
    )


def to_log_entry(row: dict) -> MedicationLogEntry:
    schedule = row.get("medication_schedules") or {}
    return MedicationLogEntry(
        id=row["id"],
        scheduled_date=row["scheduled_date"],
        taken_at=row.get("taken_at"),
        medication_name=schedule.get("medication_name") or "Obat",
        dosage=schedule.get("dosage"),
    )


@router.get("/{patient_id}", response_model=PatientDetailResponse)
async def get_patient(patient_id: str, current_user: User = Depends(require_admin)):
    """Profile with recent health logs, lab results and medication history."""
    try:
        profile, health_logs, lab_results, medication_logs = await asyncio.gather(
            db_manager.fetch_one(TABLES["profiles"], eq={"user_id": patient_id}),
            db_manager.fetch(
                TABLES["daily_health_logs"], eq={"patient_id": patient_id},
                order="log_date", descending=True, limit=14,
            ),
            db_manager.fetch(
                TABLES["lab_results"], eq={"patient_id": patient_id},
                order="test_date", descending=True, limit=10,
            ),
            db_manager.fetch(
                TABLES["medication_logs"],
                columns="*, medication_schedules(medication_name, dosage)",
                eq={"patient_id": patient_id},
                order="taken_at", descending=True, limit=20,
            ),
        )
    except BackendError as e:
        logger.error("Failed to load patient", patient_id=patient_id, error=e.message)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to retrieve patient"
        )

    if not profile:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Patient not found")

    audit_logger.log_access(
        user=current_user,
        action="view",
        resource="patient",
        resource_id=patient_id
    )

    return PatientDetailResponse(
        data=PatientDetail(
            profile=Profile(**profile),
            health_logs=[HealthLog(**row) for row in health_logs],
            lab_results=[LabResult(**row) for row in lab_results],
            medication_logs=[to_log_entry(row) for row in medication_logs],
        )
    )
