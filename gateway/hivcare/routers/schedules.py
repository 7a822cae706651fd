"""Schedule management endpoints for medical staff (Kelola Jadwal)."""

import asyncio
from typing import Any, Dict

import structlog
from fastapi import APIRouter, Depends, HTTPException, status

from ..config import TABLES
from ..db import db_manager, BackendError
from ..security import require_admin, User
from ..models.common import BaseResponse
from ..models.schedules import (
    ControlSchedule, ControlScheduleCreate, ControlScheduleItemResponse,
    MedicationSchedule, MedicationScheduleCreate, MedicationScheduleResponse,
    PatientOption, ScheduleBoard, ScheduleBoardResponse,
)
from ..services.navigation import schedule_card

logger = structlog.get_logger()
router = APIRouter()


def medication_view(row: Dict[str, Any], names: Dict[str, str]) -> MedicationSchedule:
    name = names.get(row["patient_id"])
    return MedicationSchedule(**row, patient_name=name, card=schedule_card("med", row, name))


def control_view(row: Dict[str, Any], names: Dict[str, str]) -> ControlSchedule:
    name = names.get(row["patient_id"])
    return ControlSchedule(**row, patient_name=name, card=schedule_card("control", row, name))


@router.get("", response_model=ScheduleBoardResponse)
async def get_schedule_board(current_user: User = Depends(require_admin)):
    """Patients plus every medication and control schedule."""
    try:
        roles = await db_manager.fetch(TABLES["user_roles"], columns="user_id", eq={"role": "patient"})
        patient_ids = [row["user_id"] for row in roles]

        profiles, medications, controls = await asyncio.gather(
            db_manager.fetch(
                TABLES["profiles"], columns="user_id, full_name",
                in_={"user_id": patient_ids}, order="full_name",
            ) if patient_ids else asyncio.sleep(0, result=[]),
            db_manager.fetch(TABLES["medication_schedules"], order="schedule_time"),
            db_manager.fetch(TABLES["control_schedules"], order="scheduled_date"),
        )
    except BackendError as e:
        logger.error("Failed to load schedules", error=e.message)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to load schedules"
        )

    names = {p["user_id"]: p["full_name"] for p in profiles}

    return ScheduleBoardResponse(
        data=ScheduleBoard(
            patients=[PatientOption(**p) for p in profiles],
            medication_schedules=[medication_view(row, names) for row in medications],
            control_schedules=[control_view(row, names) for row in controls],
        )
    )


@router.post(
    "/medications",
    response_model=MedicationScheduleResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_medication_schedule(
    form: MedicationScheduleCreate,
    current_user: User = Depends(require_admin)
):
    try:
        row = await db_manager.insert(
            TABLES["medication_schedules"],
            {**form.model_dump(), "created_by": current_user.id},
        )
    except BackendError as e:
        logger.error("Failed to create medication schedule", patient_id=form.patient_id, error=e.message)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to add medication schedule"
        )

    logger.info("Medication schedule created", schedule_id=row.get("id"), patient_id=form.patient_id)

    return MedicationScheduleResponse(
        message="Medication schedule added",
        data=medication_view(row, {}),
    )


@router.post(
    "/controls",
    response_model=ControlScheduleItemResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_control_schedule(
    form: ControlScheduleCreate,
    current_user: User = Depends(require_admin)
):
    values = form.model_dump()
    values["scheduled_date"] = form.scheduled_date.isoformat()

    try:
        row = await db_manager.insert(
            TABLES["control_schedules"],
            {**values, "created_by": current_user.id},
        )
    except BackendError as e:
        logger.error("Failed to create control schedule", patient_id=form.patient_id, error=e.message)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to add control schedule"
        )

    logger.info("Control schedule created", schedule_id=row.get("id"), patient_id=form.patient_id)

    return ControlScheduleItemResponse(
        message="Control schedule added",
        data=control_view(row, {}),
    )


@router.delete("/medications/{schedule_id}", response_model=BaseResponse)
async def delete_medication_schedule(schedule_id: str, current_user: User = Depends(require_admin)):
    try:
        await db_manager.delete(TABLES["medication_schedules"], eq={"id": schedule_id})
    except BackendError as e:
        logger.error("Failed to delete medication schedule", schedule_id=schedule_id, error=e.message)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete medication schedule"
        )

    return BaseResponse(message="Medication schedule deleted")


@router.delete("/controls/{schedule_id}", response_model=BaseResponse)
async def delete_control_schedule(schedule_id: str, current_user: User = Depends(require_admin)):
    try:
        await db_manager.delete(TABLES["control_schedules"], eq={"id": schedule_id})
    except BackendError as e:
        logger.error("Failed to delete control schedule", schedule_id=schedule_id, error=e.message)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete control schedule"
        )

    return BaseResponse(message="Control schedule deleted")
