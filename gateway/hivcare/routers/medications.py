"""Patient medication schedule endpoints (Jadwal Obat)."""

import structlog
from fastapi import APIRouter, Depends, HTTPException, status

from ..config import TABLES
from ..db import db_manager, BackendError
from ..security import require_patient, User
from ..timeutils import local_now, today_str
from ..models.schedules import (
    MedicationLog, MedicationLogResponse, MedicationSchedule, PendingReminder,
    ReminderResponse, TodayMedication, TodayMedicationList,
)
from ..services.reminders import (
    find_log, load_schedules_and_logs, pending_for_patient, record_intake,
)

logger = structlog.get_logger()
router = APIRouter()


@router.get("", response_model=TodayMedicationList)
async def list_today(current_user: User = Depends(require_patient)):
    """Today's schedules with their intake status."""
    now = local_now()
    today = now.date().isoformat()

    try:
        schedules, logs = await load_schedules_and_logs(current_user.id, today)
    except BackendError as e:
        logger.error("Failed to load medication schedules", user_id=current_user.id, error=e.message)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to load medication schedule"
        )

    items = []
    for schedule in schedules:
        log = find_log(logs, schedule["id"], today)
        items.append(TodayMedication(
            schedule=MedicationSchedule(**schedule),
            taken=log is not None,
            taken_at=log.get("taken_at") if log else None,
        ))

    return TodayMedicationList(
        day=now.date(),
        data=items,
        total=len(items),
        empty_message=None if items else "No medication schedule yet. Your schedule will be set by the medical staff.",
    )


@router.get("/reminders", response_model=ReminderResponse)
async def get_reminders(current_user: User = Depends(require_patient)):
    """Schedules due by now that have not been taken today."""
    try:
        pending = await pending_for_patient(current_user.id, local_now())
    except BackendError as e:
        logger.error("Failed to evaluate reminders", user_id=current_user.id, error=e.message)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to load reminders"
        )

    return ReminderResponse(
        show=len(pending) > 0,
        data=[PendingReminder(**p) for p in pending],
        total=len(pending),
    )


@router.post(
    "/{schedule_id}/take",
    response_model=MedicationLogResponse,
    status_code=status.HTTP_201_CREATED,
)
async def take_medication(schedule_id: str, current_user: User = Depends(require_patient)):
    """Record that today's dose of a schedule was taken."""
    today = today_str()

    try:
        schedule = await db_manager.fetch_one(
            TABLES["medication_schedules"],
            columns="id",
            eq={"id": schedule_id, "patient_id": current_user.id},
        )
        if not schedule:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Schedule not found")

        existing = await db_manager.fetch_one(
            TABLES["medication_logs"],
            columns="id",
            eq={"schedule_id": schedule_id, "patient_id": current_user.id, "scheduled_date": today},
        )
        if existing:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Medication already recorded for today"
            )

        log = await record_intake(current_user.id, schedule_id, today)
    except BackendError as e:
        logger.error("Failed to record medication", schedule_id=schedule_id, error=e.message)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to record medication"
        )

    logger.info("Medication taken", user_id=current_user.id, schedule_id=schedule_id)

    return MedicationLogResponse(message="Medication recorded!", data=MedicationLog(**log))
