"""Patient control visit endpoints (Jadwal Kontrol)."""

import structlog
from fastapi import APIRouter, Depends, HTTPException, status

from ..config import TABLES
from ..db import db_manager, BackendError
from ..security import require_patient, User
from ..timeutils import today
from ..models.schedules import ControlSchedule, ControlScheduleOverview, ControlScheduleResponse
from ..services.navigation import control_status

logger = structlog.get_logger()
router = APIRouter()

PAST_LIMIT = 5


@router.get("", response_model=ControlScheduleResponse)
async def list_control_schedules(current_user: User = Depends(require_patient)):
    """Upcoming visits (including today) and the most recent past ones."""
    day = today()

    try:
        rows = await db_manager.fetch(
            TABLES["control_schedules"],
            eq={"patient_id": current_user.id},
            order="scheduled_date",
        )
    except BackendError as e:
        logger.error("Failed to load control schedules", user_id=current_user.id, error=e.message)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to load control schedules"
        )

    upcoming, past = [], []
    for row in rows:
        item = ControlSchedule(**row, status=control_status(row["scheduled_date"], day))
        (past if item.status == "past" else upcoming).append(item)

    return ControlScheduleResponse(
        data=ControlScheduleOverview(upcoming=upcoming, past=past[:PAST_LIMIT]),
        total=len(rows),
        empty_message=None if rows else "No control schedule yet",
    )
