"""Daily health log endpoints (Catatan Kesehatan)."""

import asyncio
from datetime import date
from typing import Any, Dict

import structlog
from fastapi import APIRouter, Depends, HTTPException, status

from ..config import TABLES
from ..db import db_manager, BackendError
from ..security import require_patient, User
from ..timeutils import today
from ..models.records import (
    HealthLog, HealthLogOverview, HealthLogOverviewResponse, HealthLogSaveResponse,
    HealthLogUpdate, HealthLogView,
)

logger = structlog.get_logger()
router = APIRouter()


def to_view(row: Dict[str, Any], day: date) -> HealthLogView:
    log = HealthLog(**row)
    return HealthLogView(
        **log.model_dump(),
        symptoms=log.active_symptoms,
        is_today=log.log_date == day,
    )


@router.get("", response_model=HealthLogOverviewResponse)
async def get_health_logs(current_user: User = Depends(require_patient)):
    """Today's log (if any) and the last seven entries."""
    day = today()

    try:
        today_row, recent = await asyncio.gather(
            db_manager.fetch_one(
                TABLES["daily_health_logs"],
                eq={"patient_id": current_user.id, "log_date": day.isoformat()},
            ),
            db_manager.fetch(
                TABLES["daily_health_logs"],
                eq={"patient_id": current_user.id},
                order="log_date",
                descending=True,
                limit=7,
            ),
        )
    except BackendError as e:
        logger.error("Failed to load health logs", user_id=current_user.id, error=e.message)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to load health logs"
        )

    return HealthLogOverviewResponse(
        day=day,
        data=HealthLogOverview(
            today=to_view(today_row, day) if today_row else None,
            recent=[to_view(row, day) for row in recent],
        ),
    )


@router.put("/today", response_model=HealthLogSaveResponse)
async def save_today(form: HealthLogUpdate, current_user: User = Depends(require_patient)):
    """Create today's log, or update it if one already exists."""
    day = today()
    values = form.model_dump()

    try:
        existing = await db_manager.fetch_one(
            TABLES["daily_health_logs"],
            columns="id",
            eq={"patient_id": current_user.id, "log_date": day.isoformat()},
        )
        if existing:
            rows = await db_manager.update(
                TABLES["daily_health_logs"], values, eq={"id": existing["id"]}
            )
            if not rows:
                raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Health log not found")
            row = rows[0]
        else:
            row = await db_manager.insert(
                TABLES["daily_health_logs"],
                {**values, "patient_id": current_user.id, "log_date": day.isoformat()},
            )
    except BackendError as e:
        logger.error("Failed to save health log", user_id=current_user.id, error=e.message)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to save health log"
        )

    created = existing is None
    logger.info("Health log saved", user_id=current_user.id, created=created)

    return HealthLogSaveResponse(
        message="Health log saved" if created else "Health log updated",
        created=created,
        data=to_view(row, day),
    )
