"""Dashboard endpoint: greeting, counters and the role's main menu."""

import asyncio

import structlog
from fastapi import APIRouter, Depends, HTTPException, status

from ..config import TABLES
from ..db import db_manager, BackendError
from ..security import get_current_active_user, User
from ..timeutils import local_now
from ..models.dashboard import AdminStats, Dashboard, DashboardResponse, PatientStats
from ..services.navigation import greeting, menu_for

logger = structlog.get_logger()
router = APIRouter()


async def patient_stats(user_id: str, today: str) -> PatientStats:
    meds, logs, controls, health_logs = await asyncio.gather(
        db_manager.fetch(TABLES["medication_schedules"], columns="id", eq={"patient_id": user_id}),
        db_manager.fetch(
            TABLES["medication_logs"], columns="id",
            eq={"patient_id": user_id, "scheduled_date": today},
        ),
        db_manager.fetch(
            TABLES["control_schedules"], columns="scheduled_date, scheduled_time",
            eq={"patient_id": user_id}, gte={"scheduled_date": today},
            order="scheduled_date", limit=1,
        ),
        db_manager.fetch(
            TABLES["daily_health_logs"], columns="id",
            eq={"patient_id": user_id, "log_date": today},
        ),
    )

    upcoming = None
    if controls:
        upcoming = f"{controls[0]['scheduled_date']} {controls[0]['scheduled_time']}"

    return PatientStats(
        total_meds=len(meds),
        today_meds_taken=len(logs),
        upcoming_control=upcoming,
        today_log_exists=len(health_logs) > 0,
    )


async def admin_stats(today: str) -> AdminStats:
    patients, articles, controls = await asyncio.gather(
        db_manager.fetch(TABLES["user_roles"], columns="id", eq={"role": "patient"}),
        db_manager.fetch(TABLES["education_articles"], columns="id"),
        db_manager.fetch(TABLES["control_schedules"], columns="id", gte={"scheduled_date": today}),
    )
    return AdminStats(
        total_patients=len(patients),
        total_articles=len(articles),
        pending_controls=len(controls),
    )


@router.get("", response_model=DashboardResponse)
async def get_dashboard(current_user: User = Depends(get_current_active_user)):
    now = local_now()
    today = now.date().isoformat()

    try:
        if current_user.is_admin:
            stats = {"admin_stats": await admin_stats(today)}
        else:
            stats = {"patient_stats": await patient_stats(current_user.id, today)}
    except BackendError as e:
        logger.error("Failed to load dashboard", user_id=current_user.id, error=e.message)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to load dashboard"
        )

    return DashboardResponse(
        data=Dashboard(
            role=current_user.role,
            full_name=current_user.full_name,
            greeting=greeting(now.hour),
            day=now.date(),
            menu=menu_for(current_user.role),
            **stats,
        )
    )
