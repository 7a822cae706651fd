"""Medication reminder evaluation."""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

import structlog

from ..config import TABLES
from ..db import db_manager

logger = structlog.get_logger()


def schedule_hhmm(schedule_time: str) -> str:
    return (schedule_time or "")[:5]


def pending_medications(
    schedules: Iterable[Dict[str, Any]],
    logs: Iterable[Dict[str, Any]],
    now: datetime,
) -> List[Dict[str, Any]]:
    """Schedules whose time has passed today and that have no log for today."""
    today = now.strftime("%Y-%m-%d")
    current_time = now.strftime("%H:%M")
    taken = {
        log["schedule_id"]
        for log in logs
        if str(log.get("scheduled_date", ""))[:10] == today
    }
    return [
        schedule
        for schedule in schedules
        if schedule_hhmm(schedule["schedule_time"]) <= current_time
        and schedule["id"] not in taken
    ]


@dataclass
class ReminderState:
    """Last evaluated reminder list for one patient."""
    pending: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def show(self) -> bool:
        return len(self.pending) > 0

    def update(self, pending: List[Dict[str, Any]]) -> bool:
        """Store a new result; True when the set of pending ids changed."""
        changed = {p["id"] for p in pending} != {p["id"] for p in self.pending}
        self.pending = pending
        return changed


async def load_schedules_and_logs(patient_id: str, today: str):
    """Fetch a patient's schedules and the logs recorded for today."""
    schedules, logs = await asyncio.gather(
        db_manager.fetch(
            TABLES["medication_schedules"],
            eq={"patient_id": patient_id},
            order="schedule_time",
        ),
        db_manager.fetch(
            TABLES["medication_logs"],
            columns="schedule_id, scheduled_date, taken_at",
            eq={"patient_id": patient_id, "scheduled_date": today},
        ),
    )
    return schedules, logs


async def pending_for_patient(patient_id: str, now: datetime) -> List[Dict[str, Any]]:
    schedules, logs = await load_schedules_and_logs(patient_id, now.strftime("%Y-%m-%d"))
    pending = pending_medications(schedules, logs, now)
    logger.debug("Reminders evaluated", patient_id=patient_id, pending=len(pending))
    return pending


async def record_intake(patient_id: str, schedule_id: str, today: str) -> Dict[str, Any]:
    """Insert a medication log for today."""
    return await db_manager.insert(
        TABLES["medication_logs"],
        {"schedule_id": schedule_id, "patient_id": patient_id, "scheduled_date": today},
    )


def find_log(logs: Iterable[Dict[str, Any]], schedule_id: str, today: str) -> Optional[Dict[str, Any]]:
    for log in logs:
        if log["schedule_id"] == schedule_id and str(log.get("scheduled_date", ""))[:10] == today:
            return log
    return None
