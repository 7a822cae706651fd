"""Tests for medication reminder evaluation."""

import asyncio
from datetime import datetime
from unittest.mock import AsyncMock, patch

import pytest

from hivcare.db import db_manager
from hivcare.routers import stream
from hivcare.services.reminders import (
    ReminderState, find_log, pending_for_patient, pending_medications,
)


SCHEDULES = [
    {"id": "s1", "medication_name": "TLD", "dosage": "1 tablet", "schedule_time": "08:00:00"},
    {"id": "s2", "medication_name": "Cotrimoxazole", "dosage": "2 tablet", "schedule_time": "12:30"},
    {"id": "s3", "medication_name": "Vitamin", "dosage": "1 kapsul", "schedule_time": "20:00:00"},
]


class TestPendingMedications:

    def test_due_schedules_without_log(self):
        now = datetime(2024, 5, 1, 13, 0)
        pending = pending_medications(SCHEDULES, [], now)
        assert [p["id"] for p in pending] == ["s1", "s2"]

    def test_schedule_due_at_exact_minute(self):
        now = datetime(2024, 5, 1, 12, 30)
        assert [p["id"] for p in pending_medications(SCHEDULES, [], now)] == ["s1", "s2"]

    def test_taken_today_is_not_pending(self):
        now = datetime(2024, 5, 1, 21, 0)
        logs = [{"schedule_id": "s1", "scheduled_date": "2024-05-01"}]
        assert [p["id"] for p in pending_medications(SCHEDULES, logs, now)] == ["s2", "s3"]

    def test_log_from_another_day_does_not_count(self):
        now = datetime(2024, 5, 1, 9, 0)
        logs = [{"schedule_id": "s1", "scheduled_date": "2024-04-30"}]
        assert [p["id"] for p in pending_medications(SCHEDULES, logs, now)] == ["s1"]

    def test_nothing_due_early_morning(self):
        assert pending_medications(SCHEDULES, [], datetime(2024, 5, 1, 6, 0)) == []


class TestReminderState:

    def test_update_reports_changes(self):
        state = ReminderState()
        assert state.show is False

        assert state.update([SCHEDULES[0]]) is True
        assert state.show is True
        assert state.update([SCHEDULES[0]]) is False
        assert state.update([SCHEDULES[0], SCHEDULES[1]]) is True
        assert state.update([]) is True
        assert state.show is False


def test_find_log():
    logs = [
        {"schedule_id": "s1", "scheduled_date": "2024-04-30", "taken_at": "2024-04-30T08:05:00"},
        {"schedule_id": "s1", "scheduled_date": "2024-05-01", "taken_at": "2024-05-01T08:02:00"},
    ]
    assert find_log(logs, "s1", "2024-05-01")["taken_at"] == "2024-05-01T08:02:00"
    assert find_log(logs, "s2", "2024-05-01") is None


@pytest.mark.asyncio
async def test_pending_for_patient_queries_today():
    fetch = AsyncMock(side_effect=[SCHEDULES, [{"schedule_id": "s1", "scheduled_date": "2024-05-01"}]])

    with patch.object(db_manager, "fetch", new=fetch):
        pending = await pending_for_patient("p1", datetime(2024, 5, 1, 13, 0))

    assert [p["id"] for p in pending] == ["s2"]
    log_call = fetch.call_args_list[1]
    assert log_call.kwargs["eq"] == {"patient_id": "p1", "scheduled_date": "2024-05-01"}


class TestReminderPush:

    @pytest.mark.asyncio
    async def test_closed_reminder_returns_on_next_tick(self):
        state = ReminderState()
        send = AsyncMock()

        with patch("hivcare.routers.stream.pending_for_patient", new=AsyncMock(return_value=SCHEDULES[:1])), \
                patch.object(stream.manager, "send_personal_message", new=send):
            await stream.push_reminders("p1", "c1", state)
            await stream.push_reminders("p1", "c1", state)

        assert send.await_count == 2
        first, second = (call.args[0] for call in send.await_args_list)
        assert first["changed"] is True
        assert second["changed"] is False
        assert second["pending"][0]["id"] == "s1"

    @pytest.mark.asyncio
    async def test_nothing_sent_when_all_taken(self):
        send = AsyncMock()

        with patch("hivcare.routers.stream.pending_for_patient", new=AsyncMock(return_value=[])), \
                patch.object(stream.manager, "send_personal_message", new=send):
            await stream.push_reminders("p1", "c1", ReminderState())

        send.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_poll_loop_survives_unexpected_error(self):
        push = AsyncMock(side_effect=[ValueError("bad row"), None])
        sleep = AsyncMock(side_effect=[None, asyncio.CancelledError()])

        with patch("hivcare.routers.stream.push_reminders", new=push), \
                patch("hivcare.routers.stream.asyncio.sleep", new=sleep):
            with pytest.raises(asyncio.CancelledError):
                await stream.poll_reminders("p1", "c1", ReminderState())

        assert push.await_count == 2
