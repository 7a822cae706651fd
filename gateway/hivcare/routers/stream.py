"""WebSocket streaming endpoints."""

import asyncio
import contextlib
import json
from typing import Dict

import structlog
from fastapi import APIRouter, WebSocket, WebSocketDisconnect, HTTPException, status

from ..config import settings
from ..db import BackendError
from ..security import authenticate
from ..timeutils import local_now, today_str
from ..models.schedules import PendingReminder
from ..services.reminders import ReminderState, pending_for_patient, record_intake

logger = structlog.get_logger()
router = APIRouter()


class ConnectionManager:
    """Manage WebSocket connections."""

    def __init__(self):
        self.active_connections: Dict[str, WebSocket] = {}
        self.user_connections: Dict[str, set] = {}  # user_id -> set of connection_ids

    async def connect(self, websocket: WebSocket, connection_id: str, user_id: str):
        """Accept WebSocket connection."""
        await websocket.accept()
        self.active_connections[connection_id] = websocket
        self.user_connections.setdefault(user_id, set()).add(connection_id)

        logger.info("WebSocket connected", connection_id=connection_id, user_id=user_id)

    def disconnect(self, connection_id: str, user_id: str):
        """Remove WebSocket connection."""
        self.active_connections.pop(connection_id, None)

        if user_id in self.user_connections:
            self.user_connections[user_id].discard(connection_id)
            if not self.user_connections[user_id]:
                del self.user_connections[user_id]

        logger.info("WebSocket disconnected", connection_id=connection_id, user_id=user_id)

    async def send_personal_message(self, message: dict, connection_id: str):
        """Send message to specific connection."""
        websocket = self.active_connections.get(connection_id)
        if websocket is None:
            return
        try:
            await websocket.send_text(json.dumps(message))
        except (RuntimeError, WebSocketDisconnect) as e:
            logger.error("Failed to send message", connection_id=connection_id, error=str(e))
            for user_id, connections in list(self.user_connections.items()):
                if connection_id in connections:
                    self.disconnect(connection_id, user_id)
                    break


# Global connection manager
manager = ConnectionManager()


async def push_reminders(user_id: str, connection_id: str, state: ReminderState):
    """Re-evaluate pending medications and push them while any are due.

    The reminder is sent on every evaluation, so a popup the patient closed
    comes back on the next tick while doses stay untaken.
    """
    try:
        pending = await pending_for_patient(user_id, local_now())
    except BackendError as e:
        logger.warning("Reminder check failed", user_id=user_id, error=e.message)
        return

    changed = state.update(pending)
    if state.show:
        await manager.send_personal_message({
            "type": "medication_reminder",
            "changed": changed,
            "pending": [PendingReminder(**p).model_dump(mode="json") for p in pending],
        }, connection_id)


async def poll_reminders(user_id: str, connection_id: str, state: ReminderState):
    """Fixed-interval reminder loop for one connection."""
    while True:
        try:
            await push_reminders(user_id, connection_id, state)
        except Exception as e:
            logger.error("Reminder push failed", user_id=user_id, error=str(e), exc_info=True)
        await asyncio.sleep(settings.reminder_poll_seconds)


async def handle_take(user_id: str, connection_id: str, state: ReminderState, schedule_id):
    """Record a dose taken from the reminder popup."""
    if schedule_id not in {p["id"] for p in state.pending}:
        await manager.send_personal_message({
            "type": "error",
            "message": "Schedule is not pending"
        }, connection_id)
        return

    try:
        await record_intake(user_id, schedule_id, today_str())
    except BackendError:
        await manager.send_personal_message({
            "type": "error",
            "message": "Failed to record medication"
        }, connection_id)
        return

    await manager.send_personal_message({
        "type": "intake_recorded",
        "schedule_id": schedule_id
    }, connection_id)
    await push_reminders(user_id, connection_id, state)


@router.websocket("/reminders")
async def reminders_websocket(websocket: WebSocket, token: str):
    """Medication reminders for the signed-in patient."""
    try:
        user = await authenticate(token)
    except HTTPException:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    if not user.has_role("patient"):
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    connection_id = f"reminders_{user.id}_{id(websocket)}"
    state = ReminderState()

    await manager.connect(websocket, connection_id, user.id)
    poller = asyncio.create_task(poll_reminders(user.id, connection_id, state))

    try:
        while True:
            data = await websocket.receive_text()
            try:
                message = json.loads(data)
            except json.JSONDecodeError:
                await manager.send_personal_message({
                    "type": "error",
                    "message": "Invalid JSON format"
                }, connection_id)
                continue

            if message.get("type") == "ping":
                await manager.send_personal_message({
                    "type": "pong",
                    "timestamp": message.get("timestamp")
                }, connection_id)
            elif message.get("type") == "take":
                await handle_take(user.id, connection_id, state, message.get("schedule_id"))

    except WebSocketDisconnect:
        pass
    finally:
        poller.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await poller
        manager.disconnect(connection_id, user.id)
