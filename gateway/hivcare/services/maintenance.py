"""Maintenance-mode gate.

The flag lives in the backend's `app_settings` table under the
`maintenance` key. It is re-read at most once per
`maintenance_check_seconds`; between reads the last value is used.
"""

import time
from typing import Callable, Optional

import structlog

from ..config import settings, SECURITY_CONFIG, TABLES
from ..db import db_manager, BackendError

logger = structlog.get_logger()


# Paths that are reachable while maintenance is on
EXEMPT_PREFIXES = (
    "/api/v1/auth",
    "/api/v1/maintenance",
    "/health",
    "/metrics",
    "/docs",
    "/redoc",
    "/openapi.json",
)


def truthy(value) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return bool(value)


class MaintenanceGuard:
    """Decides whether a request may reach the application."""

    def __init__(
        self,
        interval_seconds: Optional[int] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.interval_seconds = (
            settings.maintenance_check_seconds if interval_seconds is None else interval_seconds
        )
        self._clock = clock
        self._enabled = False
        self._checked_at: Optional[float] = None

    def reset(self):
        self._enabled = False
        self._checked_at = None

    async def _read_flag(self) -> bool:
        row = await db_manager.fetch_one(
            TABLES["app_settings"], columns="value", eq={"key": "maintenance"}
        )
        return truthy(row["value"]) if row else False

    async def is_enabled(self) -> bool:
        """Current flag, refreshed when the check interval has elapsed."""
        now = self._clock()
        if self._checked_at is not None and now - self._checked_at < self.interval_seconds:
            return self._enabled

        try:
            enabled = await self._read_flag()
        except BackendError as e:
            # Keep the previous value until the next interval
            logger.warning("Maintenance flag check failed", error=e.message)
            enabled = self._enabled

        if enabled != self._enabled:
            logger.info("Maintenance mode changed", enabled=enabled)
        self._enabled = enabled
        self._checked_at = now
        return enabled

    @staticmethod
    def is_exempt(path: str) -> bool:
        return path.startswith(EXEMPT_PREFIXES)

    async def can_access(self, path: str, user_id: Optional[str]) -> bool:
        """Gate decision for one request."""
        if self.is_exempt(path):
            return True

        if not await self.is_enabled():
            return True

        if not user_id:
            return False

        profile = await db_manager.fetch_one(
            TABLES["profiles"], columns="full_name", eq={"user_id": user_id}
        )
        return bool(profile) and profile.get("full_name") == SECURITY_CONFIG["super_admin_name"]


maintenance_guard = MaintenanceGuard()


MAINTENANCE_PAYLOAD = {
    "success": False,
    "error": "Sedang Maintenance",
    "code": "MAINTENANCE",
    "details": {
        "message": (
            "Kami sedang melakukan peningkatan sistem agar layanan lebih stabil "
            "dan aman. Silakan kembali beberapa saat lagi."
        ),
    },
}
