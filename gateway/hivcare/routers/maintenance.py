"""Maintenance mode status."""

from typing import Optional

from fastapi import APIRouter, Depends

from ..security import get_optional_user, User
from ..models.dashboard import MaintenanceStatus
from ..services.maintenance import maintenance_guard

router = APIRouter()


@router.get("", response_model=MaintenanceStatus)
async def get_status(current_user: Optional[User] = Depends(get_optional_user)):
    """Whether maintenance is on and whether the caller may still use the app."""
    enabled = await maintenance_guard.is_enabled()
    can_access = not enabled or (current_user is not None and current_user.is_super_admin)
    return MaintenanceStatus(enabled=enabled, can_access=can_access)
