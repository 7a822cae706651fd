"""Medical staff endpoints (Tenaga Medis)."""

import structlog
from fastapi import APIRouter, Depends, HTTPException, status

from ..config import TABLES
from ..db import db_manager, BackendError
from ..security import require_admin, User
from ..models.auth import StaffCreate
from ..models.common import BaseResponse
from ..models.patients import PersonListResponse, PersonSummary
from ..services.people import profiles_for_role

logger = structlog.get_logger()
router = APIRouter()


@router.get("", response_model=PersonListResponse)
async def list_staff(current_user: User = Depends(require_admin)):
    try:
        profiles = await profiles_for_role("admin")
    except BackendError as e:
        logger.error("Failed to list staff", error=e.message)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to load medical staff"
        )

    return PersonListResponse(
        data=[PersonSummary(**p, is_self=p["user_id"] == current_user.id) for p in profiles],
        total=len(profiles),
        empty_message=None if profiles else "No medical staff yet",
    )


@router.post("", response_model=BaseResponse, status_code=status.HTTP_201_CREATED)
async def create_staff(form: StaffCreate, current_user: User = Depends(require_admin)):
    """Create an account and promote it to the admin role."""
    try:
        user_id = await db_manager.create_user(form.email, form.password, form.full_name)
    except BackendError as e:
        if "already" in e.message.lower():
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Email is already registered"
            )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to add medical staff"
        )

    try:
        await db_manager.update(TABLES["user_roles"], {"role": "admin"}, eq={"user_id": user_id})
    except BackendError as e:
        logger.error("Failed to grant admin role", user_id=user_id, error=e.message)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to add medical staff"
        )

    logger.info("Medical staff created", user_id=user_id, created_by=current_user.id)

    return BaseResponse(message="Medical staff added")
