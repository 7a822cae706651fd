"""Account profile endpoints (Edit Akun)."""

import structlog
from fastapi import APIRouter, Depends, HTTPException, status

from ..config import TABLES
from ..db import db_manager, BackendError
from ..security import get_current_active_user, User
from ..models.patients import (
    ProfileView, ProfileResponse, ProfileUpdate, ProfileUpdateResult, ProfileUpdateResponse,
)

logger = structlog.get_logger()
router = APIRouter()


# Postgres error codes raised by the profiles phone constraints
PROFILE_ERROR_MESSAGES = {
    "23505": "Phone number is already used by another account",
    "23514": "Invalid phone number format. Use 08xxxxxxxx",
}


def profile_error_message(error: BackendError) -> str:
    return PROFILE_ERROR_MESSAGES.get(error.code or "", error.message or "Failed to update profile")


@router.get("", response_model=ProfileResponse)
async def get_profile(current_user: User = Depends(get_current_active_user)):
    try:
        profile = await db_manager.fetch_one(
            TABLES["profiles"], columns="full_name, phone", eq={"user_id": current_user.id}
        )
    except BackendError as e:
        logger.error("Failed to load profile", user_id=current_user.id, error=e.message)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to load profile"
        )

    if not profile:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Profile not found")

    return ProfileResponse(
        data=ProfileView(
            full_name=profile["full_name"],
            phone=profile.get("phone"),
            email=current_user.email,
        )
    )


@router.put("", response_model=ProfileUpdateResponse)
async def update_profile(
    form: ProfileUpdate,
    current_user: User = Depends(get_current_active_user)
):
    """Update name and phone; a new email or password ends the session."""
    try:
        await db_manager.update(
            TABLES["profiles"],
            {"full_name": form.full_name, "phone": form.phone},
            eq={"user_id": current_user.id},
        )
    except BackendError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=profile_error_message(e)
        )

    email = form.email or current_user.email
    signed_out = False

    if email != current_user.email or form.password:
        attributes = {"email": email}
        if form.password:
            attributes["password"] = form.password

        try:
            await db_manager.update_user_session(current_user.access_token, attributes)
            await db_manager.sign_out(current_user.access_token)
        except BackendError as e:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=profile_error_message(e)
            )
        signed_out = True
        logger.info("Account credentials changed", user_id=current_user.id)

    message = "Profile updated successfully"
    if email != current_user.email:
        message = "Profile updated. Confirm the change from the email sent to your new address"

    return ProfileUpdateResponse(
        message=message,
        data=ProfileUpdateResult(
            profile=ProfileView(full_name=form.full_name, phone=form.phone, email=current_user.email),
            signed_out=signed_out,
        ),
    )
