"""Account session endpoints: sign-in, sign-up, password recovery."""

import structlog
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials

from ..config import settings
from ..db import db_manager, BackendError
from ..security import User, get_current_active_user, security, user_id_from_token
from ..models.common import BaseResponse
from ..models.auth import (
    SignInRequest, SignUpRequest, ForgotPasswordRequest, ResetPasswordRequest,
    Session, SessionUser, SessionResponse, AccountInfo, AccountResponse,
)
from ..services.navigation import navigation_for, role_label
from ..services.notifications import reset_email_sender, NotificationError

logger = structlog.get_logger()
router = APIRouter()


@router.post("/sign-in", response_model=SessionResponse)
async def sign_in(form: SignInRequest):
    """Exchange email and password for an access token."""
    try:
        session = await db_manager.sign_in(form.email, form.password)
    except BackendError as e:
        if "invalid login credentials" in e.message.lower():
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Incorrect email or password"
            )
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)

    logger.info("User signed in", user_id=session["user"]["id"])

    return SessionResponse(
        message="Signed in successfully",
        data=Session(
            access_token=session["access_token"],
            refresh_token=session.get("refresh_token"),
            expires_in=session.get("expires_in"),
            user=SessionUser(**session["user"]),
        ),
    )


@router.post("/sign-up", response_model=BaseResponse, status_code=status.HTTP_201_CREATED)
async def sign_up(form: SignUpRequest):
    """Register a patient account; the backend assigns the patient role."""
    try:
        user = await db_manager.sign_up(form.email, form.password, form.full_name)
    except BackendError as e:
        if "already registered" in e.message.lower():
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Email is already registered"
            )
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)

    logger.info("Patient registered", user_id=user.get("id"))

    return BaseResponse(message="Registration successful! Check your email to activate your account.")


@router.post("/sign-out", response_model=BaseResponse)
async def sign_out(credentials: HTTPAuthorizationCredentials = Depends(security)):
    try:
        await db_manager.sign_out(credentials.credentials)
    except BackendError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)

    return BaseResponse(message="Signed out")


@router.post("/forgot-password", response_model=BaseResponse)
async def forgot_password(form: ForgotPasswordRequest):
    """Send a password reset link.

    With an email provider configured the recovery link is generated through
    the admin API and mailed with our own template; otherwise the platform's
    built-in reset mail is used.
    """
    redirect_to = settings.reset_password_url

    try:
        if reset_email_sender.enabled:
            link = await db_manager.generate_recovery_link(form.email, redirect_to)
            await reset_email_sender.send(form.email, link)
        else:
            await db_manager.send_password_reset(form.email, redirect_to)
    except BackendError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)
    except NotificationError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))

    return BaseResponse(message="A password reset link has been sent to your email")


@router.post("/reset-password", response_model=BaseResponse)
async def reset_password(
    form: ResetPasswordRequest,
    credentials: HTTPAuthorizationCredentials = Depends(security),
):
    """Set a new password using the recovery session from the reset link."""
    token = credentials.credentials
    user_id = await user_id_from_token(token)
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Reset link is invalid or has expired"
        )

    try:
        await db_manager.update_user(user_id, {"password": form.password})
    except BackendError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)

    # The recovery session must not stay usable
    try:
        await db_manager.sign_out(token)
    except BackendError as e:
        logger.warning("Recovery session sign-out failed", user_id=user_id, error=e.message)

    logger.info("Password reset", user_id=user_id)

    return BaseResponse(message="Password updated. Please sign in with your new password.")


@router.get("/me", response_model=AccountResponse)
async def me(current_user: User = Depends(get_current_active_user)):
    """Current account with role label and navigation."""
    return AccountResponse(
        data=AccountInfo(
            id=current_user.id,
            email=current_user.email,
            role=current_user.role,
            role_label=role_label(current_user.role),
            full_name=current_user.full_name,
            navigation=navigation_for(current_user.role),
        )
    )
