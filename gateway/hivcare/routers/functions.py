"""Server-side functions callable by the web client."""

import structlog
from fastapi import APIRouter, HTTPException, status

from ..models.auth import ResetEmailRequest
from ..models.common import BaseResponse
from ..services.notifications import reset_email_sender, NotificationError

logger = structlog.get_logger()
router = APIRouter()


@router.post("/send-reset-email", response_model=BaseResponse)
async def send_reset_email(payload: ResetEmailRequest):
    """Mail a password reset link through the email provider."""
    if not reset_email_sender.enabled:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Email service is not configured"
        )

    try:
        await reset_email_sender.send(payload.email, payload.reset_link)
    except NotificationError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))

    return BaseResponse(message="Email sent")
