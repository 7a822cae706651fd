"""Outbound email through the Resend API."""

from typing import Any, Dict, Optional

import httpx
import structlog
from jinja2 import Environment, BaseLoader, select_autoescape

from ..config import settings

logger = structlog.get_logger()


RESET_EMAIL_SUBJECT = "Reset Password - HIV Care"

RESET_EMAIL_TEMPLATE = """\
<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
</head>
<body style="font-family: 'Segoe UI', Tahoma, Geneva, Verdana, sans-serif; background-color: #f4f7f6; margin: 0; padding: 20px;">
  <div style="max-width: 600px; margin: 0 auto; background-color: #ffffff; border-radius: 12px; overflow: hidden;">
    <div style="background: linear-gradient(135deg, #0d9488 0%, #14b8a6 100%); padding: 40px 20px; text-align: center;">
      <h1 style="color: #ffffff; margin: 0; font-size: 28px;">{{ app_name }}</h1>
      <p style="color: rgba(255, 255, 255, 0.9); margin: 10px 0 0 0; font-size: 14px;">Sistem Manajemen Kesehatan</p>
    </div>
    <div style="padding: 40px 30px;">
      <h2 style="color: #1f2937; margin: 0 0 20px 0; font-size: 22px;">Reset Password</h2>
      <p style="color: #4b5563; font-size: 16px; line-height: 1.6;">
        Kami menerima permintaan untuk mereset password akun Anda. Klik tombol di bawah untuk membuat password baru:
      </p>
      <div style="text-align: center; margin: 30px 0;">
        <a href="{{ reset_link }}" style="display: inline-block; background: #0d9488; color: #ffffff; text-decoration: none; padding: 14px 40px; border-radius: 8px; font-size: 16px; font-weight: 600;">
          Reset Password
        </a>
      </div>
      <p style="color: #6b7280; font-size: 14px; line-height: 1.6;">
        Jika Anda tidak meminta reset password, abaikan email ini. Link akan kadaluarsa dalam {{ expires_in }}.
      </p>
      <hr style="border: none; border-top: 1px solid #e5e7eb; margin: 30px 0;">
      <p style="color: #9ca3af; font-size: 12px; margin: 0;">
        Jika tombol tidak berfungsi, salin dan tempel link berikut ke browser Anda:
      </p>
      <p style="color: #0d9488; font-size: 12px; word-break: break-all; margin: 10px 0 0 0;">{{ reset_link }}</p>
    </div>
    <div style="background-color: #f9fafb; padding: 20px 30px; text-align: center;">
      <p style="color: #9ca3af; font-size: 12px; margin: 0;">&copy; {{ app_name }}. Semua hak dilindungi.</p>
    </div>
  </div>
</body>
</html>
"""

_env = Environment(loader=BaseLoader(), autoescape=select_autoescape(default=True))


class NotificationError(Exception):
    """Email provider rejected or failed the request."""


def render_reset_email(reset_link: str) -> str:
    template = _env.from_string(RESET_EMAIL_TEMPLATE)
    return template.render(app_name=settings.app_name, reset_link=reset_link, expires_in="1 jam")


class ResetEmailSender:
    """Sends password-reset emails."""

    def __init__(self, api_key: Optional[str] = None, api_url: Optional[str] = None):
        self.api_key = api_key if api_key is not None else settings.resend_api_key
        self.api_url = api_url or settings.resend_api_url
        self.sender = settings.email_from

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    async def send(self, email: str, reset_link: str) -> Dict[str, Any]:
        """Send the reset email and return the provider response."""
        payload = {
            "from": self.sender,
            "to": [email],
            "subject": RESET_EMAIL_SUBJECT,
            "html": render_reset_email(reset_link),
        }
        headers = {"Authorization": f"Bearer {self.api_key}"}

        logger.info("Sending reset email", email=email)

        try:
            async with httpx.AsyncClient(timeout=15.0) as client:
                response = await client.post(self.api_url, json=payload, headers=headers)
        except httpx.RequestError as e:
            logger.error("Reset email request failed", email=email, error=str(e))
            raise NotificationError("Failed to send email") from e

        try:
            body = response.json()
        except ValueError:
            body = {}

        if response.status_code >= 400:
            message = body.get("message") or "Failed to send email"
            logger.error("Resend API error", status=response.status_code, response=body)
            raise NotificationError(message)

        logger.info("Reset email sent", email=email, id=body.get("id"))
        return body


reset_email_sender = ResetEmailSender()
