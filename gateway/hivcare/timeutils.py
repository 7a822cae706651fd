"""Local clock helpers; "today" is always the clinic's calendar day."""

from datetime import date, datetime
from zoneinfo import ZoneInfo

from .config import settings


def local_now() -> datetime:
    """Current wall-clock time in the configured timezone."""
    return datetime.now(ZoneInfo(settings.timezone))


def today() -> date:
    return local_now().date()


def today_str() -> str:
    return today().isoformat()
