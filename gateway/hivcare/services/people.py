"""Lookups of people (patients and staff) by role."""

from typing import Any, Dict, List, Optional

from ..config import TABLES
from ..db import db_manager


async def profiles_for_role(role: str, search: Optional[str] = None) -> List[Dict[str, Any]]:
    """Profiles of every user holding `role`, ordered by name.

    `search` filters by a case-insensitive substring of the full name.
    """
    roles = await db_manager.fetch(TABLES["user_roles"], columns="user_id", eq={"role": role})
    user_ids = [row["user_id"] for row in roles]
    if not user_ids:
        return []

    profiles = await db_manager.fetch(
        TABLES["profiles"],
        columns="user_id, full_name, phone, created_at",
        in_={"user_id": user_ids},
        order="full_name",
    )

    if search:
        needle = search.strip().lower()
        profiles = [p for p in profiles if needle in (p.get("full_name") or "").lower()]
    return profiles
