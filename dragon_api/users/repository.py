"""Data access layer for user profiles, keyed by the identity provider's subject."""

from datetime import datetime, timezone
from typing import Any

from dragon_api.db.client import get_supabase
from dragon_api.db.models import USERS


async def get_by_subject(subject: str) -> dict | None:
    db = await get_supabase()
    result = await db.table(USERS).select("*").eq("keycloak_id", subject).execute()
    return result.data[0] if result.data else None


async def update_by_subject(subject: str, data: dict[str, Any]) -> dict | None:
    db = await get_supabase()
    result = await (
        db.table(USERS)
        .update({**data, "updated_at": datetime.now(timezone.utc).isoformat()})
        .eq("keycloak_id", subject)
        .execute()
    )
    return result.data[0] if result.data else None


async def create(data: dict[str, Any]) -> dict | None:
    db = await get_supabase()
    result = await db.table(USERS).insert(data).execute()
    return result.data[0] if result.data else None
