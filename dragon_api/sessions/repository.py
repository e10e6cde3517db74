"""Data access layer for chat sessions.

Every query is filtered on both the session id and the owner id, so a session
belonging to someone else is indistinguishable from one that does not exist.
"""

from datetime import datetime, timezone
from typing import Any

from dragon_api.db.client import get_supabase
from dragon_api.db.models import CHAT_SESSIONS


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


async def create(user_id: str, data: dict[str, Any]) -> dict | None:
    db = await get_supabase()
    row = {"user_id": user_id, "messages": [], **data}
    result = await db.table(CHAT_SESSIONS).insert(row).execute()
    return result.data[0] if result.data else None


async def get_for_owner(session_id: str, user_id: str) -> dict | None:
    db = await get_supabase()
    result = await db.table(CHAT_SESSIONS).select("*").eq("id", session_id).eq("user_id", user_id).execute()
    return result.data[0] if result.data else None


async def list_for_owner(user_id: str, page: int = 1, per_page: int = 20) -> tuple[list[dict], int]:
    db = await get_supabase()
    offset = (page - 1) * per_page

    # Get total count
    count_result = await db.table(CHAT_SESSIONS).select("id", count="exact").eq("user_id", user_id).execute()
    total = count_result.count or 0

    # Get page
    result = await (
        db.table(CHAT_SESSIONS)
        .select("id, title, model, created_at, updated_at")
        .eq("user_id", user_id)
        .order("updated_at", desc=True)
        .range(offset, offset + per_page - 1)
        .execute()
    )
    return result.data, total


async def update_for_owner(session_id: str, user_id: str, data: dict[str, Any]) -> dict | None:
    db = await get_supabase()
    result = await (
        db.table(CHAT_SESSIONS)
        .update({**data, "updated_at": _now()})
        .eq("id", session_id)
        .eq("user_id", user_id)
        .execute()
    )
    return result.data[0] if result.data else None


async def append_message(session_id: str, user_id: str, message: dict, **fields: Any) -> dict | None:
    """Append ``message`` to the session's list, optionally updating other columns.

    Read-modify-write: two requests appending to the same session at once
    resolve as last write wins.
    """
    current = await get_for_owner(session_id, user_id)
    if current is None:
        return None
    messages = [*(current.get("messages") or []), message]
    return await update_for_owner(session_id, user_id, {"messages": messages, **fields})


async def delete_for_owner(session_id: str, user_id: str) -> bool:
    db = await get_supabase()
    result = await db.table(CHAT_SESSIONS).delete().eq("id", session_id).eq("user_id", user_id).execute()
    return bool(result.data)
