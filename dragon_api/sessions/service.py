"""Session business logic: owner-scoped lookups, message appends, auto-title."""

import logging
import uuid
from datetime import datetime, timezone

from fastapi import HTTPException

from dragon_api.db.models import PLACEHOLDER_TITLE, ROLE_ASSISTANT, ROLE_USER
from dragon_api.llm.title import generate_title
from dragon_api.sessions import repository
from dragon_api.sessions.schemas import ChatMessage
from dragon_api.utils.background import spawn_background

logger = logging.getLogger(__name__)


class SessionNotFoundError(HTTPException):
    def __init__(self):
        super().__init__(status_code=404, detail="Session not found")


def _is_valid_id(session_id: str) -> bool:
    try:
        uuid.UUID(session_id)
    except (ValueError, TypeError):
        return False
    return True


def new_message(role: str, content: str, attachments: list[dict] | None = None, metadata: dict | None = None) -> dict:
    return {
        "id": uuid.uuid4().hex,
        "role": role,
        "content": content,
        "attachments": attachments or [],
        "metadata": metadata,
        "createdAt": datetime.now(timezone.utc).isoformat(),
    }


async def create_session(user_id: str, title: str | None = None, model: str | None = None) -> dict:
    session = await repository.create(user_id, {"title": title or PLACEHOLDER_TITLE, "model": model or ""})
    if session is None:
        raise HTTPException(status_code=500, detail="Failed to create session")
    return session


async def list_sessions(user_id: str, page: int, per_page: int) -> tuple[list[dict], int]:
    return await repository.list_for_owner(user_id, page, per_page)


async def get_session(session_id: str, user_id: str) -> dict:
    if not _is_valid_id(session_id):
        raise SessionNotFoundError()
    session = await repository.get_for_owner(session_id, user_id)
    if session is None:
        raise SessionNotFoundError()
    return session


async def rename_session(session_id: str, user_id: str, title: str) -> dict:
    title = title.strip()
    if not title:
        raise HTTPException(status_code=400, detail="Title is required and must be a non-empty string")
    if not _is_valid_id(session_id):
        raise SessionNotFoundError()
    session = await repository.update_for_owner(session_id, user_id, {"title": title})
    if session is None:
        raise SessionNotFoundError()
    return session


async def delete_session(session_id: str, user_id: str) -> None:
    if not _is_valid_id(session_id) or not await repository.delete_for_owner(session_id, user_id):
        raise SessionNotFoundError()


async def resolve_or_create_session(user_id: str, session_id: str | None, model: str) -> dict:
    """Look up the referenced session, or lazily start a new conversation."""
    if session_id:
        return await get_session(session_id, user_id)
    return await create_session(user_id, model=model)


async def save_user_message(session: dict, message: ChatMessage, model: str) -> dict:
    """Persist the caller's message before any model output exists."""
    stored = new_message(
        ROLE_USER,
        message.content,
        attachments=[a.model_dump(by_alias=True, exclude_none=True) for a in message.attachments],
        metadata=message.metadata,
    )
    updated = await repository.append_message(session["id"], session["user_id"], stored, model=model)
    if updated is None:
        raise SessionNotFoundError()
    return updated


async def save_assistant_message(session_id: str, user_id: str, content: str) -> dict | None:
    updated = await repository.append_message(session_id, user_id, new_message(ROLE_ASSISTANT, content))
    if updated is None:
        logger.warning("Session %s vanished before the assistant reply could be saved", session_id)
    return updated


def is_first_exchange(session: dict) -> bool:
    return session.get("title") == PLACEHOLDER_TITLE and len(session.get("messages") or []) == 2


async def _update_title(session_id: str, user_id: str, messages: list[dict]) -> None:
    """Generate and store a session title (fire-and-forget)."""
    try:
        title = await generate_title(messages)
        if title and title != PLACEHOLDER_TITLE:
            await repository.update_for_owner(session_id, user_id, {"title": title})
            logger.info("Titled session %s: %s", session_id, title)
    except Exception:
        logger.exception("Failed to generate title for session %s", session_id)


def maybe_generate_title(session: dict) -> bool:
    """Spawn title generation once the first user/assistant pair is stored."""
    if not is_first_exchange(session):
        return False
    spawn_background(
        _update_title(session["id"], session["user_id"], list(session["messages"])),
        name=f"title:{session['id']}",
    )
    return True
