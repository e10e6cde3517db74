"""Conversion of chat history into Gemini ``contents`` turns."""

import logging
from collections.abc import Awaitable, Callable

from dragon_api.db.models import ROLE_ASSISTANT, ROLE_USER
from dragon_api.llm.prompts import DEFAULT_ATTACHMENT_PROMPT
from dragon_api.sessions.schemas import Attachment, ChatMessage

logger = logging.getLogger(__name__)

Downloader = Callable[[str], Awaitable[bytes]]


def _latest_user_index(messages: list[ChatMessage]) -> int | None:
    for index in range(len(messages) - 1, -1, -1):
        if messages[index].role == ROLE_USER:
            return index
    return None


def _history_parts(message: ChatMessage) -> list[dict]:
    # Earlier uploads are only named, never re-sent
    text = message.content
    if message.attachments:
        note = "[Attached files: " + ", ".join(a.file_name or a.file_id for a in message.attachments) + "]"
        text = f"{text}\n\n{note}" if text else note
    return [{"text": text}]


async def _attachment_part(attachment: Attachment, download: Downloader) -> dict:
    try:
        data = await download(attachment.file_id)
    except Exception as exc:
        logger.warning("Could not load attachment %s: %s", attachment.file_id, exc)
        return {"text": f'[Attachment "{attachment.file_name or attachment.file_id}" could not be loaded]'}
    return {"inline_data": {"mime_type": attachment.file_type, "data": data}}


async def _latest_turn_parts(message: ChatMessage, download: Downloader) -> list[dict]:
    parts = [await _attachment_part(a, download) for a in message.attachments]
    text = message.content
    if not text and message.attachments:
        text = DEFAULT_ATTACHMENT_PROMPT
    parts.append({"text": text})
    return parts


async def build_contents(messages: list[ChatMessage], download: Downloader) -> list[dict]:
    """One turn per message; only the most recent user turn carries file bytes."""
    latest = _latest_user_index(messages)
    contents = []
    for index, message in enumerate(messages):
        role = "model" if message.role == ROLE_ASSISTANT else "user"
        if index == latest:
            parts = await _latest_turn_parts(message, download)
        else:
            parts = _history_parts(message)
        contents.append({"role": role, "parts": parts})
    return contents
