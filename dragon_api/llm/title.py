"""Best-effort conversation title generation."""

import logging

from dragon_api.config.settings import get_settings
from dragon_api.db.models import PLACEHOLDER_TITLE, ROLE_USER
from dragon_api.llm.client import get_llm_client
from dragon_api.llm.prompts import build_title_prompt

logger = logging.getLogger(__name__)

FALLBACK_TITLE_CHARS = 50
MAX_TITLE_LENGTH = 100


def fallback_title(content: str) -> str:
    title = content[:FALLBACK_TITLE_CHARS].strip()
    if len(content) > FALLBACK_TITLE_CHARS:
        title += "..."
    return title


async def generate_title(messages: list[dict]) -> str:
    """Summarise the opening exchange into a short title.

    Uses the cheapest configured model. Falls back to a truncation of the first
    user message when the model fails or answers with something unusable, so
    this never raises.
    """
    first_user = next((m for m in messages if m.get("role") == ROLE_USER), None)
    if first_user is None:
        return PLACEHOLDER_TITLE

    fallback = fallback_title(first_user.get("content") or "") or PLACEHOLDER_TITLE

    try:
        settings = get_settings()
        client = get_llm_client("google")
        contents = [{"role": "user", "parts": [{"text": build_title_prompt(messages)}]}]
        title = (await client.generate(contents, settings.TITLE_MODEL)).strip()
    except Exception as exc:
        logger.error("Failed to generate title: %s", exc)
        return fallback

    if title and len(title) < MAX_TITLE_LENGTH:
        return title
    return fallback
