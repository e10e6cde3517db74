"""Lazily created async Supabase client shared by the repositories."""

import logging

from supabase import AsyncClient, acreate_client

from dragon_api.config.settings import get_settings

logger = logging.getLogger(__name__)

_client: AsyncClient | None = None


async def get_supabase() -> AsyncClient:
    global _client
    if _client is None:
        settings = get_settings()
        logger.info("Connecting to Supabase at %s", settings.SUPABASE_URL)
        _client = await acreate_client(settings.SUPABASE_URL, settings.SUPABASE_SERVICE_ROLE_KEY)
    return _client
