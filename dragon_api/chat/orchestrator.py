"""Upstream fragment stream for one chat turn."""

import logging
from collections.abc import AsyncGenerator
from contextlib import aclosing

from dragon_api.chat.contents import build_contents
from dragon_api.llm.client import UnsupportedProviderError, get_llm_client, is_supported_provider
from dragon_api.llm.prompts import SYSTEM_INSTRUCTION
from dragon_api.sessions.schemas import ChatMessage
from dragon_api.storage.client import download_to_buffer

logger = logging.getLogger(__name__)


async def stream_chat(provider_id: str, model_id: str, messages: list[ChatMessage]) -> AsyncGenerator[str, None]:
    """Yield non-empty text fragments from the upstream model.

    Finite and not restartable. An upstream error is raised after whatever
    fragments were already yielded; nothing is retried. Closing the generator
    closes the upstream stream.
    """
    if not is_supported_provider(provider_id):
        raise UnsupportedProviderError(provider_id)

    client = get_llm_client(provider_id)
    # A missing key fails here, before any attachment is downloaded
    api_key = client.next_key()
    contents = await build_contents(messages, download_to_buffer)
    logger.debug("Streaming %d turns to %s/%s", len(contents), provider_id, model_id)

    upstream = client.generate_stream(contents, model_id, SYSTEM_INSTRUCTION, api_key=api_key)
    async with aclosing(upstream) as fragments:
        async for fragment in fragments:
            if fragment:
                yield fragment
