"""LLM client abstraction over the upstream model providers (Google Gemini)."""

import logging
from abc import ABC, abstractmethod
from collections.abc import AsyncGenerator
from contextlib import aclosing
from typing import Any

from dragon_api.llm.keys import ApiKeyRotator, get_key_rotator

logger = logging.getLogger(__name__)


class UnsupportedProviderError(ValueError):
    def __init__(self, provider: str):
        super().__init__(f"Unsupported provider: {provider}. Currently only 'google' is supported.")
        self.provider = provider


class LLMClient(ABC):
    """Base for provider clients. Every outbound call uses the next key from the rotator.

    Callers that need the key settled before doing other work (the chat stream
    draws it before downloading attachments) take it with ``next_key()`` and
    pass it as ``api_key``; otherwise each call draws its own.
    """

    def __init__(self, keys: ApiKeyRotator):
        self._keys = keys

    def next_key(self) -> str:
        return self._keys.next_key()

    @abstractmethod
    async def generate(
        self, contents: list[dict], model: str, system_instruction: str | None = None, api_key: str | None = None
    ) -> str:
        """Return the full text of a single, non-streamed completion."""
        ...

    @abstractmethod
    def generate_stream(
        self, contents: list[dict], model: str, system_instruction: str | None = None, api_key: str | None = None
    ) -> AsyncGenerator[str, None]:
        """Yield non-empty text fragments as the provider produces them."""
        ...


class GeminiClient(LLMClient):
    """Gemini via ``google-genai``; one SDK client is kept per API key."""

    def __init__(self, keys: ApiKeyRotator):
        super().__init__(keys)
        self._sdk_clients: dict[str, Any] = {}

    def _client(self, api_key: str | None = None):
        from google import genai
        api_key = api_key or self.next_key()
        if api_key not in self._sdk_clients:
            self._sdk_clients[api_key] = genai.Client(api_key=api_key)
        return self._sdk_clients[api_key]

    @staticmethod
    def _config(system_instruction: str | None):
        from google.genai import types
        return types.GenerateContentConfig(system_instruction=system_instruction)

    async def generate(
        self, contents: list[dict], model: str, system_instruction: str | None = None, api_key: str | None = None
    ) -> str:
        client = self._client(api_key)
        response = await client.aio.models.generate_content(
            model=model,
            contents=contents,
            config=self._config(system_instruction),
        )
        return response.text or ""

    async def generate_stream(
        self, contents: list[dict], model: str, system_instruction: str | None = None, api_key: str | None = None
    ) -> AsyncGenerator[str, None]:
        client = self._client(api_key)
        stream = await client.aio.models.generate_content_stream(
            model=model,
            contents=contents,
            config=self._config(system_instruction),
        )
        # Closing this generator closes the SDK stream and its HTTP response
        async with aclosing(stream):
            async for chunk in stream:
                if chunk.text:
                    yield chunk.text


_PROVIDERS = {"google": GeminiClient}

# Singletons
_clients: dict[str, LLMClient] = {}


def is_supported_provider(provider: str) -> bool:
    return provider in _PROVIDERS


def get_llm_client(provider: str = "google") -> LLMClient:
    if provider not in _clients:
        client_cls = _PROVIDERS.get(provider)
        if client_cls is None:
            raise UnsupportedProviderError(provider)
        _clients[provider] = client_cls(get_key_rotator())
    return _clients[provider]
