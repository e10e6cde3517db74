"""Round-robin selection over the configured upstream API keys."""

import itertools
from functools import lru_cache

from dragon_api.config.settings import get_settings


class LLMConfigurationError(RuntimeError):
    """Raised when the upstream provider is not configured well enough to call."""


class ApiKeyRotator:
    """Hands out API keys in round-robin order.

    The cursor is an ``itertools.count``: ``next()`` on it is a single atomic
    step under the interpreter lock, so concurrent streams never need a lock.
    Exact fairness under contention is not guaranteed.
    """

    def __init__(self, keys: list[str]):
        self._keys = list(keys)
        self._cursor = itertools.count()

    def __len__(self) -> int:
        return len(self._keys)

    def next_key(self) -> str:
        if not self._keys:
            raise LLMConfigurationError("No Gemini API keys configured. Set GEMINI_API_KEYS in .env")
        return self._keys[next(self._cursor) % len(self._keys)]


@lru_cache()
def get_key_rotator() -> ApiKeyRotator:
    return ApiKeyRotator(get_settings().gemini_api_keys_list)
