"""Signing-key lookup against the identity provider's published JWKS."""

import logging
import time
from collections import OrderedDict
from collections.abc import Callable
from functools import lru_cache
from typing import Any

import httpx
import jwt

from dragon_api.config.settings import get_settings

logger = logging.getLogger(__name__)


class SigningKeyError(Exception):
    """The key for a token could not be obtained."""


class SigningKeyCache:
    """Small LRU of public keys keyed by ``kid``, each entry with a maximum age."""

    def __init__(self, max_entries: int = 5, max_age: float = 600.0, clock: Callable[[], float] = time.monotonic):
        self._max_entries = max_entries
        self._max_age = max_age
        self._clock = clock
        self._entries: OrderedDict[str, tuple[float, Any]] = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, kid: str) -> Any | None:
        entry = self._entries.get(kid)
        if entry is None:
            return None
        stored_at, key = entry
        if self._clock() - stored_at > self._max_age:
            del self._entries[kid]
            return None
        self._entries.move_to_end(kid)
        return key

    def put(self, kid: str, key: Any) -> None:
        self._entries[kid] = (self._clock(), key)
        self._entries.move_to_end(kid)
        while len(self._entries) > self._max_entries:
            self._entries.popitem(last=False)

    def clear(self) -> None:
        self._entries.clear()


@lru_cache()
def get_key_cache() -> SigningKeyCache:
    settings = get_settings()
    return SigningKeyCache(settings.JWKS_CACHE_MAX_ENTRIES, settings.JWKS_CACHE_MAX_AGE_SECONDS)


def _http_client() -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=get_settings().IDENTITY_HTTP_TIMEOUT_SECONDS)


async def fetch_jwks() -> list[dict]:
    settings = get_settings()
    async with _http_client() as client:
        response = await client.get(settings.jwks_url)
    response.raise_for_status()
    return response.json().get("keys", [])


async def fetch_signing_key(kid: str) -> Any:
    """Return the public key for ``kid``, hitting the network only on a cache miss."""
    cache = get_key_cache()
    key = cache.get(kid)
    if key is not None:
        return key

    try:
        keys = await fetch_jwks()
    except (httpx.HTTPError, ValueError) as exc:
        logger.warning("Could not fetch JWKS: %s", exc)
        raise SigningKeyError("Unable to fetch signing keys") from exc

    for jwk in keys:
        if jwk.get("kid") == kid:
            try:
                key = jwt.PyJWK(jwk).key
            except jwt.PyJWTError as exc:
                raise SigningKeyError(f"Unusable signing key {kid}") from exc
            cache.put(kid, key)
            return key

    raise SigningKeyError(f"Signing key {kid} not found")
