"""Token exchanges with the identity provider's OpenID Connect token endpoint."""

import logging
from dataclasses import dataclass

import httpx

from dragon_api.config.settings import get_settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str
    expires_in: int

    @classmethod
    def from_response(cls, data: dict) -> "TokenPair":
        return cls(
            access_token=data["access_token"],
            refresh_token=data["refresh_token"],
            expires_in=int(data["expires_in"]),
        )


def _http_client() -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=get_settings().IDENTITY_HTTP_TIMEOUT_SECONDS)


async def request_token(params: dict[str, str]) -> TokenPair:
    """POST a grant to the token endpoint. Raises httpx errors on failure."""
    settings = get_settings()
    form = {
        "client_id": settings.KEYCLOAK_CLIENT_ID,
        "client_secret": settings.KEYCLOAK_CLIENT_SECRET,
        **params,
    }
    async with _http_client() as client:
        response = await client.post(settings.token_url, data=form)
    response.raise_for_status()
    return TokenPair.from_response(response.json())


async def password_login(username: str, password: str) -> TokenPair:
    return await request_token({"grant_type": "password", "username": username, "password": password})


async def refresh_token_pair(refresh_token: str) -> TokenPair | None:
    """Exchange a refresh token for a new pair; ``None`` on any failure.

    A single attempt, no retry. The refresh token is forwarded as-is and never
    decoded here.
    """
    try:
        return await request_token({"grant_type": "refresh_token", "refresh_token": refresh_token})
    except Exception as exc:
        logger.warning("Token refresh failed: %s", exc)
        return None
