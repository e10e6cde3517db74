"""Per-request authentication state machine with transparent token refresh.

    NO_CREDENTIAL      -> REJECTED ("No token provided")
    HAVE_REFRESH_ONLY  -> refresh, verify new access token -> AUTHENTICATED | REJECTED
    HAVE_ACCESS_TOKEN  -> verify -> AUTHENTICATED
                                  | expired + refresh token -> as HAVE_REFRESH_ONLY
                                  | otherwise -> REJECTED

A pair obtained by refreshing is returned with the result so the caller can
hand it back to the browser as cookies.
"""

import logging
from dataclasses import dataclass
from enum import Enum

from dragon_api.auth.identity import TokenPair, refresh_token_pair
from dragon_api.auth.jwt import AuthError, TokenExpiredError, verify_token

logger = logging.getLogger(__name__)

NO_TOKEN_PROVIDED = "No token provided"
INVALID_OR_EXPIRED = "Invalid or expired token"


class AuthState(str, Enum):
    NO_CREDENTIAL = "no_credential"
    HAVE_ACCESS_TOKEN = "have_access_token"
    HAVE_REFRESH_ONLY = "have_refresh_only"
    AUTHENTICATED = "authenticated"
    REJECTED = "rejected"


@dataclass
class AuthResult:
    state: AuthState
    claims: dict | None = None
    refreshed_tokens: TokenPair | None = None
    reason: str | None = None

    @property
    def authenticated(self) -> bool:
        return self.state is AuthState.AUTHENTICATED


def _rejected(reason: str) -> AuthResult:
    return AuthResult(AuthState.REJECTED, reason=reason)


def initial_state(access_token: str | None, refresh_token: str | None) -> AuthState:
    if access_token:
        return AuthState.HAVE_ACCESS_TOKEN
    if refresh_token:
        return AuthState.HAVE_REFRESH_ONLY
    return AuthState.NO_CREDENTIAL


async def _authenticate_by_refresh(refresh_token: str) -> AuthResult:
    tokens = await refresh_token_pair(refresh_token)
    if tokens is None:
        return _rejected(INVALID_OR_EXPIRED)
    try:
        claims = await verify_token(tokens.access_token)
    except AuthError as exc:
        logger.warning("Refreshed access token failed verification: %s", exc)
        return _rejected(INVALID_OR_EXPIRED)
    return AuthResult(AuthState.AUTHENTICATED, claims=claims, refreshed_tokens=tokens)


async def authenticate(access_token: str | None, refresh_token: str | None) -> AuthResult:
    state = initial_state(access_token, refresh_token)

    if state is AuthState.NO_CREDENTIAL:
        return _rejected(NO_TOKEN_PROVIDED)

    if state is AuthState.HAVE_REFRESH_ONLY:
        return await _authenticate_by_refresh(refresh_token)

    try:
        claims = await verify_token(access_token)
    except TokenExpiredError:
        if refresh_token:
            logger.debug("Access token expired, refreshing")
            return await _authenticate_by_refresh(refresh_token)
        return _rejected(INVALID_OR_EXPIRED)
    except AuthError:
        return _rejected(INVALID_OR_EXPIRED)
    return AuthResult(AuthState.AUTHENTICATED, claims=claims)
