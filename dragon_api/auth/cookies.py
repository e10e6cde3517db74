"""httpOnly auth cookies carrying the identity provider's token pair."""

from fastapi import Request, Response

from dragon_api.auth.identity import TokenPair
from dragon_api.config.settings import get_settings

ACCESS_TOKEN_COOKIE = "access_token"
REFRESH_TOKEN_COOKIE = "refresh_token"
REFRESH_TOKEN_MAX_AGE = 30 * 24 * 60 * 60  # 30 days, independent of the access token lifetime


def set_auth_cookies(response: Response, tokens: TokenPair) -> None:
    secure = get_settings().is_production
    response.set_cookie(
        ACCESS_TOKEN_COOKIE,
        tokens.access_token,
        max_age=tokens.expires_in,
        httponly=True,
        secure=secure,
        samesite="lax",
    )
    response.set_cookie(
        REFRESH_TOKEN_COOKIE,
        tokens.refresh_token,
        max_age=REFRESH_TOKEN_MAX_AGE,
        httponly=True,
        secure=secure,
        samesite="lax",
    )


def clear_auth_cookies(response: Response) -> None:
    response.delete_cookie(ACCESS_TOKEN_COOKIE)
    response.delete_cookie(REFRESH_TOKEN_COOKIE)


def apply_refreshed_cookies(request: Request, response: Response) -> None:
    """Copy a pair refreshed during auth onto a response the handler built itself."""
    tokens = getattr(request.state, "refreshed_tokens", None)
    if tokens is not None:
        set_auth_cookies(response, tokens)
