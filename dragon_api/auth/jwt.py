"""Access token verification against the identity provider's signing keys."""

import jwt

from dragon_api.auth.jwks import SigningKeyError, fetch_signing_key
from dragon_api.config.settings import get_settings

ALGORITHMS = ["RS256"]


class AuthError(Exception):
    reason = "invalid"


class TokenExpiredError(AuthError):
    """Signature and issuer check out, but the token is past its expiry."""

    reason = "expired"


class TokenInvalidError(AuthError):
    reason = "invalid"


async def verify_token(token: str) -> dict:
    """Verify signature, issuer and expiry; return the claims.

    Raises TokenExpiredError so callers can try a refresh, or TokenInvalidError
    for anything else.
    """
    try:
        header = jwt.get_unverified_header(token)
    except jwt.PyJWTError as exc:
        raise TokenInvalidError("Malformed token") from exc

    kid = header.get("kid")
    if not kid:
        raise TokenInvalidError("Token has no key id")

    try:
        key = await fetch_signing_key(kid)
    except SigningKeyError as exc:
        raise TokenInvalidError(str(exc)) from exc

    settings = get_settings()
    try:
        return jwt.decode(
            token,
            key,
            algorithms=ALGORITHMS,
            issuer=settings.issuer,
            options={"verify_aud": False, "require": ["exp", "iss", "sub"]},
        )
    except jwt.ExpiredSignatureError as exc:
        raise TokenExpiredError("Token has expired") from exc
    except jwt.PyJWTError as exc:
        raise TokenInvalidError(str(exc)) from exc
