"""Auth dependencies for FastAPI route injection."""

from dataclasses import dataclass, field

from fastapi import HTTPException, Request, Response

from dragon_api.auth.cookies import ACCESS_TOKEN_COOKIE, REFRESH_TOKEN_COOKIE, set_auth_cookies
from dragon_api.auth.gate import authenticate


@dataclass
class CurrentUser:
    id: str
    email: str
    display_name: str = ""
    claims: dict = field(default_factory=dict, repr=False)

    @classmethod
    def from_claims(cls, claims: dict) -> "CurrentUser":
        display_name = " ".join(
            part for part in (claims.get("given_name"), claims.get("family_name")) if part
        ) or claims.get("preferred_username", "")
        return cls(id=claims["sub"], email=claims.get("email", ""), display_name=display_name, claims=claims)


def _extract_bearer_token(request: Request) -> str | None:
    auth = request.headers.get("Authorization")
    if auth and auth.startswith("Bearer "):
        return auth[7:]
    return None


def extract_credentials(request: Request) -> tuple[str | None, str | None]:
    """Access token from the Authorization header, else its cookie; refresh token from its cookie."""
    access_token = _extract_bearer_token(request) or request.cookies.get(ACCESS_TOKEN_COOKIE)
    return access_token, request.cookies.get(REFRESH_TOKEN_COOKIE)


async def get_current_user(request: Request, response: Response) -> CurrentUser:
    """FastAPI dependency: authenticate, refreshing an expired session on the fly."""
    access_token, refresh_token = extract_credentials(request)
    result = await authenticate(access_token, refresh_token)
    if not result.authenticated:
        raise HTTPException(status_code=401, detail=result.reason)

    if result.refreshed_tokens is not None:
        set_auth_cookies(response, result.refreshed_tokens)
        request.state.refreshed_tokens = result.refreshed_tokens

    user = CurrentUser.from_claims(result.claims)
    request.state.user_id = user.id
    return user
