"""Auth endpoints: login, refresh, logout, current user."""

import logging

import httpx
from fastapi import APIRouter, Depends, HTTPException, Request, Response
from pydantic import BaseModel

from dragon_api.auth.cookies import REFRESH_TOKEN_COOKIE, clear_auth_cookies, set_auth_cookies
from dragon_api.auth.dependencies import CurrentUser, get_current_user
from dragon_api.auth.identity import password_login, refresh_token_pair
from dragon_api.auth.jwt import AuthError, verify_token
from dragon_api.middleware.error_handler import error_response
from dragon_api.users.schemas import serialize_user
from dragon_api.users.service import get_profile, sync_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])


class LoginRequest(BaseModel):
    username: str
    password: str


@router.post("/login", summary="Login", description="Authenticate against the identity provider and set httpOnly token cookies.")
async def login(body: LoginRequest, response: Response):
    if not body.username or not body.password:
        raise HTTPException(status_code=400, detail="Username and password are required")

    try:
        tokens = await password_login(body.username, body.password)
    except httpx.HTTPStatusError as exc:
        if exc.response.status_code == 401:
            raise HTTPException(status_code=401, detail="Invalid username or password")
        logger.error("Login rejected by identity provider: %s", exc)
        raise HTTPException(status_code=502, detail="Login failed")
    except httpx.HTTPError as exc:
        logger.error("Identity provider unreachable: %s", exc)
        raise HTTPException(status_code=502, detail="Login failed")

    try:
        claims = await verify_token(tokens.access_token)
    except AuthError as exc:
        logger.error("Identity provider issued an unverifiable token: %s", exc)
        raise HTTPException(status_code=502, detail="Login failed")

    profile = await sync_user(CurrentUser.from_claims(claims))
    set_auth_cookies(response, tokens)
    return {"status": "success", "data": {"user": serialize_user(profile), "expiresIn": tokens.expires_in}}


@router.post("/refresh", summary="Refresh tokens", description="Exchange the refresh-token cookie for a new token pair.")
async def refresh(request: Request, response: Response):
    refresh_token = request.cookies.get(REFRESH_TOKEN_COOKIE)
    if not refresh_token:
        raise HTTPException(status_code=401, detail="No refresh token")

    tokens = await refresh_token_pair(refresh_token)
    if tokens is None:
        failed = error_response(request, 401, "Token refresh failed")
        clear_auth_cookies(failed)
        return failed

    set_auth_cookies(response, tokens)
    return {"status": "success", "data": {"expiresIn": tokens.expires_in}}


@router.post("/logout", summary="Logout", description="Clear the token cookies.")
async def logout(response: Response):
    clear_auth_cookies(response)
    return {"status": "success", "data": {"message": "Logged out successfully"}}


@router.get("/me", summary="Current user", description="The stored profile of the authenticated user.")
async def me(user: CurrentUser = Depends(get_current_user)):
    profile = await get_profile(user.id)
    return {"status": "success", "data": serialize_user(profile, detailed=True)}
