"""Chat session CRUD endpoints."""

from fastapi import APIRouter, Depends, Query

from dragon_api.auth.dependencies import CurrentUser, get_current_user
from dragon_api.sessions.schemas import (
    CreateSessionRequest,
    RenameSessionRequest,
    SessionListResponse,
    serialize_session,
)
from dragon_api.sessions.service import (
    create_session,
    delete_session,
    get_session,
    list_sessions,
    rename_session,
)

router = APIRouter(prefix="/api/sessions", tags=["Sessions"])


@router.post("", status_code=201, summary="Create a session", description="Start an empty chat session. Title defaults to a placeholder.")
async def create(body: CreateSessionRequest, user: CurrentUser = Depends(get_current_user)):
    session = await create_session(user.id, title=body.title, model=body.model)
    return {"status": "success", "data": serialize_session(session)}


@router.get("", summary="List sessions", description="List the authenticated user's sessions, newest first.")
async def list_all(
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=50),
    user: CurrentUser = Depends(get_current_user),
):
    sessions, total = await list_sessions(user.id, page, per_page)
    return SessionListResponse(
        data=[serialize_session(s, with_messages=False) for s in sessions],
        page=page,
        per_page=per_page,
        total=total,
    )


@router.get("/{session_id}", summary="Get a session", description="Retrieve a session with its full message history.")
async def get(session_id: str, user: CurrentUser = Depends(get_current_user)):
    session = await get_session(session_id, user.id)
    return {"status": "success", "data": serialize_session(session)}


@router.patch("/{session_id}", summary="Rename a session")
async def patch(session_id: str, body: RenameSessionRequest, user: CurrentUser = Depends(get_current_user)):
    session = await rename_session(session_id, user.id, body.title)
    return {"status": "success", "data": serialize_session(session, with_messages=False)}


@router.delete("/{session_id}", status_code=204, summary="Delete a session")
async def delete(session_id: str, user: CurrentUser = Depends(get_current_user)):
    await delete_session(session_id, user.id)
