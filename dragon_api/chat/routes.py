"""Chat endpoints: model catalog and the SSE chat stream."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from starlette.responses import StreamingResponse

from dragon_api.auth.cookies import apply_refreshed_cookies
from dragon_api.auth.dependencies import CurrentUser, get_current_user
from dragon_api.chat.pipeline import ChatExchange
from dragon_api.chat.schemas import ChatRequest
from dragon_api.llm.catalog import list_providers, resolve_model

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/chat", tags=["Chat"])

SSE_HEADERS = {"Cache-Control": "no-cache", "Connection": "keep-alive", "X-Accel-Buffering": "no"}


@router.get("/models", summary="List models", description="Providers and models from the configured catalog.")
async def models(user: CurrentUser = Depends(get_current_user)):
    return {"providers": list_providers()}


@router.post(
    "",
    summary="Stream a chat reply",
    description=(
        "Persist the latest user message, then stream the model's reply as Server-Sent Events: "
        "`{sessionId}` first, then `{chunk}` events, an `{error}` event on failure, and `[DONE]`."
    ),
)
async def chat(body: ChatRequest, request: Request, user: CurrentUser = Depends(get_current_user)):
    resolved = resolve_model(body.model)
    if resolved is None:
        raise HTTPException(status_code=400, detail="Invalid model specified or no models configured")

    exchange = await ChatExchange.open(user, body, resolved)
    logger.info("Streaming %s for session %s", resolved.reference, exchange.session_id)

    response = StreamingResponse(exchange.events(request), media_type="text/event-stream", headers=SSE_HEADERS)
    apply_refreshed_cookies(request, response)
    return response
