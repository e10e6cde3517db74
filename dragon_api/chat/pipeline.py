"""One chat exchange: persist the question, stream the answer, persist the answer.

The user message is written before the stream opens and the assistant reply
after it ends, whatever ended it. A crash mid-stream therefore loses at most
the reply, and a client that disconnects still finds its partial answer on
reload.
"""

import asyncio
import logging
from collections.abc import AsyncGenerator
from contextlib import aclosing
from enum import Enum

from starlette.requests import Request

from dragon_api.auth.dependencies import CurrentUser
from dragon_api.chat.orchestrator import stream_chat
from dragon_api.chat.schemas import ChatRequest
from dragon_api.chat.streaming import format_chunk, format_done, format_error, format_session
from dragon_api.llm.catalog import ResolvedModel
from dragon_api.middleware.error_handler import public_error_message
from dragon_api.sessions.service import (
    maybe_generate_title,
    resolve_or_create_session,
    save_assistant_message,
    save_user_message,
)
from dragon_api.utils.background import spawn_background

logger = logging.getLogger(__name__)


class ExchangeState(str, Enum):
    SESSION_RESOLVED = "session_resolved"
    STREAMING = "streaming"
    COMPLETED = "completed"
    ABORTED = "aborted"
    FAILED = "failed"


class ChatExchange:
    def __init__(self, session: dict, user: CurrentUser, model: ResolvedModel, request: ChatRequest):
        self.session = session
        self.user = user
        self.model = model
        self.request = request
        self.state = ExchangeState.SESSION_RESOLVED
        self.chunks: list[str] = []
        self._save_task: asyncio.Task | None = None

    @property
    def session_id(self) -> str:
        return self.session["id"]

    @property
    def reply(self) -> str:
        return "".join(self.chunks)

    @classmethod
    async def open(cls, user: CurrentUser, body: ChatRequest, model: ResolvedModel) -> "ChatExchange":
        """Resolve the session and store the user's message. Raises before any streaming."""
        session = await resolve_or_create_session(user.id, body.session_id, model.reference)
        session = await save_user_message(session, body.latest_user_message, model.reference)
        return cls(session, user, model, body)

    async def events(self, request: Request) -> AsyncGenerator[str, None]:
        """SSE frames for the client; the reply is persisted on every way out.

        The save runs as its own task and is awaited through ``asyncio.shield``
        before ``[DONE]``, so a client that drops mid-save cancels only the
        wait, never the write.
        """
        try:
            yield format_session(self.session_id)
            self.state = ExchangeState.STREAMING

            fragments = stream_chat(self.model.provider_id, self.model.model_id, self.request.messages)
            async with aclosing(fragments):
                try:
                    async for fragment in fragments:
                        if await request.is_disconnected():
                            self.state = ExchangeState.ABORTED
                            logger.info("Client disconnected from session %s", self.session_id)
                            return
                        self.chunks.append(fragment)
                        yield format_chunk(fragment)
                    self.state = ExchangeState.COMPLETED
                except Exception as exc:
                    self.state = ExchangeState.FAILED
                    logger.exception("Error during stream for session %s", self.session_id)
                    yield format_error(public_error_message(exc))

            await asyncio.shield(self.start_save())
            yield format_done()
        finally:
            if self.state is ExchangeState.STREAMING:
                self.state = ExchangeState.ABORTED
            # No-op when the save already started; otherwise nobody is waiting
            self.start_save()

    def start_save(self) -> asyncio.Task:
        """Schedule ``persist_reply`` once per exchange and return its task."""
        if self._save_task is None:
            self._save_task = spawn_background(self.persist_reply(), name=f"reply:{self.session_id}")
        return self._save_task

    async def persist_reply(self) -> None:
        """Store the accumulated reply, if any, then kick off auto-titling."""
        if not self.chunks:
            return
        try:
            session = await save_assistant_message(self.session_id, self.user.id, self.reply)
        except Exception:
            logger.exception("Failed to save assistant reply for session %s", self.session_id)
            return
        if session is not None:
            maybe_generate_title(session)
