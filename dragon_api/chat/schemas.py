"""Pydantic schemas for the streaming chat request."""

from pydantic import BaseModel, ConfigDict, Field, field_validator

from dragon_api.db.models import ROLE_USER
from dragon_api.sessions.schemas import ChatMessage


class ChatRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    messages: list[ChatMessage] = Field(min_length=1)
    model: str | None = None
    session_id: str | None = Field(None, alias="sessionId")

    @field_validator("messages")
    @classmethod
    def _check_messages(cls, messages: list[ChatMessage]) -> list[ChatMessage]:
        for message in messages:
            if message.role == ROLE_USER:
                if not message.content and not message.attachments:
                    raise ValueError("User messages need content or attachments")
            elif not message.content:
                raise ValueError("Each message must have role and content")
        if not any(message.role == ROLE_USER for message in messages):
            raise ValueError("At least one message must come from the user")
        return messages

    @property
    def latest_user_message(self) -> ChatMessage:
        """The most recent user message; trailing assistant messages are allowed."""
        return next(m for m in reversed(self.messages) if m.role == ROLE_USER)
