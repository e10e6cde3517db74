"""Pydantic schemas for chat sessions and the messages embedded in them."""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class Attachment(BaseModel):
    """Reference to a previously uploaded file; the bytes live in object storage."""

    model_config = ConfigDict(populate_by_name=True)

    file_id: str = Field(alias="fileId", min_length=1)
    file_name: str = Field("", alias="fileName")
    file_type: str = Field("application/octet-stream", alias="fileType")
    file_size: int | None = Field(None, alias="fileSize")
    gcs_url: str | None = Field(None, alias="gcsUrl")
    download_url: str | None = Field(None, alias="downloadUrl")


class ChatMessage(BaseModel):
    role: Literal["user", "assistant"]
    content: str = ""
    attachments: list[Attachment] = Field(default_factory=list)
    metadata: dict[str, Any] | None = None


# --- Requests ---

class CreateSessionRequest(BaseModel):
    title: str | None = None
    model: str | None = None


class RenameSessionRequest(BaseModel):
    title: str


# --- Responses ---

def serialize_message(message: dict) -> dict:
    return {
        "id": message.get("id"),
        "role": message["role"],
        "content": message.get("content", ""),
        "attachments": message.get("attachments") or [],
        "metadata": message.get("metadata"),
        "createdAt": message.get("createdAt"),
    }


def serialize_session(row: dict, with_messages: bool = True) -> dict:
    data = {
        "id": row["id"],
        "title": row["title"],
        "model": row.get("model") or "",
        "createdAt": row.get("created_at"),
        "updatedAt": row.get("updated_at"),
    }
    if with_messages:
        data["messages"] = [serialize_message(m) for m in row.get("messages") or []]
    return data


class SessionListResponse(BaseModel):
    status: str = "success"
    data: list[dict[str, Any]]
    page: int
    per_page: int
    total: int
