"""Tests for building upstream contents and streaming fragments."""

import pytest

from dragon_api.chat.contents import build_contents
from dragon_api.chat.orchestrator import stream_chat
from dragon_api.llm.client import UnsupportedProviderError
from dragon_api.llm.prompts import DEFAULT_ATTACHMENT_PROMPT, SYSTEM_INSTRUCTION
from dragon_api.sessions.schemas import ChatMessage


def _message(role, content="", attachments=None):
    return ChatMessage(role=role, content=content, attachments=attachments or [])


def _attachment(file_id, name="notes.txt", mime="text/plain"):
    return {"fileId": file_id, "fileName": name, "fileType": mime}


async def _collect(stream) -> list[str]:
    return [fragment async for fragment in stream]


async def test_roles_map_to_gemini_turns(downloads):
    messages = [_message("user", "Hi"), _message("assistant", "Hello!"), _message("user", "How are you?")]
    contents = await build_contents(messages, downloads_fn(downloads))
    assert [c["role"] for c in contents] == ["user", "model", "user"]
    assert contents[-1]["parts"] == [{"text": "How are you?"}]


async def test_latest_turn_inlines_attachment_bytes(downloads):
    downloads["f1"] = b"hello file"
    messages = [_message("user", "Summarise", [_attachment("f1")])]

    contents = await build_contents(messages, downloads_fn(downloads))

    assert contents[0]["parts"] == [
        {"inline_data": {"mime_type": "text/plain", "data": b"hello file"}},
        {"text": "Summarise"},
    ]


async def test_attachment_only_gets_default_prompt(downloads):
    downloads["f1"] = b"%PDF"
    messages = [_message("user", attachments=[_attachment("f1", "doc.pdf", "application/pdf")])]
    contents = await build_contents(messages, downloads_fn(downloads))
    assert contents[0]["parts"][-1] == {"text": DEFAULT_ATTACHMENT_PROMPT}


async def test_earlier_attachments_are_named_not_resent(downloads):
    downloads["old"] = b"should not be sent"
    messages = [
        _message("user", "Look at this", [_attachment("old", "a.png", "image/png"), _attachment("old2", "b.png")]),
        _message("assistant", "Nice picture"),
        _message("user", "Thanks"),
    ]
    contents = await build_contents(messages, downloads_fn(downloads))
    assert contents[0]["parts"] == [{"text": "Look at this\n\n[Attached files: a.png, b.png]"}]


async def test_unloadable_attachment_becomes_note(downloads):
    messages = [_message("user", "Read it", [_attachment("missing", "gone.txt")])]
    contents = await build_contents(messages, downloads_fn(downloads))
    assert contents[0]["parts"] == [
        {"text": '[Attachment "gone.txt" could not be loaded]'},
        {"text": "Read it"},
    ]


async def test_stream_yields_fragments_with_system_instruction(fake_llm, downloads):
    fake_llm.fragments = ["Hel", "", "lo"]
    fragments = await _collect(stream_chat("google", "gemini-2.5-flash", [_message("user", "Hi")]))

    assert fragments == ["Hel", "lo"]
    call = fake_llm.stream_calls[0]
    assert call["model"] == "gemini-2.5-flash"
    assert call["system_instruction"] == SYSTEM_INSTRUCTION
    assert call["contents"] == [{"role": "user", "parts": [{"text": "Hi"}]}]


async def test_stream_error_after_fragments(fake_llm, downloads):
    fake_llm.fragments = ["partial"]
    fake_llm.stream_error = RuntimeError("quota exceeded")
    received = []

    with pytest.raises(RuntimeError, match="quota exceeded"):
        async for fragment in stream_chat("google", "gemini-2.5-flash", [_message("user", "Hi")]):
            received.append(fragment)

    assert received == ["partial"]


async def test_unsupported_provider(fake_llm, downloads):
    with pytest.raises(UnsupportedProviderError, match="acme"):
        await _collect(stream_chat("acme", "model-x", [_message("user", "Hi")]))
    assert fake_llm.stream_calls == []


def downloads_fn(files: dict):
    async def download(file_id: str) -> bytes:
        if file_id not in files:
            raise FileNotFoundError(file_id)
        return files[file_id]

    return download
