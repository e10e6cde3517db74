"""SSE event formatting for the chat stream."""

import json

DONE_SENTINEL = "[DONE]"


def _sse(data: dict) -> str:
    return f"data: {json.dumps(data)}\n\n"


def format_session(session_id: str) -> str:
    return _sse({"sessionId": session_id})


def format_chunk(text: str) -> str:
    return _sse({"chunk": text})


def format_error(message: str) -> str:
    return _sse({"error": message})


def format_done() -> str:
    return f"data: {DONE_SENTINEL}\n\n"
