"""Tests for session title generation."""

from dragon_api.db.models import PLACEHOLDER_TITLE
from dragon_api.llm.title import fallback_title, generate_title

EXCHANGE = [
    {"role": "user", "content": "Hi there, can you help me plan a trip to Lisbon next spring?"},
    {"role": "assistant", "content": "Of course!"},
]


async def test_title_from_model(fake_llm):
    fake_llm.title = "  Lisbon Trip Planning \n"
    assert await generate_title(EXCHANGE) == "Lisbon Trip Planning"
    call = fake_llm.generate_calls[0]
    assert call["model"] == "gemini-2.5-flash"
    assert "user: Hi there" in call["contents"][0]["parts"][0]["text"]


async def test_model_failure_falls_back_to_truncation(fake_llm):
    fake_llm.title_error = RuntimeError("quota exceeded")
    assert await generate_title(EXCHANGE) == "Hi there, can you help me plan a trip to Lisbon ne..."


async def test_unusable_model_answer_falls_back(fake_llm):
    fake_llm.title = "x" * 120
    assert await generate_title(EXCHANGE) == fallback_title(EXCHANGE[0]["content"])

    fake_llm.title = "   "
    assert await generate_title(EXCHANGE) == fallback_title(EXCHANGE[0]["content"])


async def test_no_user_message_keeps_placeholder(fake_llm):
    assert await generate_title([{"role": "assistant", "content": "Hello"}]) == PLACEHOLDER_TITLE
    assert fake_llm.generate_calls == []


async def test_attachment_only_message_falls_back_to_placeholder(fake_llm):
    fake_llm.title_error = RuntimeError("down")
    assert await generate_title([{"role": "user", "content": ""}, {"role": "assistant", "content": "ok"}]) == PLACEHOLDER_TITLE


def test_fallback_title_short_message_untouched():
    assert fallback_title("Hello") == "Hello"
