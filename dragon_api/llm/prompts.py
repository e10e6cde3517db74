"""System prompt templates."""

SYSTEM_INSTRUCTION = (
    "You are Dragon AI, a helpful, friendly, and knowledgeable assistant. "
    "Respond in markdown format when appropriate. Be concise but thorough."
)

DEFAULT_ATTACHMENT_PROMPT = "Please analyze the attached file(s)."

TITLE_GENERATION_PROMPT = (
    "Generate a very short title (3-6 words, no quotes, no punctuation at the end) "
    "that summarizes this conversation. Only output the title, nothing else."
)


def build_title_prompt(messages: list[dict]) -> str:
    transcript = "\n".join(f"{m['role']}: {m['content']}" for m in messages)
    return f"{TITLE_GENERATION_PROMPT}\n\nConversation:\n{transcript}"
