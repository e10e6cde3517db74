"""Database table name constants and type references."""

# Table names: single source of truth for Supabase queries
USERS = "users"
CHAT_SESSIONS = "chat_sessions"

# Role constants
ROLE_USER = "user"
ROLE_ASSISTANT = "assistant"

# Title every new session starts with until the first exchange is summarised
PLACEHOLDER_TITLE = "New Chat"

# Profile fields a user record starts with; later logins leave them alone
DEFAULT_AVATAR = ""
DEFAULT_PREFERENCES = {"theme": "dark", "language": "en"}
