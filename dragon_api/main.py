"""Dragon Chat API: FastAPI application entry point."""

from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI

from dragon_api.auth.routes import router as auth_router
from dragon_api.chat.routes import router as chat_router
from dragon_api.config.cors import SecurityHeadersMiddleware, configure_cors
from dragon_api.config.logs import configure_logging
from dragon_api.middleware.error_handler import register_error_handlers
from dragon_api.middleware.request_id import RequestIDMiddleware
from dragon_api.sessions.routes import router as sessions_router
from dragon_api.utils.background import drain_background_tasks

configure_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    # Let in-flight reply saves and title updates land before shutdown
    await drain_background_tasks()


app = FastAPI(
    title="Dragon Chat API",
    description=(
        "Authenticated streaming chat backed by Google Gemini.\n\n"
        "## Features\n"
        "- Identity-provider tokens in httpOnly cookies, refreshed transparently\n"
        "- Chat sessions with owner-scoped history\n"
        "- Real-time streaming via SSE with multimodal attachments\n"
        "- Automatic session titles\n\n"
        "## Authentication\n"
        "All endpoints except `/api/health` and `/api/auth/login|refresh|logout` require authentication.\n"
        "Use `Authorization: Bearer <jwt>` or the `access_token` / `refresh_token` cookies."
    ),
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
    openapi_tags=[
        {"name": "Health", "description": "Health check endpoints"},
        {"name": "Auth", "description": "Login, token refresh, logout, current user"},
        {"name": "Sessions", "description": "CRUD operations for chat sessions"},
        {"name": "Chat", "description": "Model catalog and Server-Sent Events chat stream"},
    ],
)

# --- Middleware ---
app.add_middleware(RequestIDMiddleware)
app.add_middleware(SecurityHeadersMiddleware)
configure_cors(app)

# --- Error handlers ---
register_error_handlers(app)

# --- Routes ---
app.include_router(auth_router)
app.include_router(sessions_router)
app.include_router(chat_router)


@app.get("/api/health", tags=["Health"], summary="Health check", description="Returns OK if the service is running.")
async def health_check():
    return {"status": "ok", "service": "dragon-backend", "timestamp": datetime.now(timezone.utc).isoformat()}
