"""Global exception handler: maps exceptions to structured JSON responses."""

import logging

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from starlette.responses import JSONResponse

from dragon_api.auth.cookies import apply_refreshed_cookies
from dragon_api.config.settings import get_settings

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "An unexpected error occurred"

ERROR_TYPES = {
    400: "validation_error",
    401: "authentication_error",
    403: "forbidden",
    404: "not_found",
    409: "conflict",
    502: "upstream_error",
}


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", "unknown")


def public_error_message(exc: Exception) -> str:
    """Underlying detail in development, a generic message in production."""
    if get_settings().is_production:
        return GENERIC_ERROR_MESSAGE
    return str(exc) or exc.__class__.__name__


def error_response(request: Request, status: int, message: str, error_type: str | None = None) -> JSONResponse:
    response = JSONResponse(
        status_code=status,
        content={
            "status": "error",
            "error": {
                "type": error_type or ERROR_TYPES.get(status, "http_error"),
                "message": message,
                "request_id": _request_id(request),
            },
        },
    )
    # A pair refreshed during auth is still the browser's only valid one
    apply_refreshed_cookies(request, response)
    return response


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError):
        messages = "; ".join(
            f"{'.'.join(str(part) for part in e['loc'])}: {e['msg']}" for e in exc.errors()
        )
        return error_response(request, 400, messages, "validation_error")

    @app.exception_handler(HTTPException)
    async def http_error(request: Request, exc: HTTPException):
        response = error_response(request, exc.status_code, exc.detail)
        if exc.headers:
            response.headers.update(exc.headers)
        return response

    @app.exception_handler(Exception)
    async def unhandled_error(request: Request, exc: Exception):
        logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
        return error_response(request, 500, public_error_message(exc), "internal_error")
