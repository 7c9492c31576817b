"""Exception handlers mapping TaskTrail errors to JSON responses.

Register with register_exception_handlers(app). Every error body has the
shape ``{error, message, code}`` plus ``details`` for validation failures and
``retry_after`` for rate limiting.
"""

import logging
from typing import Callable

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from tasktrail.config import settings
from tasktrail.engine.errors import (
    RateLimitExceededError,
    TaskTrailError,
    ValidationError,
)

logger = logging.getLogger(__name__)

_ERROR_TITLES = {
    401: "Unauthorized",
    404: "Not Found",
    422: "Validation Error",
    429: "Too Many Requests",
    503: "Service Unavailable",
}


def _error_body(status_code: int, message: str, code: str) -> dict:
    return {
        "error": _ERROR_TITLES.get(status_code, "Error"),
        "message": message,
        "code": code,
    }


def _tasktrail_exception_handler(request: Request, exc: TaskTrailError) -> JSONResponse:
    """Domain errors carry their own status code and machine-readable code."""
    body = _error_body(exc.status_code, exc.message, exc.code)
    headers = None

    if isinstance(exc, ValidationError):
        body["details"] = exc.errors
    elif isinstance(exc, RateLimitExceededError):
        body["retry_after"] = exc.retry_after
        headers = {
            "Retry-After": str(exc.retry_after),
            "X-RateLimit-Limit": str(exc.limit),
            "X-RateLimit-Remaining": "0",
            "X-RateLimit-Reset": str(exc.reset_time),
        }

    return JSONResponse(status_code=exc.status_code, content=body, headers=headers)


def _request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed path/query parameters use the same 422 shape as field validation."""
    details = {
        ".".join(str(part) for part in error["loc"][1:]) or "request": error["msg"]
        for error in exc.errors()
    }
    body = _error_body(422, "The given data was invalid.", "VALIDATION_ERROR")
    body["details"] = details
    return JSONResponse(status_code=422, content=body)


def _http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    code = "NOT_FOUND" if exc.status_code == 404 else "HTTP_ERROR"
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(exc.status_code, str(exc.detail), code),
        headers=getattr(exc, "headers", None),
    )


def _generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Return 500; the message is generic unless debug is on."""
    logger.exception(f"Unhandled exception on {request.method} {request.url.path}: {exc}")
    message = str(exc) if settings.debug else "An unexpected error occurred"
    return JSONResponse(
        status_code=500,
        content={"error": "Internal Server Error", "message": message, "code": "INTERNAL_ERROR"},
    )


def UnhandledErrorMiddleware(app: Callable) -> Callable:
    """
    Turn unhandled exceptions into the generic 500 body inside the
    middleware stack.

    Starlette runs the ``Exception`` handler outside every user middleware,
    so responses it produces skip the security headers. Added first, this
    sits innermost and the 500 passes back through the other middleware.
    Errors raised after the response has started are re-raised.
    """

    async def asgi_app(scope: dict, receive: Callable, send: Callable) -> None:
        if scope["type"] != "http":
            await app(scope, receive, send)
            return

        response_started = False

        async def send_wrapper(message: dict) -> None:
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            await app(scope, receive, send_wrapper)
        except Exception as exc:
            if response_started:
                raise
            response = _generic_exception_handler(Request(scope), exc)
            await response(scope, receive, send)

    return asgi_app


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(TaskTrailError, _tasktrail_exception_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_exception_handler(Exception, _generic_exception_handler)
