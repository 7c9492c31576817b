"""Security headers middleware.

Adds security-related response headers (CSP, frame/content-type options,
referrer and permissions policies) plus API version and response time.
HSTS is only sent in production. Raw ASGI, no BaseHTTPMiddleware.
"""

import time
from typing import Callable

DEFAULT_HEADERS = {
    "X-Frame-Options": "DENY",
    "X-Content-Type-Options": "nosniff",
    "Content-Security-Policy": (
        "default-src 'self'; "
        "script-src 'self' 'unsafe-inline'; "
        "style-src 'self' 'unsafe-inline'; "
        "img-src 'self' data: https:; "
        "font-src 'self'; "
        "connect-src 'self'; "
        "frame-ancestors 'none';"
    ),
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Permissions-Policy": (
        "geolocation=(), microphone=(), camera=(), payment=(), usb=(), "
        "magnetometer=(), gyroscope=(), fullscreen=(self), sync-xhr=()"
    ),
}

HSTS_HEADER = ("Strict-Transport-Security", "max-age=31536000; includeSubDomains; preload")

STRIPPED_HEADERS = {b"x-powered-by", b"server"}


def SecurityHeadersMiddleware(
    app: Callable,
    headers: dict[str, str] | None = None,
    api_version: str = "1.0",
    hsts: bool = False,
) -> Callable:
    """Set security headers on all HTTP responses."""
    resolved = dict(headers if headers is not None else DEFAULT_HEADERS)
    resolved["X-API-Version"] = api_version
    if hsts:
        resolved[HSTS_HEADER[0]] = HSTS_HEADER[1]
    header_list = [(k.lower().encode(), v.encode()) for k, v in resolved.items()]

    async def asgi_app(scope: dict, receive: Callable, send: Callable) -> None:
        if scope["type"] != "http":
            await app(scope, receive, send)
            return

        started = time.perf_counter()

        async def send_wrapper(message: dict) -> None:
            if message["type"] == "http.response.start":
                headers = [
                    (name, value)
                    for name, value in message.get("headers", [])
                    if name.lower() not in STRIPPED_HEADERS
                ]
                seen = {name.lower() for name, _ in headers}
                for name_b, value_b in header_list:
                    if name_b not in seen:
                        headers.append((name_b, value_b))
                elapsed_ms = (time.perf_counter() - started) * 1000.0
                headers.append((b"x-response-time", f"{elapsed_ms:.2f}ms".encode()))
                message["headers"] = headers
            await send(message)

        await app(scope, receive, send_wrapper)

    return asgi_app
