"""ASGI middleware for correlation IDs and security headers."""

from __future__ import annotations

import uuid

import structlog
from opentelemetry import trace
from starlette.datastructures import Headers
from starlette.types import ASGIApp, Message, Receive, Scope, Send

CORRELATION_ID_HEADER = "X-Correlation-ID"


class CorrelationIdMiddleware:
    """Gives every request a correlation ID for log and trace correlation.

    Reuses the caller's ``X-Correlation-ID`` when present so IDs survive
    hops between services; otherwise a new one is generated. The ID is
    echoed on the response, bound into structlog contextvars for the
    duration of the request, exposed as ``request.state.correlation_id``
    and tagged on the active span.

    Must be the outermost middleware so every log line carries the ID.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        header_value = Headers(scope=scope).get(CORRELATION_ID_HEADER)
        if header_value and header_value.strip():
            correlation_id = header_value.strip()
        else:
            correlation_id = uuid.uuid4().hex

        scope.setdefault("state", {})["correlation_id"] = correlation_id

        span = trace.get_current_span()
        if span.is_recording():
            span.set_attribute("correlation.id", correlation_id)

        async def send_wrapper(message: Message) -> None:
            if message.get("type") == "http.response.start":
                headers: list[tuple[bytes, bytes]] = list(message.get("headers", []))
                headers.append(
                    (CORRELATION_ID_HEADER.lower().encode(), correlation_id.encode())
                )
                message["headers"] = headers
            await send(message)

        with structlog.contextvars.bound_contextvars(correlation_id=correlation_id):
            await self.app(scope, receive, send_wrapper)


class SecurityHeadersMiddleware:
    """Adds security headers suited to a JSON-only API."""

    SECURITY_HEADERS: list[tuple[bytes, bytes]] = [
        (b"x-content-type-options", b"nosniff"),
        (b"x-frame-options", b"DENY"),
        (b"x-xss-protection", b"1; mode=block"),
        (b"referrer-policy", b"strict-origin-when-cross-origin"),
        (b"content-security-policy", b"default-src 'none'; frame-ancestors 'none'"),
        (
            b"permissions-policy",
            b"accelerometer=(), camera=(), geolocation=(), gyroscope=(),"
            b" magnetometer=(), microphone=(), payment=(), usb=()",
        ),
    ]

    # Swagger UI needs scripts and styles from its CDN
    DOCS_PATHS = ("/docs", "/redoc")

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        is_docs = scope.get("path", "").startswith(self.DOCS_PATHS)

        async def send_wrapper(message: Message) -> None:
            if message.get("type") == "http.response.start":
                headers: list[tuple[bytes, bytes]] = list(message.get("headers", []))
                headers.extend(
                    h
                    for h in self.SECURITY_HEADERS
                    if not (is_docs and h[0] == b"content-security-policy")
                )
                message["headers"] = headers
            await send(message)

        await self.app(scope, receive, send_wrapper)
