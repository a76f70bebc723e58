"""Request timing, canonical log lines and operation spans."""

import os
import time
from collections.abc import Awaitable, Callable
from functools import wraps
from typing import ParamSpec, TypeVar

from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from core.logger import get_logger
from core.wide_event import clear_wide_event, get_wide_event, init_wide_event

logger = get_logger(__name__)

SERVICE_NAME = os.getenv("SERVICE_NAME", "heartbeat-api")
SERVICE_VERSION = os.getenv("SERVICE_VERSION", "1.0.0")

# Requests slower than this are always logged
SLOW_REQUEST_THRESHOLD_MS = 1000

# No-op unless an OpenTelemetry SDK provider is installed by the host
tracer = trace.get_tracer(__name__)

P = ParamSpec("P")
R = TypeVar("R")


class RequestTimingMiddleware:
    """Times each request and emits one wide event when it finishes.

    The event is logged for errors, slow requests and any request that
    identified a user; healthy probe traffic stays quiet.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        start_time = time.perf_counter()
        path = scope.get("path", "")
        client = scope.get("client")

        wide_event = init_wide_event()
        wide_event["service_name"] = SERVICE_NAME
        wide_event["service_version"] = SERVICE_VERSION
        wide_event["http_method"] = scope.get("method", "UNKNOWN")
        wide_event["http_path"] = path
        wide_event["http_client_ip"] = client[0] if client else "unknown"
        correlation_id = scope.get("state", {}).get("correlation_id")
        if correlation_id:
            wide_event["correlation_id"] = correlation_id

        response_status: int | None = None

        def _route_path() -> str:
            route = scope.get("route")
            return getattr(route, "path", None) or path

        async def send_wrapper(message: Message) -> None:
            nonlocal response_status

            if message.get("type") == "http.response.start":
                response_status = int(message.get("status", 0))
                duration_ms = (time.perf_counter() - start_time) * 1000
                headers: list[tuple[bytes, bytes]] = list(message.get("headers", []))
                headers.append(
                    (b"x-request-duration-ms", f"{duration_ms:.2f}".encode())
                )
                message["headers"] = headers

            elif message.get("type") == "http.response.body" and not message.get(
                "more_body", False
            ):
                duration_ms = (time.perf_counter() - start_time) * 1000
                event = get_wide_event()
                event["http_route"] = _route_path()
                event["http_status_code"] = response_status
                event["duration_ms"] = round(duration_ms, 2)
                event["outcome"] = (
                    "success" if response_status and response_status < 400 else "error"
                )

                should_emit = (
                    response_status is None
                    or response_status >= 400
                    or duration_ms > SLOW_REQUEST_THRESHOLD_MS
                    or event.get("user_id") is not None
                )
                if should_emit:
                    logger.info("request.completed", **event)

                clear_wide_event()

            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        except Exception as exc:
            event = get_wide_event()
            event["http_route"] = _route_path()
            event["duration_ms"] = round((time.perf_counter() - start_time) * 1000, 2)
            event["outcome"] = "exception"
            event["exception_type"] = type(exc).__name__
            logger.info("request.completed", **event)
            clear_wide_event()
            raise


def track_operation(
    operation_name: str,
) -> Callable[[Callable[P, Awaitable[R]]], Callable[P, Awaitable[R]]]:
    """Wrap an async business operation in an OpenTelemetry span."""

    def decorator(func: Callable[P, Awaitable[R]]) -> Callable[P, Awaitable[R]]:
        @wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            with tracer.start_as_current_span(
                operation_name, attributes={"operation.name": operation_name}
            ) as span:
                start_time = time.perf_counter()
                try:
                    result = await func(*args, **kwargs)
                    span.set_attribute("operation.success", True)
                    return result
                except Exception as e:
                    span.set_attribute("operation.success", False)
                    span.record_exception(e)
                    span.set_status(Status(StatusCode.ERROR, str(e)))
                    raise
                finally:
                    duration_ms = (time.perf_counter() - start_time) * 1000
                    span.set_attribute("operation.duration_ms", duration_ms)

        return wrapper

    return decorator
