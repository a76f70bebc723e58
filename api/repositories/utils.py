"""Repository utility functions for common database operations."""

import time
from collections.abc import Awaitable, Callable
from functools import wraps
from typing import ParamSpec, TypeVar

from core.wide_event import set_wide_event_fields

# Threshold for flagging slow queries (milliseconds)
SLOW_QUERY_THRESHOLD_MS = 500

P = ParamSpec("P")
R = TypeVar("R")


def log_slow_query(
    operation_name: str,
) -> Callable[[Callable[P, Awaitable[R]]], Callable[P, Awaitable[R]]]:
    """Decorator that records slow or failing repository calls on the wide event.

    Exceptions are re-raised after being recorded.

    Usage:
        @log_slow_query("get_user_by_device_id")
        async def get_by_device_id(self, device_id: str) -> User | None:
            ...
    """

    def decorator(func: Callable[P, Awaitable[R]]) -> Callable[P, Awaitable[R]]:
        @wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            start_time = time.perf_counter()
            try:
                result = await func(*args, **kwargs)
            except Exception as e:
                set_wide_event_fields(
                    db_query_error=True,
                    db_operation=operation_name,
                    db_duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
                    db_error=str(e),
                    db_error_type=type(e).__name__,
                )
                raise

            duration_ms = (time.perf_counter() - start_time) * 1000
            if duration_ms > SLOW_QUERY_THRESHOLD_MS:
                set_wide_event_fields(
                    db_slow_query=True,
                    db_operation=operation_name,
                    db_duration_ms=round(duration_ms, 2),
                )
            return result

        return wrapper

    return decorator
