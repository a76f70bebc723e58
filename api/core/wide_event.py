"""Request-scoped wide event for canonical log lines.

RequestTimingMiddleware creates the dict when a request starts and logs it
once as ``request.completed`` when the response finishes. Anything in
between (routes, services, repositories) may add fields:

    from core.wide_event import set_wide_event_fields
    set_wide_event_fields(user_id=user.id, current_streak=3)
"""

from contextvars import ContextVar
from typing import Any

_wide_event: ContextVar[dict[str, Any]] = ContextVar("wide_event")


def init_wide_event() -> dict[str, Any]:
    event: dict[str, Any] = {}
    _wide_event.set(event)
    return event


def get_wide_event() -> dict[str, Any]:
    """Current wide event, or an empty dict outside a request."""
    try:
        return _wide_event.get()
    except LookupError:
        return {}


def set_wide_event_fields(**kwargs: Any) -> None:
    """Merge fields into the current wide event.

    Outside a request (scripts, tests without middleware) the event is empty
    and the call does nothing.
    """
    event = get_wide_event()
    if event:
        event.update(kwargs)


def clear_wide_event() -> None:
    _wide_event.set({})
