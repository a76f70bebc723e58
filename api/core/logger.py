"""Structured logging configuration using structlog.

- JSON output when LOG_FORMAT=json (production log aggregation)
- Colored console output otherwise (local development)
- Request-scoped context (correlation_id) merged from contextvars
- OpenTelemetry trace/span IDs when the process runs under an OTel agent
- stdlib loggers (uvicorn, sqlalchemy) rendered through the same pipeline

Usage:
    from core import get_logger
    logger = get_logger(__name__)
    logger.info("register.user.created", user_id=1, pair_code="ABC234")
"""

import logging
import os
import sys

import structlog
from structlog.types import EventDict, Processor

# opentelemetry-instrument exports OTEL_SERVICE_NAME for instrumented processes
_TELEMETRY_ENABLED = bool(os.getenv("OTEL_SERVICE_NAME"))


def _add_open_telemetry_spans(
    _logger: logging.Logger, _method_name: str, event_dict: EventDict
) -> EventDict:
    """Add OpenTelemetry trace and span IDs to log entries for correlation."""
    if not _TELEMETRY_ENABLED:
        return event_dict

    from opentelemetry import trace

    span = trace.get_current_span()
    if span.is_recording():
        ctx = span.get_span_context()
        if ctx.is_valid:
            event_dict["trace_id"] = format(ctx.trace_id, "032x")
            event_dict["span_id"] = format(ctx.span_id, "016x")

    return event_dict


def _get_log_level() -> int:
    level_name = os.environ.get("LOG_LEVEL", "INFO").upper()
    return getattr(logging, level_name, logging.INFO)


def _is_json_format() -> bool:
    return os.environ.get("LOG_FORMAT", "").lower() == "json"


def configure_logging() -> None:
    """Configure structlog and stdlib logging. Call once at application startup."""
    log_level = _get_log_level()

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.stdlib.ExtraAdder(),
        _add_open_telemetry_spans,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if _is_json_format():
        renderer: Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(
            colors=True, exception_formatter=structlog.dev.plain_traceback
        )

    structlog.configure(
        processors=shared_processors
        + [
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.format_exc_info,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level)

    # Quiet noisy third-party loggers
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance.

    Example:
        logger = get_logger(__name__)
        logger.warning("streak.reset", user_id=7, gap_days=3)
    """
    return structlog.stdlib.get_logger(name)
