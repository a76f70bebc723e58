"""FastAPI application for the Heartbeat API."""

import asyncio
import logging
from contextlib import asynccontextmanager

import fastapi
from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded

from core.config import get_settings
from core.database import (
    create_engine,
    create_session_maker,
    dispose_engine,
    init_db,
)
from core.logger import configure_logging
from core.middleware import (
    CORRELATION_ID_HEADER,
    CorrelationIdMiddleware,
    SecurityHeadersMiddleware,
)
from core.ratelimit import limiter, rate_limit_exceeded_handler
from core.telemetry import RequestTimingMiddleware
from routes import health_router, register_router

configure_logging()
logger = logging.getLogger(__name__)


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last-resort handler for unhandled exceptions."""
    logger.exception(
        "unhandled.exception",
        extra={
            "exc_type": type(exc).__name__,
            "path": request.url.path,
            "method": request.method,
        },
    )
    return JSONResponse(
        status_code=500,
        content={"detail": "An unexpected error occurred. Please try again."},
    )


async def validation_exception_handler(
    request: Request, exc: Exception
) -> JSONResponse:
    """Handler for request validation errors."""
    if not isinstance(exc, RequestValidationError):
        return JSONResponse(status_code=500, content={"detail": "Unexpected error"})

    logger.warning(
        "request.validation_error",
        extra={
            "path": request.url.path,
            "method": request.method,
            "error_count": len(exc.errors()),
        },
    )
    return JSONResponse(
        status_code=422,
        content={"detail": jsonable_errors(exc)},
    )


def jsonable_errors(exc: RequestValidationError) -> list[dict]:
    """Validation errors without the raw ``ctx``/``input`` payloads.

    ``ctx`` may hold exception instances that are not JSON serialisable, and
    echoing ``input`` would reflect client data straight back.
    """
    return [
        {key: value for key, value in error.items() if key not in ("ctx", "input")}
        for error in exc.errors()
    ]


@asynccontextmanager
async def lifespan(app: fastapi.FastAPI):
    """Create DB engine at startup, dispose on shutdown."""
    app.state.engine = create_engine()
    app.state.session_maker = create_session_maker(app.state.engine)

    app.state.init_done = False
    app.state.init_error = None

    try:
        async with asyncio.timeout(60):
            await init_db(app.state.engine)

        app.state.init_done = True
        logger.info("init.complete")
    except TimeoutError:
        logger.error(
            "init.timeout",
            extra={
                "init_done": app.state.init_done,
                "hint": "Startup hung, check DB connectivity",
            },
        )
        await dispose_engine(app.state.engine)
        raise RuntimeError("Application startup timed out")
    except Exception as e:
        app.state.init_error = str(e)
        logger.error(
            "init.failed",
            extra={"error": str(e)},
            exc_info=True,
        )
        await dispose_engine(app.state.engine)
        raise

    try:
        yield
    finally:
        await dispose_engine(app.state.engine)


_settings = get_settings()

app = fastapi.FastAPI(
    title="Heartbeat API",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs" if _settings.docs_enabled else None,
    redoc_url="/redoc" if _settings.docs_enabled else None,
    openapi_url="/openapi.json" if _settings.docs_enabled else None,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, global_exception_handler)


def _cors_origins() -> list[str]:
    if _settings.debug:
        return ["*"]
    if not _settings.allowed_origins:
        logger.warning(
            "cors.origins.unset",
            extra={"hint": "Set CORS_ALLOWED_ORIGINS to restrict browser access"},
        )
        return ["*"]
    return _settings.allowed_origins


# add_middleware prepends, so the last one added runs first.
app.add_middleware(RequestTimingMiddleware)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins(),
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", CORRELATION_ID_HEADER],
    expose_headers=["X-Request-Duration-Ms", CORRELATION_ID_HEADER],
    max_age=600,
)
app.add_middleware(CorrelationIdMiddleware)

app.include_router(health_router)
app.include_router(register_router)
