"""API route modules."""

from .health_routes import router as health_router
from .register_routes import router as register_router

__all__ = [
    "health_router",
    "register_router",
]
