"""API routers."""

from .analyses import router as analyses_router
from .cache import router as cache_router
from .health import router as health_router

__all__ = [
    "analyses_router",
    "cache_router",
    "health_router",
]
