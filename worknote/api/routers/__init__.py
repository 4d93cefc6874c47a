"""API routers."""

from .admin import router as admin_router
from .health import router as health_router
from .search import router as search_router

__all__ = [
    "admin_router",
    "health_router",
    "search_router",
]
