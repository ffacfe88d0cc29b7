"""Router exports for the API module."""

from .admin import router as admin_router
from .atlas import router as atlas_router
from .faculty import router as faculty_router
from .health import router as health_router
from .inference import router as inference_router
from .search import router as search_router

__all__ = [
    "admin_router",
    "atlas_router",
    "faculty_router",
    "health_router",
    "inference_router",
    "search_router",
]
