"""FastAPI application factory for the portal gateway."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from ..secrets import SecretsError
from .deps import close_dependencies, get_secret_cache, get_upstream_client
from .errors import register_exception_handlers
from .routes import (
    admin_router,
    atlas_router,
    faculty_router,
    health_router,
    inference_router,
    search_router,
)

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    """Instantiate and configure the FastAPI application."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):  # noqa: ARG001 - signature requirement
        secret_cache = get_secret_cache()
        get_upstream_client()
        try:
            await secret_cache.warm()
        except SecretsError as exc:
            # Reads retry lazily; an unreachable vault at boot is not fatal.
            logger.warning("Secret warm-up failed, deferring to first use: %s", exc)
        try:
            yield
        finally:
            await close_dependencies()

    app = FastAPI(
        title="Portal Gateway API",
        description=(
            "Backend proxy for search, the image atlas, inference and vault-held configuration"
        ),
        version="0.1.0",
        lifespan=lifespan,
    )

    register_exception_handlers(app)
    app.include_router(search_router, prefix="/api/scholar", tags=["search"])
    app.include_router(faculty_router, prefix="/api/faculty", tags=["faculty"])
    app.include_router(inference_router, prefix="/api/inference", tags=["inference"])
    app.include_router(admin_router, prefix="/api", tags=["admin"])
    app.include_router(atlas_router, prefix="/api", tags=["atlas"])
    app.include_router(health_router, tags=["health"])

    return app


__all__ = ["create_app"]
