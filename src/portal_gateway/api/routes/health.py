"""Liveness and readiness endpoints."""

from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from ...secrets import SecretsError
from ..deps import AtlasServiceDep, SearchServiceDep, SecretCacheDep

router = APIRouter()


@router.get("/health")
async def health_check() -> dict[str, str]:
    """Return a simple service health indicator."""

    return {"status": "healthy"}


@router.get("/api/health", response_model=None)
async def readiness_check(
    secret_cache: SecretCacheDep, search: SearchServiceDep, atlas: AtlasServiceDep
) -> dict[str, Any] | JSONResponse:
    """Report whether the required secrets can be loaded."""

    started = time.perf_counter()
    search_key = search.config.api_key_secret
    try:
        values = await secret_cache.get(
            {*secret_cache.config.required_secrets, search_key, *atlas.config.secret_names}
        )
    except SecretsError as exc:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "status": "unhealthy",
                "error": type(exc).__name__,
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "response_time_ms": int((time.perf_counter() - started) * 1000),
            },
        )

    return {
        "status": "healthy",
        "environment": secret_cache.config.environment,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "response_time_ms": int((time.perf_counter() - started) * 1000),
        "services": {
            "secret_manager": True,
            "search_api": values.get(search_key) is not None,
            "image_atlas": all(values.get(name) is not None for name in atlas.config.secret_names),
            "secret_cache": secret_cache.status().model_dump(mode="json"),
        },
    }


__all__ = ["router"]
