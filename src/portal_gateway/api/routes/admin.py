"""Secret status, cache management and metrics endpoints. Never exposes secret values."""

from __future__ import annotations

import os
import time
from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter

from ...secrets import SecretCacheStatus
from ..deps import FacultyServiceDep, SearchServiceDep, SecretCacheDep

router = APIRouter()

_STARTED_AT = time.monotonic()


@router.get("/debug/secrets", response_model=SecretCacheStatus)
async def secrets_status(secret_cache: SecretCacheDep) -> SecretCacheStatus:
    """Which required secrets are loaded, and from where."""

    await secret_cache.get(secret_cache.config.required_secrets)
    return secret_cache.status()


@router.post("/secrets/refresh", response_model=SecretCacheStatus)
async def refresh_secrets(secret_cache: SecretCacheDep) -> SecretCacheStatus:
    """Drop the cached snapshot and load a fresh one."""

    secret_cache.invalidate()
    await secret_cache.warm()
    return secret_cache.status()


@router.get("/cache/stats")
async def cache_stats(search: SearchServiceDep) -> dict[str, Any]:
    return {**await search.stats(), "timestamp": datetime.now(timezone.utc).isoformat()}


@router.delete("/cache/clear")
async def clear_cache(search: SearchServiceDep, faculty: FacultyServiceDep) -> dict[str, Any]:
    removed = await search.clear() + await faculty.clear()
    return {
        "message": "Search cache cleared",
        "deleted_count": removed,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/metrics")
async def metrics(
    secret_cache: SecretCacheDep, search: SearchServiceDep, faculty: FacultyServiceDep
) -> dict[str, Any]:
    """Process and cache figures for monitoring."""

    return {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "uptime_seconds": round(time.monotonic() - _STARTED_AT, 3),
        "pid": os.getpid(),
        "environment": secret_cache.config.environment,
        "cache": {
            "secrets": {
                **secret_cache.status().model_dump(mode="json", exclude={"secrets"}),
                "batch_refreshes": secret_cache.batch_count,
            },
            "search": await search.stats(),
            "faculty": await faculty.stats(),
        },
    }


__all__ = ["router"]
