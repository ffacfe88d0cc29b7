"""Image atlas endpoints."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter

from ...atlas import resolve_vein_type
from ..deps import AtlasServiceDep

router = APIRouter()


@router.get("/images")
async def list_images(atlas: AtlasServiceDep) -> dict[str, Any]:
    images = await atlas.images()
    return {
        "images": [image.model_dump(mode="json") for image in images],
        "count": len(images),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/images/category/{vein_type}")
async def list_images_by_vein_type(vein_type: str, atlas: AtlasServiceDep) -> dict[str, Any]:
    """Images of one vein type; short aliases such as ``hepatic`` are accepted."""

    images = await atlas.images(vein_type)
    return {
        "images": [image.model_dump(mode="json") for image in images],
        "count": len(images),
        "vein_type": resolve_vein_type(vein_type),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/config")
async def atlas_config(atlas: AtlasServiceDep) -> dict[str, str]:
    return await atlas.public_config()


__all__ = ["router"]
