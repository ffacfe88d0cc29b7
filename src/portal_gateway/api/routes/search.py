"""Research-publication search endpoint."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Query

from ..deps import SearchServiceDep

router = APIRouter()


@router.get("/search")
async def scholar_search(
    search: SearchServiceDep,
    q: str | None = Query(default=None, description="Search query"),
    start: int = Query(default=0, description="Result offset"),
    num: int = Query(default=10, description="Number of results (capped by configuration)"),
) -> dict[str, Any]:
    """Search publications; responses are cached per query/page."""

    return await search.search(q, start=start, num=num)


__all__ = ["router"]
