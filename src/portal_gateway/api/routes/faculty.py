"""Per-faculty publication lists."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Query

from ..deps import FacultyServiceDep

router = APIRouter()


@router.get("/{faculty_id}/research")
async def faculty_research(
    faculty_id: str,
    faculty: FacultyServiceDep,
    limit: int | None = Query(default=None, description="Maximum number of publications"),
    author_id: str | None = Query(default=None, description="Explicit Google Scholar author id"),
) -> dict[str, Any]:
    """Publications of one faculty member, newest first."""

    return await faculty.research(faculty_id, limit=limit, author_id=author_id)


__all__ = ["router"]
