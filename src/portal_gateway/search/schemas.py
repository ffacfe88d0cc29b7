"""View models derived from search API responses."""

from __future__ import annotations

import re
from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

_YEAR_PATTERN = re.compile(r"\b(19|20)\d{2}\b")


class Publication(BaseModel):
    """Internal shape of one organic search result."""

    position: int | None = None
    title: str
    link: str | None = None
    snippet: str | None = None
    summary: str | None = None
    year: int | None = None
    cited_by: int = 0

    @classmethod
    def from_result(cls, result: dict[str, Any]) -> "Publication":
        """Build a publication from a raw ``organic_results`` entry.

        Fields with an unexpected type are dropped rather than rejected so that one
        malformed entry cannot fail a whole result page.
        """

        info = result.get("publication_info")
        summary = _text(info.get("summary")) if isinstance(info, dict) else None
        inline_links = result.get("inline_links")
        cited_by = inline_links.get("cited_by") if isinstance(inline_links, dict) else None
        cited = cited_by.get("total") if isinstance(cited_by, dict) else None
        return cls(
            position=_int(result.get("position")),
            title=(_text(result.get("title")) or "").strip() or "Untitled",
            link=_text(result.get("link")),
            snippet=_text(result.get("snippet")),
            summary=summary,
            year=extract_year(summary),
            cited_by=_int(cited) or 0,
        )


class SearchMetadata(BaseModel):
    """Bookkeeping attached to every search response."""

    request_id: str
    response_time_ms: int
    timestamp: datetime
    original_timestamp: datetime
    from_cache: bool = False


class FacultyMetadata(SearchMetadata):
    """Metadata attached to a faculty publication list."""

    faculty_id: str
    author_id: str | None = None
    no_author_id: bool = False


class CachedSearch(BaseModel):
    """What the response cache stores for one query."""

    payload: dict[str, Any]
    publications: list[Publication] = Field(default_factory=list)
    original_timestamp: datetime


def _text(value: Any) -> str | None:
    return value if isinstance(value, str) else None


def _int(value: Any) -> int | None:
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value


def extract_year(summary: str | None) -> int | None:
    """Return the last four-digit year mentioned in a publication summary."""

    if not summary:
        return None
    matches = [match.group(0) for match in _YEAR_PATTERN.finditer(summary)]
    if not matches:
        return None
    return int(matches[-1])


__all__ = [
    "CachedSearch",
    "FacultyMetadata",
    "Publication",
    "SearchMetadata",
    "extract_year",
]
