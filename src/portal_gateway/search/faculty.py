"""Per-faculty publication lists built from Google Scholar author profiles."""

from __future__ import annotations

import logging
import re
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Final
from uuid import uuid4

from ..secrets import SecretCache
from ..upstream import (
    ErrorKind,
    ResilientUpstreamClient,
    UpstreamCallError,
    UpstreamCallSpec,
    UpstreamFailure,
)
from .cache import CacheManager
from .config import SearchConfig
from .exceptions import SearchUnavailableError, SearchValidationError
from .schemas import CachedSearch, FacultyMetadata, Publication, extract_year

AUTHOR_TARGET = "scholar_author"
PROFILES_TARGET = "scholar_profiles"

FACULTY_ID_PATTERN: Final[re.Pattern[str]] = re.compile(r"^[A-Za-z0-9_-]{1,120}$")
_DEGREE_SUFFIX = re.compile(
    r"-(md|do|mph|phd|ms|mhs|mba|dnp|rn|np|mpp|mha|dds|dmd|faem|facc|facs|frcp|frca)(-.+)?$",
    re.IGNORECASE,
)
_DEGREE_WORD = re.compile(
    r"\b(md|do|mph|phd|ms|mhs|mba|dnp|rn|np|mpp|mha|dds|dmd)\b", re.IGNORECASE
)
_SUMMARY_AUTHORS = re.compile(r"^([^-\d]+?)(?:\s*-\s*|$)")
_SUMMARY_VENUE = re.compile(r"-\s*([^-]+?)(?:,\s*\d{4})?(?:\s*-|$)")


@dataclass(frozen=True, slots=True)
class FacultyAuthor:
    """A faculty member and, when known, their Google Scholar author id."""

    canonical: str
    slug: str
    author_id: str | None = None


FACULTY_AUTHORS: Final[tuple[FacultyAuthor, ...]] = (
    FacultyAuthor("Matthew Riscinti", "matthew-riscinti", "4BryFtQAAAAJ"),
    FacultyAuthor("Amanda Toney", "amanda-toney", "0ng0NC8AAAAJ"),
    FacultyAuthor("Nhu-Nguyen Le", "nhu-nguyen-le", "McxOucoAAAAJ"),
    FacultyAuthor("Fred Milgrim", "fred-milgrim", "_95Go9AAAAAJ"),
    FacultyAuthor("Molly Thiessen", "molly-thiessen", "J8hM6OAAAAAJ"),
    FacultyAuthor("Gabriel Siegel", "gabriel-siegel", "XKnXMIkAAAAJ"),
    FacultyAuthor("Peter Alsharif", "peter-alsharif", "DGtqTA0AAAAJ"),
    FacultyAuthor("Nithin Ravi", "nithin-ravi"),
    FacultyAuthor("Juliana Wilson", "juliana-wilson"),
    FacultyAuthor("Samuel Lam", "samuel-lam"),
    FacultyAuthor("Joe Brown", "joe-brown"),
    FacultyAuthor("Philippe Ayres", "philippe-ayres", "IJP4K9QAAAAJ"),
    FacultyAuthor("Michael Heffler", "michael-heffler", "nqM3RiUAAAAJ"),
    FacultyAuthor("Priya Prasher", "priya-prasher", "pXMunFoAAAAJ"),
)


def base_slug(faculty_id: str) -> str:
    """Strip degree suffixes: ``gabriel-siegel-md`` → ``gabriel-siegel``."""

    return _DEGREE_SUFFIX.sub("", faculty_id)


def find_author(faculty_id: str) -> FacultyAuthor | None:
    slug = base_slug(faculty_id)
    return next((author for author in FACULTY_AUTHORS if author.slug == slug), None)


def canonical_name(faculty_id: str) -> str:
    """Name used for profile discovery when no author id is known."""

    author = find_author(faculty_id)
    if author is not None:
        return author.canonical
    name = _DEGREE_WORD.sub("", faculty_id.replace("-", " "))
    return " ".join(name.split())


def normalize_article(article: dict[str, Any], position: int) -> dict[str, Any]:
    """Map an author-profile article onto the ``organic_results`` entry shape."""

    info = article.get("publication_info")
    raw_summary = info.get("summary") if isinstance(info, dict) else None
    if not isinstance(raw_summary, str):
        raw_summary = ""

    authors = article.get("authors")
    if isinstance(authors, list):
        authors_text = ", ".join(
            str(item.get("name", "")) if isinstance(item, dict) else str(item) for item in authors
        )
    elif isinstance(authors, str):
        authors_text = authors
    else:
        match = _SUMMARY_AUTHORS.match(raw_summary)
        authors_text = match.group(1).strip() if match else ""

    venue = article.get("publication")
    if not isinstance(venue, str) or not venue:
        match = _SUMMARY_VENUE.search(raw_summary)
        venue = match.group(1).strip() if match else ""

    year = article.get("year")
    if not year:
        found = extract_year(raw_summary)
        year = found if found is not None else ""

    summary = " - ".join(str(part) for part in (authors_text, venue, year) if part)
    cited_by = article.get("cited_by")
    if not isinstance(cited_by, dict):
        cited_by = {}
    return {
        "position": position,
        "title": article.get("title") or "",
        "link": article.get("link") or "",
        "snippet": article.get("snippet") or "",
        "publication_info": {"summary": summary},
        "inline_links": {
            "cited_by": {"total": cited_by.get("value") or 0, "link": cited_by.get("link") or ""}
        },
    }


class FacultyResearchService:
    """Resolves a faculty member to a Scholar author and lists their articles."""

    def __init__(
        self,
        secrets: SecretCache,
        client: ResilientUpstreamClient,
        config: SearchConfig | None = None,
        *,
        cache: CacheManager[CachedSearch] | None = None,
        discovered: CacheManager[str] | None = None,
    ) -> None:
        self.config: SearchConfig = config or SearchConfig()
        self._secrets = secrets
        self._client = client
        self._cache: CacheManager[CachedSearch] = cache or CacheManager(
            maxsize=self.config.faculty_cache_max_size,
            ttl_seconds=self.config.faculty_cache_ttl,
        )
        self._discovered: CacheManager[str] = discovered or CacheManager(
            maxsize=self.config.faculty_cache_max_size,
            ttl_seconds=self.config.faculty_cache_ttl,
        )
        self._logger: logging.Logger = logging.getLogger(__name__)

    async def research(
        self,
        faculty_id: str,
        *,
        limit: int | None = None,
        author_id: str | None = None,
    ) -> dict[str, Any]:
        """Return the faculty member's articles, newest first, with metadata."""

        started = time.perf_counter()
        request_id = f"faculty-{uuid4().hex[:12]}"
        faculty_id = (faculty_id or "").strip()
        if not FACULTY_ID_PATTERN.match(faculty_id):
            raise SearchValidationError("Faculty ID must be a non-empty slug")
        if limit is not None and limit < 1:
            limit = None

        explicit = author_id.strip() if author_id and author_id.strip() else None
        effective = explicit or await self.resolve_author_id(faculty_id)
        if effective is None:
            self._logger.info(
                "Faculty member has no Scholar author id",
                extra={"search_context": {"request_id": request_id, "faculty_id": faculty_id}},
            )
            now = datetime.now(timezone.utc)
            entry = CachedSearch(
                payload={
                    "organic_results": [],
                    "search_information": {
                        "query_displayed": f"No Google Scholar profile available for {faculty_id}",
                        "total_results": 0,
                    },
                },
                original_timestamp=now,
            )
            return self._render(entry, request_id, started, faculty_id, None, limit, False)

        cache_key = f"author:{effective}:{faculty_id}"
        cached = await self._cache.get(cache_key)
        if cached is not None:
            return self._render(cached, request_id, started, faculty_id, effective, limit, True)

        api_key = await self._secrets.get_one(self.config.api_key_secret)
        if not api_key:
            raise SearchUnavailableError(
                "Search service unavailable: API configuration not available",
                retry_after=self.config.missing_key_retry_after,
            )

        articles = await self.fetch_author_articles(effective, api_key)
        results = [normalize_article(article, index + 1) for index, article in enumerate(articles)]
        entry = CachedSearch(
            payload={
                "organic_results": results,
                "search_information": {
                    "query_displayed": f"author:{effective}",
                    "total_results": len(results),
                },
            },
            publications=[Publication.from_result(item) for item in results],
            original_timestamp=datetime.now(timezone.utc),
        )
        await self._cache.set(cache_key, entry)
        self._logger.info(
            "Faculty publications fetched and cached",
            extra={
                "search_context": {
                    "request_id": request_id,
                    "faculty_id": faculty_id,
                    "author_id": effective,
                    "results": len(results),
                }
            },
        )
        return self._render(entry, request_id, started, faculty_id, effective, limit, False)

    async def resolve_author_id(self, faculty_id: str) -> str | None:
        """Directory entry first, then a previously discovered id, then a profile lookup."""

        author = find_author(faculty_id)
        if author is not None and author.author_id:
            return author.author_id

        discovered = await self._discovered.get(faculty_id)
        if discovered is not None:
            return discovered

        name = canonical_name(faculty_id)
        if not name:
            return None
        found = await self.discover_author_id(name)
        if found is not None:
            await self._discovered.set(faculty_id, found)
            self._logger.info(
                "Discovered Scholar author id",
                extra={"search_context": {"faculty_id": faculty_id, "author_id": found}},
            )
        return found

    async def discover_author_id(self, name: str) -> str | None:
        """Best profile match for ``name``; lookup failures resolve to ``None``."""

        api_key = await self._secrets.get_one(self.config.api_key_secret)
        if not api_key:
            return None

        result = await self._client.call(
            UpstreamCallSpec(
                target=PROFILES_TARGET,
                url=self.config.search_url,
                params={
                    "engine": self.config.profiles_engine,
                    "mauthors": name,
                    "api_key": api_key,
                },
                headers={"User-Agent": self.config.user_agent},
                timeout=self.config.discovery_timeout,
                max_attempts=self.config.max_attempts,
                retry_delay=self.config.retry_delay,
                secret_values=(api_key,),
            )
        )
        if not result.ok:
            self._logger.warning(
                "Author id discovery failed",
                extra={"search_context": {"name": name, "kind": str(result.kind)}},
            )
            return None

        profiles = result.payload.get("profiles") if isinstance(result.payload, dict) else None
        if not isinstance(profiles, list) or not profiles or not isinstance(profiles[0], dict):
            return None
        author_id = profiles[0].get("author_id")
        return author_id if isinstance(author_id, str) and author_id else None

    async def fetch_author_articles(self, author_id: str, api_key: str) -> list[dict[str, Any]]:
        """Page through the author profile, newest first, up to ``author_max_pages``."""

        page_size = self.config.author_page_size
        articles: list[dict[str, Any]] = []
        start = 0

        for _ in range(self.config.author_max_pages):
            params = {
                "engine": self.config.author_engine,
                "author_id": author_id,
                "sort": self.config.author_sort,
                "num": str(page_size),
                "api_key": api_key,
            }
            if start > 0:
                params["start"] = str(start)
            result = await self._client.call(
                UpstreamCallSpec(
                    target=AUTHOR_TARGET,
                    url=self.config.search_url,
                    params=params,
                    headers={"User-Agent": self.config.user_agent},
                    timeout=self.config.timeout,
                    max_attempts=self.config.max_attempts,
                    retry_delay=self.config.retry_delay,
                    secret_values=(api_key,),
                )
            )
            payload = result.unwrap()
            if not isinstance(payload, dict):
                raise UpstreamCallError(
                    AUTHOR_TARGET,
                    UpstreamFailure(
                        kind=ErrorKind.UNKNOWN,
                        message="Author API returned an unexpected payload",
                        status_code=result.status_code,
                    ),
                    attempts=result.attempts,
                )

            page = payload.get("articles")
            page = [item for item in page if isinstance(item, dict)] if isinstance(page, list) else []
            articles.extend(page)

            pagination = payload.get("serpapi_pagination")
            if not isinstance(pagination, dict) or not pagination.get("next"):
                break
            if len(page) < page_size:
                break
            next_offset = pagination.get("next_offset")
            start = next_offset if isinstance(next_offset, int) else start + page_size

        return articles

    async def stats(self) -> dict[str, Any]:
        await self._cache.expire()
        return {
            "entries": len(self._cache),
            "max_size": self._cache.maxsize,
            "ttl_seconds": self._cache.ttl,
            "hits": self._cache.hits,
            "misses": self._cache.misses,
            "discovered_authors": len(self._discovered),
        }

    async def clear(self) -> int:
        removed = await self._cache.clear()
        await self._discovered.clear()
        return removed

    def _render(
        self,
        entry: CachedSearch,
        request_id: str,
        started: float,
        faculty_id: str,
        author_id: str | None,
        limit: int | None,
        from_cache: bool,
    ) -> dict[str, Any]:
        results = entry.payload.get("organic_results", [])
        publications = entry.publications
        if limit is not None:
            results = results[:limit]
            publications = publications[:limit]
        metadata = FacultyMetadata(
            request_id=request_id,
            response_time_ms=int((time.perf_counter() - started) * 1000),
            timestamp=datetime.now(timezone.utc),
            original_timestamp=entry.original_timestamp,
            from_cache=from_cache,
            faculty_id=faculty_id,
            author_id=author_id,
            no_author_id=author_id is None,
        )
        return {
            **entry.payload,
            "organic_results": results,
            "publications": [item.model_dump(mode="json") for item in publications],
            "metadata": metadata.model_dump(mode="json"),
        }


__all__ = [
    "AUTHOR_TARGET",
    "FACULTY_AUTHORS",
    "FacultyAuthor",
    "FacultyResearchService",
    "PROFILES_TARGET",
    "base_slug",
    "canonical_name",
    "find_author",
    "normalize_article",
]
