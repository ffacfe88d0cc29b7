"""Research-publication search backed by the Google Scholar search API."""

from __future__ import annotations

import hashlib
import json
import logging
import time
from datetime import datetime, timezone
from typing import Any
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
from .schemas import CachedSearch, Publication, SearchMetadata

SEARCH_TARGET = "scholar_search"


class ScholarSearchService:
    """Validates queries, serves cached responses and calls the search API on a miss."""

    def __init__(
        self,
        secrets: SecretCache,
        client: ResilientUpstreamClient,
        config: SearchConfig | None = None,
        *,
        cache: CacheManager[CachedSearch] | None = None,
    ) -> None:
        self.config: SearchConfig = config or SearchConfig()
        self._secrets = secrets
        self._client = client
        self._cache: CacheManager[CachedSearch] = cache or CacheManager(
            maxsize=self.config.cache_max_size,
            ttl_seconds=self.config.cache_ttl,
        )
        self._logger: logging.Logger = logging.getLogger(__name__)

    async def search(self, query: str | None, *, start: int = 0, num: int = 10) -> dict[str, Any]:
        """Return the search payload with ``publications`` and ``metadata`` attached."""

        started = time.perf_counter()
        request_id = f"search-{uuid4().hex[:12]}"
        query, start, num = self.validate(query, start, num)
        cache_key = self.cache_key(query, start, num)

        cached = await self._cache.get(cache_key)
        if cached is not None:
            self._logger.info(
                "Search served from cache",
                extra={"search_context": {"request_id": request_id, "cache_key": cache_key[:8]}},
            )
            return self._render(cached, request_id, started, from_cache=True)

        api_key = await self._secrets.get_one(self.config.api_key_secret)
        if not api_key:
            raise SearchUnavailableError(
                "Search service unavailable: API configuration not available",
                retry_after=self.config.missing_key_retry_after,
            )

        result = await self._client.call(self._build_spec(query, start, num, api_key))
        payload = result.unwrap()
        if not isinstance(payload, dict):
            raise UpstreamCallError(
                SEARCH_TARGET,
                UpstreamFailure(
                    kind=ErrorKind.UNKNOWN,
                    message="Search API returned an unexpected payload",
                    status_code=result.status_code,
                ),
                attempts=result.attempts,
            )

        entry = CachedSearch(
            payload=payload,
            publications=self.publications(payload),
            original_timestamp=datetime.now(timezone.utc),
        )
        await self._cache.set(cache_key, entry)
        self._logger.info(
            "Search completed and cached",
            extra={
                "search_context": {
                    "request_id": request_id,
                    "results": len(entry.publications),
                    "attempts": result.attempts,
                    "cache_key": cache_key[:8],
                }
            },
        )
        return self._render(entry, request_id, started, from_cache=False)

    def validate(self, query: str | None, start: int, num: int) -> tuple[str, int, int]:
        if query is None or not isinstance(query, str) or not query.strip():
            raise SearchValidationError('Query parameter "q" must be a non-empty string')
        query = query.strip()
        if len(query) > self.config.max_query_length:
            raise SearchValidationError(
                f'Query parameter "q" must be at most {self.config.max_query_length} characters'
            )
        if start < 0:
            raise SearchValidationError("Invalid start parameter")
        if num < 1:
            raise SearchValidationError("Invalid num parameter")
        return query, start, min(num, self.config.max_results)

    def cache_key(self, query: str, start: int, num: int) -> str:
        key_data = {
            "query": query.lower().strip(),
            "start": start,
            "num": num,
            "version": self.config.cache_version,
        }
        encoded = json.dumps(key_data, sort_keys=True).encode("utf-8")
        return hashlib.sha256(encoded).hexdigest()

    @staticmethod
    def publications(payload: dict[str, Any]) -> list[Publication]:
        results = payload.get("organic_results")
        if not isinstance(results, list):
            return []
        return [Publication.from_result(item) for item in results if isinstance(item, dict)]

    async def stats(self) -> dict[str, Any]:
        await self._cache.expire()
        return {
            "entries": len(self._cache),
            "max_size": self._cache.maxsize,
            "ttl_seconds": self._cache.ttl,
            "hits": self._cache.hits,
            "misses": self._cache.misses,
            "version": self.config.cache_version,
        }

    async def clear(self) -> int:
        removed = await self._cache.clear()
        self._logger.info("Search cache cleared", extra={"search_context": {"removed": removed}})
        return removed

    def _build_spec(self, query: str, start: int, num: int, api_key: str) -> UpstreamCallSpec:
        params = {
            "engine": self.config.engine,
            "q": query,
            "start": str(start),
            "num": str(num),
            "api_key": api_key,
        }
        if self.config.sort_by_date:
            params["scisbd"] = "1"
        return UpstreamCallSpec(
            target=SEARCH_TARGET,
            url=self.config.search_url,
            params=params,
            headers={"User-Agent": self.config.user_agent},
            timeout=self.config.timeout,
            max_attempts=self.config.max_attempts,
            retry_delay=self.config.retry_delay,
            secret_values=(api_key,),
        )

    def _render(
        self,
        entry: CachedSearch,
        request_id: str,
        started: float,
        *,
        from_cache: bool,
    ) -> dict[str, Any]:
        metadata = SearchMetadata(
            request_id=request_id,
            response_time_ms=int((time.perf_counter() - started) * 1000),
            timestamp=datetime.now(timezone.utc),
            original_timestamp=entry.original_timestamp,
            from_cache=from_cache,
        )
        return {
            **entry.payload,
            "publications": [item.model_dump(mode="json") for item in entry.publications],
            "metadata": metadata.model_dump(mode="json"),
        }


__all__ = ["SEARCH_TARGET", "ScholarSearchService"]
