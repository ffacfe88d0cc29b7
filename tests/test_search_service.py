"""Tests for ScholarSearchService caching, validation and failure mapping."""

from __future__ import annotations

import httpx
import pytest

from portal_gateway.search import (
    CacheManager,
    ScholarSearchService,
    SearchConfig,
    SearchUnavailableError,
    SearchValidationError,
    extract_year,
)
from portal_gateway.secrets import InMemoryVault
from portal_gateway.upstream import ErrorKind, UpstreamCallError


class ScholarHandler:
    def __init__(self, response: httpx.Response) -> None:
        self.response = response
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.response


@pytest.fixture
def make_service(make_secret_cache, make_upstream_client, clock):
    def _factory(handler, vault=None, **config_overrides) -> ScholarSearchService:
        config = SearchConfig(**{"retry_delay": 0.0, **config_overrides})
        cache = CacheManager(
            maxsize=config.cache_max_size, ttl_seconds=config.cache_ttl, timer=clock
        )
        secrets = make_secret_cache(
            vault if vault is not None else InMemoryVault({"googlescholarapi": "serp-secret-key-123"})
        )
        return ScholarSearchService(
            secrets, make_upstream_client(handler), config, cache=cache
        )

    return _factory


@pytest.mark.asyncio
async def test_search_calls_api_and_shapes_publications(make_service, scholar_payload):
    handler = ScholarHandler(httpx.Response(200, json=scholar_payload))
    service = make_service(handler)

    response = await service.search("  VExUS ultrasound ", num=5)

    params = handler.requests[0].url.params
    assert params["engine"] == "google_scholar"
    assert params["q"] == "VExUS ultrasound"
    assert params["num"] == "5"
    assert params["start"] == "0"
    assert params["api_key"] == "serp-secret-key-123"
    assert params["scisbd"] == "1"

    assert response["search_information"]["total_results"] == 2
    first, second = response["publications"]
    assert first["title"] == "Venous excess ultrasound grading"
    assert first["year"] == 2021
    assert first["cited_by"] == 42
    assert second["year"] is None
    assert second["cited_by"] == 0
    assert response["metadata"]["from_cache"] is False
    assert response["metadata"]["request_id"].startswith("search-")


@pytest.mark.asyncio
async def test_repeat_query_is_served_from_cache(make_service, scholar_payload):
    handler = ScholarHandler(httpx.Response(200, json=scholar_payload))
    service = make_service(handler)

    first = await service.search("Vexus")
    second = await service.search("  vexus  ")

    assert len(handler.requests) == 1
    assert second["metadata"]["from_cache"] is True
    assert second["metadata"]["original_timestamp"] == first["metadata"]["original_timestamp"]
    stats = await service.stats()
    assert stats["entries"] == 1
    assert stats["hits"] == 1
    assert stats["misses"] == 1


@pytest.mark.asyncio
async def test_cached_response_expires(make_service, scholar_payload, clock):
    handler = ScholarHandler(httpx.Response(200, json=scholar_payload))
    service = make_service(handler, cache_ttl=60)

    await service.search("vexus")
    clock.advance(61)
    await service.search("vexus")

    assert len(handler.requests) == 2


@pytest.mark.asyncio
async def test_paging_parameters_are_part_of_the_cache_key(make_service, scholar_payload):
    handler = ScholarHandler(httpx.Response(200, json=scholar_payload))
    service = make_service(handler)

    await service.search("vexus", start=0)
    await service.search("vexus", start=10)

    assert len(handler.requests) == 2
    assert service.cache_key("a", 0, 10) != service.cache_key("a", 10, 10)


@pytest.mark.asyncio
async def test_clear_empties_response_cache(make_service, scholar_payload):
    handler = ScholarHandler(httpx.Response(200, json=scholar_payload))
    service = make_service(handler)
    await service.search("vexus")

    assert await service.clear() == 1
    assert (await service.stats())["entries"] == 0


@pytest.mark.asyncio
async def test_missing_api_key_is_unavailable(make_service):
    handler = ScholarHandler(httpx.Response(200, json={}))
    service = make_service(handler, vault=InMemoryVault({"googlescholarapi": ""}))

    with pytest.raises(SearchUnavailableError) as excinfo:
        await service.search("vexus")

    assert excinfo.value.retry_after == 300
    assert handler.requests == []


@pytest.mark.asyncio
async def test_rate_limited_upstream_raises_and_is_not_cached(make_service):
    handler = ScholarHandler(httpx.Response(429, headers={"Retry-After": "15"}))
    service = make_service(handler)

    with pytest.raises(UpstreamCallError) as excinfo:
        await service.search("vexus")

    assert excinfo.value.kind is ErrorKind.RATE_LIMITED
    assert excinfo.value.failure.retry_after == 15
    assert (await service.stats())["entries"] == 0


@pytest.mark.asyncio
async def test_non_object_payload_is_unknown_error(make_service):
    service = make_service(ScholarHandler(httpx.Response(200, json=["not", "an", "object"])))

    with pytest.raises(UpstreamCallError) as excinfo:
        await service.search("vexus")

    assert excinfo.value.kind is ErrorKind.UNKNOWN


@pytest.mark.parametrize(
    ("query", "start", "num"),
    [
        (None, 0, 10),
        ("   ", 0, 10),
        ("x" * 501, 0, 10),
        ("vexus", -1, 10),
        ("vexus", 0, 0),
    ],
)
def test_validate_rejects_bad_input(make_service, query, start, num):
    service = make_service(ScholarHandler(httpx.Response(200, json={})))

    with pytest.raises(SearchValidationError):
        service.validate(query, start, num)


def test_validate_clamps_page_size(make_service):
    service = make_service(ScholarHandler(httpx.Response(200, json={})), max_results=20)

    assert service.validate(" vexus ", 0, 100) == ("vexus", 0, 20)


def test_extract_year_takes_last_year_in_summary():
    assert extract_year("A Author - Journal 1999, vol 2 - Publisher, 2004") == 2004
    assert extract_year("No year here") is None
    assert extract_year(None) is None


@pytest.mark.asyncio
async def test_malformed_result_fields_fall_back_to_defaults(make_service):
    payload = {
        "organic_results": [
            {
                "position": "first",
                "title": ["not", "text"],
                "link": 12345,
                "snippet": {"text": "nested"},
                "publication_info": "G Siegel - 2020",
                "inline_links": "cited by 3",
            },
            {
                "title": "Hepatic vein Doppler",
                "publication_info": {"summary": ["2019"]},
                "inline_links": {"cited_by": [7]},
            },
            {"title": "Renal venous flow", "inline_links": {"cited_by": {"total": True}}},
        ]
    }
    service = make_service(ScholarHandler(httpx.Response(200, json=payload)))

    response = await service.search("vexus")

    first, second, third = response["publications"]
    assert first == {
        "position": None,
        "title": "Untitled",
        "link": None,
        "snippet": None,
        "summary": None,
        "year": None,
        "cited_by": 0,
    }
    assert second["title"] == "Hepatic vein Doppler"
    assert second["summary"] is None
    assert second["cited_by"] == 0
    assert third["cited_by"] == 0
