"""Shared fixtures: deterministic clock/sleep and preconfigured components."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any

import httpx
import pytest

from portal_gateway.secrets import InMemoryVault, SecretCache, SecretsConfig
from portal_gateway.upstream import ResilientUpstreamClient, UpstreamConfig


class FakeClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingSleep:
    """Async sleep replacement that records delays and advances a FakeClock."""

    def __init__(self, clock: FakeClock) -> None:
        self.clock = clock
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
        self.clock.advance(delay)
        await asyncio.sleep(0)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def sleeper(clock: FakeClock) -> RecordingSleep:
    return RecordingSleep(clock)


def make_secrets_config(**overrides: Any) -> SecretsConfig:
    values: dict[str, Any] = {
        "project_id": "test-project",
        "required_secrets": [],
        "cache_ttl": 300.0,
        "fetch_timeout": 1.0,
        "max_retries": 3,
        "retry_backoff_seconds": 1.0,
        "allow_env_overrides": False,
    }
    values.update(overrides)
    return SecretsConfig(**values)


@pytest.fixture
def secrets_config_factory() -> Callable[..., SecretsConfig]:
    return make_secrets_config


@pytest.fixture
def make_secret_cache(
    clock: FakeClock, sleeper: RecordingSleep
) -> Callable[..., SecretCache]:
    def _factory(vault: Any, **overrides: Any) -> SecretCache:
        return SecretCache(vault, make_secrets_config(**overrides), clock=clock, sleep=sleeper)

    return _factory


@pytest.fixture
def make_upstream_client(
    clock: FakeClock, sleeper: RecordingSleep
) -> Callable[..., ResilientUpstreamClient]:
    def _factory(
        handler: Callable[[httpx.Request], Any], **overrides: Any
    ) -> ResilientUpstreamClient:
        return ResilientUpstreamClient(
            UpstreamConfig(**overrides),
            transport=httpx.MockTransport(handler),
            clock=clock,
            sleep=sleeper,
        )

    return _factory


@pytest.fixture
def scholar_vault() -> InMemoryVault:
    return InMemoryVault({"googlescholarapi": "serp-secret-key-123"})


SCHOLAR_PAYLOAD: dict[str, Any] = {
    "search_information": {"total_results": 2, "query_displayed": "vexus ultrasound"},
    "organic_results": [
        {
            "position": 0,
            "title": "Venous excess ultrasound grading",
            "link": "https://example.org/vexus",
            "snippet": "Point-of-care ultrasound of venous congestion.",
            "publication_info": {"summary": "G Siegel, M Riscinti - The Ultrasound Journal, 2021 - Springer"},
            "inline_links": {"cited_by": {"total": 42}},
        },
        {
            "position": 1,
            "title": "Portal vein pulsatility",
            "publication_info": {"summary": "A Toney - Critical Care"},
        },
    ],
}


@pytest.fixture
def scholar_payload() -> dict[str, Any]:
    return {**SCHOLAR_PAYLOAD, "organic_results": [dict(r) for r in SCHOLAR_PAYLOAD["organic_results"]]}
