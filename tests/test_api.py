"""HTTP surface tests using FastAPI's TestClient with overridden dependencies."""

from __future__ import annotations

import httpx
import pytest
from fastapi.testclient import TestClient

from portal_gateway.api import create_app
from portal_gateway.api.deps import (
    get_atlas_service,
    get_faculty_service,
    get_inference_proxy,
    get_search_service,
    get_secret_cache,
    get_upstream_client,
)
from portal_gateway.atlas import AtlasConfig, ImageAtlasService
from portal_gateway.inference import InferenceConfig, InferenceProxy
from portal_gateway.search import (
    CacheManager,
    FacultyResearchService,
    ScholarSearchService,
    SearchConfig,
)
from portal_gateway.secrets import InMemoryVault, VaultUnavailableError

API_KEY = "serp-secret-key-123"
AIRTABLE_TOKEN = "pat-airtable-token-456"
VAULT_VALUES = {
    "googlescholarapi": API_KEY,
    "AIRTABLE_API_KEY": AIRTABLE_TOKEN,
    "AIRTABLE_BASE_ID": "appVexus",
    "AIRTABLE_TABLE_NAME": "Atlas",
}
HEPATIC_URL = "https://hepatic.models.test/predict"


class DownVault(InMemoryVault):
    async def fetch_secret(self, name: str) -> str | None:
        raise VaultUnavailableError("vault unreachable")


class Upstream:
    """Routes mocked requests to the response configured for each host."""

    def __init__(self) -> None:
        self.responses: dict[str, object] = {}
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        outcome = self.responses[request.url.host]
        if isinstance(outcome, type) and issubclass(outcome, Exception):
            raise outcome("simulated failure", request=request)
        return outcome


@pytest.fixture
def upstream() -> Upstream:
    return Upstream()


@pytest.fixture
def build_client(make_secret_cache, make_upstream_client, clock, upstream):
    def _factory(vault=None, **secret_overrides) -> TestClient:
        secret_cache = make_secret_cache(
            vault if vault is not None else InMemoryVault(VAULT_VALUES),
            **{"required_secrets": ["googlescholarapi"], **secret_overrides},
        )
        client = make_upstream_client(upstream)
        search_config = SearchConfig(retry_delay=0.0, max_attempts=2)
        search = ScholarSearchService(
            secret_cache,
            client,
            search_config,
            cache=CacheManager(
                maxsize=search_config.cache_max_size,
                ttl_seconds=search_config.cache_ttl,
                timer=clock,
            ),
        )
        proxy = InferenceProxy(
            client, InferenceConfig(endpoints={"hepatic": HEPATIC_URL}, retry_delay=0.0)
        )
        faculty = FacultyResearchService(secret_cache, client, search_config)
        atlas = ImageAtlasService(secret_cache, client, AtlasConfig(retry_delay=0.0))

        app = create_app()
        app.dependency_overrides[get_secret_cache] = lambda: secret_cache
        app.dependency_overrides[get_upstream_client] = lambda: client
        app.dependency_overrides[get_search_service] = lambda: search
        app.dependency_overrides[get_inference_proxy] = lambda: proxy
        app.dependency_overrides[get_faculty_service] = lambda: faculty
        app.dependency_overrides[get_atlas_service] = lambda: atlas
        return TestClient(app)

    return _factory


def test_liveness(build_client):
    response = build_client().get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


def test_search_returns_publications(build_client, upstream, scholar_payload):
    upstream.responses["serpapi.com"] = httpx.Response(200, json=scholar_payload)
    client = build_client()

    response = client.get("/api/scholar/search", params={"q": "vexus", "num": 5})

    assert response.status_code == 200
    body = response.json()
    assert body["publications"][0]["year"] == 2021
    assert body["metadata"]["from_cache"] is False

    again = client.get("/api/scholar/search", params={"q": "VEXUS", "num": 5})
    assert again.json()["metadata"]["from_cache"] is True
    assert len(upstream.requests) == 1


def test_search_requires_query(build_client):
    response = build_client().get("/api/scholar/search")

    assert response.status_code == 400
    assert response.json()["error"]["kind"] == "invalid_request"


def test_rate_limited_search_maps_to_429(build_client, upstream):
    upstream.responses["serpapi.com"] = httpx.Response(429, headers={"Retry-After": "15"})

    response = build_client().get("/api/scholar/search", params={"q": "vexus"})

    assert response.status_code == 429
    assert response.headers["Retry-After"] == "15"
    error = response.json()["error"]
    assert error["kind"] == "rate_limited"
    assert error["retry_after"] == 15


def test_search_timeout_maps_to_504(build_client, upstream):
    upstream.responses["serpapi.com"] = httpx.ReadTimeout

    response = build_client().get("/api/scholar/search", params={"q": "vexus"})

    assert response.status_code == 504
    assert response.headers["Retry-After"] == "60"
    assert response.json()["error"]["kind"] == "timeout"
    assert len(upstream.requests) == 2


@pytest.mark.parametrize(
    ("outcome", "status"),
    [
        (httpx.Response(500), 502),
        (httpx.ConnectError, 503),
        (httpx.Response(403), 502),
    ],
)
def test_upstream_failures_map_to_gateway_statuses(build_client, upstream, outcome, status):
    upstream.responses["serpapi.com"] = outcome

    response = build_client().get("/api/scholar/search", params={"q": "vexus"})

    assert response.status_code == status
    assert API_KEY not in response.text


def test_missing_search_key_is_service_unavailable(build_client):
    client = build_client(vault=InMemoryVault({"googlescholarapi": ""}))

    response = client.get("/api/scholar/search", params={"q": "vexus"})

    assert response.status_code == 503
    assert response.headers["Retry-After"] == "300"
    assert response.json()["error"]["kind"] == "service_unavailable"


def test_unreachable_vault_is_secrets_unavailable(build_client, sleeper):
    client = build_client(vault=DownVault(), max_retries=1)

    response = client.get("/api/scholar/search", params={"q": "vexus"})

    assert response.status_code == 503
    assert response.headers["Retry-After"] == "30"
    assert response.json()["error"]["kind"] == "secrets_unavailable"
    assert sleeper.delays == [1.0]


def test_readiness_reports_search_key(build_client):
    response = build_client().get("/api/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["services"]["search_api"] is True
    assert API_KEY not in response.text


def test_readiness_fails_when_vault_is_down(build_client):
    response = build_client(vault=DownVault(), max_retries=0).get("/api/health")

    assert response.status_code == 503
    assert response.json()["status"] == "unhealthy"


def test_secret_debug_never_exposes_values(build_client):
    response = build_client().get("/api/debug/secrets")

    assert response.status_code == 200
    body = response.json()
    assert body["cached"] is True
    assert body["secrets"] == [
        {"key": "googlescholarapi", "loaded": True, "source": "vault", "length": len(API_KEY)}
    ]
    assert API_KEY not in response.text


def test_secret_refresh_starts_new_batch(build_client):
    client = build_client()
    client.get("/api/debug/secrets")

    response = client.post("/api/secrets/refresh")

    assert response.status_code == 200
    metrics = client.get("/api/metrics").json()
    assert metrics["cache"]["secrets"]["batch_refreshes"] == 2


def test_cache_stats_and_clear(build_client, upstream, scholar_payload):
    upstream.responses["serpapi.com"] = httpx.Response(200, json=scholar_payload)
    client = build_client()
    client.get("/api/scholar/search", params={"q": "vexus"})

    stats = client.get("/api/cache/stats").json()
    assert stats["entries"] == 1
    assert stats["version"] == "1.2"

    cleared = client.delete("/api/cache/clear").json()
    assert cleared["deleted_count"] == 1
    assert client.get("/api/cache/stats").json()["entries"] == 0


def test_inference_models_and_prediction(build_client, upstream):
    upstream.responses["hepatic.models.test"] = httpx.Response(200, json={"label": "normal"})
    client = build_client()

    assert client.get("/api/inference").json() == {"models": ["hepatic"]}
    response = client.post("/api/inference/hepatic", json={"image": "abc"})
    assert response.status_code == 200
    assert response.json() == {"label": "normal"}


def test_inference_unknown_model_is_404(build_client):
    response = build_client().post("/api/inference/renal", json={})

    assert response.status_code == 404
    assert response.json()["error"]["kind"] == "not_found"


ATLAS_RECORD = {
    "id": "rec1",
    "createdTime": "2024-03-01T12:00:00.000Z",
    "fields": {"Vein type": "Hepatic Vein", "Waveform": "Mild"},
}


def test_atlas_images_are_listed(build_client, upstream):
    upstream.responses["api.airtable.com"] = httpx.Response(200, json={"records": [ATLAS_RECORD]})

    response = build_client().get("/api/images")

    assert response.status_code == 200
    body = response.json()
    assert body["count"] == 1
    assert body["images"][0]["title"] == "Hepatic Vein - Mild"
    assert "filterByFormula" not in upstream.requests[0].url.params
    assert AIRTABLE_TOKEN not in response.text


def test_atlas_category_resolves_vein_alias(build_client, upstream):
    upstream.responses["api.airtable.com"] = httpx.Response(200, json={"records": [ATLAS_RECORD]})

    response = build_client().get("/api/images/category/hepatic")

    assert response.status_code == 200
    assert response.json()["vein_type"] == "Hepatic Vein"
    formula = upstream.requests[0].url.params["filterByFormula"]
    assert formula == "{Vein type} = 'Hepatic Vein'"


def test_atlas_config_exposes_identifiers_only(build_client):
    response = build_client().get("/api/config")

    assert response.status_code == 200
    assert response.json() == {"base_id": "appVexus", "table_name": "Atlas"}
    assert AIRTABLE_TOKEN not in response.text


def test_atlas_without_credentials_is_service_unavailable(build_client, upstream):
    client = build_client(vault=InMemoryVault({"googlescholarapi": API_KEY}))

    response = client.get("/api/images")

    assert response.status_code == 503
    assert response.headers["Retry-After"] == "300"
    assert response.json()["error"]["kind"] == "service_unavailable"
    assert upstream.requests == []


def test_readiness_reports_atlas_configuration(build_client):
    loaded = build_client().get("/api/health").json()
    missing = (
        build_client(vault=InMemoryVault({"googlescholarapi": API_KEY})).get("/api/health").json()
    )

    assert loaded["services"]["image_atlas"] is True
    assert missing["services"]["image_atlas"] is False


def test_faculty_research_lists_author_articles(build_client, upstream):
    upstream.responses["serpapi.com"] = httpx.Response(
        200,
        json={
            "articles": [
                {"title": "Vexus grading", "publication": "Ultrasound J", "year": "2021"},
                {"title": "Portal flow", "publication": "Crit Care", "year": "2020"},
            ]
        },
    )

    response = build_client().get("/api/faculty/gabriel-siegel-md/research", params={"limit": 1})

    assert response.status_code == 200
    body = response.json()
    assert [item["title"] for item in body["organic_results"]] == ["Vexus grading"]
    assert body["metadata"]["author_id"] == "XKnXMIkAAAAJ"
    assert upstream.requests[0].url.params["engine"] == "google_scholar_author"
    assert API_KEY not in response.text


def test_faculty_research_rejects_bad_identifier(build_client):
    response = build_client().get("/api/faculty/not%20a%20slug/research")

    assert response.status_code == 400
    assert response.json()["error"]["kind"] == "invalid_request"


def test_search_survives_malformed_result_fields(build_client, upstream):
    upstream.responses["serpapi.com"] = httpx.Response(
        200,
        json={"organic_results": [{"title": "Doppler", "link": 7, "inline_links": "oops"}]},
    )

    response = build_client().get("/api/scholar/search", params={"q": "vexus"})

    assert response.status_code == 200
    publication = response.json()["publications"][0]
    assert publication["link"] is None
    assert publication["cited_by"] == 0
