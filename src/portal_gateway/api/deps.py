"""Process-wide component instances and their FastAPI dependency providers."""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import Depends

from ..atlas import AtlasConfig, ImageAtlasService
from ..inference import InferenceConfig, InferenceProxy
from ..search import FacultyResearchService, ScholarSearchService, SearchConfig
from ..secrets import GoogleSecretManagerVault, SecretCache, SecretsConfig
from ..upstream import ResilientUpstreamClient, UpstreamConfig

logger = logging.getLogger(__name__)

_secret_cache: SecretCache | None = None
_upstream_client: ResilientUpstreamClient | None = None
_search_service: ScholarSearchService | None = None
_inference_proxy: InferenceProxy | None = None
_faculty_service: FacultyResearchService | None = None
_atlas_service: ImageAtlasService | None = None


def get_secret_cache() -> SecretCache:
    """Provide the singleton SecretCache backed by Google Secret Manager."""

    global _secret_cache
    if _secret_cache is None:
        config = SecretsConfig()
        _secret_cache = SecretCache(GoogleSecretManagerVault(config), config)
    return _secret_cache


def get_upstream_client() -> ResilientUpstreamClient:
    """Provide the singleton ResilientUpstreamClient."""

    global _upstream_client
    if _upstream_client is None:
        _upstream_client = ResilientUpstreamClient(UpstreamConfig())
    return _upstream_client


def get_search_service() -> ScholarSearchService:
    """Provide the singleton ScholarSearchService (owns the response cache)."""

    global _search_service
    if _search_service is None:
        _search_service = ScholarSearchService(
            get_secret_cache(),
            get_upstream_client(),
            SearchConfig(),
        )
    return _search_service


def get_inference_proxy() -> InferenceProxy:
    """Provide the singleton InferenceProxy."""

    global _inference_proxy
    if _inference_proxy is None:
        _inference_proxy = InferenceProxy(get_upstream_client(), InferenceConfig())
    return _inference_proxy


def get_faculty_service() -> FacultyResearchService:
    """Provide the singleton FacultyResearchService (owns the faculty caches)."""

    global _faculty_service
    if _faculty_service is None:
        _faculty_service = FacultyResearchService(
            get_secret_cache(),
            get_upstream_client(),
            SearchConfig(),
        )
    return _faculty_service


def get_atlas_service() -> ImageAtlasService:
    global _atlas_service
    if _atlas_service is None:
        _atlas_service = ImageAtlasService(get_secret_cache(), get_upstream_client(), AtlasConfig())
    return _atlas_service


async def close_dependencies() -> None:
    """Release network resources held by the singletons."""

    global _secret_cache, _upstream_client, _search_service, _inference_proxy
    global _faculty_service, _atlas_service
    if _upstream_client is not None:
        await _upstream_client.close()
    if _secret_cache is not None:
        await _secret_cache.close()
    _secret_cache = None
    _upstream_client = None
    _search_service = None
    _inference_proxy = None
    _faculty_service = None
    _atlas_service = None
    logger.info("Gateway dependencies closed")


SecretCacheDep = Annotated[SecretCache, Depends(get_secret_cache)]
SearchServiceDep = Annotated[ScholarSearchService, Depends(get_search_service)]
InferenceProxyDep = Annotated[InferenceProxy, Depends(get_inference_proxy)]
FacultyServiceDep = Annotated[FacultyResearchService, Depends(get_faculty_service)]
AtlasServiceDep = Annotated[ImageAtlasService, Depends(get_atlas_service)]


__all__ = [
    "AtlasServiceDep",
    "FacultyServiceDep",
    "InferenceProxyDep",
    "SearchServiceDep",
    "SecretCacheDep",
    "close_dependencies",
    "get_atlas_service",
    "get_faculty_service",
    "get_inference_proxy",
    "get_search_service",
    "get_secret_cache",
    "get_upstream_client",
]
