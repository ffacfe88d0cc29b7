"""Settings for the research-publication search service."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class SearchConfig(BaseSettings):
    """Runtime configuration for :class:`ScholarSearchService`."""

    search_url: str = Field(default="https://serpapi.com/search.json")
    engine: str = Field(default="google_scholar")
    api_key_secret: str = Field(
        default="googlescholarapi",
        description="Name of the vault secret holding the search API key",
    )
    timeout: float = Field(default=30.0, gt=0)
    max_attempts: int = Field(default=3, ge=1)
    retry_delay: float = Field(default=1.0, ge=0)
    max_results: int = Field(default=20, ge=1)
    max_query_length: int = Field(default=500, ge=1)
    sort_by_date: bool = Field(default=True)
    cache_ttl: float = Field(
        default=7 * 24 * 60 * 60,
        gt=0,
        description="Lifetime (seconds) of cached search responses",
    )
    cache_max_size: int = Field(default=50, ge=1)
    cache_version: str = Field(
        default="1.2",
        description="Bump to invalidate every cached search response",
    )
    missing_key_retry_after: int = Field(default=300, ge=0)
    profiles_engine: str = Field(default="google_scholar_profiles")
    author_engine: str = Field(default="google_scholar_author")
    author_sort: str = Field(default="pubdate")
    author_page_size: int = Field(default=100, ge=1, le=100)
    author_max_pages: int = Field(default=10, ge=1)
    discovery_timeout: float = Field(default=20.0, gt=0)
    faculty_cache_ttl: float = Field(
        default=30 * 24 * 60 * 60,
        gt=0,
        description="Lifetime (seconds) of cached faculty results and author ids",
    )
    faculty_cache_max_size: int = Field(default=100, ge=1)
    user_agent: str = Field(default="portal-gateway-research/1.0")

    model_config = SettingsConfigDict(
        env_prefix="PORTAL_SEARCH_",
        env_file=".env",
        extra="ignore",
    )


__all__ = ["SearchConfig"]
