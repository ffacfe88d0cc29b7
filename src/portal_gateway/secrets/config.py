"""Configuration for the vault-backed secret cache."""

from __future__ import annotations

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class SecretsConfig(BaseSettings):
    """Settings used by :class:`portal_gateway.secrets.cache.SecretCache`."""

    project_id: str | None = Field(
        default=None,
        description="Secret Manager project; GOOGLE_CLOUD_PROJECT is used when unset",
    )
    environment: Literal["development", "production"] = Field(
        default="development",
        description="Deployment mode, selects the default cache TTL",
    )
    cache_ttl: float | None = Field(
        default=None,
        gt=0,
        description="Explicit cache lifetime (seconds); overrides the per-mode defaults",
    )
    development_cache_ttl: float = Field(default=300.0, gt=0)
    production_cache_ttl: float = Field(default=600.0, gt=0)
    fetch_timeout: float = Field(
        default=15.0,
        gt=0,
        description="Timeout (seconds) applied to each individual secret fetch",
    )
    max_retries: int = Field(
        default=3,
        ge=0,
        description="Number of retries for a batch refresh that could not reach the vault",
    )
    retry_backoff_seconds: float = Field(
        default=1.0,
        ge=0,
        description="Base delay (seconds) for exponential backoff between batch retries",
    )
    secret_version: str = Field(default="latest")
    required_secrets: list[str] = Field(
        default_factory=lambda: [
            "googlescholarapi",
            "AIRTABLE_API_KEY",
            "AIRTABLE_BASE_ID",
            "AIRTABLE_TABLE_NAME",
        ],
        description="Secrets fetched as one batch on warm-up and on every refresh",
    )
    allow_env_overrides: bool = Field(
        default=True,
        description="Consult mapped environment variables before calling the vault",
    )
    credentials_file: str | None = Field(
        default=None,
        description="Service account JSON used instead of application default credentials",
    )

    model_config = SettingsConfigDict(
        env_prefix="PORTAL_SECRETS_",
        env_file=".env",
        extra="ignore",
    )

    @property
    def ttl_seconds(self) -> float:
        """Effective cache lifetime for the configured deployment mode."""

        if self.cache_ttl is not None:
            return self.cache_ttl
        if self.environment == "production":
            return self.production_cache_ttl
        return self.development_cache_ttl


__all__ = ["SecretsConfig"]
