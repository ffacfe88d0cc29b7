"""Client-wide defaults for outbound upstream calls."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class UpstreamConfig(BaseSettings):
    """Defaults applied when an :class:`UpstreamCallSpec` leaves a budget unset."""

    default_timeout: float = Field(
        default=10.0,
        gt=0,
        description="Hard per-attempt timeout (seconds)",
    )
    default_max_attempts: int = Field(
        default=3,
        ge=1,
        description="Attempt cap for transient transport failures",
    )
    default_retry_delay: float = Field(
        default=1.0,
        ge=0,
        description="Fixed delay (seconds) between attempts",
    )
    max_redirects: int = Field(default=5, ge=0)
    max_retry_after: float = Field(
        default=300.0,
        gt=0,
        description="Upper bound for retry-after hints taken from upstream responses",
    )
    user_agent: str = Field(default="portal-gateway/0.1.0")

    model_config = SettingsConfigDict(
        env_prefix="PORTAL_UPSTREAM_",
        env_file=".env",
        extra="ignore",
    )


__all__ = ["UpstreamConfig"]
