"""Settings for the inference endpoint proxy."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class InferenceConfig(BaseSettings):
    """Named inference endpoints and the call budget used for each of them."""

    endpoints: dict[str, str] = Field(
        default_factory=dict,
        description="Model name → prediction URL, e.g. {\"hepatic\": \"https://...\"}",
    )
    timeout: float = Field(default=60.0, gt=0)
    max_attempts: int = Field(default=3, ge=1)
    retry_delay: float = Field(default=1.0, ge=0)
    insecure_tls_targets: list[str] = Field(
        default_factory=list,
        description="Models whose endpoints may be called without certificate verification",
    )
    user_agent: str = Field(default="portal-gateway-atlas/1.0")

    model_config = SettingsConfigDict(
        env_prefix="PORTAL_INFERENCE_",
        env_file=".env",
        extra="ignore",
    )


__all__ = ["InferenceConfig"]
