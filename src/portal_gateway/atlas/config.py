"""Settings for the ultrasound image atlas backed by an Airtable base."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AtlasConfig(BaseSettings):
    """Runtime configuration for :class:`ImageAtlasService`."""

    api_url: str = Field(default="https://api.airtable.com/v0")
    api_key_secret: str = Field(
        default="AIRTABLE_API_KEY",
        description="Name of the vault secret holding the Airtable access token",
    )
    base_id_secret: str = Field(default="AIRTABLE_BASE_ID")
    table_name_secret: str = Field(default="AIRTABLE_TABLE_NAME")
    fields: list[str] = Field(
        default_factory=lambda: [
            "Vein type",
            "Waveform",
            "Subtype",
            "Image Quality",
            "QA",
            "Analysis",
            "Image",
        ],
        description="Record fields requested for image cards",
    )
    page_size: int = Field(default=100, ge=1, le=100)
    max_pages: int = Field(default=50, ge=1)
    timeout: float = Field(default=15.0, gt=0)
    max_attempts: int = Field(default=3, ge=1)
    retry_delay: float = Field(default=1.0, ge=0)
    missing_config_retry_after: int = Field(default=300, ge=0)

    model_config = SettingsConfigDict(
        env_prefix="PORTAL_ATLAS_",
        env_file=".env",
        extra="ignore",
    )

    @property
    def secret_names(self) -> tuple[str, str, str]:
        """Vault keys for the access token, base id and table name, in that order."""

        return (self.api_key_secret, self.base_id_secret, self.table_name_secret)


__all__ = ["AtlasConfig"]
