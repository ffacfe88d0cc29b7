"""Secret id → environment variable overrides used by the SecretCache."""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import StrEnum
from typing import Dict


class SecretSource(StrEnum):
    """Where a cached secret value came from."""

    VAULT = "vault"
    ENV = "env"


@dataclass(frozen=True, slots=True)
class EnvSecretOverride:
    """Environment variables that may supply a secret instead of the vault."""

    secret_id: str
    env_names: tuple[str, ...]


ENV_SECRET_OVERRIDES: Dict[str, EnvSecretOverride] = {
    "googlescholarapi": EnvSecretOverride(
        "googlescholarapi", ("SERPAPI_KEY", "GOOGLE_SCHOLAR_API_KEY", "SERPAPI_API_KEY")
    ),
    "AIRTABLE_API_KEY": EnvSecretOverride("AIRTABLE_API_KEY", ("AIRTABLE_API_KEY",)),
    "AIRTABLE_BASE_ID": EnvSecretOverride("AIRTABLE_BASE_ID", ("AIRTABLE_BASE_ID",)),
    "AIRTABLE_TABLE_NAME": EnvSecretOverride("AIRTABLE_TABLE_NAME", ("AIRTABLE_TABLE_NAME",)),
}


def get_env_override(secret_id: str) -> EnvSecretOverride | None:
    """Return the override entry for ``secret_id`` if it exists."""

    return ENV_SECRET_OVERRIDES.get(secret_id)


def read_env_override(secret_id: str) -> str | None:
    """Return the first non-blank mapped environment value for ``secret_id``."""

    override = get_env_override(secret_id)
    if override is None:
        return None
    for env_name in override.env_names:
        value = os.getenv(env_name)
        if value and value.strip():
            return value
    return None


__all__ = [
    "ENV_SECRET_OVERRIDES",
    "EnvSecretOverride",
    "SecretSource",
    "get_env_override",
    "read_env_override",
]
