"""Vault-backed secret caching."""

from .cache import SECRET_NAME_PATTERN, SecretCache
from .config import SecretsConfig
from .exceptions import (
    InvalidSecretNameError,
    SecretFetchError,
    SecretNotFoundError,
    SecretsConfigError,
    SecretsError,
    VaultUnavailableError,
)
from .mappings import ENV_SECRET_OVERRIDES, EnvSecretOverride, SecretSource, get_env_override
from .schemas import SecretCacheStatus, SecretEntry, SecretSnapshot, SecretStatus
from .vault import GoogleSecretManagerVault, InMemoryVault, SecretVault

__all__ = [
    "ENV_SECRET_OVERRIDES",
    "EnvSecretOverride",
    "GoogleSecretManagerVault",
    "InMemoryVault",
    "InvalidSecretNameError",
    "SECRET_NAME_PATTERN",
    "SecretCache",
    "SecretCacheStatus",
    "SecretEntry",
    "SecretFetchError",
    "SecretNotFoundError",
    "SecretSnapshot",
    "SecretSource",
    "SecretStatus",
    "SecretVault",
    "SecretsConfig",
    "SecretsConfigError",
    "SecretsError",
    "VaultUnavailableError",
    "get_env_override",
]
