"""Custom exceptions used by the secret caching layer."""

from __future__ import annotations


class SecretsError(Exception):
    """Base error raised for any secrets related issue."""


class SecretsConfigError(SecretsError):
    """Raised when the cache or vault is misconfigured or missing credentials."""


class InvalidSecretNameError(SecretsError, ValueError):
    """Raised when a requested key is not a valid vault identifier."""


class SecretNotFoundError(SecretsError):
    """Raised by a vault when a single secret does not exist or is not readable."""


class VaultUnavailableError(SecretsError):
    """Raised when the vault itself cannot be reached."""


class SecretFetchError(SecretsError):
    """Raised when a batch refresh failed after exhausting its retry budget."""

    def __init__(self, message: str, *, attempts: int) -> None:
        super().__init__(message)
        self.attempts = attempts


__all__ = [
    "InvalidSecretNameError",
    "SecretFetchError",
    "SecretNotFoundError",
    "SecretsConfigError",
    "SecretsError",
    "VaultUnavailableError",
]
