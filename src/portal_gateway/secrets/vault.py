"""Vault backends the SecretCache reads from."""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Mapping
from typing import Protocol

from google.api_core import exceptions as google_exceptions
from google.auth import exceptions as auth_exceptions
from google.cloud import secretmanager

from .config import SecretsConfig
from .exceptions import SecretNotFoundError, SecretsConfigError, VaultUnavailableError


class SecretVault(Protocol):
    """Single-secret retrieval by name."""

    async def fetch_secret(self, name: str) -> str | None:  # pragma: no cover - protocol
        """Return the current value of ``name``.

        Raises :class:`SecretNotFoundError` when only this secret is unavailable,
        ``TimeoutError`` when the read runs past its deadline and
        :class:`VaultUnavailableError` when the vault cannot be reached at all.
        """

    async def close(self) -> None:  # pragma: no cover - protocol
        """Release transport resources."""


class InMemoryVault:
    """Dictionary-backed vault used for local development and tests."""

    def __init__(self, values: Mapping[str, str | None] | None = None) -> None:
        self._values: dict[str, str | None] = dict(values or {})
        self.fetch_count = 0

    def set(self, name: str, value: str | None) -> None:
        self._values[name] = value

    async def fetch_secret(self, name: str) -> str | None:
        self.fetch_count += 1
        if name not in self._values:
            raise SecretNotFoundError(f"Secret '{name}' does not exist")
        return self._values[name]

    async def close(self) -> None:
        return None


_UNAVAILABLE_ERRORS: tuple[type[BaseException], ...] = (
    google_exceptions.ServiceUnavailable,
    google_exceptions.InternalServerError,
    google_exceptions.RetryError,
    auth_exceptions.DefaultCredentialsError,
    auth_exceptions.TransportError,
)


class GoogleSecretManagerVault:
    """Reads secrets from Google Cloud Secret Manager with the async client."""

    def __init__(
        self,
        config: SecretsConfig | None = None,
        client: secretmanager.SecretManagerServiceAsyncClient | None = None,
    ) -> None:
        self.config: SecretsConfig = config or SecretsConfig()
        self._client = client
        self._client_lock: asyncio.Lock = asyncio.Lock()
        self._logger: logging.Logger = logging.getLogger(__name__)

    @property
    def project_id(self) -> str:
        project = self.config.project_id or os.getenv("GOOGLE_CLOUD_PROJECT")
        if not project:
            raise SecretsConfigError(
                "Secret Manager project is not configured; set PORTAL_SECRETS_PROJECT_ID "
                "or GOOGLE_CLOUD_PROJECT"
            )
        return project

    def secret_path(self, name: str) -> str:
        return f"projects/{self.project_id}/secrets/{name}/versions/{self.config.secret_version}"

    async def fetch_secret(self, name: str) -> str | None:
        path = self.secret_path(name)
        client = await self._get_client()
        try:
            response = await client.access_secret_version(
                request={"name": path},
                timeout=self.config.fetch_timeout,
            )
        except (google_exceptions.NotFound, google_exceptions.PermissionDenied) as exc:
            raise SecretNotFoundError(f"Secret '{name}' is not accessible: {exc.message}") from exc
        except google_exceptions.DeadlineExceeded as exc:
            raise TimeoutError(f"Secret Manager deadline exceeded while reading '{name}'") from exc
        except _UNAVAILABLE_ERRORS as exc:
            raise VaultUnavailableError(f"Secret Manager unavailable while reading '{name}'") from exc
        return response.payload.data.decode("UTF-8")

    async def close(self) -> None:
        """Close the underlying gRPC/REST transport."""

        if self._client is not None:
            await self._client.transport.close()
            self._client = None

    async def _get_client(self) -> secretmanager.SecretManagerServiceAsyncClient:
        if self._client is None:
            async with self._client_lock:
                if self._client is None:
                    self._client = self._create_client()
        return self._client

    def _create_client(self) -> secretmanager.SecretManagerServiceAsyncClient:
        try:
            if self.config.credentials_file:
                self._logger.info(
                    "Using service account file for Secret Manager",
                    extra={"credentials_file": self.config.credentials_file},
                )
                return secretmanager.SecretManagerServiceAsyncClient.from_service_account_file(
                    self.config.credentials_file
                )
            return secretmanager.SecretManagerServiceAsyncClient()
        except auth_exceptions.DefaultCredentialsError as exc:
            raise VaultUnavailableError("No credentials available for Secret Manager") from exc


__all__ = [
    "GoogleSecretManagerVault",
    "InMemoryVault",
    "SecretVault",
]
