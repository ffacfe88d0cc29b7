"""Batch TTL cache for secrets fetched from a vault.

The cache holds one :class:`SecretSnapshot` at a time. A snapshot is produced by a
single batch refresh and expires as a whole; there is no per-key expiry. Only one
refresh runs at a time and every caller waiting on it receives the same snapshot.
"""

from __future__ import annotations

import asyncio
import logging
import re
import time
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from typing import Final

from cachetools import TTLCache

from .config import SecretsConfig
from .exceptions import (
    InvalidSecretNameError,
    SecretFetchError,
    SecretNotFoundError,
    SecretsConfigError,
    VaultUnavailableError,
)
from .mappings import SecretSource, read_env_override
from .schemas import SecretCacheStatus, SecretEntry, SecretSnapshot, SecretStatus
from .vault import SecretVault

SECRET_NAME_PATTERN: Final[re.Pattern[str]] = re.compile(r"^[A-Za-z0-9_-]{1,255}$")
_SNAPSHOT_SLOT: Final[str] = "snapshot"

Clock = Callable[[], float]
Sleep = Callable[[float], Awaitable[None]]


@dataclass(slots=True)
class _Refresh:
    keys: frozenset[str]
    task: asyncio.Task[SecretSnapshot]


class SecretCache:
    """Cache-aside access to vault secrets with single-flight batch refreshes."""

    def __init__(
        self,
        vault: SecretVault,
        config: SecretsConfig | None = None,
        *,
        clock: Clock = time.monotonic,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.config: SecretsConfig = config or SecretsConfig()
        self._vault = vault
        self._required: frozenset[str] = self._validate_keys(self.config.required_secrets)
        self._clock = clock
        self._sleep = sleep
        self._slot: TTLCache[str, SecretSnapshot] = TTLCache(
            maxsize=1, ttl=self.config.ttl_seconds, timer=clock
        )
        self._inflight: _Refresh | None = None
        self._batch_count = 0
        self._logger: logging.Logger = logging.getLogger(__name__)

    @property
    def ttl_seconds(self) -> float:
        return self.config.ttl_seconds

    @property
    def batch_count(self) -> int:
        """Number of batch refreshes started since construction."""

        return self._batch_count

    async def get(self, keys: Iterable[str]) -> dict[str, str | None]:
        """Return ``key -> value`` for ``keys``; absent secrets map to ``None``.

        Raises :class:`InvalidSecretNameError` for malformed keys and
        :class:`SecretFetchError` when the vault cannot be reached within the retry
        budget. A stale snapshot is never returned in place of a failed refresh.
        """

        requested = self._validate_keys(keys)
        if not requested:
            return {}

        snapshot = self.snapshot()
        if snapshot is not None and snapshot.covers(requested):
            self._logger.debug(
                "Secret cache hit",
                extra={"secret_context": {"keys": sorted(requested)}},
            )
            return snapshot.select(requested)

        wanted = requested | self._required
        if snapshot is not None:
            wanted |= snapshot.keys()
        snapshot = await self._refresh(wanted)
        return snapshot.select(requested)

    async def get_one(self, key: str) -> str | None:
        values = await self.get((key,))
        return values[key]

    async def warm(self) -> SecretSnapshot:
        """Eagerly load the required secrets, bypassing any cached snapshot.

        A refresh already in flight is awaited first and never joined: its fetch may
        have started before the caller invalidated the cache.
        """

        inflight = self._inflight
        if inflight is not None and not inflight.task.done():
            await asyncio.wait({inflight.task})

        keys = self._required
        snapshot = self.snapshot()
        if snapshot is not None:
            keys |= snapshot.keys()
        return await self._refresh(keys)

    async def close(self) -> None:
        """Cancel any in-flight refresh and release the vault transport."""

        inflight = self._inflight
        if inflight is not None and not inflight.task.done():
            inflight.task.cancel()
        await self._vault.close()

    def invalidate(self) -> None:
        """Drop the cached snapshot; the next read triggers a refresh."""

        self._slot.clear()

    def snapshot(self) -> SecretSnapshot | None:
        """Return the current snapshot if it has not expired."""

        return self._slot.get(_SNAPSHOT_SLOT)

    def status(self) -> SecretCacheStatus:
        snapshot = self.snapshot()
        refreshing = self._inflight is not None and not self._inflight.task.done()
        if snapshot is None:
            return SecretCacheStatus(
                cached=False,
                ttl_seconds=self.ttl_seconds,
                refresh_in_flight=refreshing,
            )
        return SecretCacheStatus(
            cached=True,
            ttl_seconds=self.ttl_seconds,
            age_seconds=max(0.0, self._clock() - snapshot.fetched_at),
            refresh_in_flight=refreshing,
            secrets=[
                SecretStatus(
                    key=entry.key,
                    loaded=entry.present,
                    source=entry.source.value if entry.source else None,
                    length=len(entry.value or ""),
                )
                for entry in sorted(snapshot.entries.values(), key=lambda item: item.key)
            ],
        )

    async def _refresh(self, keys: frozenset[str]) -> SecretSnapshot:
        while True:
            inflight = self._inflight
            if inflight is None or inflight.task.done():
                inflight = self._start_refresh(keys)
            else:
                self._logger.debug(
                    "Joining in-flight secret refresh",
                    extra={"secret_context": {"keys": sorted(keys)}},
                )
            # A cancelled caller must not cancel the refresh other callers share.
            snapshot = await asyncio.shield(inflight.task)
            if snapshot.covers(keys):
                return snapshot
            keys = keys | snapshot.keys()

    def _start_refresh(self, keys: frozenset[str]) -> _Refresh:
        self._batch_count += 1
        task = asyncio.ensure_future(self._fetch_with_retry(keys))
        refresh = _Refresh(keys=keys, task=task)
        self._inflight = refresh
        task.add_done_callback(lambda _task, ref=refresh: self._release(ref))
        return refresh

    def _release(self, refresh: _Refresh) -> None:
        if self._inflight is refresh:
            self._inflight = None
        if not refresh.task.cancelled():
            # Mark the outcome as retrieved even if every waiter went away.
            refresh.task.exception()

    async def _fetch_with_retry(self, keys: frozenset[str]) -> SecretSnapshot:
        max_attempts = max(1, self.config.max_retries + 1)
        attempt = 0

        while True:
            attempt += 1
            try:
                snapshot = await self._fetch_batch(keys, attempt)
            except VaultUnavailableError as exc:
                if attempt >= max_attempts:
                    self._logger.error(
                        "Secret refresh failed after exhausting retries",
                        extra={"secret_context": {"attempts": attempt, "keys": sorted(keys)}},
                    )
                    raise SecretFetchError(
                        f"Unable to refresh secrets after {attempt} attempts", attempts=attempt
                    ) from exc
                delay = self._retry_delay(attempt)
                self._logger.warning(
                    "Secret refresh failed, retrying in %.2fs",
                    delay,
                    extra={"secret_context": {"attempt": attempt, "error": str(exc)}},
                )
                await self._sleep(delay)
                continue

            self._slot[_SNAPSHOT_SLOT] = snapshot
            self._logger.info(
                "Secrets loaded and cached",
                extra={
                    "secret_context": {
                        "keys": sorted(keys),
                        "missing": snapshot.missing(),
                        "attempts": attempt,
                        "ttl_seconds": self.ttl_seconds,
                    }
                },
            )
            return snapshot

    async def _fetch_batch(self, keys: frozenset[str], attempt: int) -> SecretSnapshot:
        entries: dict[str, SecretEntry] = {}
        for key in sorted(keys):
            value, source = await self._fetch_one(key)
            entries[key] = SecretEntry(key=key, value=value, fetched_at=self._clock(), source=source)
        return SecretSnapshot(entries=entries, fetched_at=self._clock(), attempts=attempt)

    async def _fetch_one(self, key: str) -> tuple[str | None, SecretSource | None]:
        if self.config.allow_env_overrides:
            env_value = read_env_override(key)
            if env_value is not None:
                self._logger.debug(
                    "Secret supplied by environment override",
                    extra={"secret_context": {"key": key}},
                )
                return env_value, SecretSource.ENV

        try:
            value = await asyncio.wait_for(
                self._vault.fetch_secret(key), timeout=self.config.fetch_timeout
            )
        except (VaultUnavailableError, SecretsConfigError):
            raise
        except SecretNotFoundError as exc:
            self._log_missing(key, str(exc))
            return None, None
        except TimeoutError:
            # Vault deadlines and the local wait_for bound end up here alike.
            self._log_missing(key, f"fetch timed out after {self.config.fetch_timeout}s")
            return None, None
        except Exception as exc:  # noqa: BLE001 - one bad secret must not fail the batch
            self._log_missing(key, f"{type(exc).__name__}: {exc}")
            return None, None

        if value is None or not value.strip():
            self._log_missing(key, "empty value")
            return None, None
        return value, SecretSource.VAULT

    def _log_missing(self, key: str, reason: str) -> None:
        self._logger.warning(
            "Secret not available",
            extra={"secret_context": {"key": key, "reason": reason}},
        )

    def _retry_delay(self, attempt: int) -> float:
        return self.config.retry_backoff_seconds * (2 ** (attempt - 1))

    @staticmethod
    def _validate_keys(keys: Iterable[str]) -> frozenset[str]:
        if isinstance(keys, str):
            keys = (keys,)
        validated = frozenset(keys)
        for key in validated:
            if not isinstance(key, str) or not SECRET_NAME_PATTERN.match(key):
                raise InvalidSecretNameError(f"Invalid secret name: {key!r}")
        return validated


__all__ = [
    "SECRET_NAME_PATTERN",
    "SecretCache",
]
