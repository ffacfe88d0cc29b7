"""Snapshot types held by the SecretCache and status payloads derived from them."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from pydantic import BaseModel, Field

from .mappings import SecretSource


@dataclass(frozen=True, slots=True)
class SecretEntry:
    """One resolved secret. ``value=None`` means the key is known to be missing."""

    key: str
    value: str | None
    fetched_at: float
    source: SecretSource | None = None

    @property
    def present(self) -> bool:
        return self.value is not None


@dataclass(frozen=True, slots=True)
class SecretSnapshot:
    """Immutable result of one batch refresh."""

    entries: Mapping[str, SecretEntry]
    fetched_at: float
    attempts: int = 1
    _keys: frozenset[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "entries", MappingProxyType(dict(self.entries)))
        object.__setattr__(self, "_keys", frozenset(self.entries))

    def keys(self) -> frozenset[str]:
        return self._keys

    def covers(self, keys: Iterable[str]) -> bool:
        return self._keys.issuperset(keys)

    def select(self, keys: Iterable[str]) -> dict[str, str | None]:
        """Return ``key -> value`` for ``keys``; every key must be in the snapshot."""

        return {key: self.entries[key].value for key in keys}

    def missing(self) -> list[str]:
        return sorted(key for key, entry in self.entries.items() if entry.value is None)


class SecretStatus(BaseModel):
    """Presence information for a single secret (never its value)."""

    key: str
    loaded: bool
    source: str | None = None
    length: int = 0


class SecretCacheStatus(BaseModel):
    """Summary payload for health and debug endpoints."""

    cached: bool
    ttl_seconds: float
    age_seconds: float | None = None
    refresh_in_flight: bool = False
    secrets: list[SecretStatus] = Field(default_factory=list)


__all__ = [
    "SecretCacheStatus",
    "SecretEntry",
    "SecretSnapshot",
    "SecretStatus",
]
