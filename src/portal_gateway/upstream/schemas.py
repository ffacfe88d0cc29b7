"""Call descriptions and typed results for the upstream client."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ErrorKind(StrEnum):
    """Caller-facing classification of a failed upstream call."""

    TIMEOUT = "timeout"
    RATE_LIMITED = "rate_limited"
    CLIENT_REJECTED = "client_rejected"
    SERVER_UNAVAILABLE = "server_unavailable"
    UNKNOWN = "unknown"


class CallState(StrEnum):
    """States a single call moves through."""

    PENDING = "pending"
    RETRY_WAIT = "retry_wait"
    SUCCESS = "success"
    FAILED = "failed"


class UpstreamCallSpec(BaseModel):
    """Description of one outbound call. Unset budgets fall back to client defaults."""

    model_config = ConfigDict(frozen=True)

    target: str = Field(..., min_length=1, description="Logical name used in logs and metrics")
    url: str
    method: Literal["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD"] = "GET"
    params: dict[str, str | list[str]] | None = None
    headers: dict[str, str] | None = None
    json_body: Any = None
    timeout: float | None = Field(default=None, gt=0)
    max_attempts: int | None = Field(default=None, ge=1)
    retry_delay: float | None = Field(default=None, ge=0)
    verify_tls: bool = Field(
        default=True,
        description="Set to False only for targets explicitly allowed to skip certificate checks",
    )
    expect_json: bool = True
    secret_values: tuple[str, ...] = Field(
        default=(),
        description="Credential values that must be masked before anything is logged",
    )

    @field_validator("url")
    @classmethod
    def _require_http_url(cls, value: str) -> str:
        if not value.startswith(("http://", "https://")):
            raise ValueError("url must be an absolute http(s) URL")
        return value

    @field_validator("method", mode="before")
    @classmethod
    def _upper_method(cls, value: Any) -> Any:
        return value.upper() if isinstance(value, str) else value


@dataclass(frozen=True, slots=True)
class UpstreamFailure:
    """Terminal failure of an upstream call."""

    kind: ErrorKind
    message: str
    status_code: int | None = None
    retry_after: float | None = None


@dataclass(frozen=True, slots=True)
class UpstreamResult:
    """Outcome of :meth:`ResilientUpstreamClient.call`."""

    target: str
    attempts: int
    elapsed: float
    payload: Any = None
    status_code: int | None = None
    error: UpstreamFailure | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def state(self) -> CallState:
        return CallState.SUCCESS if self.error is None else CallState.FAILED

    @property
    def kind(self) -> ErrorKind | None:
        return self.error.kind if self.error else None

    def unwrap(self) -> Any:
        """Return the payload or raise :class:`UpstreamCallError` for a failure."""

        if self.error is not None:
            raise UpstreamCallError(self.target, self.error, attempts=self.attempts)
        return self.payload


class UpstreamCallError(Exception):
    """Exception form of an :class:`UpstreamFailure` for callers that prefer raising."""

    def __init__(self, target: str, failure: UpstreamFailure, *, attempts: int = 1) -> None:
        super().__init__(f"{target}: {failure.kind.value}: {failure.message}")
        self.target = target
        self.failure = failure
        self.attempts = attempts

    @property
    def kind(self) -> ErrorKind:
        return self.failure.kind


__all__ = [
    "CallState",
    "ErrorKind",
    "UpstreamCallError",
    "UpstreamCallSpec",
    "UpstreamFailure",
    "UpstreamResult",
]
