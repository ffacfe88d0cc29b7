"""Outbound HTTP calls with per-attempt timeouts, bounded retries and error classification."""

from __future__ import annotations

import asyncio
import json
import logging
import time
from collections.abc import Awaitable, Callable, Mapping
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any

import httpx

from .config import UpstreamConfig
from .redaction import redact_params, redact_text, redact_url
from .schemas import CallState, ErrorKind, UpstreamCallSpec, UpstreamFailure, UpstreamResult

Clock = Callable[[], float]
Sleep = Callable[[float], Awaitable[None]]

_RETRYABLE_TRANSPORT_ERRORS: tuple[type[Exception], ...] = (
    httpx.NetworkError,
    httpx.RemoteProtocolError,
)


def parse_retry_after(value: str | None, *, now: datetime | None = None) -> float | None:
    """Parse a ``Retry-After`` header given as seconds or as an HTTP date."""

    if not value:
        return None
    value = value.strip()
    try:
        seconds = float(value)
    except ValueError:
        try:
            when = parsedate_to_datetime(value)
        except (TypeError, ValueError):
            return None
        if when.tzinfo is None:
            when = when.replace(tzinfo=timezone.utc)
        seconds = (when - (now or datetime.now(timezone.utc))).total_seconds()
    return max(0.0, seconds)


def classify_status(status_code: int) -> ErrorKind:
    """Map an upstream HTTP error status to an :class:`ErrorKind`."""

    if status_code == httpx.codes.TOO_MANY_REQUESTS:
        return ErrorKind.RATE_LIMITED
    if 400 <= status_code < 500:
        return ErrorKind.CLIENT_REJECTED
    if 500 <= status_code < 600:
        return ErrorKind.SERVER_UNAVAILABLE
    return ErrorKind.UNKNOWN


class ResilientUpstreamClient:
    """Performs single upstream calls and reports failures as typed results."""

    def __init__(
        self,
        config: UpstreamConfig | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        clock: Clock = time.monotonic,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.config: UpstreamConfig = config or UpstreamConfig()
        self._transport = transport
        self._clock = clock
        self._sleep = sleep
        self._clients: dict[bool, httpx.AsyncClient] = {}
        self._client_lock: asyncio.Lock = asyncio.Lock()
        self._logger: logging.Logger = logging.getLogger(__name__)

    async def close(self) -> None:
        """Close every underlying HTTP client."""

        clients, self._clients = self._clients, {}
        for client in clients.values():
            await client.aclose()

    async def call(self, spec: UpstreamCallSpec) -> UpstreamResult:
        """Run ``spec`` until it succeeds, fails terminally or exhausts its attempts."""

        timeout = spec.timeout or self.config.default_timeout
        max_attempts = spec.max_attempts or self.config.default_max_attempts
        retry_delay = (
            spec.retry_delay if spec.retry_delay is not None else self.config.default_retry_delay
        )
        context = self._log_context(spec)
        if not spec.verify_tls:
            self._logger.warning(
                "TLS certificate verification disabled for upstream target",
                extra=context,
            )

        started = self._clock()
        attempt = 0
        while True:
            attempt += 1
            self._log_state(CallState.PENDING, context, attempt)
            try:
                response = await asyncio.wait_for(self._send(spec, timeout), timeout=timeout)
                response.raise_for_status()
                payload = self._decode(response, spec)
            except (asyncio.TimeoutError, httpx.TimeoutException):
                failure = UpstreamFailure(
                    kind=ErrorKind.TIMEOUT,
                    message=f"Upstream '{spec.target}' did not respond within {timeout:g}s",
                )
                retryable = True
            except httpx.HTTPStatusError as exc:
                failure = self._status_failure(spec, exc.response)
                retryable = False
            except _RETRYABLE_TRANSPORT_ERRORS:
                failure = UpstreamFailure(
                    kind=ErrorKind.SERVER_UNAVAILABLE,
                    message=f"Upstream '{spec.target}' could not be reached",
                )
                retryable = True
            except httpx.HTTPError as exc:
                failure = UpstreamFailure(
                    kind=ErrorKind.UNKNOWN,
                    message=f"Upstream '{spec.target}' request failed ({type(exc).__name__})",
                )
                retryable = False
            except (json.JSONDecodeError, UnicodeDecodeError):
                failure = UpstreamFailure(
                    kind=ErrorKind.UNKNOWN,
                    message=f"Upstream '{spec.target}' returned a malformed response body",
                    status_code=response.status_code,
                )
                retryable = False
            else:
                self._log_state(CallState.SUCCESS, context, attempt)
                return UpstreamResult(
                    target=spec.target,
                    attempts=attempt,
                    elapsed=self._clock() - started,
                    payload=payload,
                    status_code=response.status_code,
                )

            if retryable and attempt < max_attempts:
                self._logger.warning(
                    "Upstream attempt %d/%d failed (%s), retrying in %.2fs",
                    attempt,
                    max_attempts,
                    failure.kind.value,
                    retry_delay,
                    extra=context,
                )
                self._log_state(CallState.RETRY_WAIT, context, attempt)
                await self._sleep(retry_delay)
                continue

            self._logger.error(
                "Upstream call failed: %s",
                redact_text(failure.message, spec.secret_values),
                extra={
                    "upstream_call": {
                        **context["upstream_call"],
                        "kind": failure.kind.value,
                        "status_code": failure.status_code,
                        "attempts": attempt,
                    }
                },
            )
            self._log_state(CallState.FAILED, context, attempt)
            return UpstreamResult(
                target=spec.target,
                attempts=attempt,
                elapsed=self._clock() - started,
                status_code=failure.status_code,
                error=failure,
            )

    async def _send(self, spec: UpstreamCallSpec, timeout: float) -> httpx.Response:
        client = await self._get_client(spec.verify_tls)
        return await client.request(
            spec.method,
            spec.url,
            params=spec.params,
            headers=spec.headers,
            json=spec.json_body,
            timeout=timeout,
        )

    async def _get_client(self, verify: bool) -> httpx.AsyncClient:
        client = self._clients.get(verify)
        if client is None:
            async with self._client_lock:
                client = self._clients.get(verify)
                if client is None:
                    client = httpx.AsyncClient(
                        verify=verify,
                        follow_redirects=True,
                        max_redirects=self.config.max_redirects,
                        headers={
                            "Accept": "application/json",
                            "User-Agent": self.config.user_agent,
                        },
                        transport=self._transport,
                    )
                    self._clients[verify] = client
        return client

    def _decode(self, response: httpx.Response, spec: UpstreamCallSpec) -> Any:
        if not spec.expect_json:
            return response.content
        if not response.content:
            return None
        return response.json()

    def _status_failure(self, spec: UpstreamCallSpec, response: httpx.Response) -> UpstreamFailure:
        status = response.status_code
        kind = classify_status(status)
        retry_after = None
        if kind is ErrorKind.RATE_LIMITED:
            retry_after = parse_retry_after(response.headers.get("Retry-After"))
            if retry_after is not None:
                retry_after = min(retry_after, self.config.max_retry_after)
        # Upstream bodies never go into failure messages.
        return UpstreamFailure(
            kind=kind,
            message=f"Upstream '{spec.target}' responded with HTTP {status}",
            status_code=status,
            retry_after=retry_after,
        )

    def _log_state(self, state: CallState, context: Mapping[str, Any], attempt: int) -> None:
        self._logger.debug(
            "Upstream call %s",
            state.value,
            extra={"upstream_call": {**context["upstream_call"], "attempt": attempt}},
        )

    def _log_context(self, spec: UpstreamCallSpec) -> dict[str, dict[str, Any]]:
        return {
            "upstream_call": {
                "target": spec.target,
                "method": spec.method,
                "url": redact_url(spec.url, spec.secret_values),
                "params": redact_params(spec.params, spec.secret_values),
                "verify_tls": spec.verify_tls,
            }
        }


__all__ = [
    "ResilientUpstreamClient",
    "classify_status",
    "parse_retry_after",
]
