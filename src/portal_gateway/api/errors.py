"""Translation of service and upstream failures into structured HTTP error bodies."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Final

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from ..atlas import AtlasUnavailableError
from ..inference import UnknownModelError
from ..search import SearchUnavailableError, SearchValidationError
from ..secrets import SecretFetchError, SecretsConfigError
from ..upstream import ErrorKind, UpstreamCallError, UpstreamFailure

logger = logging.getLogger(__name__)

DEFAULT_RETRY_AFTER: Final[dict[ErrorKind, int]] = {
    ErrorKind.TIMEOUT: 60,
    ErrorKind.RATE_LIMITED: 60,
}

KIND_MESSAGES: Final[dict[ErrorKind, str]] = {
    ErrorKind.TIMEOUT: "Request timeout - please try again",
    ErrorKind.RATE_LIMITED: "Rate limit exceeded - please wait before trying again",
    ErrorKind.CLIENT_REJECTED: "External service rejected the request",
    ErrorKind.SERVER_UNAVAILABLE: "External service unavailable",
    ErrorKind.UNKNOWN: "Internal server error",
}

SECRETS_RETRY_AFTER: Final[int] = 30


def status_for_failure(failure: UpstreamFailure) -> int:
    """HTTP status returned to our caller for a terminal upstream failure."""

    if failure.kind is ErrorKind.TIMEOUT:
        return status.HTTP_504_GATEWAY_TIMEOUT
    if failure.kind is ErrorKind.RATE_LIMITED:
        return status.HTTP_429_TOO_MANY_REQUESTS
    if failure.kind is ErrorKind.CLIENT_REJECTED:
        return status.HTTP_502_BAD_GATEWAY
    if failure.kind is ErrorKind.SERVER_UNAVAILABLE:
        # Upstream answered with a 5xx: bad gateway. Never answered: unavailable.
        if failure.status_code is not None:
            return status.HTTP_502_BAD_GATEWAY
        return status.HTTP_503_SERVICE_UNAVAILABLE
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def retry_after_for_failure(failure: UpstreamFailure) -> int | None:
    if failure.retry_after is not None:
        return max(1, round(failure.retry_after))
    return DEFAULT_RETRY_AFTER.get(failure.kind)


def error_response(
    status_code: int,
    kind: str,
    message: str,
    *,
    retry_after: int | None = None,
) -> JSONResponse:
    """Render the structured error body shared by every endpoint."""

    headers = {"Retry-After": str(retry_after)} if retry_after is not None else None
    return JSONResponse(
        status_code=status_code,
        content={
            "error": {"kind": kind, "message": message, "retry_after": retry_after},
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
        headers=headers,
    )


async def _upstream_error_handler(request: Request, exc: UpstreamCallError) -> JSONResponse:
    failure = exc.failure
    logger.warning(
        "Upstream failure returned to caller",
        extra={
            "upstream_call": {
                "target": exc.target,
                "kind": failure.kind.value,
                "status_code": failure.status_code,
                "attempts": exc.attempts,
                "path": request.url.path,
            }
        },
    )
    return error_response(
        status_for_failure(failure),
        failure.kind.value,
        KIND_MESSAGES[failure.kind],
        retry_after=retry_after_for_failure(failure),
    )


async def _secret_fetch_error_handler(request: Request, exc: SecretFetchError) -> JSONResponse:
    logger.error("Secrets unavailable for %s: %s", request.url.path, exc)
    return error_response(
        status.HTTP_503_SERVICE_UNAVAILABLE,
        "secrets_unavailable",
        "Service configuration could not be loaded",
        retry_after=SECRETS_RETRY_AFTER,
    )


async def _secrets_config_error_handler(request: Request, exc: SecretsConfigError) -> JSONResponse:
    logger.error("Secrets misconfigured for %s: %s", request.url.path, exc)
    return error_response(
        status.HTTP_503_SERVICE_UNAVAILABLE,
        "secrets_misconfigured",
        "Service configuration is incomplete",
    )


async def _search_unavailable_handler(
    request: Request, exc: SearchUnavailableError
) -> JSONResponse:
    return error_response(
        status.HTTP_503_SERVICE_UNAVAILABLE,
        "service_unavailable",
        str(exc),
        retry_after=exc.retry_after,
    )


async def _atlas_unavailable_handler(
    request: Request, exc: AtlasUnavailableError
) -> JSONResponse:
    logger.warning("Image atlas unavailable for %s: %s", request.url.path, exc)
    return error_response(
        status.HTTP_503_SERVICE_UNAVAILABLE,
        "service_unavailable",
        str(exc),
        retry_after=exc.retry_after,
    )


async def _search_validation_handler(
    request: Request, exc: SearchValidationError
) -> JSONResponse:
    return error_response(status.HTTP_400_BAD_REQUEST, "invalid_request", str(exc))


async def _unknown_model_handler(
    request: Request, exc: UnknownModelError
) -> JSONResponse:
    return error_response(status.HTTP_404_NOT_FOUND, "not_found", str(exc))


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(UpstreamCallError, _upstream_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(SecretFetchError, _secret_fetch_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(SecretsConfigError, _secrets_config_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(SearchUnavailableError, _search_unavailable_handler)  # type: ignore[arg-type]
    app.add_exception_handler(AtlasUnavailableError, _atlas_unavailable_handler)  # type: ignore[arg-type]
    app.add_exception_handler(SearchValidationError, _search_validation_handler)  # type: ignore[arg-type]
    app.add_exception_handler(UnknownModelError, _unknown_model_handler)  # type: ignore[arg-type]


__all__ = [
    "DEFAULT_RETRY_AFTER",
    "KIND_MESSAGES",
    "error_response",
    "register_exception_handlers",
    "retry_after_for_failure",
    "status_for_failure",
]
