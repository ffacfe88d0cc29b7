"""Resilient outbound calls to third-party HTTP services."""

from .client import ResilientUpstreamClient, classify_status, parse_retry_after
from .config import UpstreamConfig
from .redaction import REDACTED, redact_params, redact_text, redact_url
from .schemas import (
    CallState,
    ErrorKind,
    UpstreamCallError,
    UpstreamCallSpec,
    UpstreamFailure,
    UpstreamResult,
)

__all__ = [
    "CallState",
    "ErrorKind",
    "REDACTED",
    "ResilientUpstreamClient",
    "UpstreamCallError",
    "UpstreamCallSpec",
    "UpstreamConfig",
    "UpstreamFailure",
    "UpstreamResult",
    "classify_status",
    "parse_retry_after",
    "redact_params",
    "redact_text",
    "redact_url",
]
