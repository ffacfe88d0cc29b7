"""Masking helpers applied before upstream details reach a log record."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Final
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

REDACTED: Final[str] = "[REDACTED]"

SENSITIVE_PARAMS: Final[frozenset[str]] = frozenset(
    {
        "access_token",
        "api_key",
        "apikey",
        "key",
        "password",
        "secret",
        "signature",
        "token",
    }
)


def redact_text(text: str, secrets: Iterable[str]) -> str:
    """Replace every occurrence of each secret value in ``text``."""

    for secret in sorted({s for s in secrets if s}, key=len, reverse=True):
        text = text.replace(secret, REDACTED)
    return text


def redact_url(url: str, secrets: Iterable[str] = ()) -> str:
    """Mask sensitive query parameters and any known secret values in ``url``."""

    parts = urlsplit(url)
    if parts.query:
        query = [
            (name, REDACTED if name.lower() in SENSITIVE_PARAMS else value)
            for name, value in parse_qsl(parts.query, keep_blank_values=True)
        ]
        parts = parts._replace(query=urlencode(query, safe="[]"))
    if parts.password:
        netloc = parts.netloc.replace(f":{parts.password}@", f":{REDACTED}@")
        parts = parts._replace(netloc=netloc)
    return redact_text(urlunsplit(parts), secrets)


def redact_params(
    params: Mapping[str, str | list[str]] | None, secrets: Iterable[str] = ()
) -> dict[str, str | list[str]]:
    """Return a copy of ``params`` that is safe to log."""

    if not params:
        return {}
    secret_set = {s for s in secrets if s}
    redacted: dict[str, str | list[str]] = {}
    for name, value in params.items():
        if name.lower() in SENSITIVE_PARAMS:
            redacted[name] = REDACTED
        elif isinstance(value, list):
            redacted[name] = [REDACTED if item in secret_set else item for item in value]
        else:
            redacted[name] = REDACTED if value in secret_set else value
    return redacted


__all__ = [
    "REDACTED",
    "SENSITIVE_PARAMS",
    "redact_params",
    "redact_text",
    "redact_url",
]
