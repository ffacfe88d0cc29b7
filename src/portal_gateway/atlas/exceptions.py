"""Errors raised by the image atlas before any upstream call is made."""

from __future__ import annotations


class AtlasError(Exception):
    """Base error for the image atlas."""


class AtlasUnavailableError(AtlasError):
    """Raised when the Airtable credentials are not configured."""

    def __init__(self, message: str, *, retry_after: int | None = None) -> None:
        super().__init__(message)
        self.retry_after = retry_after


__all__ = ["AtlasError", "AtlasUnavailableError"]
