"""Errors raised by the search service before any upstream call is made."""

from __future__ import annotations


class SearchError(Exception):
    """Base error for the search service."""


class SearchValidationError(SearchError, ValueError):
    """Raised when query parameters are missing or out of range."""


class SearchUnavailableError(SearchError):
    """Raised when the search API key is not configured."""

    def __init__(self, message: str, *, retry_after: int | None = None) -> None:
        super().__init__(message)
        self.retry_after = retry_after


__all__ = ["SearchError", "SearchUnavailableError", "SearchValidationError"]
