"""Exception types raised outside the correlation engine."""

from __future__ import annotations

from typing import Any


class CustlinkError(Exception):
    """Base class for custlink errors."""


class InvalidQueryError(CustlinkError):
    """The search query failed validation."""


class SearchError(CustlinkError):
    """A search could not be completed. The message is safe to show to users."""


class SearchTimeoutError(SearchError):
    """The search exceeded its wall-clock budget."""


class SourceError(CustlinkError):
    """An upstream CRM or payments API call failed."""

    def __init__(
        self,
        message: str,
        status_code: int = 0,
        provider: str | None = None,
        details: Any = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.provider = provider
        self.details = details


class AuthenticationError(SourceError):
    """No usable credential for a provider, or the provider rejected it."""
