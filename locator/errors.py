"""Error taxonomy shared by the search, geocoding and facility layers."""
from __future__ import annotations

from typing import Optional


class LocatorError(Exception):
    """Base class for all engine errors."""


class RemoteUnavailable(LocatorError):
    """A provider could not be reached, timed out or answered badly."""

    def __init__(self, reason: str, *, url: Optional[str] = None) -> None:
        super().__init__(reason if url is None else f"{reason} ({url})")
        self.reason = reason
        self.url = url


class NotFound(LocatorError):
    """The provider answered but had no usable result."""

    def __init__(self, query: str) -> None:
        super().__init__(f"Location not found: {query!r}")
        self.query = query


class InvalidInput(LocatorError, ValueError):
    """Raised when a caller breaks an operation's contract."""


def ensure_limit(limit: object) -> int:
    """Validate a result budget, raising `InvalidInput` unless it is a positive int."""
    if isinstance(limit, bool) or not isinstance(limit, int):
        raise InvalidInput(f"limit must be an int, got {type(limit).__name__}")
    if limit <= 0:
        raise InvalidInput(f"limit must be positive, got {limit}")
    return limit
