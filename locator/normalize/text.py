"""Query and name normalisation used by every matcher."""
from __future__ import annotations

from typing import Optional

MIN_QUERY_LENGTH = 2


def normalise(text: Optional[str]) -> str:
    """Lower-case, trim and collapse inner whitespace."""
    if not text:
        return ""
    return " ".join(text.lower().split())


def is_searchable(query: str) -> bool:
    """Return True when the normalised query is long enough to search places."""
    return len(normalise(query)) >= MIN_QUERY_LENGTH
