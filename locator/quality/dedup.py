"""Deduplication of merged suggestion lists."""
from __future__ import annotations

from typing import Iterable, List, Set, Tuple

from locator.quality.keys import suggestion_key
from locator.storage.models import Suggestion


class SuggestionDeduplicator:
    """Keeps track of seen suggestions; the first occurrence of a key wins."""

    def __init__(self) -> None:
        self._seen: Set[Tuple[str, str]] = set()
        self.dropped = 0

    def is_duplicate(self, suggestion: Suggestion) -> bool:
        return suggestion_key(suggestion) in self._seen

    def remember(self, suggestion: Suggestion) -> None:
        self._seen.add(suggestion_key(suggestion))

    def unique(self, suggestions: Iterable[Suggestion], *, limit: int) -> List[Suggestion]:
        """Filter an ordered stream down to at most `limit` unseen suggestions."""
        kept: List[Suggestion] = []
        for suggestion in suggestions:
            if len(kept) >= limit:
                break
            if self.is_duplicate(suggestion):
                self.dropped += 1
                continue
            self.remember(suggestion)
            kept.append(suggestion)
        return kept
