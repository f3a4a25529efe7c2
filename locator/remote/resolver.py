"""Remote place suggestions backed by the place-search provider."""
from __future__ import annotations

from typing import List

import structlog

from locator.errors import RemoteUnavailable, ensure_limit
from locator.normalize.text import is_searchable
from locator.remote.nominatim import NominatimClient, parse_coordinates, short_name
from locator.storage.models import Confidence, Suggestion, SuggestionKind

LOGGER = structlog.get_logger(__name__)


class RemoteResolver:
    """Turns free text into geocoded place suggestions; failures give no suggestions."""

    def __init__(self, client: NominatimClient) -> None:
        self._client = client

    async def resolve(self, query: str, limit: int) -> List[Suggestion]:
        ensure_limit(limit)
        if not is_searchable(query):
            return []
        try:
            items = await self._client.search(query.strip(), limit=limit)
        except RemoteUnavailable as exc:
            self._client.session.metrics.incr("remote_failures")
            LOGGER.warning("remote_resolve_failed", query=query, reason=exc.reason)
            return []

        suggestions: List[Suggestion] = []
        for item in items[:limit]:
            coordinates = parse_coordinates(item)
            display_name = str(item.get("display_name") or "").strip()
            name = short_name(item)
            if coordinates is None or not display_name or not name:
                continue
            suggestions.append(
                Suggestion(
                    name=name,
                    display_name=display_name,
                    kind=SuggestionKind.PLACE,
                    confidence=Confidence.HIGH,
                    coordinates=coordinates,
                    source="remote",
                    place_type=str(item.get("type") or "place"),
                )
            )
        return suggestions
