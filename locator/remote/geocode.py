"""Forward and reverse geocoding for a committed location choice.

Unlike the suggestion path, failures here are raised: a silent fallback
would hand the caller a wrong location rather than a shorter list.
"""
from __future__ import annotations

import structlog

from locator.errors import InvalidInput, NotFound
from locator.remote.nominatim import NominatimClient, parse_coordinates
from locator.storage.models import GeocodeResult, Suggestion

LOGGER = structlog.get_logger(__name__)


class GeocodeClient:
    def __init__(self, client: NominatimClient) -> None:
        self._client = client

    async def resolve(self, place_name: str) -> GeocodeResult:
        """Resolve free text to the provider's single best match.

        Raises `NotFound` when nothing usable comes back and
        `RemoteUnavailable` when the provider cannot be reached.
        """
        query = (place_name or "").strip()
        if not query:
            raise InvalidInput("place_name must not be empty")
        items = await self._client.search(query, limit=1)
        for item in items:
            coordinates = parse_coordinates(item)
            if coordinates is None:
                continue
            lat, lon = coordinates
            return GeocodeResult(
                latitude=lat,
                longitude=lon,
                display_name=str(item.get("display_name") or query),
            )
        self._client.session.metrics.incr("geocode_not_found")
        LOGGER.info("geocode_not_found", query=query)
        raise NotFound(query)

    async def resolve_suggestion(self, suggestion: Suggestion) -> GeocodeResult:
        """Use the suggestion's own coordinates when it has them, else geocode it."""
        if suggestion.coordinates is not None:
            lat, lon = suggestion.coordinates
            return GeocodeResult(latitude=lat, longitude=lon, display_name=suggestion.display_name)
        return await self.resolve(suggestion.display_name)

    async def reverse(self, lat: float, lon: float) -> str:
        payload = await self._client.reverse(lat, lon)
        display_name = str(payload.get("display_name") or "").strip()
        if not display_name:
            self._client.session.metrics.incr("geocode_not_found")
            raise NotFound(f"{lat},{lon}")
        return display_name
