"""Raw calls to a Nominatim-compatible place-search provider."""
from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

from locator.errors import RemoteUnavailable
from locator.remote.session import ProviderSession

NOMINATIM_SEARCH_URL = "https://nominatim.openstreetmap.org/search"
NOMINATIM_REVERSE_URL = "https://nominatim.openstreetmap.org/reverse"


def parse_coordinates(item: Dict[str, Any]) -> Optional[Tuple[float, float]]:
    """Read the numeric-string `lat`/`lon` pair of a result, or None when unusable."""
    try:
        return float(item["lat"]), float(item["lon"])
    except (KeyError, TypeError, ValueError):
        return None


def short_name(item: Dict[str, Any]) -> str:
    """Prefer the provider's `name`, else the first part of `display_name`."""
    name = str(item.get("name") or "").strip()
    if name:
        return name
    return str(item.get("display_name") or "").split(",")[0].strip()


class NominatimClient:
    def __init__(
        self,
        session: ProviderSession,
        *,
        search_url: str = NOMINATIM_SEARCH_URL,
        reverse_url: str = NOMINATIM_REVERSE_URL,
        timeout: float = 10.0,
    ) -> None:
        self.session = session
        self.search_url = search_url
        self.reverse_url = reverse_url
        self.timeout = timeout

    async def search(self, query: str, *, limit: int) -> List[Dict[str, Any]]:
        """Free-text search. Raises `RemoteUnavailable` on any failure."""
        params = {
            "format": "json",
            "q": query,
            "limit": str(limit),
            "addressdetails": "1",
        }
        payload = await self.session.get_json(self.search_url, params=params, timeout=self.timeout)
        if not isinstance(payload, list):
            raise RemoteUnavailable("expected a JSON array", url=self.search_url)
        return [item for item in payload if isinstance(item, dict)]

    async def reverse(self, lat: float, lon: float) -> Dict[str, Any]:
        params = {"format": "json", "lat": str(lat), "lon": str(lon)}
        payload = await self.session.get_json(self.reverse_url, params=params, timeout=self.timeout)
        if not isinstance(payload, dict):
            raise RemoteUnavailable("expected a JSON object", url=self.reverse_url)
        return payload
