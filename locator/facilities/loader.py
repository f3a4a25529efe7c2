"""Loads facility snapshots for an area, with the named fallback table."""
from __future__ import annotations

import re
from typing import Any, Dict, List, Optional

import structlog

from locator.errors import RemoteUnavailable, ensure_limit
from locator.facilities.fallback import FallbackTable
from locator.facilities.overpass import OverpassClient
from locator.remote.nominatim import NominatimClient, parse_coordinates
from locator.storage.models import FacilityRecord

LOGGER = structlog.get_logger(__name__)

DEFAULT_RADIUS_M = 25_000.0


def extract_hospital_name(display_name: str) -> str:
    name = display_name.split(",")[0].strip()
    name = re.sub(r"^Hospital\s+", "", name, flags=re.IGNORECASE)
    name = re.sub(r"\s+Hospital$", " Hospital", name, flags=re.IGNORECASE)
    return name or "Hospital"


def _record_from_place(item: Dict[str, Any], index: int) -> Optional[FacilityRecord]:
    coordinates = parse_coordinates(item)
    display_name = str(item.get("display_name") or "")
    if coordinates is None or not display_name:
        return None
    address = item.get("address")
    if not isinstance(address, dict):
        address = {}
    city = str(address.get("city") or address.get("town") or address.get("village") or "")
    parts = [address.get("road"), city, address.get("state") or address.get("province"), address.get("postcode"), address.get("country")]
    return FacilityRecord(
        id=f"nominatim_{item.get('place_id', index)}",
        name=extract_hospital_name(display_name),
        type="general",
        specialties_text="general medicine",
        city=city,
        coordinates=coordinates,
        address=", ".join(str(part) for part in parts if part),
        source="nominatim",
    )


class FacilityLoader:
    """Produces the facility snapshot the caller later hands to searches."""

    def __init__(
        self,
        overpass: OverpassClient,
        fallback: FallbackTable,
        nominatim: Optional[NominatimClient] = None,
        *,
        default_radius_m: float = DEFAULT_RADIUS_M,
    ) -> None:
        self._overpass = overpass
        self._fallback = fallback
        self._nominatim = nominatim
        self.default_radius_m = default_radius_m

    async def load_area(
        self,
        lat: float,
        lon: float,
        radius_m: Optional[float] = None,
        *,
        city: Optional[str] = None,
    ) -> List[FacilityRecord]:
        """Live hospitals around a point; the fallback table is used only when that is empty."""
        radius = self.default_radius_m if radius_m is None else radius_m
        records = await self._overpass.fetch_hospitals(lat, lon, radius)
        if records:
            return records
        if city and city in self._fallback:
            fallback = self._fallback.facilities_for(city)
            self._overpass.session.metrics.incr("fallback_used")
            LOGGER.info("facility_fallback_used", city=city, count=len(fallback))
            return fallback
        return []

    async def search_by_place(self, place_name: str, limit: int = 50) -> List[FacilityRecord]:
        """Look up hospitals by place name through the place-search provider."""
        ensure_limit(limit)
        if self._nominatim is None or not place_name.strip():
            return []
        try:
            items = await self._nominatim.search(f"hospital in {place_name.strip()}", limit=limit)
        except RemoteUnavailable as exc:
            self._nominatim.session.metrics.incr("facility_fetch_failures")
            LOGGER.warning("facility_place_search_failed", place=place_name, reason=exc.reason)
            return []
        records: List[FacilityRecord] = []
        for index, item in enumerate(items):
            if item.get("class") != "amenity" or item.get("type") != "hospital":
                continue
            record = _record_from_place(item, index)
            if record is not None:
                records.append(record)
        return records
