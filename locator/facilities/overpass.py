"""Hospital area fetch from the OpenStreetMap Overpass API."""
from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

import structlog

from locator.errors import RemoteUnavailable
from locator.remote.session import ProviderSession
from locator.storage.models import FacilityRecord

LOGGER = structlog.get_logger(__name__)

OVERPASS_API_URL = "https://overpass-api.de/api/interpreter"
DEFAULT_TIMEOUT_SECONDS = 25.0


def build_hospital_query(lat: float, lon: float, radius_m: float, *, timeout: int = 25) -> str:
    around = f"(around:{int(radius_m)},{lat},{lon})"
    return (
        f"[out:json][timeout:{timeout}];\n"
        "(\n"
        f'  node["amenity"="hospital"]{around};\n'
        f'  way["amenity"="hospital"]{around};\n'
        f'  relation["amenity"="hospital"]{around};\n'
        ");\n"
        "out center meta;\n"
    )


def determine_type(tags: Dict[str, str]) -> str:
    if tags.get("emergency") == "yes":
        return "emergency"
    speciality = str(tags.get("healthcare:speciality") or "").lower()
    if speciality:
        if "emergency" in speciality:
            return "emergency"
        if "general" in speciality:
            return "general"
        return "specialty"
    return "general"


def extract_specialties(tags: Dict[str, str]) -> str:
    specialties: List[str] = []
    if tags.get("emergency") == "yes":
        specialties.append("emergency")
    if tags.get("healthcare:speciality"):
        specialties.append(str(tags["healthcare:speciality"]))
    if tags.get("medical"):
        specialties.append(str(tags["medical"]))
    return " ".join(specialties) if specialties else "general medicine"


def _coordinates(element: Dict[str, Any]) -> Optional[Tuple[float, float]]:
    source = element if "lat" in element and "lon" in element else element.get("center") or {}
    try:
        return float(source["lat"]), float(source["lon"])
    except (KeyError, TypeError, ValueError):
        return None


def _address(tags: Dict[str, str]) -> str:
    parts = [str(tags.get(key) or "") for key in ("addr:street", "addr:city", "addr:state", "addr:postcode", "addr:country")]
    return ", ".join(part for part in parts if part)


def parse_elements(payload: Dict[str, Any]) -> List[FacilityRecord]:
    """Convert an Overpass `elements` document into facility records."""
    records: List[FacilityRecord] = []
    elements = payload.get("elements") or []
    if not isinstance(elements, list):
        return records
    for index, element in enumerate(elements):
        if not isinstance(element, dict):
            continue
        tags = element.get("tags") or {}
        if not isinstance(tags, dict):
            continue
        name = str(tags.get("name") or "").strip()
        if not name:
            continue
        coordinates = _coordinates(element)
        if coordinates is None or coordinates == (0.0, 0.0):
            continue
        records.append(
            FacilityRecord(
                id=f"osm_{element.get('id', index)}",
                name=name,
                type=determine_type(tags),
                specialties_text=extract_specialties(tags),
                city=str(tags.get("addr:city") or ""),
                coordinates=coordinates,
                address=_address(tags),
                phone=str(tags.get("phone") or tags.get("contact:phone") or ""),
                website=str(tags.get("website") or tags.get("contact:website") or ""),
                emergency=tags.get("emergency") == "yes" or tags.get("healthcare:speciality") == "emergency",
                source="openstreetmap",
            )
        )
    return records


class OverpassClient:
    def __init__(
        self,
        session: ProviderSession,
        *,
        url: str = OVERPASS_API_URL,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        self.session = session
        self.url = url
        self.timeout = timeout

    async def fetch_hospitals(self, lat: float, lon: float, radius_m: float) -> List[FacilityRecord]:
        """Fetch hospitals around a point; provider failures give an empty list."""
        body = build_hospital_query(lat, lon, radius_m, timeout=int(self.timeout))
        try:
            payload = await self.session.post_json(
                self.url,
                content=body,
                timeout=self.timeout,
                headers={"Content-Type": "text/plain"},
            )
        except RemoteUnavailable as exc:
            self.session.metrics.incr("facility_fetch_failures")
            LOGGER.warning("facility_fetch_failed", lat=lat, lon=lon, reason=exc.reason)
            return []
        if not isinstance(payload, dict):
            self.session.metrics.incr("facility_fetch_failures")
            LOGGER.warning("facility_fetch_malformed", lat=lat, lon=lon)
            return []
        records = parse_elements(payload)
        LOGGER.info("facility_fetch", lat=lat, lon=lon, radius_m=radius_m, count=len(records))
        return records
