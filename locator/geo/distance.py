"""Great-circle distance and the nearby-facility filter built on it."""
from __future__ import annotations

import math
from typing import Iterable, List, Optional

from locator.storage.models import FacilityRecord

EARTH_RADIUS_M = 6_371_000.0


def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Return the distance in meters between two points.

    NaN and infinite inputs yield NaN. Out-of-range inputs never raise.
    """
    if not all(math.isfinite(value) for value in (lat1, lon1, lat2, lon2)):
        return math.nan
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    # differences of huge finite inputs can overflow to inf
    if not (math.isfinite(d_lat) and math.isfinite(d_lon)):
        return math.nan
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2
    )
    # rounding can push `a` just outside [0, 1]; comparisons are False for NaN
    if a > 1.0:
        a = 1.0
    elif a < 0.0:
        a = 0.0
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_M * c


def nearby_facilities(
    facilities: Iterable[FacilityRecord],
    origin_lat: float,
    origin_lon: float,
    *,
    max_distance_m: Optional[float] = None,
    facility_type: Optional[str] = None,
) -> List[FacilityRecord]:
    """Annotate facilities with their distance from the origin, filter and sort them."""
    wanted_type = None if facility_type in (None, "", "all") else facility_type.lower()
    matched: List[FacilityRecord] = []
    for facility in facilities:
        if wanted_type is not None and facility.type.lower() != wanted_type:
            continue
        distance = haversine_distance(origin_lat, origin_lon, facility.latitude, facility.longitude)
        if math.isnan(distance):
            continue
        if max_distance_m is not None and distance > max_distance_m:
            continue
        matched.append(facility.model_copy(update={"distance_meters": distance}))
    matched.sort(key=lambda item: item.distance_meters)
    return matched
