"""Substring search over a caller-supplied facility snapshot."""
from __future__ import annotations

from typing import Iterable, List

from locator.errors import ensure_limit
from locator.normalize.text import normalise
from locator.storage.models import Confidence, FacilityRecord, Suggestion, SuggestionKind


def _matches(facility: FacilityRecord, needle: str) -> bool:
    return any(
        needle in normalise(field)
        for field in (facility.name, facility.specialties_text, facility.type, facility.city)
    )


def _rank_key(facility: FacilityRecord, needle: str) -> tuple:
    name_prefix = normalise(facility.name).startswith(needle)
    return (0 if name_prefix else 1, -(facility.rating or 0.0))


def facility_display_name(facility: FacilityRecord) -> str:
    return f"{facility.name} - {facility.city or 'Hospital'}"


class FacilityIndex:
    """Stateless matcher; the facility list is passed in on every call."""

    def search(self, query: str, facilities: Iterable[FacilityRecord], limit: int) -> List[Suggestion]:
        ensure_limit(limit)
        needle = normalise(query)
        if not needle:
            return []
        matches = [facility for facility in facilities if _matches(facility, needle)]
        # sorted() is stable, so equal keys keep snapshot order
        ranked = sorted(matches, key=lambda facility: _rank_key(facility, needle))
        return [
            Suggestion(
                name=facility.name,
                display_name=facility_display_name(facility),
                kind=SuggestionKind.FACILITY,
                confidence=Confidence.HIGH,
                coordinates=facility.coordinates,
                facility_ref=facility,
                rating=facility.rating,
                distance_meters=facility.distance_meters,
                source="facility",
                place_type="hospital",
            )
            for facility in ranked[:limit]
        ]
