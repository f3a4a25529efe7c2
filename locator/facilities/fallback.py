"""Named fallback table of known facilities per city."""
from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Mapping, Sequence

import yaml
from pydantic import BaseModel, Field, ValidationError

from locator.storage.models import FacilityRecord


class FallbackEntry(BaseModel):
    name: str = Field(min_length=1)
    lat: float = Field(ge=-90, le=90)
    lon: float = Field(ge=-180, le=180)
    type: str = "general"
    specialties: str = "general medicine"
    country: str = ""


class FallbackTable:
    """Facilities served only when a live area fetch returns nothing."""

    def __init__(self, table: Mapping[str, Sequence[FallbackEntry]]) -> None:
        self._table: Dict[str, List[FallbackEntry]] = {
            city.strip().lower(): list(entries) for city, entries in table.items()
        }

    def __contains__(self, city: object) -> bool:
        return isinstance(city, str) and city.strip().lower() in self._table

    def facilities_for(self, city: str) -> List[FacilityRecord]:
        entries = self._table.get(city.strip().lower(), [])
        return [
            FacilityRecord(
                id=f"fallback_{city.strip().lower().replace(' ', '_')}_{index}",
                name=entry.name,
                type=entry.type,
                specialties_text=entry.specialties,
                city=city.strip(),
                coordinates=(entry.lat, entry.lon),
                address=", ".join(part for part in (city.strip(), entry.country) if part),
                source="fallback",
            )
            for index, entry in enumerate(entries)
        ]


def load_fallback_table(path: Path) -> FallbackTable:
    """Read a YAML mapping of city name to a list of `{name, lat, lon}` entries."""
    if not path.exists():
        return FallbackTable({})
    data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Fallback table {path} must be a mapping of city to facilities")
    table: Dict[str, List[FallbackEntry]] = {}
    for city, rows in data.items():
        try:
            table[str(city)] = [FallbackEntry(**row) for row in rows or []]
        except (TypeError, ValidationError) as exc:
            raise ValueError(f"Invalid fallback entry for {city} in {path}: {exc}") from exc
    return FallbackTable(table)
