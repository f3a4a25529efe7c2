"""Static place catalog loaded once at startup and matched by name."""
from __future__ import annotations

import csv
from pathlib import Path
from typing import Iterable, List, Sequence, Tuple

from pydantic import ValidationError

from locator.errors import ensure_limit
from locator.normalize.text import is_searchable, normalise
from locator.storage.models import Confidence, PlaceRecord, Suggestion, SuggestionKind


def _prepare_row(row: dict[str, str]) -> dict[str, str]:
    return {key.strip(): (value or "").strip() for key, value in row.items() if key}


def load_places(csv_path: Path) -> List[PlaceRecord]:
    """Load the gazetteer CSV (`name,region,country`), validating each row."""
    places: List[PlaceRecord] = []
    with csv_path.open("r", encoding="utf-8", newline="") as handle:
        reader = csv.DictReader(handle)
        for line_no, raw in enumerate(reader, start=2):
            if not raw or not any((value or "").strip() for value in raw.values()):
                continue
            prepared = _prepare_row(raw)
            try:
                places.append(PlaceRecord(**prepared))
            except ValidationError as exc:
                raise ValueError(f"Invalid gazetteer row {line_no} in {csv_path}: {exc}") from exc
    return places


class Gazetteer:
    """Read-only catalog of known places."""

    def __init__(self, places: Iterable[PlaceRecord]) -> None:
        self._entries: Tuple[Tuple[str, PlaceRecord], ...] = tuple(
            (normalise(place.name), place) for place in places
        )

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def places(self) -> Sequence[PlaceRecord]:
        return tuple(place for _, place in self._entries)

    def lookup(self, query: str, limit: int) -> List[Suggestion]:
        """Return prefix matches (high confidence) ahead of substring matches (medium)."""
        ensure_limit(limit)
        if not is_searchable(query):
            return []
        needle = normalise(query)
        prefix: List[PlaceRecord] = []
        contains: List[PlaceRecord] = []
        for name, place in self._entries:
            if name.startswith(needle):
                prefix.append(place)
            elif needle in name:
                contains.append(place)

        results: List[Suggestion] = []
        for bucket, confidence in ((prefix, Confidence.HIGH), (contains, Confidence.MEDIUM)):
            for place in bucket:
                if len(results) >= limit:
                    return results
                results.append(
                    Suggestion(
                        name=place.name,
                        display_name=place.display_name,
                        kind=SuggestionKind.PLACE,
                        confidence=confidence,
                        source="gazetteer",
                        place_type="city",
                    )
                )
        return results
