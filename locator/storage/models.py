"""Pydantic models for places, facilities and search suggestions."""
from __future__ import annotations

from enum import Enum
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator

Coordinates = Tuple[float, float]


class SuggestionKind(str, Enum):
    PLACE = "place"
    FACILITY = "facility"


class Confidence(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"


class PlaceRecord(BaseModel):
    """A gazetteer entry. Identity is the name only; duplicates are allowed."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    region: str = Field(min_length=1)
    country: str = Field(min_length=1)

    @property
    def display_name(self) -> str:
        return f"{self.name}, {self.region}, {self.country}"


class FacilityRecord(BaseModel):
    """A facility as supplied by the caller or fetched from the map-data provider."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str = Field(min_length=1)
    type: str = "general"
    specialties_text: str = ""
    city: str = ""
    coordinates: Coordinates
    rating: Optional[float] = None
    distance_meters: Optional[float] = None
    address: str = ""
    phone: str = ""
    website: str = ""
    emergency: bool = False
    source: str = "caller"

    @property
    def latitude(self) -> float:
        return self.coordinates[0]

    @property
    def longitude(self) -> float:
        return self.coordinates[1]


class Suggestion(BaseModel):
    """One ranked candidate returned by a search."""

    model_config = ConfigDict(frozen=True)

    name: str
    display_name: str
    kind: SuggestionKind
    confidence: Confidence
    coordinates: Optional[Coordinates] = None
    facility_ref: Optional[FacilityRecord] = None
    rating: Optional[float] = None
    distance_meters: Optional[float] = None
    source: str = ""
    place_type: str = ""

    @model_validator(mode="after")
    def _check_facility_ref(self) -> "Suggestion":
        if self.kind is SuggestionKind.FACILITY and self.facility_ref is None:
            raise ValueError("facility suggestions must carry facility_ref")
        if self.kind is SuggestionKind.PLACE and self.facility_ref is not None:
            raise ValueError("place suggestions must not carry facility_ref")
        return self


class GeocodeResult(BaseModel):
    """Coordinates resolved for a committed location choice."""

    model_config = ConfigDict(frozen=True)

    latitude: float
    longitude: float
    display_name: str
