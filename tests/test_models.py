import pytest
from pydantic import ValidationError

from locator.storage.models import Confidence, FacilityRecord, PlaceRecord, Suggestion, SuggestionKind


def test_facility_suggestion_requires_reference():
    with pytest.raises(ValidationError):
        Suggestion(name="Apollo", display_name="Apollo - Hospital", kind=SuggestionKind.FACILITY, confidence=Confidence.HIGH)

    record = FacilityRecord(id="1", name="Apollo", coordinates=(13.06, 80.25))
    with pytest.raises(ValidationError):
        Suggestion(
            name="Apollo",
            display_name="Apollo",
            kind=SuggestionKind.PLACE,
            confidence=Confidence.HIGH,
            facility_ref=record,
        )


def test_place_record_display_and_validation():
    place = PlaceRecord(name="Vapi", region="Gujarat", country="India")
    assert place.display_name == "Vapi, Gujarat, India"
    with pytest.raises(ValidationError):
        PlaceRecord(name="", region="Gujarat", country="India")


def test_records_are_immutable():
    record = FacilityRecord(id="1", name="Apollo", coordinates=(13.06, 80.25))
    assert (record.latitude, record.longitude) == (13.06, 80.25)
    with pytest.raises(ValidationError):
        record.name = "Other"
