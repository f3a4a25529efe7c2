import asyncio

import httpx
import pytest

from locator.errors import InvalidInput, NotFound, RemoteUnavailable
from locator.remote.geocode import GeocodeClient
from locator.remote.nominatim import NominatimClient
from locator.remote.session import ProviderSession
from locator.storage.models import Confidence, Suggestion, SuggestionKind


def _run_with(handler, action):
    async def _run():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            session = ProviderSession(client)
            geocoder = GeocodeClient(
                NominatimClient(
                    session,
                    search_url="https://places.test/search",
                    reverse_url="https://places.test/reverse",
                )
            )
            return await action(geocoder), session.metrics

    return asyncio.run(_run())


def test_resolve_returns_best_match():
    def handler(request):
        assert request.url.params["limit"] == "1"
        return httpx.Response(
            200,
            json=[{"display_name": "Mumbai, Maharashtra, India", "lat": "19.0760", "lon": "72.8777"}],
        )

    result, _ = _run_with(handler, lambda geocoder: geocoder.resolve("Mumbai"))
    assert result.latitude == pytest.approx(19.0760)
    assert result.longitude == pytest.approx(72.8777)
    assert result.display_name == "Mumbai, Maharashtra, India"


def test_resolve_raises_not_found_on_empty_answer():
    with pytest.raises(NotFound):
        _run_with(lambda request: httpx.Response(200, json=[]), lambda geocoder: geocoder.resolve("Atlantis"))


def test_resolve_raises_remote_unavailable_on_server_error():
    with pytest.raises(RemoteUnavailable) as excinfo:
        _run_with(lambda request: httpx.Response(500), lambda geocoder: geocoder.resolve("Mumbai"))
    assert excinfo.value.reason == "HTTP 500"


def test_resolve_rejects_empty_name():
    with pytest.raises(InvalidInput):
        _run_with(lambda request: httpx.Response(200, json=[]), lambda geocoder: geocoder.resolve("  "))


def test_resolve_suggestion_uses_existing_coordinates():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(200, json=[])

    suggestion = Suggestion(
        name="Pune",
        display_name="Pune, Maharashtra, India",
        kind=SuggestionKind.PLACE,
        confidence=Confidence.HIGH,
        coordinates=(18.52, 73.85),
    )
    result, _ = _run_with(handler, lambda geocoder: geocoder.resolve_suggestion(suggestion))
    assert (result.latitude, result.longitude) == (18.52, 73.85)
    assert calls == []


def test_resolve_suggestion_geocodes_display_name():
    def handler(request):
        assert request.url.params["q"] == "Vapi, Gujarat, India"
        return httpx.Response(200, json=[{"display_name": "Vapi, Valsad, Gujarat, India", "lat": "20.37", "lon": "72.90"}])

    suggestion = Suggestion(
        name="Vapi",
        display_name="Vapi, Gujarat, India",
        kind=SuggestionKind.PLACE,
        confidence=Confidence.HIGH,
    )
    result, _ = _run_with(handler, lambda geocoder: geocoder.resolve_suggestion(suggestion))
    assert result.display_name == "Vapi, Valsad, Gujarat, India"


def test_reverse_geocode():
    def handler(request):
        if request.url.params["lat"] == "0.0":
            return httpx.Response(200, json={"error": "Unable to geocode"})
        return httpx.Response(200, json={"display_name": "Bandra West, Mumbai, India"})

    name, _ = _run_with(handler, lambda geocoder: geocoder.reverse(19.06, 72.83))
    assert name == "Bandra West, Mumbai, India"
    with pytest.raises(NotFound):
        _run_with(handler, lambda geocoder: geocoder.reverse(0.0, 0.0))
