import asyncio

import httpx
import pytest

from locator.errors import InvalidInput, RemoteUnavailable
from locator.gazetteer.catalog import Gazetteer
from locator.observability.metrics import MetricsRegistry
from locator.quality.keys import suggestion_key
from locator.remote.nominatim import NominatimClient
from locator.remote.resolver import RemoteResolver
from locator.remote.session import ProviderSession
from locator.search.hybrid import HybridSearch
from locator.storage.models import Confidence, FacilityRecord, PlaceRecord, SuggestionKind


def _facility(fid, name, *, city="", rating=None) -> FacilityRecord:
    return FacilityRecord(id=fid, name=name, city=city, coordinates=(18.5, 73.8), rating=rating)


def _search(places, handler, query, limit, facilities=()):
    async def _run():
        metrics = MetricsRegistry()
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            remote = RemoteResolver(NominatimClient(ProviderSession(client, metrics=metrics), search_url="https://places.test/search"))
            hybrid = HybridSearch(gazetteer=Gazetteer(places), remote=remote, metrics=metrics)
            return await hybrid.search(query, limit, facilities), metrics

    return asyncio.run(_run())


def _failing(request):
    return httpx.Response(503)


def test_local_results_survive_remote_failure():
    places = [
        PlaceRecord(name="Mumbai", region="Maharashtra", country="India"),
        PlaceRecord(name="Delhi", region="Delhi", country="India"),
    ]
    results, metrics = _search(places, _failing, "Mumbai", 10)
    assert len(results) == 1
    only = results[0]
    assert only.kind is SuggestionKind.PLACE
    assert only.display_name == "Mumbai, Maharashtra, India"
    assert only.confidence is Confidence.HIGH
    assert metrics.get("remote_failures") == 1
    assert metrics.get("searches") == 1


def test_facility_match_is_returned_as_facility():
    facilities = [_facility("1", "City General Hospital", city="Pune")]
    results, _ = _search([], lambda request: httpx.Response(200, json=[]), "city", 10, facilities)
    assert [(item.name, item.kind) for item in results] == [("City General Hospital", SuggestionKind.FACILITY)]
    assert results[0].facility_ref == facilities[0]


def test_merge_order_and_deduplication():
    places = [PlaceRecord(name="Pune", region="Maharashtra", country="India")]
    facilities = [_facility("1", "Pune", city="Pune"), _facility("2", "Pune Heart Institute", city="Pune", rating=4.0)]

    def handler(request):
        return httpx.Response(
            200,
            json=[
                {"display_name": "PUNE, Maharashtra, India", "lat": "18.52", "lon": "73.85"},
                {"display_name": "Pune Cantonment, Pune, India", "lat": "18.50", "lon": "73.88"},
            ],
        )

    results, metrics = _search(places, handler, "pune", 10, facilities)
    assert [(item.name, item.kind.value, item.source) for item in results] == [
        ("Pune Heart Institute", "facility", "facility"),
        ("Pune", "facility", "facility"),
        ("Pune", "place", "gazetteer"),
        ("Pune Cantonment", "place", "remote"),
    ]
    keys = [suggestion_key(item) for item in results]
    assert len(keys) == len(set(keys))
    assert metrics.get("duplicates") == 1


def test_each_source_gets_a_third_of_the_budget():
    places = [PlaceRecord(name=f"Apollo Town {i}", region="R", country="C") for i in range(5)]
    facilities = [_facility(str(i), f"Apollo Hospital {i}") for i in range(5)]
    seen = {}

    def handler(request):
        seen["limit"] = request.url.params["limit"]
        return httpx.Response(
            200,
            json=[{"display_name": f"Apollo Remote {i}, X", "lat": "1.0", "lon": "2.0"} for i in range(2)],
        )

    results, _ = _search(places, handler, "apollo", 4, facilities)
    assert seen["limit"] == "2"
    assert [item.name for item in results] == [
        "Apollo Hospital 0",
        "Apollo Hospital 1",
        "Apollo Town 0",
        "Apollo Town 1",
    ]


def test_remote_unavailable_from_custom_resolver_is_absorbed():
    class DownResolver(RemoteResolver):
        def __init__(self):
            pass

        async def resolve(self, query, limit):
            raise RemoteUnavailable("offline")

    async def _run():
        hybrid = HybridSearch(
            gazetteer=Gazetteer([PlaceRecord(name="Vapi", region="Gujarat", country="India")]),
            remote=DownResolver(),
        )
        return await hybrid.search("vapi", 3)

    results = asyncio.run(_run())
    assert [item.name for item in results] == ["Vapi"]


@pytest.mark.parametrize("limit", [0, -3, "10"])
def test_invalid_limit_fails_fast(limit):
    with pytest.raises(InvalidInput):
        _search([], _failing, "pune", limit)
