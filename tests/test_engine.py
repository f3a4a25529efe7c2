import asyncio

import httpx
import pytest

from locator.engine import open_engine
from locator.errors import InvalidInput, NotFound
from locator.storage.models import SuggestionKind


def _config(tmp_path):
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    (config_dir / "gazetteer.csv").write_text(
        "name,region,country\nMumbai,Maharashtra,India\nNavi Mumbai,Maharashtra,India\nPune,Maharashtra,India\n",
        encoding="utf-8",
    )
    (config_dir / "fallback_facilities.yaml").write_text(
        "Pune:\n  - name: Ruby Hall Clinic\n    lat: 18.5336\n    lon: 73.8773\n    country: India\n",
        encoding="utf-8",
    )
    settings = config_dir / "settings.toml"
    settings.write_text(
        """
[provider]
search_url = "https://places.test/search"
reverse_url = "https://places.test/reverse"
user_agent = "locator-tests/1.0"

[facilities]
overpass_url = "https://overpass.test/api/interpreter"

[search]
default_limit = 6
debounce_ms = 20
""",
        encoding="utf-8",
    )
    return settings


def _handler(request: httpx.Request) -> httpx.Response:
    assert request.headers["user-agent"] == "locator-tests/1.0"
    if request.url.host == "overpass.test":
        if "18.5" in request.content.decode():
            return httpx.Response(200, json={"elements": []})
        return httpx.Response(
            200,
            json={
                "elements": [
                    {"id": 1, "lat": 19.0176, "lon": 72.8562, "tags": {"name": "KEM Hospital", "emergency": "yes"}},
                    {"id": 2, "lat": 19.0596, "lon": 72.8295, "tags": {"name": "Lilavati Hospital"}},
                ]
            },
        )
    if "mumbai" not in request.url.params.get("q", "").lower():
        return httpx.Response(200, json=[])
    return httpx.Response(
        200,
        json=[{"display_name": "Mumbai, Maharashtra, India", "lat": "19.0760", "lon": "72.8777", "type": "city"}],
    )


def test_suggest_geocode_and_nearby(tmp_path):
    settings_path = _config(tmp_path)

    async def _run():
        async with open_engine(settings_path, transport=httpx.MockTransport(_handler)) as engine:
            suggestions = await engine.suggest("mumbai")
            location = await engine.geocode(suggestions[0])
            facilities = await engine.load_facilities(location.latitude, location.longitude, 5000)
            hits = await engine.suggest("lila", facilities)
            nearby = engine.nearby(facilities, location, facility_type="emergency")
            fallback = await engine.load_facilities(18.52, 73.85, city="Pune")
            with pytest.raises(NotFound):
                await engine.geocode("Atlantis")
            return suggestions, location, facilities, hits, nearby, fallback, engine.metrics

    suggestions, location, facilities, hits, nearby, fallback, metrics = asyncio.run(_run())

    assert [(item.name, item.source) for item in suggestions] == [
        ("Mumbai", "gazetteer"),
        ("Navi Mumbai", "gazetteer"),
    ]
    assert location.display_name == "Mumbai, Maharashtra, India"
    assert (location.latitude, location.longitude) == (19.0760, 72.8777)

    assert [record.name for record in facilities] == ["KEM Hospital", "Lilavati Hospital"]
    assert [(item.name, item.kind) for item in hits] == [("Lilavati Hospital", SuggestionKind.FACILITY)]
    assert [record.name for record in nearby] == ["KEM Hospital"]
    assert nearby[0].distance_meters == pytest.approx(7000, rel=0.2)

    assert [record.source for record in fallback] == ["fallback"]
    assert metrics.get("fallback_used") == 1
    assert metrics.get("geocode_not_found") == 1
    assert metrics.get("searches") == 2


def test_scheduler_delivers_latest_suggestions(tmp_path):
    settings_path = _config(tmp_path)
    delivered = []

    async def _run():
        async with open_engine(settings_path, transport=httpx.MockTransport(_handler)) as engine:
            scheduler = engine.scheduler(lambda query, result: delivered.append((query, result)))
            for query in ("p", "pu", "pun"):
                scheduler.submit(query)
            await scheduler.drain()

    asyncio.run(_run())
    assert len(delivered) == 1
    query, result = delivered[0]
    assert query == "pun"
    assert result[0].name == "Pune"


def test_suggest_rejects_non_positive_limit(tmp_path):
    settings_path = _config(tmp_path)

    async def _run():
        async with open_engine(settings_path, transport=httpx.MockTransport(_handler)) as engine:
            for limit in (0, -1):
                with pytest.raises(InvalidInput):
                    await engine.suggest("mumbai", limit=limit)
            return await engine.suggest("mumbai", limit=None), await engine.suggest("mumbai", limit=1)

    default, single = asyncio.run(_run())
    assert len(default) == 2
    assert [item.name for item in single] == ["Mumbai"]
