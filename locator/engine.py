"""Library entry point wiring settings, sources and provider clients together."""
from __future__ import annotations

import contextlib
from pathlib import Path
from typing import Any, AsyncIterator, Callable, Iterable, List, Optional

import httpx

from locator.facilities.fallback import FallbackTable, load_fallback_table
from locator.facilities.loader import FacilityLoader
from locator.facilities.overpass import OverpassClient
from locator.gazetteer.catalog import Gazetteer, load_places
from locator.geo.distance import nearby_facilities
from locator.observability.log import configure_logging
from locator.observability.metrics import MetricsRegistry
from locator.remote.geocode import GeocodeClient
from locator.remote.nominatim import NominatimClient
from locator.remote.resolver import RemoteResolver
from locator.remote.session import ProviderSession, create_provider_session
from locator.search.hybrid import HybridSearch
from locator.search.scheduler import QueryScheduler
from locator.settings import DEFAULT_SETTINGS_PATH, LocatorSettings, load_settings
from locator.storage.models import FacilityRecord, GeocodeResult, Suggestion


class LocatorEngine:
    """Everything a UI layer needs: suggestions, geocoding and nearby facilities."""

    def __init__(
        self,
        *,
        settings: LocatorSettings,
        session: ProviderSession,
        gazetteer: Gazetteer,
        fallback: FallbackTable,
    ) -> None:
        self.settings = settings
        self.metrics = session.metrics
        nominatim = NominatimClient(
            session,
            search_url=settings.provider.search_url,
            reverse_url=settings.provider.reverse_url,
            timeout=settings.provider.timeout_seconds,
        )
        overpass = OverpassClient(
            session,
            url=settings.facilities.overpass_url,
            timeout=settings.facilities.timeout_seconds,
        )
        self.hybrid = HybridSearch(
            gazetteer=gazetteer,
            remote=RemoteResolver(nominatim),
            metrics=self.metrics,
        )
        self.geocoder = GeocodeClient(nominatim)
        self.facilities = FacilityLoader(
            overpass,
            fallback,
            nominatim,
            default_radius_m=settings.facilities.default_radius_m,
        )

    async def suggest(
        self,
        query: str,
        facilities: Iterable[FacilityRecord] = (),
        limit: Optional[int] = None,
    ) -> List[Suggestion]:
        budget = self.settings.search.default_limit if limit is None else limit
        return await self.hybrid.search(query, budget, facilities)

    def scheduler(self, deliver: Callable[[str, List[Suggestion]], Any]) -> QueryScheduler[List[Suggestion]]:
        """A debounced front for `suggest`; call `submit(query, facilities)`."""
        return QueryScheduler(
            self.suggest,
            deliver,
            delay_seconds=self.settings.search.debounce_ms / 1000,
            metrics=self.metrics,
        )

    async def geocode(self, choice: Suggestion | str) -> GeocodeResult:
        if isinstance(choice, Suggestion):
            return await self.geocoder.resolve_suggestion(choice)
        return await self.geocoder.resolve(choice)

    async def load_facilities(
        self,
        lat: float,
        lon: float,
        radius_m: Optional[float] = None,
        *,
        city: Optional[str] = None,
    ) -> List[FacilityRecord]:
        return await self.facilities.load_area(lat, lon, radius_m, city=city)

    def nearby(
        self,
        facilities: Iterable[FacilityRecord],
        location: GeocodeResult,
        *,
        max_distance_m: Optional[float] = None,
        facility_type: Optional[str] = None,
    ) -> List[FacilityRecord]:
        return nearby_facilities(
            facilities,
            location.latitude,
            location.longitude,
            max_distance_m=max_distance_m,
            facility_type=facility_type,
        )


@contextlib.asynccontextmanager
async def open_engine(
    settings_path: Path = DEFAULT_SETTINGS_PATH,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> AsyncIterator[LocatorEngine]:
    """Load configuration and datasets once and yield a ready engine."""
    settings = load_settings(settings_path)
    configure_logging(settings.logging.config_path)
    gazetteer = Gazetteer(load_places(settings.gazetteer.path))
    fallback = load_fallback_table(settings.facilities.fallback_path)
    async with create_provider_session(
        user_agent=settings.provider.user_agent,
        timeout=settings.provider.timeout_seconds,
        max_connections=settings.provider.max_connections,
        metrics=MetricsRegistry(),
        transport=transport,
    ) as session:
        yield LocatorEngine(settings=settings, session=session, gazetteer=gazetteer, fallback=fallback)
