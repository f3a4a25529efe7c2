"""Merges gazetteer, facility and remote suggestions into one ranked list."""
from __future__ import annotations

import asyncio
import itertools
import math
import uuid
from typing import Iterable, List, Optional

import structlog

from locator.errors import RemoteUnavailable, ensure_limit
from locator.facilities.index import FacilityIndex
from locator.gazetteer.catalog import Gazetteer
from locator.observability.metrics import MetricsRegistry, record_duration
from locator.observability.tracing import clear_context, set_context
from locator.quality.dedup import SuggestionDeduplicator
from locator.remote.resolver import RemoteResolver
from locator.storage.models import FacilityRecord, Suggestion

LOGGER = structlog.get_logger(__name__)


class HybridSearch:
    """Fans a query out to three sources concurrently and merges the answers.

    Facility matches come first, then gazetteer places, then remote places,
    so exact facility hits are never crowded out by generic place names.
    """

    def __init__(
        self,
        *,
        gazetteer: Gazetteer,
        remote: RemoteResolver,
        facility_index: Optional[FacilityIndex] = None,
        metrics: Optional[MetricsRegistry] = None,
    ) -> None:
        self._gazetteer = gazetteer
        self._remote = remote
        self._facility_index = facility_index or FacilityIndex()
        self.metrics = metrics or MetricsRegistry()

    async def _remote_or_empty(self, query: str, limit: int) -> List[Suggestion]:
        try:
            return await self._remote.resolve(query, limit)
        except RemoteUnavailable as exc:
            self.metrics.incr("remote_failures")
            LOGGER.warning("remote_source_failed", reason=exc.reason)
            return []

    async def search(
        self,
        query: str,
        limit: int,
        facilities: Iterable[FacilityRecord] = (),
    ) -> List[Suggestion]:
        ensure_limit(limit)
        snapshot = tuple(facilities)
        budget = math.ceil(limit / 3)
        set_context(search_id=uuid.uuid4().hex, query=query)
        try:
            with record_duration(self.metrics, "search_duration_ms"):
                facility_hits, place_hits, remote_hits = await asyncio.gather(
                    asyncio.to_thread(self._facility_index.search, query, snapshot, budget),
                    asyncio.to_thread(self._gazetteer.lookup, query, budget),
                    self._remote_or_empty(query, budget),
                )
            dedup = SuggestionDeduplicator()
            merged = dedup.unique(itertools.chain(facility_hits, place_hits, remote_hits), limit=limit)
            self.metrics.incr("searches")
            self.metrics.incr("duplicates", dedup.dropped)
            self.metrics.incr("suggestions_returned", len(merged))
            LOGGER.info(
                "hybrid_search",
                facilities=len(facility_hits),
                places=len(place_hits),
                remote=len(remote_hits),
                duplicates=dedup.dropped,
                returned=len(merged),
            )
            return merged
        finally:
            clear_context()
