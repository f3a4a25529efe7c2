"""Debounced query scheduling with last-submitted-wins delivery."""
from __future__ import annotations

import asyncio
from enum import Enum
from typing import Any, Awaitable, Callable, Generic, Optional, Set, TypeVar

import structlog

from locator.observability.metrics import MetricsRegistry

LOGGER = structlog.get_logger(__name__)

T = TypeVar("T")

DEFAULT_DELAY_SECONDS = 0.3


class SchedulerState(str, Enum):
    IDLE = "idle"
    PENDING = "pending"


class QueryScheduler(Generic[T]):
    """Coalesces bursts of submissions into one search per pause in input.

    Only one delay timer exists at a time: submitting cancels the armed timer
    and arms a new one. Once the delay has elapsed the task leaves the timer
    slot and runs the search; a later submission does not cancel it, but its
    result is dropped instead of delivered. Must be used from a running loop.
    """

    def __init__(
        self,
        search: Callable[..., Awaitable[T]],
        deliver: Callable[[str, T], Any],
        *,
        delay_seconds: float = DEFAULT_DELAY_SECONDS,
        metrics: Optional[MetricsRegistry] = None,
    ) -> None:
        self._search = search
        self._deliver = deliver
        self._delay = delay_seconds
        self.metrics = metrics or MetricsRegistry()
        self._timer: Optional[asyncio.Task] = None
        self._tasks: Set[asyncio.Task] = set()
        self._generation = 0

    @property
    def state(self) -> SchedulerState:
        if self._timer is not None and not self._timer.done():
            return SchedulerState.PENDING
        return SchedulerState.IDLE

    @property
    def in_flight(self) -> int:
        """Number of searches past their delay that have not finished yet."""
        return sum(1 for task in self._tasks if task is not self._timer and not task.done())

    def submit(self, query: str, *args: Any, **kwargs: Any) -> None:
        self._generation += 1
        self._disarm()
        task = asyncio.get_running_loop().create_task(
            self._wait_then_search(self._generation, query, args, kwargs)
        )
        self._timer = task
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def cancel(self) -> None:
        """Disarm the timer and make any in-flight result stale."""
        self._generation += 1
        self._disarm()

    async def drain(self) -> None:
        """Wait for every outstanding task, re-raising the first real error."""
        while self._tasks:
            results = await asyncio.gather(*list(self._tasks), return_exceptions=True)
            for result in results:
                if isinstance(result, BaseException) and not isinstance(result, asyncio.CancelledError):
                    raise result

    def _disarm(self) -> None:
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
            self.metrics.incr("debounce_cancelled")
        self._timer = None

    async def _wait_then_search(self, generation: int, query: str, args: tuple, kwargs: dict) -> None:
        await asyncio.sleep(self._delay)
        if self._timer is asyncio.current_task():
            self._timer = None
        try:
            result = await self._search(query, *args, **kwargs)
        except Exception:
            if generation != self._generation:
                self.metrics.incr("stale_results")
                LOGGER.debug("stale_failure_dropped", query=query, exc_info=True)
                return
            LOGGER.exception("scheduled_search_failed", query=query)
            raise
        if generation != self._generation:
            self.metrics.incr("stale_results")
            LOGGER.debug("stale_result_dropped", query=query)
            return
        self._deliver(query, result)
