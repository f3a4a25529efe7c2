"""HTTP session shared by every provider client."""
from __future__ import annotations

import asyncio
import contextlib
import time
from typing import Any, AsyncIterator, Dict, Optional

import httpx
import orjson

from locator.errors import RemoteUnavailable
from locator.observability.metrics import MetricsRegistry
from locator.observability.tracing import log_provider_result, span


class ProviderSession:
    """Wraps an `httpx.AsyncClient` and turns every failure into `RemoteUnavailable`."""

    def __init__(self, client: httpx.AsyncClient, *, metrics: Optional[MetricsRegistry] = None) -> None:
        self._client = client
        self.metrics = metrics or MetricsRegistry()

    async def get_json(self, url: str, *, params: Dict[str, str], timeout: float) -> Any:
        """GET `url` and decode the JSON body."""
        return await self._request("GET", url, timeout=timeout, params=params)

    async def post_json(
        self,
        url: str,
        *,
        content: str,
        timeout: float,
        headers: Optional[Dict[str, str]] = None,
    ) -> Any:
        """POST a raw body to `url` and decode the JSON answer."""
        return await self._request("POST", url, timeout=timeout, content=content, headers=headers)

    async def _request(self, method: str, url: str, *, timeout: float, **kwargs: Any) -> Any:
        self.metrics.incr("provider_requests")
        try:
            with span(name=f"provider_{method.lower()}", url=url):
                start = time.perf_counter()
                # wait_for bounds the whole exchange, httpx only bounds each phase
                response = await asyncio.wait_for(
                    self._client.request(method, url, timeout=timeout, **kwargs),
                    timeout=timeout,
                )
        except asyncio.TimeoutError as exc:
            raise RemoteUnavailable(f"timed out after {timeout}s", url=url) from exc
        except httpx.HTTPError as exc:
            raise RemoteUnavailable(f"transport error: {exc}", url=url) from exc

        elapsed_ms = int((time.perf_counter() - start) * 1000)
        log_provider_result(
            url=url,
            status=response.status_code,
            bytes_read=len(response.content or b""),
            elapsed_ms=elapsed_ms,
        )
        self.metrics.incr(f"http_{response.status_code // 100}xx")
        if not response.is_success:
            raise RemoteUnavailable(f"HTTP {response.status_code}", url=url)
        try:
            return orjson.loads(response.content)
        except orjson.JSONDecodeError as exc:
            raise RemoteUnavailable("malformed JSON", url=url) from exc


@contextlib.asynccontextmanager
async def create_provider_session(
    *,
    user_agent: str,
    timeout: float,
    max_connections: int,
    metrics: Optional[MetricsRegistry] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> AsyncIterator[ProviderSession]:
    """Yield a configured `ProviderSession` for the duration of the context."""
    headers = {"User-Agent": user_agent, "Accept": "application/json"}
    limits = httpx.Limits(max_connections=max_connections, max_keepalive_connections=max_connections)
    async with httpx.AsyncClient(
        headers=headers,
        limits=limits,
        timeout=timeout,
        transport=transport,
    ) as client:
        yield ProviderSession(client, metrics=metrics)
