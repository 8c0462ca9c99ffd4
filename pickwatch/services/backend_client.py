"""Backend actor — the remote scan service the dashboard reads from.

``BackendActor`` is the operation set the sync core consumes.
``HttpBackendActor`` implements it over HTTP/JSON with one pooled
``httpx.AsyncClient`` per actor. ``ActorProvider`` hands out the current
actor, or None while no handle is available.

Timeouts are a transport property: an ``httpx.TimeoutException`` reaches
the caller like any other failure.
"""

from __future__ import annotations

import time
from typing import Protocol

import httpx

from pickwatch.config import settings
from pickwatch.models.scan import BreakingNewsTrade, ScanMetadata, StockPick
from pickwatch.utils.logger import logger


class BackendActor(Protocol):
    async def get_top_picks(self) -> list[StockPick]: ...

    async def get_all_picks(self) -> list[StockPick]: ...

    async def get_breaking_news_trades(self) -> list[BreakingNewsTrade]: ...

    async def get_scan_metadata(self) -> ScanMetadata: ...

    async def trigger_manual_scan(self) -> str: ...

    async def clear_all_data(self) -> None: ...


class HttpBackendActor:
    """Talks to the scan backend's JSON API."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(
                timeout or settings.BACKEND_TIMEOUT_SECONDS,
                connect=5.0,  # Fail fast if the backend is unreachable
            ),
            limits=httpx.Limits(max_connections=10, max_keepalive_connections=5),
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_top_picks(self) -> list[StockPick]:
        data = await self._request("GET", "/api/picks/top")
        return [StockPick.model_validate(row) for row in data]

    async def get_all_picks(self) -> list[StockPick]:
        data = await self._request("GET", "/api/picks")
        return [StockPick.model_validate(row) for row in data]

    async def get_breaking_news_trades(self) -> list[BreakingNewsTrade]:
        data = await self._request("GET", "/api/news/breaking")
        return [BreakingNewsTrade.model_validate(row) for row in data]

    async def get_scan_metadata(self) -> ScanMetadata:
        data = await self._request("GET", "/api/scan/metadata")
        return ScanMetadata.model_validate(data)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def trigger_manual_scan(self) -> str:
        """Ask the backend to start a scan now. Returns its confirmation."""
        data = await self._request("POST", "/api/scan/trigger")
        if isinstance(data, dict):
            return str(data.get("message", ""))
        return str(data)

    async def clear_all_data(self) -> None:
        await self._request("POST", "/api/admin/clear")

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    async def _request(self, method: str, path: str) -> object:
        t0 = time.perf_counter()
        resp = await self._client.request(method, path)
        resp.raise_for_status()
        data = resp.json() if resp.content else None
        logger.debug(
            "[Backend] %s %s → %d in %.2fs",
            method, path, resp.status_code, time.perf_counter() - t0,
        )
        return data


class ActorProvider:
    """Holds the current actor handle, which may not exist (yet)."""

    def __init__(self, actor: BackendActor | None = None) -> None:
        self._actor = actor

    @classmethod
    def from_settings(cls) -> ActorProvider:
        if not settings.backend_configured:
            logger.warning("[Backend] BACKEND_URL not set — running without an actor")
            return cls()
        return cls(HttpBackendActor(settings.BACKEND_URL))

    def get(self) -> BackendActor | None:
        return self._actor

    @property
    def available(self) -> bool:
        return self._actor is not None

    def set(self, actor: BackendActor | None) -> None:
        self._actor = actor

    async def aclose(self) -> None:
        if isinstance(self._actor, HttpBackendActor):
            await self._actor.aclose()
