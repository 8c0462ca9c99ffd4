"""Synchronization Coordinator — owns the three dashboard caches.

Top picks, breaking news and scan metadata each live in their own
``ResourceCacheEntry`` and are refreshed by one ``PollScheduler``.
Reads never fetch. The manual scan trigger is the only write path: on
success it invalidates all three caches and refreshes them at once, on
failure it leaves them alone and reports why.

While no actor handle exists, fetches are skipped (entries keep whatever
they had), the typed accessors return an explicit "no data" default and
writes fail immediately.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from datetime import datetime
from typing import Any

from pickwatch.config import settings
from pickwatch.errors import ActorUnavailableError, TriggerFailedError
from pickwatch.models.cache import ResourceSnapshot, StalenessPolicy
from pickwatch.models.scan import (
    BreakingNewsTrade,
    ScanEngineView,
    ScanMetadata,
    StockPick,
    TriggerResult,
)
from pickwatch.services.backend_client import ActorProvider, BackendActor
from pickwatch.services.poll_scheduler import PollScheduler
from pickwatch.services.resource_cache import ResourceCacheEntry
from pickwatch.utils.clock import countdown_label, freshness_tier, relative_label
from pickwatch.utils.logger import logger
from pickwatch.utils.market_hours import format_ist, is_pre_market, now_ist, to_ist

TOP_PICKS = "top_picks"
BREAKING_NEWS = "breaking_news"
SCAN_METADATA = "scan_metadata"
RESOURCE_KEYS = (TOP_PICKS, BREAKING_NEWS, SCAN_METADATA)


def default_scan_metadata() -> ScanMetadata:
    """What the panel shows before the first successful fetch."""
    return ScanMetadata(market_status="Closed", scan_status="Idle")


class SyncCoordinator:
    """Keeps the dashboard's backend data fresh and runs the scan trigger."""

    def __init__(
        self,
        actors: ActorProvider,
        *,
        policy: StalenessPolicy | None = None,
        scheduler: PollScheduler | None = None,
    ) -> None:
        self.policy = policy or StalenessPolicy(
            poll_interval_ms=settings.POLL_INTERVAL_MS,
            stale_after_ms=settings.STALE_AFTER_MS,
        )
        self._actors = actors
        self._entries: dict[str, ResourceCacheEntry] = {
            key: ResourceCacheEntry(key, self.policy) for key in RESOURCE_KEYS
        }
        self.scheduler = scheduler or PollScheduler(self.policy.poll_interval_ms)

        fetchers: dict[str, Callable[[BackendActor], Awaitable[Any]]] = {
            TOP_PICKS: lambda actor: actor.get_top_picks(),
            BREAKING_NEWS: lambda actor: actor.get_breaking_news_trades(),
            SCAN_METADATA: lambda actor: actor.get_scan_metadata(),
        }
        for key, call in fetchers.items():
            self.scheduler.register(
                self._entries[key],
                self._bind_fetcher(call),
                enabled=lambda: self._actors.available,
            )

    @property
    def actors(self) -> ActorProvider:
        return self._actors

    def _bind_fetcher(
        self, call: Callable[[BackendActor], Awaitable[Any]],
    ) -> Callable[[], Awaitable[Any]]:
        async def fetch() -> Any:
            return await call(self._require_actor())

        return fetch

    def _require_actor(self) -> BackendActor:
        actor = self._actors.get()
        if actor is None:
            raise ActorUnavailableError()
        return actor

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> dict:
        """Start polling and fetch whatever is stale right away."""
        result = self.scheduler.start()
        if result["status"] == "started":
            self.scheduler.refresh_stale()
        return result

    def stop(self) -> dict:
        """Tear down: stop polling and drop results still in flight."""
        return self.scheduler.shutdown()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def read(self, key: str, now: float | None = None) -> ResourceSnapshot:
        """Snapshot of one resource. Never starts a fetch.

        Raises KeyError for an unknown resource key.
        """
        return self._entries[key].snapshot(now)

    def top_picks(self) -> list[StockPick]:
        return self._entries[TOP_PICKS].value or []

    def breaking_news(self) -> list[BreakingNewsTrade]:
        return self._entries[BREAKING_NEWS].value or []

    def scan_metadata(self) -> ScanMetadata:
        return self._entries[SCAN_METADATA].value or default_scan_metadata()

    async def all_picks(self) -> list[StockPick]:
        """Full pick history straight from the backend (not cached)."""
        actor = self._actors.get()
        if actor is None:
            return []
        try:
            return await actor.get_all_picks()
        except Exception as exc:
            logger.warning("[Sync] get_all_picks failed: %s", exc)
            return []

    def scan_view(self, now: datetime | None = None) -> ScanEngineView:
        """Derived display state for the scan engine panel.

        A naive ``now`` is read as UTC, same as the market-hours helpers.
        """
        current = to_ist(now) if now is not None else now_ist()
        current_ms = current.timestamp() * 1000
        meta = self.scan_metadata()
        return ScanEngineView(
            market_status=meta.market_status,
            scan_status=meta.scan_status,
            last_scan_label=relative_label(meta.last_scan_timestamp, current_ms),
            last_scan_ist=format_ist(meta.last_scan_timestamp),
            next_scan_countdown=countdown_label(meta.next_scheduled_scan, current_ms),
            data_freshness_minutes=meta.data_freshness_minutes,
            freshness_tier=freshness_tier(meta.data_freshness_minutes).value,
            pre_market_banner=is_pre_market(current),
            total_picks_generated=meta.total_picks_generated,
            total_breaking_news=meta.total_breaking_news,
        )

    # ------------------------------------------------------------------
    # Refresh + writes
    # ------------------------------------------------------------------

    def refresh_all(self) -> list:
        """Fetch every resource now; ones already in flight are skipped."""
        return self.scheduler.refresh_all()

    def invalidate_all(self) -> None:
        for entry in self._entries.values():
            entry.invalidate()

    async def trigger_scan(self) -> TriggerResult:
        """Ask the backend for an immediate scan. Called once, never retried."""
        result = await self._write(
            "trigger_manual_scan", lambda actor: actor.trigger_manual_scan(),
        )
        if result.ok:
            logger.info("[Sync] Manual scan triggered: %s", result.message)
        return result

    async def clear_all_data(self) -> TriggerResult:
        """Wipe the backend's picks and news, then resync."""
        result = await self._write(
            "clear_all_data", lambda actor: actor.clear_all_data(),
        )
        if result.ok:
            logger.info("[Sync] Backend data cleared")
        return result

    async def _write(
        self,
        operation: str,
        call: Callable[[BackendActor], Awaitable[Any]],
    ) -> TriggerResult:
        actor = self._actors.get()
        if actor is None:
            return self._write_failed(operation, ActorUnavailableError())
        try:
            message = await call(actor)
        except Exception as exc:
            return self._write_failed(operation, exc)

        # Post-write data lives on the backend now: everything cached is old
        self.invalidate_all()
        self.refresh_all()
        return TriggerResult(ok=True, message=message or "")

    @staticmethod
    def _write_failed(operation: str, cause: Exception) -> TriggerResult:
        failure = TriggerFailedError(operation, cause)
        logger.warning("[Sync] %s", failure)
        return TriggerResult(
            ok=False,
            error=str(failure),
            cause=type(cause).__name__,
        )

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    def get_status(self) -> dict:
        resources = {}
        for key in RESOURCE_KEYS:
            snap = self.read(key)
            resources[key] = {
                "status": snap.status.value,
                "last_fetched_at": snap.last_fetched_at,
                "age_ms": snap.age_ms,
                "is_stale": snap.is_stale,
                "last_error": snap.last_error,
            }
        return {
            "actor_available": self._actors.available,
            "scheduler": self.scheduler.get_status(),
            "resources": resources,
        }
