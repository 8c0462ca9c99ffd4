"""Polling Scheduler — APScheduler-driven refresh of every cached resource.

One interval job fires on a fixed cadence (30s by default). Each tick
issues a fetch for every registered resource that is not already
fetching, fresh or not: the staleness window only matters for
opportunistic refreshes (``refresh_stale``), never for the cadence.

Fetches run as asyncio tasks on the scheduler's event loop. A fetcher
that raises is recorded on its entry as an error; nothing propagates.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from pickwatch.config import settings
from pickwatch.errors import AlreadyInFlightError, FetchFailedError
from pickwatch.models.cache import FetchOutcome, FetchToken
from pickwatch.services.resource_cache import ResourceCacheEntry
from pickwatch.utils.logger import logger

Fetcher = Callable[[], Awaitable[Any]]
EnabledCheck = Callable[[], bool]

_JOB_ID = "poll_resources"


def _always() -> bool:
    return True


class PollScheduler:
    """Drives periodic and manual refreshes of registered cache entries."""

    def __init__(self, interval_ms: int | None = None) -> None:
        self.interval_ms = interval_ms or settings.POLL_INTERVAL_MS
        self._resources: dict[str, tuple[ResourceCacheEntry, Fetcher, EnabledCheck]] = {}
        self._tasks: set[asyncio.Task] = set()
        self._scheduler: AsyncIOScheduler | None = None
        self.is_running = False
        self.is_shut_down = False

    def register(
        self,
        entry: ResourceCacheEntry,
        fetcher: Fetcher,
        enabled: EnabledCheck = _always,
    ) -> None:
        """Add a resource. ``enabled`` is consulted before every fetch."""
        if entry.key in self._resources:
            raise ValueError(f"Resource {entry.key!r} already registered")
        self._resources[entry.key] = (entry, fetcher, enabled)

    @property
    def keys(self) -> list[str]:
        return list(self._resources)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> dict:
        """Start the fixed-cadence poll job. Needs a running event loop."""
        if self.is_shut_down:
            return {"status": "shut_down"}
        if self.is_running:
            return {"status": "already_running"}

        self._scheduler = AsyncIOScheduler()
        self._scheduler.add_job(
            self.tick,
            IntervalTrigger(seconds=self.interval_ms / 1000),
            id=_JOB_ID,
            name="Resource Poll",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        self._scheduler.start()
        self.is_running = True
        logger.info(
            "[Poller] Started — %d resources every %.1fs",
            len(self._resources), self.interval_ms / 1000,
        )
        return {"status": "started", "interval_ms": self.interval_ms}

    def stop(self) -> dict:
        """Stop ticking. Manual refreshes keep working."""
        if not self.is_running or not self._scheduler:
            return {"status": "not_running"}

        self._scheduler.shutdown(wait=False)
        self._scheduler = None
        self.is_running = False
        logger.info("[Poller] Stopped")
        return {"status": "stopped"}

    def shutdown(self) -> dict:
        """Tear down for good: no more ticks, no more fetches.

        Fetches already in flight run to completion, but their entries are
        closed so the results are dropped.
        """
        result = self.stop()
        self.is_shut_down = True
        for entry, _, _ in self._resources.values():
            entry.close()
        logger.info(
            "[Poller] Shut down (%d fetches still in flight)", len(self._tasks),
        )
        return {**result, "in_flight": len(self._tasks)}

    # ------------------------------------------------------------------
    # Refresh entry points
    # ------------------------------------------------------------------

    async def tick(self) -> None:
        """Scheduled job body: refetch everything not already in flight."""
        try:
            issued = self.refresh_all()
            logger.debug("[Poller] Tick issued %d fetches", len(issued))
        except Exception:
            logger.exception("[Poller] Tick failed")

    def refresh_all(self) -> list[asyncio.Task]:
        """Immediately fetch every resource that is not currently fetching."""
        return self._issue(self._resources)

    def refresh_stale(self, now: float | None = None) -> list[asyncio.Task]:
        """Fetch only the resources whose cached value is stale."""
        stale = [
            key for key, (entry, _, _) in self._resources.items()
            if entry.is_stale(now)
        ]
        return self._issue(stale)

    async def wait_idle(self) -> None:
        """Wait for every fetch issued so far to finish."""
        while True:
            pending = [t for t in self._tasks if not t.done()]
            if not pending:
                return
            await asyncio.gather(*pending, return_exceptions=True)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _issue(self, keys) -> list[asyncio.Task]:
        if self.is_shut_down:
            return []

        issued: list[asyncio.Task] = []
        for key in keys:
            entry, fetcher, enabled = self._resources[key]
            if entry.in_flight:
                continue
            if not enabled():
                logger.debug("[Poller] %s disabled, skipping fetch", key)
                continue
            try:
                token = entry.begin_fetch()
            except AlreadyInFlightError:
                continue

            task = asyncio.create_task(
                self._run_fetch(entry, fetcher, token), name=f"fetch:{key}",
            )
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)
            issued.append(task)
        return issued

    @staticmethod
    async def _run_fetch(
        entry: ResourceCacheEntry,
        fetcher: Fetcher,
        token: FetchToken,
    ) -> None:
        try:
            value = await fetcher()
        except Exception as exc:
            failure = FetchFailedError(entry.key, exc)
            logger.warning("[Poller] Fetch failed — %s", failure)
            entry.complete_fetch(token, FetchOutcome.failure(str(failure)))
            return

        if entry.complete_fetch(token, FetchOutcome.success(value)):
            logger.debug("[Poller] %s refreshed", entry.key)

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    def get_status(self) -> dict:
        """Return scheduler state for the status endpoint."""
        next_run = None
        if self._scheduler and self.is_running:
            job = self._scheduler.get_job(_JOB_ID)
            if job and job.next_run_time:
                next_run = job.next_run_time.isoformat()

        return {
            "is_running": self.is_running,
            "interval_ms": self.interval_ms,
            "next_run": next_run,
            "in_flight": len(self._tasks),
            "resources": {
                key: entry.status.value
                for key, (entry, _, _) in self._resources.items()
            },
        }
