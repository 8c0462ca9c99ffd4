"""Resource Cache Entry — last known value + fetch lifecycle for one resource.

One entry per backend dataset (top picks, breaking news, scan metadata).
The entry enforces single-flight: ``begin_fetch`` refuses to start a
second fetch for the same key until ``complete_fetch`` has run.

Lifecycle::

    idle ──begin──▶ fetching ──complete──▶ ready | error
                        ▲                        │
                        └─────────begin──────────┘

``invalidate`` only forgets ``last_fetched_at`` so the next staleness check
reports stale; value and status are untouched.
"""

from __future__ import annotations

from typing import Generic, TypeVar

from pickwatch.errors import AlreadyInFlightError
from pickwatch.models.cache import (
    FetchOutcome,
    FetchStatus,
    FetchToken,
    ResourceSnapshot,
    StalenessPolicy,
)
from pickwatch.utils.clock import now_ms
from pickwatch.utils.logger import logger

T = TypeVar("T")


class ResourceCacheEntry(Generic[T]):
    """Cached value and fetch state for a single backend resource."""

    def __init__(self, key: str, policy: StalenessPolicy | None = None) -> None:
        self.key = key
        self.policy = policy or StalenessPolicy()
        self.value: T | None = None
        self.status = FetchStatus.IDLE
        self.last_fetched_at: float | None = None
        self.last_error: str | None = None
        self._generation = 0
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def in_flight(self) -> bool:
        return self.status is FetchStatus.FETCHING

    # ------------------------------------------------------------------
    # Staleness
    # ------------------------------------------------------------------

    def age_ms(self, now: float | None = None) -> float | None:
        if self.last_fetched_at is None:
            return None
        return (now_ms() if now is None else now) - self.last_fetched_at

    def is_stale(self, now: float | None = None) -> bool:
        """True when the value is missing, failed, invalidated or too old."""
        if self.status is not FetchStatus.READY or self.last_fetched_at is None:
            return True
        return self.age_ms(now) > self.policy.stale_after_ms

    # ------------------------------------------------------------------
    # Fetch lifecycle
    # ------------------------------------------------------------------

    def begin_fetch(self, now: float | None = None) -> FetchToken:
        """Move to ``fetching`` and return the token for this attempt.

        Raises AlreadyInFlightError if a fetch is already running.
        """
        if self.status is FetchStatus.FETCHING:
            raise AlreadyInFlightError(self.key)

        self._generation += 1
        self.status = FetchStatus.FETCHING
        return FetchToken(
            key=self.key,
            generation=self._generation,
            started_at=now_ms() if now is None else now,
        )

    def complete_fetch(
        self,
        token: FetchToken,
        outcome: FetchOutcome,
        now: float | None = None,
    ) -> bool:
        """Apply the outcome of the fetch identified by ``token``.

        Returns False (and changes nothing) when the entry was torn down or
        the token does not belong to the current attempt.
        """
        if self._closed:
            logger.debug("[Cache] %s closed, dropping late result", self.key)
            return False
        if (
            token.key != self.key
            or token.generation != self._generation
            or self.status is not FetchStatus.FETCHING
        ):
            logger.debug(
                "[Cache] %s ignoring result for generation %d (current %d)",
                self.key, token.generation, self._generation,
            )
            return False

        if outcome.ok:
            self.value = outcome.value
            self.status = FetchStatus.READY
            self.last_fetched_at = now_ms() if now is None else now
            self.last_error = None
        else:
            # Keep the previous value so the UI can show last-known data
            self.status = FetchStatus.ERROR
            self.last_error = outcome.error or "unknown error"
        return True

    def invalidate(self) -> None:
        """Force the next staleness check to report stale. Idempotent."""
        self.last_fetched_at = None

    def close(self) -> None:
        """Tear down: any result arriving after this is discarded."""
        self._closed = True

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def snapshot(self, now: float | None = None) -> ResourceSnapshot:
        current = now_ms() if now is None else now
        return ResourceSnapshot(
            key=self.key,
            value=self.value,
            status=self.status,
            last_fetched_at=self.last_fetched_at,
            last_error=self.last_error,
            age_ms=self.age_ms(current),
            is_stale=self.is_stale(current),
        )

    def __repr__(self) -> str:
        return (
            f"ResourceCacheEntry(key={self.key!r}, status={self.status.value}, "
            f"last_fetched_at={self.last_fetched_at})"
        )
