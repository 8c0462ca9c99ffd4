"""Cache models — fetch status, staleness policy, snapshots and outcomes."""

from __future__ import annotations

from enum import Enum
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict

T = TypeVar("T")


class FetchStatus(str, Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    READY = "ready"
    ERROR = "error"


class StalenessPolicy(BaseModel):
    """Per-resource timing.

    ``poll_interval_ms`` is the scheduled refetch cadence.
    ``stale_after_ms`` only decides read-time eligibility: a value younger
    than this is fresh, an older one may be refetched opportunistically.
    """

    model_config = ConfigDict(frozen=True)

    poll_interval_ms: int = 30_000
    stale_after_ms: int = 25_000


class FetchToken(BaseModel):
    """Handed out by ``begin_fetch``; must be passed back to ``complete_fetch``."""

    model_config = ConfigDict(frozen=True)

    key: str
    generation: int
    started_at: float  # epoch ms


class FetchOutcome(BaseModel, Generic[T]):
    """Result of one fetch: either a value or a failure detail."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    ok: bool
    value: T | None = None
    error: str | None = None

    @classmethod
    def success(cls, value: Any) -> FetchOutcome:
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, detail: str) -> FetchOutcome:
        return cls(ok=False, error=detail)


class ResourceSnapshot(BaseModel, Generic[T]):
    """Read-only view of one cache entry at a given instant."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    key: str
    value: T | None = None
    status: FetchStatus = FetchStatus.IDLE
    last_fetched_at: float | None = None
    last_error: str | None = None
    age_ms: float | None = None
    is_stale: bool = True
