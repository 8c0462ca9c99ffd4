"""Clock helpers — turn server nanosecond timestamps into display strings.

The backend stamps everything in nanoseconds since the epoch and uses
``0`` to mean "never". None of these helpers hold state: each one takes an
optional ``now_ms`` so callers (and tests) can pin the clock.
"""

from __future__ import annotations

import math
import time
from enum import Enum

_NANOS_PER_MS = 1_000_000

# Freshness tier boundaries, in minutes
FRESH_BELOW_MINUTES = 30
STALE_BELOW_MINUTES = 60


class FreshnessTier(str, Enum):
    FRESH = "Fresh"
    STALE = "Stale"
    OUTDATED = "Outdated"


def now_ms() -> float:
    """Current wall-clock time in epoch milliseconds."""
    return time.time() * 1000


def nanos_to_ms(timestamp_ns: int) -> float:
    return timestamp_ns / _NANOS_PER_MS


def age_ms(timestamp_ns: int, now: float | None = None) -> float | None:
    """Milliseconds elapsed since ``timestamp_ns``, or None for the 0 sentinel."""
    if timestamp_ns == 0:
        return None
    current = now_ms() if now is None else now
    return current - nanos_to_ms(timestamp_ns)


def relative_label(timestamp_ns: int, now: float | None = None) -> str:
    """``"42s ago"`` / ``"5m ago"`` / ``"3h ago"`` / ``"2d ago"``.

    Future timestamps (server clock ahead of ours) read as ``"0s ago"``.
    """
    age = age_ms(timestamp_ns, now)
    if age is None:
        return "Unknown"

    seconds = max(0, math.floor(age / 1000))
    if seconds < 60:
        return f"{seconds}s ago"
    minutes = seconds // 60
    if minutes < 60:
        return f"{minutes}m ago"
    hours = minutes // 60
    if hours < 24:
        return f"{hours}h ago"
    return f"{hours // 24}d ago"


def countdown_label(target_ns: int, now: float | None = None) -> str:
    """Time left until ``target_ns`` using the two largest units.

    Consumers re-render this at least once a second; nothing here ticks.
    """
    if target_ns == 0:
        return "—"
    current = now_ms() if now is None else now
    remaining_ms = nanos_to_ms(target_ns) - current
    if remaining_ms <= 0:
        return "Now"

    total = math.floor(remaining_ms / 1000)
    h = total // 3600
    m = (total % 3600) // 60
    s = total % 60
    if h > 0:
        return f"{h}h {m}m"
    if m > 0:
        return f"{m}m {s}s"
    return f"{s}s"


def freshness_tier(age_minutes: float) -> FreshnessTier:
    """Classify a data age: ``<30`` Fresh, ``[30, 60)`` Stale, ``>=60`` Outdated."""
    if age_minutes < FRESH_BELOW_MINUTES:
        return FreshnessTier.FRESH
    if age_minutes < STALE_BELOW_MINUTES:
        return FreshnessTier.STALE
    return FreshnessTier.OUTDATED
