"""Market hours utilities — timezone-aware Indian exchange schedule helpers.

Provides functions to check where the NSE/BSE session currently stands
(pre-market, open, closed), format server timestamps in exchange time,
and build a full market status for the dashboard header.
Uses stdlib zoneinfo (no pytz dependency).

Every check accepts a caller-supplied ``now`` so the helpers stay pure;
production wiring passes ``now_ist()``.
"""

from __future__ import annotations

from datetime import datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

from pickwatch.config import settings

IST = ZoneInfo(settings.EXCHANGE_TZ)
MARKET_OPEN = time(9, 15)
MARKET_CLOSE = time(15, 30)

_NANOS_PER_SECOND = 1_000_000_000


def now_ist() -> datetime:
    """Current time in exchange-local (IST) time."""
    return datetime.now(IST)


def to_ist(dt: datetime) -> datetime:
    """Convert to IST. Naive datetimes are taken to be UTC."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(IST)


def is_pre_market(now: datetime) -> bool:
    """True when exchange-local time is strictly before the 09:15 open.

    Drives the pre-market banner. Weekends are not special-cased.
    """
    return to_ist(now).time() < MARKET_OPEN


def is_market_open(now: datetime) -> bool:
    """Check if the exchange is open (Mon-Fri 09:15-15:30 IST).

    Does NOT account for exchange holidays.
    """
    local = to_ist(now)
    if local.weekday() > 4:  # Saturday=5, Sunday=6
        return False
    return MARKET_OPEN <= local.time() < MARKET_CLOSE


def session_phase(now: datetime) -> str:
    """Return ``PreMarket``, ``Open`` or ``Closed`` for the given instant."""
    local = to_ist(now)
    if is_market_open(local):
        return "Open"
    if local.weekday() <= 4 and local.time() < MARKET_OPEN:
        return "PreMarket"
    return "Closed"


def next_market_open(now: datetime) -> datetime:
    """Return the next session open in IST.

    If the market is currently open, returns the *next day's* open.
    """
    local = to_ist(now)
    candidate = local.replace(
        hour=MARKET_OPEN.hour,
        minute=MARKET_OPEN.minute,
        second=0,
        microsecond=0,
    )

    if local.time() < MARKET_OPEN and local.weekday() <= 4:
        return candidate

    candidate += timedelta(days=1)
    while candidate.weekday() > 4:
        candidate += timedelta(days=1)
    return candidate


def next_market_close(now: datetime) -> datetime:
    """Return the next session close in IST."""
    local = to_ist(now)
    if is_market_open(local):
        return local.replace(
            hour=MARKET_CLOSE.hour,
            minute=MARKET_CLOSE.minute,
            second=0,
            microsecond=0,
        )

    return next_market_open(local).replace(
        hour=MARKET_CLOSE.hour,
        minute=MARKET_CLOSE.minute,
    )


def format_ist(timestamp_ns: int) -> str:
    """Render a nanosecond epoch timestamp as exchange-local wall time.

    The zero sentinel renders as ``—``.
    """
    if timestamp_ns == 0:
        return "—"
    dt = datetime.fromtimestamp(timestamp_ns / _NANOS_PER_SECOND, tz=IST)
    return dt.strftime("%d %b %Y, %H:%M:%S")


def market_status(now: datetime) -> dict:
    """Full market status for frontend display."""
    local = to_ist(now)
    is_open = is_market_open(local)

    if is_open:
        next_label = "Closes"
        next_time = next_market_close(local)
    else:
        next_label = "Opens"
        next_time = next_market_open(local)

    return {
        "is_open": is_open,
        "phase": session_phase(local),
        "pre_market_banner": is_pre_market(local),
        "current_time_ist": local.strftime("%Y-%m-%d %H:%M:%S IST"),
        "next_event": next_label,
        "next_event_time": next_time.strftime("%Y-%m-%d %H:%M IST"),
        "time_remaining_seconds": int((next_time - local).total_seconds()),
        "day_of_week": local.strftime("%A"),
    }
