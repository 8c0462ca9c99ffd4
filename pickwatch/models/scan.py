"""Scan models — StockPick, BreakingNewsTrade, ScanMetadata, derived views.

Payloads arrive from the backend with camelCase keys and integer fields
(timestamps in nanoseconds, percentages and multipliers in tenths).
Python code uses snake_case attributes; ``model_dump(by_alias=True)``
gives the wire shape back.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

MarketStatus = Literal["PreMarket", "Open", "Closed"]
ScanStatus = Literal["Running", "Idle", "Error"]

EVENT_LABELS: dict[str, str] = {
    "EarningsResult": "Earnings Result",
    "GovernmentOrder": "Govt Order",
    "PrivateOrder": "Private Order",
    "MnA": "M&A",
    "Fundraising": "Fundraising",
    "CapacityExpansion": "Capacity Expansion",
    "PromoterActivity": "Promoter Activity",
    "BlockBulkDeal": "Block/Bulk Deal",
    "SectorNews": "Sector News",
}


class _BackendModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def event_label(event_type: str) -> str:
    """Display label for a backend event type; unknown types pass through."""
    return EVENT_LABELS.get(event_type, event_type)


class StockPick(_BackendModel):
    """One ranked pick produced by the backend scan."""

    symbol: str
    company_name: str
    event_type: str
    trigger_summary: str = ""
    urgency_level: str = ""
    market_cap_category: str = ""
    analyst_coverage_score: str = ""

    # Scores (0-100)
    confidence_score: int = 0
    sentiment_score: int = 0
    source_count: int = 0

    # Tenths: 42 = 4.2%, 35 = 3.5x
    price_change_pct: int = 0
    volume_spike_multiplier: int = 0
    revenue_beat_pct: int = 0
    profit_beat_pct: int = 0

    ai_explanation: str = ""
    why_it_may_move_more: str = ""
    risk_factors: str = ""
    timestamp: int = 0  # ns since epoch, 0 = unknown

    @property
    def price_change_label(self) -> str:
        value = self.price_change_pct / 10
        sign = "+" if value >= 0 else ""
        return f"{sign}{value:.1f}%"

    @property
    def volume_label(self) -> str:
        return f"{self.volume_spike_multiplier / 10:.1f}x"

    @property
    def event_label(self) -> str:
        return event_label(self.event_type)


class BreakingNewsTrade(_BackendModel):
    """A breaking-news event matched to a listed company."""

    id: str
    headline: str
    company_name: str
    company_symbol: str
    event_type: str
    keyword_matched: str = ""
    confidence_level: str = ""
    urgency_score: int = 0
    sources: list[str] = Field(default_factory=list)
    timestamp: int = 0

    @property
    def event_label(self) -> str:
        return event_label(self.event_type)


class ScanMetadata(_BackendModel):
    """Status of the backend scan engine.

    Timestamps are nanoseconds since epoch; 0 means "never"/"not scheduled".
    """

    total_picks_generated: int = 0
    market_status: MarketStatus = "Closed"
    data_freshness_minutes: int = 0
    next_scheduled_scan: int = 0
    last_scan_timestamp: int = 0
    scan_status: ScanStatus = "Idle"
    total_breaking_news: int = 0


class ScanEngineView(BaseModel):
    """Derived, display-ready state for the scan engine panel.

    Computed from a ``ScanMetadata`` and a clock reading; never stored.
    """

    market_status: MarketStatus
    scan_status: ScanStatus
    last_scan_label: str
    last_scan_ist: str
    next_scan_countdown: str
    data_freshness_minutes: int
    freshness_tier: str
    pre_market_banner: bool
    total_picks_generated: int = 0
    total_breaking_news: int = 0


class TriggerResult(BaseModel):
    """Outcome of a backend write (manual scan trigger, clear data)."""

    ok: bool
    message: str = ""
    error: str | None = None
    cause: str | None = None  # exception class name of the underlying failure
