import os
import tempfile

# Route log files to a temp dir before pickwatch.config is imported
os.environ.setdefault("PICKWATCH_LOGS_DIR", tempfile.mkdtemp(prefix="pickwatch_logs_"))

from unittest.mock import AsyncMock  # noqa: E402

import pytest  # noqa: E402

from pickwatch.models.scan import BreakingNewsTrade, ScanMetadata, StockPick  # noqa: E402
from pickwatch.services.backend_client import ActorProvider  # noqa: E402
from pickwatch.services.poll_scheduler import PollScheduler  # noqa: E402
from pickwatch.services.sync_coordinator import SyncCoordinator  # noqa: E402

# Fixed "now" for clock-sensitive tests (epoch ms)
NOW_MS = 1_760_000_000_000


def ns(ms: int) -> int:
    """Epoch milliseconds → the backend's nanosecond timestamps."""
    return ms * 1_000_000


def make_pick(symbol: str = "TATAPOWER", **overrides) -> StockPick:
    fields = {
        "symbol": symbol,
        "company_name": f"{symbol} Ltd",
        "event_type": "GovernmentOrder",
        "confidence_score": 82,
        "price_change_pct": 42,
        "volume_spike_multiplier": 35,
        "timestamp": ns(NOW_MS - 60_000),
    }
    fields.update(overrides)
    return StockPick(**fields)


def make_news(news_id: str = "n-1", **overrides) -> BreakingNewsTrade:
    fields = {
        "id": news_id,
        "headline": "Company wins Rs 1,200 cr railway order",
        "company_name": "RVNL",
        "company_symbol": "RVNL",
        "event_type": "GovernmentOrder",
        "urgency_score": 9,
        "sources": ["exchange-filing"],
        "timestamp": ns(NOW_MS - 120_000),
    }
    fields.update(overrides)
    return BreakingNewsTrade(**fields)


def make_metadata(**overrides) -> ScanMetadata:
    fields = {
        "total_picks_generated": 12,
        "market_status": "Open",
        "data_freshness_minutes": 4,
        "next_scheduled_scan": ns(NOW_MS + 5 * 60_000),
        "last_scan_timestamp": ns(NOW_MS - 4 * 60_000),
        "scan_status": "Idle",
        "total_breaking_news": 3,
    }
    fields.update(overrides)
    return ScanMetadata(**fields)


@pytest.fixture()
def actor() -> AsyncMock:
    """Backend actor double returning one pick, one news item, fresh metadata."""
    mock = AsyncMock()
    mock.get_top_picks.return_value = [make_pick()]
    mock.get_all_picks.return_value = [make_pick(), make_pick("SUZLON")]
    mock.get_breaking_news_trades.return_value = [make_news()]
    mock.get_scan_metadata.return_value = make_metadata()
    mock.trigger_manual_scan.return_value = "Scan queued"
    mock.clear_all_data.return_value = None
    return mock


@pytest.fixture()
def coordinator(actor: AsyncMock) -> SyncCoordinator:
    """Coordinator wired to the mock actor. Not started: tests drive refreshes."""
    return SyncCoordinator(ActorProvider(actor), scheduler=PollScheduler(30_000))
