"""Tests for HttpBackendActor and ActorProvider.

Uses httpx.MockTransport so no network is touched.
"""

from __future__ import annotations

from unittest.mock import patch

import httpx
import pytest

from pickwatch.models.scan import ScanMetadata
from pickwatch.services.backend_client import ActorProvider, HttpBackendActor

PICK_JSON = {
    "symbol": "BEL",
    "companyName": "Bharat Electronics",
    "eventType": "GovernmentOrder",
    "confidenceScore": "88",
    "priceChangePct": -15,
    "volumeSpikeMultiplier": 42,
    "timestamp": 1760000000000000000,
}

NEWS_JSON = {
    "id": "bn-7",
    "headline": "BEL bags defence order",
    "companyName": "Bharat Electronics",
    "companySymbol": "BEL",
    "eventType": "GovernmentOrder",
    "keywordMatched": "order",
    "urgencyScore": 8,
    "sources": ["nse", "moneycontrol"],
    "timestamp": 1760000000000000000,
}

META_JSON = {
    "totalPicksGenerated": 9,
    "marketStatus": "PreMarket",
    "dataFreshnessMinutes": 31,
    "nextScheduledScan": 0,
    "lastScanTimestamp": 1760000000000000000,
    "scanStatus": "Running",
    "totalBreakingNews": 2,
}


def _handler(request: httpx.Request) -> httpx.Response:
    routes = {
        ("GET", "/api/picks/top"): [PICK_JSON],
        ("GET", "/api/picks"): [PICK_JSON, PICK_JSON],
        ("GET", "/api/news/breaking"): [NEWS_JSON],
        ("GET", "/api/scan/metadata"): META_JSON,
        ("POST", "/api/scan/trigger"): {"message": "Manual scan started"},
    }
    key = (request.method, request.url.path)
    if key == ("POST", "/api/admin/clear"):
        return httpx.Response(204)
    if key not in routes:
        return httpx.Response(404, json={"error": "not found"})
    return httpx.Response(200, json=routes[key])


@pytest.fixture()
def http_actor() -> HttpBackendActor:
    return HttpBackendActor(
        "http://backend.test/", transport=httpx.MockTransport(_handler),
    )


class TestHttpBackendActor:

    @pytest.mark.asyncio
    async def test_top_picks_parse_camel_case(self, http_actor: HttpBackendActor) -> None:
        picks = await http_actor.get_top_picks()
        assert len(picks) == 1
        pick = picks[0]
        assert pick.company_name == "Bharat Electronics"
        assert pick.confidence_score == 88
        assert pick.price_change_label == "-1.5%"
        await http_actor.aclose()

    @pytest.mark.asyncio
    async def test_all_picks(self, http_actor: HttpBackendActor) -> None:
        assert len(await http_actor.get_all_picks()) == 2
        await http_actor.aclose()

    @pytest.mark.asyncio
    async def test_breaking_news(self, http_actor: HttpBackendActor) -> None:
        news = await http_actor.get_breaking_news_trades()
        assert news[0].company_symbol == "BEL"
        assert news[0].sources == ["nse", "moneycontrol"]
        await http_actor.aclose()

    @pytest.mark.asyncio
    async def test_scan_metadata(self, http_actor: HttpBackendActor) -> None:
        meta = await http_actor.get_scan_metadata()
        assert isinstance(meta, ScanMetadata)
        assert meta.market_status == "PreMarket"
        assert meta.scan_status == "Running"
        assert meta.next_scheduled_scan == 0
        await http_actor.aclose()

    @pytest.mark.asyncio
    async def test_trigger_returns_confirmation(self, http_actor: HttpBackendActor) -> None:
        assert await http_actor.trigger_manual_scan() == "Manual scan started"
        await http_actor.aclose()

    @pytest.mark.asyncio
    async def test_plain_string_confirmation(self) -> None:
        actor = HttpBackendActor(
            "http://backend.test",
            transport=httpx.MockTransport(
                lambda request: httpx.Response(200, json="queued"),
            ),
        )
        assert await actor.trigger_manual_scan() == "queued"
        await actor.aclose()

    @pytest.mark.asyncio
    async def test_clear_all_data_no_content(self, http_actor: HttpBackendActor) -> None:
        assert await http_actor.clear_all_data() is None
        await http_actor.aclose()

    @pytest.mark.asyncio
    async def test_http_error_raises(self) -> None:
        actor = HttpBackendActor(
            "http://backend.test",
            transport=httpx.MockTransport(lambda request: httpx.Response(503)),
        )
        with pytest.raises(httpx.HTTPStatusError):
            await actor.get_top_picks()
        await actor.aclose()


class TestActorProvider:

    def test_empty_provider_is_unavailable(self) -> None:
        provider = ActorProvider()
        assert provider.get() is None
        assert provider.available is False

    def test_from_settings_without_url(self) -> None:
        with patch("pickwatch.services.backend_client.settings") as mock_settings:
            mock_settings.backend_configured = False
            assert ActorProvider.from_settings().available is False

    @pytest.mark.asyncio
    async def test_from_settings_with_url(self) -> None:
        with patch("pickwatch.services.backend_client.settings") as mock_settings:
            mock_settings.backend_configured = True
            mock_settings.BACKEND_URL = "http://backend.test"
            mock_settings.BACKEND_TIMEOUT_SECONDS = 3.0
            provider = ActorProvider.from_settings()
        assert isinstance(provider.get(), HttpBackendActor)
        await provider.aclose()
