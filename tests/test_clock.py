"""Tests for the clock helpers — relative ages, countdowns, freshness tiers."""

from __future__ import annotations

import pytest
from conftest import NOW_MS, ns

from pickwatch.utils.clock import (
    FreshnessTier,
    age_ms,
    countdown_label,
    freshness_tier,
    relative_label,
)


# ──────────────────────────────────────────────────────────────
# age_ms / relative_label
# ──────────────────────────────────────────────────────────────

class TestRelativeLabel:
    """Server timestamps rendered as "N units ago"."""

    def test_sentinel_is_unknown(self) -> None:
        assert relative_label(0, NOW_MS) == "Unknown"
        assert age_ms(0, NOW_MS) is None

    def test_age_ms(self) -> None:
        assert age_ms(ns(NOW_MS - 1_500), NOW_MS) == 1_500

    @pytest.mark.parametrize(
        ("age", "expected"),
        [
            (0, "0s ago"),
            (59_999, "59s ago"),
            (60_000, "1m ago"),
            (59 * 60_000 + 59_000, "59m ago"),
            (3_600_000, "1h ago"),
            (23 * 3_600_000, "23h ago"),
            (24 * 3_600_000, "1d ago"),
            (10 * 86_400_000 + 5_000, "10d ago"),
        ],
    )
    def test_buckets(self, age: int, expected: str) -> None:
        assert relative_label(ns(NOW_MS - age), NOW_MS) == expected

    def test_future_timestamp_clamps_to_zero(self) -> None:
        assert relative_label(ns(NOW_MS + 5_000), NOW_MS) == "0s ago"


# ──────────────────────────────────────────────────────────────
# countdown_label
# ──────────────────────────────────────────────────────────────

class TestCountdownLabel:
    """Time remaining until the next scheduled scan."""

    def test_sentinel_is_dash(self) -> None:
        assert countdown_label(0, NOW_MS) == "—"

    @pytest.mark.parametrize("offset", [0, -1, -1_000, -86_400_000])
    def test_past_or_now_is_now(self, offset: int) -> None:
        assert countdown_label(ns(NOW_MS + offset), NOW_MS) == "Now"

    def test_hours_and_minutes(self) -> None:
        target = NOW_MS + (3 * 3600 + 25 * 60 + 10) * 1000
        assert countdown_label(ns(target), NOW_MS) == "3h 25m"

    def test_minutes_and_seconds(self) -> None:
        target = NOW_MS + (5 * 60 + 7) * 1000
        assert countdown_label(ns(target), NOW_MS) == "5m 7s"

    def test_seconds_only(self) -> None:
        assert countdown_label(ns(NOW_MS + 42_000), NOW_MS) == "42s"

    def test_sub_second_remaining(self) -> None:
        assert countdown_label(ns(NOW_MS + 500), NOW_MS) == "0s"

    def test_hour_with_zero_minutes(self) -> None:
        assert countdown_label(ns(NOW_MS + 3_600_000), NOW_MS) == "1h 0m"

    def test_never_negative(self) -> None:
        for offset in range(-5_000, 5_000, 250):
            assert "-" not in countdown_label(ns(NOW_MS + offset), NOW_MS)


# ──────────────────────────────────────────────────────────────
# freshness_tier
# ──────────────────────────────────────────────────────────────

class TestFreshnessTier:
    """Half-open thresholds at 30 and 60 minutes."""

    @pytest.mark.parametrize(
        ("minutes", "tier"),
        [
            (0, FreshnessTier.FRESH),
            (29, FreshnessTier.FRESH),
            (29.9, FreshnessTier.FRESH),
            (30, FreshnessTier.STALE),
            (59, FreshnessTier.STALE),
            (60, FreshnessTier.OUTDATED),
            (600, FreshnessTier.OUTDATED),
        ],
    )
    def test_boundaries(self, minutes: float, tier: FreshnessTier) -> None:
        assert freshness_tier(minutes) is tier

    def test_tier_values_are_display_strings(self) -> None:
        assert freshness_tier(29).value == "Fresh"
        assert freshness_tier(30).value == "Stale"
        assert freshness_tier(60).value == "Outdated"
