"""Tests for core utilities."""

from datetime import datetime, timezone

import pytest
import pytz

from polyarb.core.cache import CacheManager
from polyarb.core.errors import RateLimitError, UpstreamUnavailable
from polyarb.core.timeutil import days_until, format_timestamp, parse_iso, to_local


class FakeTimer:
    def __init__(self):
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class TestCacheManager:
    """Tests for CacheManager."""

    def test_expires_after_ttl(self):
        timer = FakeTimer()
        cache = CacheManager(ttl=5, timer=timer)
        cache.set("book:t1", "snapshot")

        timer.now = 4.9
        assert cache.get("book:t1") == "snapshot"
        timer.now = 5.0
        assert cache.get("book:t1") is None

    def test_stats(self):
        cache = CacheManager(ttl=5)
        cache.set("a", 1)
        cache.get("a")
        cache.get("b")

        assert cache.stats == {"hits": 1, "misses": 1, "total": 2, "hit_rate": 0.5, "size": 1}

    def test_zero_ttl_disables(self):
        cache = CacheManager(ttl=0)
        cache.set("a", 1)

        assert cache.get("a") is None

    def test_delete_and_clear(self):
        cache = CacheManager(ttl=5)
        cache.set("a", 1)
        cache.set("b", 2)

        cache.delete("a")
        assert cache.get("a") is None
        cache.clear()
        assert cache.stats["size"] == 0


class TestTimeutil:
    """Tests for time helpers."""

    @pytest.mark.parametrize(
        "raw",
        ["2026-03-01T12:00:00Z", "2026-03-01T12:00:00+00:00", "2026-03-01T12:00:00"],
    )
    def test_parse_iso_variants(self, raw):
        assert parse_iso(raw) == datetime(2026, 3, 1, 12, tzinfo=timezone.utc)

    @pytest.mark.parametrize("raw", [None, "", "soon"])
    def test_parse_iso_invalid(self, raw):
        assert parse_iso(raw) is None

    def test_days_until(self):
        now = datetime(2026, 3, 1, tzinfo=timezone.utc)

        assert days_until("2026-03-03T12:00:00Z", now=now) == pytest.approx(2.5)
        assert days_until("2026-02-28T00:00:00Z", now=now) == pytest.approx(-1)
        assert days_until(None, now=now) is None

    def test_format_timestamp(self):
        dt = datetime(2026, 3, 1, 9, 5, 7, tzinfo=timezone.utc)

        assert format_timestamp(dt) == "2026-03-01T09:05:07Z"
        assert format_timestamp(dt, fmt="time") == "09:05:07"

    def test_to_local(self):
        dt = datetime(2026, 1, 15, 17, 0)

        local = to_local(dt, pytz.timezone("America/New_York"))

        assert local.hour == 12


class TestErrors:
    """Tests for error serialization."""

    def test_rate_limit_to_dict(self):
        error = RateLimitError("Rate limit exceeded", provider="polymarket", retry_after=2)

        data = error.to_dict()

        assert data["error"] == "RATE_LIMIT"
        assert data["details"]["retry_after"] == 2
        assert error.status_code == 429

    def test_upstream_unavailable_is_recoverable(self):
        error = UpstreamUnavailable("CLOB down", provider="polymarket")

        assert error.recoverable is True
        assert error.code == "UPSTREAM_UNAVAILABLE"
