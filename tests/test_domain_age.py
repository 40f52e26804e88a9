"""Tests for RDAP domain-age scoring."""

from datetime import datetime, timedelta, timezone

import httpx
import pytest

from linksentry.analyzer.domain_age import (
    DomainAgeProber,
    parse_registration_date,
    score_domain_age,
)
from linksentry.analyzer.models import CheckStatus
from linksentry.cache import create_domain_age_cache

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def _rdap_body(created: datetime, action: str = "registration") -> dict:
    return {
        "objectClassName": "domain",
        "ldhName": "example.com",
        "events": [
            {"eventAction": "last changed", "eventDate": "2026-02-01T00:00:00Z"},
            {"eventAction": action, "eventDate": created.strftime("%Y-%m-%dT%H:%M:%SZ")},
        ],
    }


class RecordingHandler:
    def __init__(self, response_factory):
        self.response_factory = response_factory
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.response_factory(request)


def _prober(handler, cache=None) -> DomainAgeProber:
    return DomainAgeProber(
        cache,
        rdap_base_url="https://rdap.test/domain/",
        transport=httpx.MockTransport(handler),
        clock=lambda: NOW,
    )


class TestScoreDomainAge:
    @pytest.mark.parametrize(
        "age_days,expected",
        [(0, 15), (13, 15), (14, 10), (89, 10), (90, 0), (4000, 0)],
    )
    def test_thresholds(self, age_days, expected):
        assert score_domain_age(age_days).score_delta == expected

    def test_reason_mentions_age(self):
        assert score_domain_age(3).reasons == ("New domain (3 days old)",)
        assert score_domain_age(30).reasons == ("Recently created domain (30 days old)",)


class TestParseRegistrationDate:
    def test_prefers_registration_over_created(self):
        data = {
            "events": [
                {"eventAction": "created", "eventDate": "2001-01-01T00:00:00Z"},
                {"eventAction": "registration", "eventDate": "2020-05-05T00:00:00Z"},
            ]
        }
        assert parse_registration_date(data) == datetime(2020, 5, 5, tzinfo=timezone.utc)

    def test_falls_back_to_registered(self):
        data = {"events": [{"eventAction": "registered", "eventDate": "2019-07-01"}]}
        assert parse_registration_date(data) == datetime(2019, 7, 1, tzinfo=timezone.utc)

    def test_offset_dates_are_normalized_to_utc(self):
        data = {"events": [{"eventAction": "registration", "eventDate": "2020-01-01T02:00:00+02:00"}]}
        assert parse_registration_date(data) == datetime(2020, 1, 1, tzinfo=timezone.utc)

    @pytest.mark.parametrize(
        "data",
        [
            None,
            [],
            {},
            {"events": "nope"},
            {"events": [{"eventAction": "expiration", "eventDate": "2030-01-01T00:00:00Z"}]},
            {"events": [{"eventAction": "registration", "eventDate": "not a date"}]},
        ],
    )
    def test_unusable_payloads(self, data):
        assert parse_registration_date(data) is None


class TestDomainAgeProber:
    @pytest.mark.asyncio
    async def test_new_domain_scores_fifteen(self):
        handler = RecordingHandler(
            lambda request: httpx.Response(200, json=_rdap_body(NOW - timedelta(days=5)))
        )
        outcome = await _prober(handler).probe("example.com")

        assert outcome.status is CheckStatus.OK
        assert outcome.score_delta == 15
        assert outcome.reasons == ("New domain (5 days old)",)
        assert str(handler.requests[0].url) == "https://rdap.test/domain/example.com"

    @pytest.mark.asyncio
    async def test_recent_domain_scores_ten(self):
        handler = RecordingHandler(
            lambda request: httpx.Response(200, json=_rdap_body(NOW - timedelta(days=45), "created"))
        )
        outcome = await _prober(handler).probe("example.com")
        assert outcome.score_delta == 10

    @pytest.mark.asyncio
    async def test_old_domain_scores_zero(self):
        handler = RecordingHandler(
            lambda request: httpx.Response(200, json=_rdap_body(datetime(1999, 1, 1, tzinfo=timezone.utc)))
        )
        outcome = await _prober(handler).probe("example.com")
        assert outcome.status is CheckStatus.OK
        assert outcome.score_delta == 0
        assert outcome.reasons == ()

    @pytest.mark.asyncio
    async def test_future_registration_date_counts_as_new(self):
        handler = RecordingHandler(
            lambda request: httpx.Response(200, json=_rdap_body(NOW + timedelta(days=3)))
        )
        outcome = await _prober(handler).probe("example.com")
        assert outcome.reasons == ("New domain (0 days old)",)

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "response",
        [
            httpx.Response(404, json={"errorCode": 404}),
            httpx.Response(200, text="<html>not rdap</html>"),
            httpx.Response(200, json={"events": []}),
        ],
    )
    async def test_unusable_responses_are_unavailable(self, response):
        handler = RecordingHandler(lambda request: response)
        outcome = await _prober(handler).probe("example.com")

        assert outcome.status is CheckStatus.UNAVAILABLE
        assert outcome.score_delta == 0
        assert outcome.reasons == ()

    @pytest.mark.asyncio
    async def test_network_error_is_unavailable(self):
        def raise_connect(request):
            raise httpx.ConnectError("connection refused", request=request)

        outcome = await _prober(raise_connect).probe("example.com")
        assert outcome.status is CheckStatus.UNAVAILABLE
        assert "connection refused" in outcome.detail

    @pytest.mark.asyncio
    async def test_timeout_is_unavailable(self):
        def raise_timeout(request):
            raise httpx.ReadTimeout("slow", request=request)

        outcome = await _prober(raise_timeout).probe("example.com")
        assert outcome.status is CheckStatus.UNAVAILABLE
        assert outcome.detail == "RDAP lookup timed out"

    @pytest.mark.asyncio
    async def test_cached_lookup_skips_network(self):
        handler = RecordingHandler(
            lambda request: httpx.Response(200, json=_rdap_body(NOW - timedelta(days=5)))
        )
        prober = _prober(handler)

        first = await prober.probe("Example.com")
        second = await prober.probe("example.com")
        lookup = await prober.lookup("example.com")

        assert len(handler.requests) == 1
        assert first == second
        assert lookup.cached is True

    @pytest.mark.asyncio
    async def test_failed_lookup_is_not_cached(self):
        handler = RecordingHandler(lambda request: httpx.Response(503))
        prober = _prober(handler)

        await prober.probe("example.com")
        await prober.probe("example.com")

        assert len(handler.requests) == 2

    @pytest.mark.asyncio
    async def test_expired_cache_entry_refetches(self):
        clock = {"now": 1_000_000.0}
        cache = create_domain_age_cache(clock=lambda: clock["now"])
        handler = RecordingHandler(
            lambda request: httpx.Response(200, json=_rdap_body(NOW - timedelta(days=400)))
        )
        prober = _prober(handler, cache=cache)

        await prober.probe("example.com")
        clock["now"] += 6 * 3600 - 1
        await prober.probe("example.com")
        assert len(handler.requests) == 1

        clock["now"] += 2
        await prober.probe("example.com")
        assert len(handler.requests) == 2

    @pytest.mark.asyncio
    async def test_empty_root_domain_is_a_clean_noop(self):
        handler = RecordingHandler(lambda request: httpx.Response(200, json={}))
        prober = _prober(handler)
        outcome = await prober.probe("")
        lookup = await prober.lookup("")

        assert outcome.status is CheckStatus.OK
        assert outcome.score_delta == 0
        assert outcome.reasons == ()
        assert lookup.ok is False
        assert handler.requests == []

    @pytest.mark.asyncio
    async def test_lookups_are_counted_in_cache_stats(self):
        handler = RecordingHandler(
            lambda request: httpx.Response(200, json=_rdap_body(NOW - timedelta(days=5)))
        )
        prober = _prober(handler)

        first = await prober.lookup("example.com")
        second = await prober.lookup("example.com")

        assert first.cached is False
        assert second.cached is True
        assert second.created_at == first.created_at
        stats = prober.cache.stats()
        assert stats["hits"] == 1
        assert stats["memory_entries"] == 1
