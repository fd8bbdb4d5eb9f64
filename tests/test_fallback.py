"""Tests for the tiered fallback chain — live → generative → static."""

import asyncio
import json

import pytest

from guardnomad.aggregation.circuit_breaker import CircuitBreaker
from guardnomad.aggregation.errors import (
    MalformedGenerativeOutput,
    TransientNetworkError,
    UnauthorizedError,
)
from guardnomad.aggregation.fallback import FallbackChain, Tier, parse_generated_records
from guardnomad.aggregation.normalizer import ResponseNormalizer
from guardnomad.aggregation.rate_limiter import RateLimiter
from guardnomad.orchestrator.schemas import Category, NewsArticle, Severity
from guardnomad.orchestrator.static_data import get_static_results


class FakeLive:
    provider = "FakeNews"

    def __init__(self, result=None, error=None, available=True, delay=0.0):
        self.result = result if result is not None else [{"title": "flight delays at the airport"}]
        self.error = error
        self._available = available
        self.delay = delay
        self.calls = 0

    @property
    def available(self):
        return self._available

    async def fetch(self, operation, params):
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        return self.result


class FakeGenerative:
    def __init__(self, text=None, error=None, available=True):
        self.text = text if text is not None else json.dumps(
            {"items": [{"title": "Keep valuables close in crowded areas", "severity": "medium"}]}
        )
        self.error = error
        self._available = available
        self.calls = 0

    @property
    def available(self):
        return self._available

    async def generate(self, operation, params):
        self.calls += 1
        if self.error:
            raise self.error
        return self.text


def _chain(clock, live=None, generative=None, ceiling=10, **kwargs):
    return FallbackChain(
        name="news",
        normalizer=ResponseNormalizer(NewsArticle, Category.GENERAL, provider="FakeNews"),
        static_source=get_static_results,
        live=live,
        generative=generative,
        rate_limiter=RateLimiter(ceiling=ceiling, clock=clock),
        breaker=CircuitBreaker("news", cooldown_seconds=300, clock=clock),
        **kwargs,
    )


class TestLiveTier:
    @pytest.mark.asyncio
    async def test_live_success(self, clock):
        chain = _chain(clock, live=FakeLive(), generative=FakeGenerative())
        outcome = await chain.resolve("travelNews", {})
        assert outcome.tier == Tier.LIVE
        assert outcome.records[0].title == "flight delays at the airport"
        assert outcome.records[0].category == Category.TRAVEL

    @pytest.mark.asyncio
    async def test_no_credentials_skips_live(self, clock):
        live = FakeLive(available=False)
        generative = FakeGenerative()
        outcome = await _chain(clock, live=live, generative=generative).resolve("travelNews", {})
        assert outcome.tier == Tier.GENERATIVE
        assert live.calls == 0

    @pytest.mark.asyncio
    async def test_empty_live_result_advances(self, clock):
        outcome = await _chain(clock, live=FakeLive(result=[]), generative=FakeGenerative()).resolve(
            "travelNews", {},
        )
        assert outcome.tier == Tier.GENERATIVE

    @pytest.mark.asyncio
    async def test_non_list_live_result_advances(self, clock):
        outcome = await _chain(clock, live=FakeLive(result={"oops": 1}), generative=None).resolve(
            "travelNews", {},
        )
        assert outcome.tier == Tier.STATIC

    @pytest.mark.asyncio
    async def test_transient_error_advances_without_tripping(self, clock):
        chain = _chain(
            clock, live=FakeLive(error=TransientNetworkError("boom", provider="FakeNews")),
            generative=FakeGenerative(),
        )
        outcome = await chain.resolve("travelNews", {})
        assert outcome.tier == Tier.GENERATIVE
        assert chain.breaker.allow() is True

    @pytest.mark.asyncio
    async def test_timeout_advances(self, clock):
        chain = _chain(clock, live=FakeLive(delay=1.0), generative=FakeGenerative(), upstream_timeout=0.01)
        outcome = await chain.resolve("travelNews", {})
        assert outcome.tier == Tier.GENERATIVE


class TestCircuitBreakerIntegration:
    @pytest.mark.asyncio
    async def test_unauthorized_trips_breaker(self, clock):
        live = FakeLive(error=UnauthorizedError("quota", provider="FakeNews", status_code=429))
        chain = _chain(clock, live=live, generative=FakeGenerative())

        first = await chain.resolve("travelNews", {})
        second = await chain.resolve("travelNews", {"country": "Japan"})

        assert first.tier == Tier.GENERATIVE
        assert second.tier == Tier.GENERATIVE
        assert live.calls == 1
        assert chain.breaker.get_state()["state"] == "open"

    @pytest.mark.asyncio
    async def test_live_retried_after_cooldown(self, clock):
        live = FakeLive(error=UnauthorizedError("denied", provider="FakeNews", status_code=401))
        chain = _chain(clock, live=live, generative=FakeGenerative())
        await chain.resolve("travelNews", {})

        live.error = None
        clock.advance(300)
        outcome = await chain.resolve("travelNews", {})
        assert outcome.tier == Tier.LIVE
        assert live.calls == 2

    @pytest.mark.asyncio
    async def test_open_breaker_does_not_consume_permits(self, clock):
        chain = _chain(clock, live=FakeLive(), generative=FakeGenerative(), ceiling=5)
        chain.breaker.trip("test")
        await chain.resolve("travelNews", {})
        assert chain.rate_limiter.remaining("news") == 5


class TestRateLimiting:
    @pytest.mark.asyncio
    async def test_rate_limited_falls_through(self, clock):
        live = FakeLive()
        chain = _chain(clock, live=live, generative=FakeGenerative(), ceiling=1)
        first = await chain.resolve("travelNews", {})
        second = await chain.resolve("weatherNews", {})
        assert first.tier == Tier.LIVE
        assert second.tier == Tier.GENERATIVE
        assert live.calls == 1

    @pytest.mark.asyncio
    async def test_per_operation_scopes(self, clock):
        live = FakeLive()
        chain = _chain(clock, live=live, generative=FakeGenerative(), ceiling=1, per_operation_limits=True)
        first = await chain.resolve("travelNews", {})
        second = await chain.resolve("weatherNews", {})
        assert first.tier == Tier.LIVE
        assert second.tier == Tier.LIVE
        assert chain.rate_scope("weatherNews") == "news:weatherNews"


class TestTotality:
    @pytest.mark.asyncio
    async def test_unauthorized_live_and_malformed_generative_reach_static(self, clock):
        chain = _chain(
            clock,
            live=FakeLive(error=UnauthorizedError("denied", provider="FakeNews", status_code=403)),
            generative=FakeGenerative(text="Sorry, I cannot help with that."),
        )
        outcome = await chain.resolve("travelNews", {})
        assert outcome.tier == Tier.STATIC
        assert len(outcome.records) == 3

    @pytest.mark.asyncio
    async def test_generative_exception_reaches_static(self, clock):
        chain = _chain(clock, live=None, generative=FakeGenerative(error=RuntimeError("api down")))
        outcome = await chain.resolve("localEvents", {"city": "Lisbon"})
        assert outcome.tier == Tier.STATIC
        assert outcome.records

    @pytest.mark.asyncio
    async def test_nothing_configured_reaches_static(self, clock):
        chain = _chain(clock, live=FakeLive(available=False), generative=FakeGenerative(available=False))
        outcome = await chain.resolve("destinationAlerts", {"destination": "Rome"})
        assert outcome.tier == Tier.STATIC
        assert len(outcome.records) == 2

    @pytest.mark.asyncio
    async def test_finalize_runs_on_every_tier(self, clock):
        chain = _chain(clock, live=None, generative=None, finalize=lambda records: records[:1])
        outcome = await chain.resolve("travelNews", {})
        assert outcome.tier == Tier.STATIC
        assert len(outcome.records) == 1


class TestParseGeneratedRecords:
    def _normalizer(self):
        return ResponseNormalizer(NewsArticle, Category.GENERAL)

    def test_valid_items(self):
        text = '```json\n{"items": [{"title": "Flood warning along the river", "category": "weather"}]}\n```'
        records = parse_generated_records(text, self._normalizer())
        assert records[0].category == Category.WEATHER
        assert records[0].severity == Severity.HIGH

    def test_invalid_items_skipped(self):
        text = json.dumps({"items": [{"description": "no title"}, "junk", {"title": "Carry a copy of your passport"}]})
        records = parse_generated_records(text, self._normalizer())
        assert [r.title for r in records] == ["Carry a copy of your passport"]

    def test_no_json_raises(self):
        with pytest.raises(MalformedGenerativeOutput):
            parse_generated_records("no json here", self._normalizer())

    def test_missing_items_raises(self):
        with pytest.raises(MalformedGenerativeOutput):
            parse_generated_records('{"articles": []}', self._normalizer())

    def test_all_items_invalid_raises(self):
        with pytest.raises(MalformedGenerativeOutput):
            parse_generated_records('{"items": [{"description": "x"}]}', self._normalizer())
