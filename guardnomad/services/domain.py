"""Shared wiring for the domain services (news, events, destination safety).

Each service owns one cache, one rate limiter, one coalescer and one circuit
breaker. Nothing is shared between services.
"""

import logging
import time
from typing import Any, Callable

from guardnomad.aggregation.cache_store import CacheStore
from guardnomad.aggregation.circuit_breaker import CircuitBreaker
from guardnomad.aggregation.coalescer import RequestCoalescer
from guardnomad.aggregation.fallback import FallbackChain, Finalizer, GenerativeSource, LiveSource
from guardnomad.aggregation.normalizer import ResponseNormalizer
from guardnomad.aggregation.rate_limiter import RateLimiter
from guardnomad.aggregation.service import AggregationService
from guardnomad.config import Settings
from guardnomad.orchestrator.schemas import CanonicalResult
from guardnomad.orchestrator.static_data import get_static_results
from guardnomad.services.generative import ClaudeFallbackGenerator

logger = logging.getLogger(__name__)


class DomainService:
    """Base class: builds the aggregation stack from settings."""

    name = "domain"
    operations: tuple[str, ...] = ()

    def __init__(
        self,
        settings: Settings,
        normalizer: ResponseNormalizer,
        live: LiveSource | None,
        generative: GenerativeSource | None = None,
        cache_ttl_seconds: float = 300.0,
        cache_max_entries: int = 50,
        rate_limit_per_minute: int = 10,
        finalize: Finalizer | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        if generative is None:
            generative = ClaudeFallbackGenerator(
                api_key=settings.anthropic_api_key if settings.has_anthropic_key else "",
                model=settings.claude_model,
                timeout_seconds=settings.llm_timeout_seconds,
                max_retries=settings.llm_max_retries,
            )

        self.rate_limiter = RateLimiter(
            ceiling=rate_limit_per_minute,
            window_seconds=settings.rate_limit_window_seconds,
            clock=clock,
        )
        chain = FallbackChain(
            name=self.name,
            normalizer=normalizer,
            static_source=get_static_results,
            live=live,
            generative=generative,
            rate_limiter=self.rate_limiter,
            breaker=CircuitBreaker(name=self.name, cooldown_seconds=settings.live_cooldown_seconds, clock=clock),
            upstream_timeout=settings.upstream_timeout_seconds,
            generative_timeout=settings.generative_timeout_seconds,
            finalize=finalize,
        )
        self.aggregator = AggregationService(
            name=self.name,
            chain=chain,
            cache=CacheStore(ttl_seconds=cache_ttl_seconds, max_entries=cache_max_entries, name=self.name, clock=clock),
            coalescer=RequestCoalescer(cancel_abandoned=settings.cancel_abandoned_requests),
        )
        logger.info(
            "Service ready | name=%s | live=%s | generative=%s",
            self.name, bool(live and live.available), generative.available,
        )

    async def fetch(self, operation: str, params: dict[str, Any] | None = None) -> list[CanonicalResult]:
        return await self.aggregator.fetch(operation, params or {})

    def clear_cache(self) -> None:
        self.aggregator.clear_cache()

    def stats(self) -> dict[str, Any]:
        return self.aggregator.stats()
