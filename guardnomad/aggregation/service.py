"""Aggregation service — the composed read path.

Flow: fingerprint → cache → coalescer → fallback chain (rate limiter,
circuit breaker, live / generative / static tiers, normalizer) → cache write.

The cache write happens inside the coalesced task, so it completes before the
coalescer drops the in-flight slot; a caller arriving after that sees the
cached value instead of starting a second upstream call.
"""

import logging
from typing import Any

from guardnomad.aggregation.cache_store import CacheStore
from guardnomad.aggregation.coalescer import RequestCoalescer
from guardnomad.aggregation.fallback import FallbackChain
from guardnomad.aggregation.fingerprint import make_fingerprint
from guardnomad.orchestrator.schemas import CanonicalResult

logger = logging.getLogger(__name__)


def _copies(records: list[CanonicalResult]) -> list[CanonicalResult]:
    # Cached and coalesced records are shared; callers get their own copies.
    return [record.model_copy(deep=True) for record in records]


class AggregationService:
    """One cache/limiter/coalescer set per logical service."""

    def __init__(
        self,
        name: str,
        chain: FallbackChain,
        cache: CacheStore,
        coalescer: RequestCoalescer | None = None,
    ):
        self.name = name
        self.chain = chain
        self.cache = cache
        self.coalescer = coalescer or RequestCoalescer()

    async def fetch(self, operation: str, params: dict[str, Any] | None = None) -> list[CanonicalResult]:
        """Return canonical records for (operation, params). Never raises for upstream failures."""
        params = params or {}
        fingerprint = make_fingerprint(operation, params)

        cached = self.cache.get(fingerprint)
        if cached is not None:
            logger.info("Cache hit | service=%s | op=%s | key=%s", self.name, operation, fingerprint[:20])
            return _copies(cached)

        records = await self.coalescer.run(fingerprint, lambda: self._resolve(operation, params, fingerprint))
        return _copies(records)

    async def _resolve(self, operation: str, params: dict[str, Any], fingerprint: str) -> list[CanonicalResult]:
        outcome = await self.chain.resolve(operation, params, fingerprint)
        self.cache.set(fingerprint, outcome.records)
        return outcome.records

    def clear_cache(self) -> None:
        self.cache.clear()

    def stats(self) -> dict[str, Any]:
        limiter = self.chain.rate_limiter
        remaining = None
        if limiter is not None and not self.chain.per_operation_limits:
            remaining = limiter.remaining(self.chain.rate_scope(""))
        return {
            "cache": self.cache.stats(),
            "coalescer": self.coalescer.get_stats(),
            "circuit_breaker": self.chain.breaker.get_state(),
            "rate_limit_remaining": remaining,
        }
