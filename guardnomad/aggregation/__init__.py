"""Resilient external-data aggregation: caching, coalescing, rate limiting and tiered fallback."""

from guardnomad.aggregation.cache_store import CacheEntry, CacheStore
from guardnomad.aggregation.circuit_breaker import BreakerState, CircuitBreaker
from guardnomad.aggregation.coalescer import InFlightRequest, RequestCoalescer
from guardnomad.aggregation.fallback import FallbackChain, Tier, TierOutcome
from guardnomad.aggregation.fingerprint import make_fingerprint
from guardnomad.aggregation.normalizer import ResponseNormalizer
from guardnomad.aggregation.rate_limiter import RateLimiter, RateWindow
from guardnomad.aggregation.service import AggregationService

__all__ = [
    "AggregationService",
    "BreakerState",
    "CacheEntry",
    "CacheStore",
    "CircuitBreaker",
    "FallbackChain",
    "InFlightRequest",
    "RateLimiter",
    "RateWindow",
    "RequestCoalescer",
    "ResponseNormalizer",
    "Tier",
    "TierOutcome",
    "make_fingerprint",
]
