"""Tiered fallback chain: live upstream → generative LLM → static catalog.

One pass per request, no retries beyond the three tiers:

  LIVE        — needs credentials, a closed circuit breaker and a rate permit
  GENERATIVE  — needs an available generator; output must parse into records
  STATIC      — always answers

Failures are logged and advance the chain; they never reach the caller.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Protocol

from pydantic import ValidationError

from guardnomad.aggregation.circuit_breaker import CircuitBreaker
from guardnomad.aggregation.errors import (
    AggregationError,
    MalformedGenerativeOutput,
    MalformedUpstreamResponse,
    UnauthorizedError,
)
from guardnomad.aggregation.normalizer import ResponseNormalizer
from guardnomad.aggregation.rate_limiter import RateLimiter
from guardnomad.orchestrator.schemas import CanonicalResult, GeneratedItem
from guardnomad.services.llm_client import extract_json

logger = logging.getLogger(__name__)


class Tier(str, Enum):
    LIVE = "live"
    GENERATIVE = "generative"
    STATIC = "static"


@dataclass
class TierOutcome:
    tier: Tier
    records: list[CanonicalResult] = field(default_factory=list)


class LiveSource(Protocol):
    provider: str

    @property
    def available(self) -> bool: ...

    async def fetch(self, operation: str, params: dict[str, Any]) -> list[dict[str, Any]]: ...


class GenerativeSource(Protocol):

    @property
    def available(self) -> bool: ...

    async def generate(self, operation: str, params: dict[str, Any]) -> str: ...


StaticSource = Callable[[str, dict[str, Any]], list[CanonicalResult]]
Finalizer = Callable[[list[CanonicalResult]], list[CanonicalResult]]


def parse_generated_records(text: str, normalizer: ResponseNormalizer) -> list[CanonicalResult]:
    """Parse generative output of the form {"items": [...]} into records.

    Raises MalformedGenerativeOutput when no usable item can be recovered.
    """
    data = extract_json(text or "")
    if data is None:
        raise MalformedGenerativeOutput("no JSON object in generative output")

    raw_items = data.get("items")
    if not isinstance(raw_items, list) or not raw_items:
        raise MalformedGenerativeOutput("generative output has no 'items' array")

    records = []
    for raw in raw_items:
        if not isinstance(raw, dict):
            continue
        try:
            item = GeneratedItem.model_validate(raw)
        except ValidationError as e:
            logger.debug("Generative item skipped | %s", str(e)[:200])
            continue
        records.append(normalizer.normalize(item.model_dump(exclude_defaults=True)))

    if not records:
        raise MalformedGenerativeOutput("no valid items in generative output")
    return records


class FallbackChain:
    """Walks the tiers in priority order and returns the first that answers."""

    def __init__(
        self,
        name: str,
        normalizer: ResponseNormalizer,
        static_source: StaticSource,
        live: LiveSource | None = None,
        generative: GenerativeSource | None = None,
        rate_limiter: RateLimiter | None = None,
        breaker: CircuitBreaker | None = None,
        upstream_timeout: float = 10.0,
        generative_timeout: float = 30.0,
        per_operation_limits: bool = False,
        finalize: Finalizer | None = None,
    ):
        self.name = name
        self.normalizer = normalizer
        self.static_source = static_source
        self.live = live
        self.generative = generative
        self.rate_limiter = rate_limiter
        self.breaker = breaker or CircuitBreaker(name=name)
        self.upstream_timeout = upstream_timeout
        self.generative_timeout = generative_timeout
        self.per_operation_limits = per_operation_limits
        self.finalize = finalize

    def rate_scope(self, operation: str) -> str:
        return f"{self.name}:{operation}" if self.per_operation_limits else self.name

    async def resolve(self, operation: str, params: dict[str, Any], fingerprint: str = "") -> TierOutcome:
        key = fingerprint[:20]

        records = await self._attempt_live(operation, params, key)
        tier = Tier.LIVE
        if records is None:
            records = await self._attempt_generative(operation, params, key)
            tier = Tier.GENERATIVE
        if records is None:
            records = self._attempt_static(operation, params)
            tier = Tier.STATIC

        if self.finalize:
            records = self.finalize(records)

        logger.info(
            "Fallback resolved | service=%s | op=%s | tier=%s | items=%d | key=%s",
            self.name, operation, tier.value, len(records), key,
        )
        return TierOutcome(tier=tier, records=records)

    # ═══════════════ TIERS ═══════════════

    async def _attempt_live(self, operation: str, params: dict[str, Any], key: str) -> list[CanonicalResult] | None:
        if self.live is None or not self.live.available:
            logger.info("Live tier skipped | service=%s | op=%s | reason=no_credentials", self.name, operation)
            return None

        if not self.breaker.allow():
            logger.info("Live tier skipped | service=%s | op=%s | reason=circuit_open", self.name, operation)
            return None

        if self.rate_limiter is not None and not self.rate_limiter.try_acquire(self.rate_scope(operation)):
            logger.warning("Live tier skipped | service=%s | op=%s | reason=rate_limited", self.name, operation)
            return None

        start = time.monotonic()
        try:
            raw = await asyncio.wait_for(self.live.fetch(operation, params), timeout=self.upstream_timeout)
            if not isinstance(raw, list):
                raise MalformedUpstreamResponse(
                    f"expected a list of records, got {type(raw).__name__}", provider=self.live.provider,
                )
        except asyncio.TimeoutError:
            elapsed_ms = int((time.monotonic() - start) * 1000)
            logger.warning(
                "Live tier timeout | service=%s | op=%s | %dms | key=%s", self.name, operation, elapsed_ms, key,
            )
            return None
        except UnauthorizedError as e:
            logger.warning(
                "Live tier unauthorized | service=%s | op=%s | status=%s | key=%s",
                self.name, operation, e.status_code, key,
            )
            self.breaker.trip(f"{e.code}: {e.message}")
            return None
        except AggregationError as e:
            logger.warning(
                "Live tier failed | service=%s | op=%s | kind=%s | %s | key=%s",
                self.name, operation, e.kind.value, str(e)[:200], key,
            )
            return None
        except Exception as e:
            logger.error(
                "Live tier error | service=%s | op=%s | %s | key=%s", self.name, operation, str(e)[:200], key,
            )
            return None

        records = self.normalizer.normalize_many([r for r in raw if isinstance(r, dict)])
        if not records:
            logger.warning("Live tier empty | service=%s | op=%s | key=%s", self.name, operation, key)
            return None
        return records

    async def _attempt_generative(
        self, operation: str, params: dict[str, Any], key: str,
    ) -> list[CanonicalResult] | None:
        if self.generative is None or not self.generative.available:
            logger.info(
                "Generative tier skipped | service=%s | op=%s | reason=no_credentials", self.name, operation,
            )
            return None

        try:
            text = await asyncio.wait_for(
                self.generative.generate(operation, params), timeout=self.generative_timeout,
            )
            return parse_generated_records(text, self.normalizer)
        except asyncio.TimeoutError:
            logger.warning("Generative tier timeout | service=%s | op=%s | key=%s", self.name, operation, key)
        except MalformedGenerativeOutput as e:
            logger.warning(
                "Generative tier malformed output | service=%s | op=%s | %s | key=%s",
                self.name, operation, e.message, key,
            )
        except Exception as e:
            logger.warning(
                "Generative tier failed | service=%s | op=%s | %s | key=%s", self.name, operation, str(e)[:200], key,
            )
        return None

    def _attempt_static(self, operation: str, params: dict[str, Any]) -> list[CanonicalResult]:
        logger.warning("Static tier answering | service=%s | op=%s", self.name, operation)
        return self.static_source(operation, params)
