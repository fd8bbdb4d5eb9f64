"""Destination safety service — advisories and scam alerts for a destination via Exa."""

import time
from typing import Callable

from guardnomad.aggregation.fallback import GenerativeSource, LiveSource
from guardnomad.aggregation.normalizer import ResponseNormalizer
from guardnomad.config import Settings
from guardnomad.integrations.exa import ExaClient
from guardnomad.orchestrator.schemas import CanonicalResult, Category, SafetyAlert, Severity
from guardnomad.services.domain import DomainService

MAX_ALERTS = 8
SEVERITY_RANK = {Severity.HIGH: 0, Severity.MEDIUM: 1, Severity.LOW: 2}


def rank_alerts(records: list[CanonicalResult]) -> list[CanonicalResult]:
    """Most severe first (stable within a level), capped at MAX_ALERTS."""
    return sorted(records, key=lambda r: SEVERITY_RANK[r.severity])[:MAX_ALERTS]


class DestinationSafetyService(DomainService):

    name = "safety"
    operations = ("destinationAlerts", "scamAlerts")

    def __init__(
        self,
        settings: Settings,
        live: LiveSource | None = None,
        generative: GenerativeSource | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        if live is None:
            live = ExaClient(
                api_key=settings.exa_api_key if settings.has_exa_key else "",
                base_url=settings.exa_base_url,
                timeout=settings.upstream_timeout_seconds,
            )
        super().__init__(
            settings,
            normalizer=ResponseNormalizer(SafetyAlert, Category.SAFETY, provider="Exa"),
            live=live,
            generative=generative,
            cache_ttl_seconds=settings.safety_cache_ttl_seconds,
            cache_max_entries=settings.safety_cache_max_entries,
            rate_limit_per_minute=settings.safety_rate_limit_per_minute,
            finalize=rank_alerts,
            clock=clock,
        )

    async def get_destination_alerts(self, destination: str) -> list[CanonicalResult]:
        return await self.fetch("destinationAlerts", {"destination": destination})

    async def get_scam_alerts(self, location: str | None = None) -> list[CanonicalResult]:
        return await self.fetch("scamAlerts", {"location": location} if location else {})
