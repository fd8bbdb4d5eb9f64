"""Local events service via Exa search."""

import time
from typing import Callable

from guardnomad.aggregation.fallback import GenerativeSource, LiveSource
from guardnomad.aggregation.normalizer import ResponseNormalizer
from guardnomad.config import Settings
from guardnomad.integrations.exa import ExaClient
from guardnomad.orchestrator.schemas import CanonicalResult, Category, TravelEvent
from guardnomad.services.domain import DomainService


class EventsService(DomainService):

    name = "events"
    operations = ("localEvents",)

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
            normalizer=ResponseNormalizer(TravelEvent, Category.EVENTS, provider="Exa"),
            live=live,
            generative=generative,
            cache_ttl_seconds=settings.events_cache_ttl_seconds,
            cache_max_entries=settings.events_cache_max_entries,
            rate_limit_per_minute=settings.events_rate_limit_per_minute,
            clock=clock,
        )

    async def get_local_events(
        self, city: str, country: str | None = None, category: str | None = None,
    ) -> list[CanonicalResult]:
        params = {"city": city}
        if country:
            params["country"] = country
        if category:
            params["category"] = category
        return await self.fetch("localEvents", params)
