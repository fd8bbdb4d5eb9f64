"""Local news service — current events for a place via Exa neural search."""

import time
from typing import Callable

from guardnomad.aggregation.fallback import GenerativeSource, LiveSource
from guardnomad.aggregation.normalizer import ResponseNormalizer
from guardnomad.config import Settings
from guardnomad.integrations.exa import ExaClient
from guardnomad.orchestrator.schemas import CanonicalResult, Category, NewsArticle
from guardnomad.services.domain import DomainService


class LocalNewsService(DomainService):

    name = "local_news"
    operations = ("localNews",)

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
            normalizer=ResponseNormalizer(NewsArticle, Category.GENERAL, provider="Exa"),
            live=live,
            generative=generative,
            cache_ttl_seconds=settings.local_news_cache_ttl_seconds,
            cache_max_entries=settings.local_news_cache_max_entries,
            rate_limit_per_minute=settings.local_news_rate_limit_per_minute,
            clock=clock,
        )

    async def get_local_news(self, location: str, category: str | None = None) -> list[CanonicalResult]:
        params = {"location": location}
        if category:
            params["category"] = category
        return await self.fetch("localNews", params)
