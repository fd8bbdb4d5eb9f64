"""News service — travel, safety, weather and breaking news via GNews."""

import time
from typing import Callable

from guardnomad.aggregation.fallback import GenerativeSource, LiveSource
from guardnomad.aggregation.normalizer import ResponseNormalizer
from guardnomad.config import Settings
from guardnomad.integrations.gnews import GNewsClient
from guardnomad.orchestrator.schemas import CanonicalResult, Category, NewsArticle
from guardnomad.services.domain import DomainService


class NewsService(DomainService):

    name = "news"
    operations = ("travelNews", "safetyAlerts", "weatherNews", "breakingNews", "searchNews")

    def __init__(
        self,
        settings: Settings,
        live: LiveSource | None = None,
        generative: GenerativeSource | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        if live is None:
            live = GNewsClient(
                api_key=settings.gnews_api_key if settings.has_gnews_key else "",
                base_url=settings.gnews_base_url,
                timeout=settings.upstream_timeout_seconds,
            )
        super().__init__(
            settings,
            normalizer=ResponseNormalizer(NewsArticle, Category.GENERAL, provider="GNews"),
            live=live,
            generative=generative,
            cache_ttl_seconds=settings.news_cache_ttl_seconds,
            cache_max_entries=settings.news_cache_max_entries,
            rate_limit_per_minute=settings.news_rate_limit_per_minute,
            clock=clock,
        )

    async def get_travel_news(self, country: str | None = None) -> list[CanonicalResult]:
        return await self.fetch("travelNews", {"country": country} if country else {})

    async def get_safety_alerts(self, location: str | None = None) -> list[CanonicalResult]:
        return await self.fetch("safetyAlerts", {"location": location} if location else {})

    async def get_weather_news(self, location: str | None = None) -> list[CanonicalResult]:
        return await self.fetch("weatherNews", {"location": location} if location else {})

    async def get_breaking_news(self) -> list[CanonicalResult]:
        return await self.fetch("breakingNews", {})

    async def search_news(self, query: str, location: str | None = None) -> list[CanonicalResult]:
        params = {"query": query}
        if location:
            params["location"] = location
        return await self.fetch("searchNews", params)
