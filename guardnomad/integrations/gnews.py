"""GNews search API integration.

Docs: https://gnews.io/docs/v4#search-endpoint
"""

import logging
from typing import Any, Callable

import httpx

from guardnomad.aggregation.errors import InvalidParamsError, UnknownOperationError
from guardnomad.integrations.base import UpstreamClient

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://gnews.io/api/v4"
MAX_ARTICLES = 10


def _travel_query(params: dict[str, Any]) -> str:
    country = params.get("country")
    if country:
        return f"travel {country} OR tourism {country} OR flight {country}"
    return "travel OR tourism OR flight OR airport"


def _safety_query(params: dict[str, Any]) -> str:
    location = params.get("location")
    if location:
        return f"safety alert {location} OR security {location} OR warning {location}"
    return "safety alert OR security warning OR travel advisory"


def _weather_query(params: dict[str, Any]) -> str:
    location = params.get("location")
    if location:
        return f"weather {location} OR storm {location} OR hurricane {location}"
    return "weather alert OR storm warning OR hurricane"


def _breaking_query(params: dict[str, Any]) -> str:
    return "breaking news travel OR urgent travel alert"


def _search_query(params: dict[str, Any]) -> str:
    query = (params.get("query") or "").strip()
    if not query:
        raise InvalidParamsError("searchNews requires a 'query' parameter")
    location = params.get("location")
    return f"{query} {location}" if location else query


QUERY_BUILDERS: dict[str, Callable[[dict[str, Any]], str]] = {
    "travelNews": _travel_query,
    "safetyAlerts": _safety_query,
    "weatherNews": _weather_query,
    "breakingNews": _breaking_query,
    "searchNews": _search_query,
}


def build_query(operation: str, params: dict[str, Any]) -> tuple[str, str]:
    """Return (q, sortby) for an operation."""
    builder = QUERY_BUILDERS.get(operation)
    if builder is None:
        raise UnknownOperationError(f"GNews has no operation '{operation}'")
    sortby = "relevance" if operation == "searchNews" else "publishedAt"
    return builder(params), sortby


class GNewsClient(UpstreamClient):
    """Async client for the GNews search endpoint."""

    provider = "GNews"

    def __init__(
        self,
        api_key: str = "",
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        super().__init__(api_key=api_key, timeout=timeout, transport=transport)
        self.base_url = base_url.rstrip("/")

    async def fetch(self, operation: str, params: dict[str, Any]) -> list[dict[str, Any]]:
        """Search GNews and return raw article dicts."""
        query, sortby = build_query(operation, params)
        data = await self._request(
            "GET",
            f"{self.base_url}/search",
            label=f"op={operation} | query={query[:80]}",
            params={
                "q": query,
                "sortby": sortby,
                "lang": "en",
                "max": str(MAX_ARTICLES),
                "token": self.api_key,
            },
        )
        articles = self._require_list(data, "articles", self.provider)
        logger.info("GNews articles | op=%s | results=%d", operation, len(articles))
        return articles
