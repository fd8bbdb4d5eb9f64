"""Exa neural search API integration.

Docs: https://docs.exa.ai/reference/search
"""

import logging
import re
from datetime import datetime, timedelta, timezone
from typing import Any

import httpx

from guardnomad.aggregation.errors import UnknownOperationError
from guardnomad.integrations.base import UpstreamClient

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.exa.ai"

# Government travel advisory publishers
ADVISORY_DOMAINS = [
    "state.gov", "travel.state.gov", "gov.uk", "travel.gc.ca", "smartraveller.gov.au",
]

# Fraud reporting and consumer protection publishers, by region
SCAM_DOMAINS_DEFAULT = [
    "interpol.int", "europol.europa.eu", "consumer.ftc.gov", "scamwatch.gov.au",
    "actionfraud.police.uk", "bbb.org",
]
SCAM_DOMAINS_BY_REGION = {
    "germany": ["bka.de", "bsi.bund.de", "polizei.de", "verbraucherzentrale.de", "europol.europa.eu"],
    "uk": ["actionfraud.police.uk", "ncsc.gov.uk", "citizensadvice.org.uk", "which.co.uk"],
    "us": ["ftc.gov", "fbi.gov", "ic3.gov", "consumer.ftc.gov", "bbb.org"],
}
REGION_WORDS = {
    "germany": "germany", "deutschland": "germany", "berlin": "germany", "munich": "germany",
    "uk": "uk", "england": "uk", "britain": "uk", "london": "uk", "scotland": "uk",
    "us": "us", "usa": "us", "america": "us", "united states": "us",
}


def destination_label(params: dict[str, Any]) -> str:
    """'City, Country' when both are known, else whatever is available."""
    city = (params.get("city") or "").strip()
    country = (params.get("country") or "").strip()
    destination = (params.get("destination") or params.get("location") or "").strip()
    if city and country:
        return f"{city}, {country}"
    return destination or city or country


def _days_ago(days: int) -> str:
    return (datetime.now(timezone.utc) - timedelta(days=days)).strftime("%Y-%m-%dT00:00:00.000Z")


def scam_domains(place: str) -> list[str]:
    """Regional fraud-reporting domains for a place, or the international set."""
    lowered = place.lower()
    for word, region in REGION_WORDS.items():
        if re.search(rf"\b{re.escape(word)}\b", lowered):
            return SCAM_DOMAINS_BY_REGION[region]
    return SCAM_DOMAINS_DEFAULT


class ExaClient(UpstreamClient):
    """Async client for Exa search with page contents."""

    provider = "Exa"

    def __init__(
        self,
        api_key: str = "",
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        super().__init__(api_key=api_key, timeout=timeout, transport=transport)
        self.base_url = base_url.rstrip("/")

    def _build_payload(self, operation: str, params: dict[str, Any]) -> dict[str, Any]:
        place = destination_label(params)
        highlight_sentences = 3

        if operation == "localEvents":
            category = (params.get("category") or "").strip()
            payload = {
                "query": f"upcoming {category + ' ' if category else ''}events festivals things to do in {place}",
                "numResults": 10,
                "startPublishedDate": _days_ago(14),
            }
        elif operation == "destinationAlerts":
            payload = {
                "query": f"current safety alerts crime reports travel warnings {place}",
                "numResults": 8,
                "includeDomains": ADVISORY_DOMAINS,
                "startPublishedDate": _days_ago(30),
            }
        elif operation == "localNews":
            category = (params.get("category") or "").strip()
            payload = {
                "query": f"{place} local news current events today {category}".strip(),
                "numResults": 15,
                "startPublishedDate": _days_ago(7),
            }
        elif operation == "scamAlerts":
            query = (
                f"{place} scam alerts fraud warnings security threats" if place
                else "Recent scam alerts and fraud warnings"
            )
            payload = {
                "query": query,
                "numResults": 10,
                "includeDomains": scam_domains(place),
                "startPublishedDate": _days_ago(30),
            }
            highlight_sentences = 2
        else:
            raise UnknownOperationError(f"Exa has no operation '{operation}'")

        payload["type"] = "neural"
        payload["contents"] = {
            "text": {"maxCharacters": 1500},
            "highlights": {"numSentences": highlight_sentences, "highlightsPerUrl": 1},
        }
        return payload

    async def fetch(self, operation: str, params: dict[str, Any]) -> list[dict[str, Any]]:
        """Run an Exa search and return raw result dicts."""
        payload = self._build_payload(operation, params)
        data = await self._request(
            "POST",
            f"{self.base_url}/search",
            label=f"op={operation} | query={payload['query'][:80]}",
            headers={"x-api-key": self.api_key, "Content-Type": "application/json"},
            json=payload,
        )
        results = self._require_list(data, "results", self.provider)
        logger.info("Exa results | op=%s | results=%d", operation, len(results))
        return results
