"""Tests for upstream integrations — GNews and Exa over httpx.MockTransport."""

import json

import httpx
import pytest

from guardnomad.aggregation.errors import (
    InvalidParamsError,
    MalformedUpstreamResponse,
    NoCredentialsError,
    NotFoundError,
    TransientNetworkError,
    UnauthorizedError,
    UnknownOperationError,
    classify_status,
)
from guardnomad.integrations.exa import SCAM_DOMAINS_DEFAULT, ExaClient, destination_label, scam_domains
from guardnomad.integrations.gnews import GNewsClient, build_query


def _transport(status=200, payload=None, text=None, seen=None):
    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        if text is not None:
            return httpx.Response(status, text=text)
        return httpx.Response(status, json=payload if payload is not None else {})
    return httpx.MockTransport(handler)


# ═══════════════ Status classification ═══════════════


class TestClassifyStatus:
    @pytest.mark.parametrize("status,expected", [
        (401, UnauthorizedError),
        (403, UnauthorizedError),
        (429, UnauthorizedError),
        (404, NotFoundError),
        (500, TransientNetworkError),
        (503, TransientNetworkError),
        (400, MalformedUpstreamResponse),
    ])
    def test_mapping(self, status, expected):
        assert classify_status(status) is expected


# ═══════════════ GNews ═══════════════


class TestGNewsQueries:
    def test_safety_with_location(self):
        query, sortby = build_query("safetyAlerts", {"location": "Paris"})
        assert query == "safety alert Paris OR security Paris OR warning Paris"
        assert sortby == "publishedAt"

    def test_travel_without_country(self):
        query, _ = build_query("travelNews", {})
        assert query == "travel OR tourism OR flight OR airport"

    def test_search_uses_relevance(self):
        query, sortby = build_query("searchNews", {"query": "train strike", "location": "Rome"})
        assert query == "train strike Rome"
        assert sortby == "relevance"

    def test_search_requires_query(self):
        with pytest.raises(InvalidParamsError):
            build_query("searchNews", {"query": "  "})

    def test_unknown_operation(self):
        with pytest.raises(UnknownOperationError):
            build_query("localEvents", {})


class TestGNewsClient:
    @pytest.mark.asyncio
    async def test_fetch_articles(self, sample_gnews_article):
        seen = []
        client = GNewsClient(
            api_key="test-key",
            transport=_transport(payload={"totalArticles": 1, "articles": [sample_gnews_article]}, seen=seen),
        )
        articles = await client.fetch("weatherNews", {"location": "Manila"})

        assert articles == [sample_gnews_article]
        request = seen[0]
        assert request.url.path == "/api/v4/search"
        assert request.url.params["token"] == "test-key"
        assert request.url.params["lang"] == "en"
        assert request.url.params["max"] == "10"
        assert "storm Manila" in request.url.params["q"]

    @pytest.mark.asyncio
    async def test_no_key_raises(self):
        client = GNewsClient(api_key="", transport=_transport())
        assert client.available is False
        with pytest.raises(NoCredentialsError):
            await client.fetch("travelNews", {})

    @pytest.mark.asyncio
    async def test_quota_exhausted(self):
        client = GNewsClient(api_key="k", transport=_transport(status=429, payload={"errors": ["quota"]}))
        with pytest.raises(UnauthorizedError) as exc:
            await client.fetch("travelNews", {})
        assert exc.value.status_code == 429
        assert exc.value.provider == "GNews"

    @pytest.mark.asyncio
    async def test_server_error_is_transient(self):
        client = GNewsClient(api_key="k", transport=_transport(status=502, text="bad gateway"))
        with pytest.raises(TransientNetworkError):
            await client.fetch("travelNews", {})

    @pytest.mark.asyncio
    async def test_non_json_body(self):
        client = GNewsClient(api_key="k", transport=_transport(status=200, text="<html>oops</html>"))
        with pytest.raises(MalformedUpstreamResponse):
            await client.fetch("travelNews", {})

    @pytest.mark.asyncio
    async def test_missing_articles_key(self):
        client = GNewsClient(api_key="k", transport=_transport(payload={"totalArticles": 0}))
        with pytest.raises(MalformedUpstreamResponse):
            await client.fetch("travelNews", {})

    @pytest.mark.asyncio
    async def test_connection_error_is_transient(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = GNewsClient(api_key="k", transport=httpx.MockTransport(handler))
        with pytest.raises(TransientNetworkError):
            await client.fetch("travelNews", {})

    @pytest.mark.asyncio
    async def test_timeout_is_transient(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        client = GNewsClient(api_key="k", transport=httpx.MockTransport(handler))
        with pytest.raises(TransientNetworkError):
            await client.fetch("travelNews", {})


# ═══════════════ Exa ═══════════════


class TestExaClient:
    def test_destination_label(self):
        assert destination_label({"city": "Kyoto", "country": "Japan"}) == "Kyoto, Japan"
        assert destination_label({"destination": "Bali"}) == "Bali"
        assert destination_label({"country": "Peru"}) == "Peru"

    @pytest.mark.asyncio
    async def test_local_events_payload(self, sample_exa_result):
        seen = []
        client = ExaClient(api_key="exa-key", transport=_transport(payload={"results": [sample_exa_result]}, seen=seen))
        results = await client.fetch("localEvents", {"city": "Lisbon", "country": "Portugal", "category": "music"})

        assert results == [sample_exa_result]
        request = seen[0]
        assert request.method == "POST"
        assert request.headers["x-api-key"] == "exa-key"
        body = json.loads(request.content)
        assert body["query"] == "upcoming music events festivals things to do in Lisbon, Portugal"
        assert body["numResults"] == 10
        assert body["type"] == "neural"
        assert body["contents"]["highlights"]["numSentences"] == 3
        assert "includeDomains" not in body

    @pytest.mark.asyncio
    async def test_destination_alerts_payload(self):
        seen = []
        client = ExaClient(api_key="exa-key", transport=_transport(payload={"results": []}, seen=seen))
        results = await client.fetch("destinationAlerts", {"destination": "Bangkok"})

        assert results == []
        body = json.loads(seen[0].content)
        assert "Bangkok" in body["query"]
        assert body["numResults"] == 8
        assert "travel.state.gov" in body["includeDomains"]

    @pytest.mark.asyncio
    async def test_local_news_payload(self):
        seen = []
        client = ExaClient(api_key="exa-key", transport=_transport(payload={"results": []}, seen=seen))
        await client.fetch("localNews", {"location": "Tbilisi", "category": "politics"})

        body = json.loads(seen[0].content)
        assert body["query"] == "Tbilisi local news current events today politics"
        assert body["numResults"] == 15
        assert body["type"] == "neural"
        assert "startPublishedDate" in body

    @pytest.mark.asyncio
    async def test_scam_alerts_payload(self):
        seen = []
        client = ExaClient(api_key="exa-key", transport=_transport(payload={"results": []}, seen=seen))
        await client.fetch("scamAlerts", {"location": "London"})
        await client.fetch("scamAlerts", {})

        placed, anywhere = (json.loads(r.content) for r in seen)
        assert placed["query"] == "London scam alerts fraud warnings security threats"
        assert "actionfraud.police.uk" in placed["includeDomains"]
        assert placed["contents"]["highlights"]["numSentences"] == 2
        assert anywhere["query"] == "Recent scam alerts and fraud warnings"
        assert anywhere["includeDomains"] == SCAM_DOMAINS_DEFAULT

    def test_scam_domains_by_region(self):
        assert "bka.de" in scam_domains("Berlin, Germany")
        assert "ic3.gov" in scam_domains("Chicago, United States")
        assert scam_domains("Lima, Peru") == SCAM_DOMAINS_DEFAULT
        assert scam_domains("Russia") == SCAM_DOMAINS_DEFAULT

    @pytest.mark.asyncio
    async def test_unauthorized(self):
        client = ExaClient(api_key="bad", transport=_transport(status=401, payload={"error": "invalid key"}))
        with pytest.raises(UnauthorizedError):
            await client.fetch("destinationAlerts", {"destination": "Rome"})

    @pytest.mark.asyncio
    async def test_not_found(self):
        client = ExaClient(api_key="k", transport=_transport(status=404, payload={}))
        with pytest.raises(NotFoundError):
            await client.fetch("localEvents", {"city": "Rome"})

    @pytest.mark.asyncio
    async def test_unknown_operation(self):
        client = ExaClient(api_key="k", transport=_transport())
        with pytest.raises(UnknownOperationError):
            await client.fetch("travelNews", {})
