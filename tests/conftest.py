"""Shared test fixtures and configuration."""

import os

import pytest

# Demo mode during tests: no real API keys, whatever the shell or .env holds
for _key in ("ANTHROPIC_API_KEY", "GNEWS_API_KEY", "EXA_API_KEY"):
    os.environ[_key] = ""


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def test_settings():
    """Isolated settings with every key unset."""
    from guardnomad.config import Settings
    return Settings(_env_file=None, anthropic_api_key="", gnews_api_key="", exa_api_key="")


@pytest.fixture
def sample_gnews_article():
    """One article as returned by GNews /search."""
    return {
        "title": "Storm warning issued as typhoon nears Manila, Philippines",
        "description": "Authorities urge travelers to avoid coastal areas until the storm passes.",
        "content": "Flights from Manila have been delayed while the typhoon approaches...",
        "url": "https://example-news.com/manila-typhoon",
        "image": "https://example-news.com/img/typhoon.jpg",
        "publishedAt": "2025-09-01T08:30:00Z",
        "source": {"name": "Example News", "url": "https://example-news.com"},
    }


@pytest.fixture
def sample_exa_result():
    """One result as returned by Exa /search with text and highlights."""
    return {
        "id": "https://travel.state.gov/advisory/thailand",
        "title": "Thailand travel advisory",
        "url": "https://travel.state.gov/advisory/thailand",
        "publishedDate": "2025-08-20T00:00:00.000Z",
        "author": None,
        "text": "Exercise increased caution in Thailand due to civil unrest in some areas. " * 5,
        "highlights": ["Exercise increased caution in Thailand due to civil unrest."],
    }


@pytest.fixture
def bangkok_raw_items():
    """Raw upstream items for the Bangkok scenario."""
    return [
        {"title": "storm warning for Bangkok, Thailand"},
        {"title": "protest planned in central Bangkok, Thailand"},
        {"title": "pickpocketing reported near markets in Bangkok, Thailand"},
    ]
