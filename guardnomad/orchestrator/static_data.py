"""Static fallback catalog returned when neither the live API nor Claude can answer.

Records are deliberately generic: they carry no location and make no claims
about current conditions anywhere.
"""

from datetime import datetime, timedelta, timezone
from typing import Any

from guardnomad.orchestrator.schemas import (
    CanonicalResult,
    Category,
    NewsArticle,
    SafetyAlert,
    Severity,
    SourceInfo,
    TravelEvent,
)

STATIC_SOURCE = SourceInfo(name="GuardNomad", url="")


def _hours_ago(hours: int) -> str:
    return (datetime.now(timezone.utc) - timedelta(hours=hours)).isoformat()


def _days_ahead(days: int) -> str:
    return (datetime.now(timezone.utc) + timedelta(days=days)).isoformat()


def get_static_results(operation: str, params: dict[str, Any]) -> list[CanonicalResult]:
    """Return the canned record set for an operation. Never empty."""
    if operation == "localEvents":
        return _static_events()
    if operation == "destinationAlerts":
        return _static_alerts()
    if operation == "scamAlerts":
        return _static_scam_alerts()
    return _static_news()


def _static_news() -> list[CanonicalResult]:
    return [
        NewsArticle(
            id="static-news-safety",
            title="Travel safety advisory: stay informed before you go",
            description="Check official government travel advisories for your destination and register "
                        "your trip with your embassy where that service is available.",
            content="Official advisories are updated as conditions change. Review them before departure "
                    "and again during your stay.",
            published_at=_hours_ago(1),
            source=STATIC_SOURCE,
            category=Category.SAFETY,
            severity=Severity.MEDIUM,
            tags=["advisory", "preparation"],
        ),
        NewsArticle(
            id="static-news-weather",
            title="Weather update: check local forecasts daily",
            description="Seasonal weather can disrupt transport and outdoor plans. Follow the local "
                        "meteorological service and keep a flexible itinerary.",
            published_at=_hours_ago(2),
            source=STATIC_SOURCE,
            category=Category.WEATHER,
            severity=Severity.LOW,
            tags=["weather"],
        ),
        NewsArticle(
            id="static-news-tips",
            title="Travel tips: documents, insurance and emergency contacts",
            description="Keep digital copies of your passport, carry travel insurance details, and save "
                        "local emergency numbers before you arrive.",
            published_at=_hours_ago(3),
            source=STATIC_SOURCE,
            category=Category.TRAVEL,
            severity=Severity.LOW,
            tags=["tips", "documents"],
        ),
    ]


def _static_events() -> list[CanonicalResult]:
    return [
        TravelEvent(
            id="static-event-walking-tour",
            title="City walking tour",
            description="Most cities run daily guided walking tours of the historic centre. Ask at the "
                        "tourist information office for times.",
            published_at=_hours_ago(1),
            source=STATIC_SOURCE,
            category=Category.EVENTS,
            severity=Severity.LOW,
            start_date=_days_ahead(1),
            venue="Tourist information office",
            is_free=True,
            tags=["tour", "outdoors"],
        ),
        TravelEvent(
            id="static-event-gallery",
            title="Art gallery opening night",
            description="Galleries often hold free evening openings for new exhibitions. Check local "
                        "listings for this week's schedule.",
            published_at=_hours_ago(2),
            source=STATIC_SOURCE,
            category=Category.EVENTS,
            severity=Severity.LOW,
            start_date=_days_ahead(3),
            venue="Local gallery",
            tags=["art", "exhibition"],
        ),
    ]


def _static_alerts() -> list[CanonicalResult]:
    return [
        SafetyAlert(
            id="static-alert-general",
            title="General travel safety",
            description="Stay aware of your surroundings in crowded areas and on public transport, where "
                        "pickpocketing is most common.",
            published_at=_hours_ago(1),
            source=STATIC_SOURCE,
            category=Category.SAFETY,
            severity=Severity.MEDIUM,
            actionable_advice=[
                "Keep valuables in a front pocket or a zipped bag",
                "Use licensed taxis or ride-hailing apps",
                "Share your itinerary with someone at home",
            ],
        ),
        SafetyAlert(
            id="static-alert-health",
            title="Health and hygiene",
            description="Drink bottled or treated water where tap water is not safe and keep routine "
                        "vaccinations up to date.",
            published_at=_hours_ago(2),
            source=STATIC_SOURCE,
            category=Category.HEALTH,
            severity=Severity.LOW,
            actionable_advice=[
                "Carry hand sanitizer",
                "Check vaccination requirements before travel",
            ],
        ),
    ]


def _static_scam_alerts() -> list[CanonicalResult]:
    return [
        SafetyAlert(
            id="static-scam-general",
            title="General fraud awareness",
            description="Common tourist scams include fake officials asking to inspect wallets, rigged taxi "
                        "meters and unsolicited offers of help at ticket machines.",
            published_at=_hours_ago(1),
            source=STATIC_SOURCE,
            category=Category.SAFETY,
            severity=Severity.MEDIUM,
            actionable_advice=[
                "Agree on taxi fares or insist on the meter before the ride",
                "Decline unsolicited help at ATMs and ticket machines",
                "Ask to see identification before handing anything to an official",
            ],
            tags=["scam", "fraud"],
        ),
        SafetyAlert(
            id="static-scam-payments",
            title="Card and payment safety",
            description="Card skimming and fake booking sites target travelers. Use bank ATMs and book "
                        "through providers you already know.",
            published_at=_hours_ago(2),
            source=STATIC_SOURCE,
            category=Category.SAFETY,
            severity=Severity.LOW,
            actionable_advice=[
                "Cover the keypad when entering your PIN",
                "Enable transaction alerts on your cards",
            ],
            tags=["scam", "payments"],
        ),
    ]
