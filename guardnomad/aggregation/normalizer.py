"""Response normalizer — maps heterogeneous upstream payloads to canonical records.

Category, severity and location are inferred with keyword heuristics over
title + description. This layer is best-effort: it may misclassify, but it
never raises.
"""

import hashlib
import logging
import re
from datetime import datetime, timezone
from typing import Any
from urllib.parse import urlsplit

from guardnomad.orchestrator.schemas import (
    CanonicalResult,
    Category,
    NewsArticle,
    SafetyAlert,
    Severity,
    SourceInfo,
    TravelEvent,
)

logger = logging.getLogger(__name__)

# First matching category wins, so order matters.
CATEGORY_KEYWORDS: list[tuple[Category, tuple[str, ...]]] = [
    (Category.TRAVEL, ("travel", "tourism", "tourist", "flight", "airport", "airline")),
    (Category.SAFETY, (
        "safety", "security", "crime", "alert", "theft", "pickpocket", "scam",
        "robbery", "protest", "unrest", "demonstration", "terror", "attack",
    )),
    (Category.WEATHER, (
        "weather", "storm", "hurricane", "typhoon", "flood", "monsoon", "heatwave", "wildfire",
    )),
    (Category.HEALTH, ("health", "outbreak", "disease", "vaccine", "hospital", "virus")),
    (Category.EVENTS, ("festival", "concert", "exhibition", "meetup", "market", "workshop", "tour")),
]

HIGH_SEVERITY_KEYWORDS = (
    "emergency", "urgent", "breaking", "alert", "warning", "danger", "critical", "evacuation",
)
MEDIUM_SEVERITY_KEYWORDS = ("caution", "advisory", "notice", "update", "change", "disruption")

# Severity labels some providers use outside our three levels
SEVERITY_ALIASES = {"critical": Severity.HIGH, "severe": Severity.HIGH, "moderate": Severity.MEDIUM}

_CAP = r"[A-Z][a-z]+"
LOCATION_PATTERNS = [
    re.compile(rf"\b({_CAP}(?: {_CAP})?, {_CAP}(?: {_CAP})?)\b"),  # "Paris, France"
    re.compile(rf"\bin ({_CAP} {_CAP})\b"),                        # "in New York"
    re.compile(rf"\b({_CAP} {_CAP})\b"),                           # "New York"
]

# Capitalized words that open headlines far more often than they name places
HEADLINE_WORDS = frozenset({
    "Breaking", "News", "Travel", "Tourism", "Alert", "Alerts", "Warning", "Update",
    "Updates", "Advisory", "Safety", "Security", "Weather", "Storm", "Health", "Local",
    "Latest", "Report", "Emergency", "Urgent", "The", "This", "New", "Tips", "Guide",
    "General", "Essential", "Important", "Community", "Live", "Event", "Events",
})


def _haystack(title: str, description: str) -> str:
    return f"{title} {description}".lower()


def infer_category(title: str, description: str = "", default: Category = Category.GENERAL) -> Category:
    text = _haystack(title, description)
    for category, keywords in CATEGORY_KEYWORDS:
        if any(keyword in text for keyword in keywords):
            return category
    return default


def infer_severity(title: str, description: str = "") -> Severity:
    text = _haystack(title, description)
    if any(keyword in text for keyword in HIGH_SEVERITY_KEYWORDS):
        return Severity.HIGH
    if any(keyword in text for keyword in MEDIUM_SEVERITY_KEYWORDS):
        return Severity.MEDIUM
    return Severity.LOW


def extract_location(title: str, description: str = "") -> str | None:
    """Best-effort place name from capitalized word patterns.

    Title and description are scanned separately so a match cannot run
    across the seam between them.
    """
    for pattern in LOCATION_PATTERNS:
        for text in (title, description):
            for match in pattern.finditer(text or ""):
                candidate = match.group(1)
                words = candidate.replace(",", "").split()
                if all(word in HEADLINE_WORDS for word in words):
                    continue
                return candidate
    return None


# ═══════════════ FIELD HELPERS ═══════════════

def _text(value: Any) -> str:
    """Coerce a provider field to plain text."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, dict):
        return _text(value.get("text") or value.get("name") or value.get("url"))
    if isinstance(value, (list, tuple)):
        return _text(value[0]) if value else ""
    return str(value)


def _first(raw: dict, *keys: str) -> str:
    for key in keys:
        value = _text(raw.get(key))
        if value:
            return value
    return ""


def _truncate(text: str, limit: int = 200) -> str:
    return text if len(text) <= limit else text[:limit].rstrip() + "..."


def _source_name_from_url(url: str) -> str:
    host = urlsplit(url).hostname or ""
    if not host:
        return ""
    return host.replace("www.", "").split(".")[0].upper()


def _enum_value(value: Any, enum_cls, aliases: dict | None = None):
    if isinstance(value, enum_cls):
        return value
    if not isinstance(value, str):
        return None
    key = value.strip().lower()
    if aliases and key in aliases:
        return aliases[key]
    try:
        return enum_cls(key)
    except ValueError:
        return None


def _stable_id(*parts: str) -> str:
    seed = "|".join(p for p in parts if p) or "record"
    return hashlib.sha1(seed.encode()).hexdigest()[:12]


def _as_list(value: Any) -> list[str]:
    if isinstance(value, str):
        return [value] if value.strip() else []
    if isinstance(value, (list, tuple)):
        return [_text(v) for v in value if _text(v)]
    return []


# ═══════════════ NORMALIZER ═══════════════

class ResponseNormalizer:
    """Turns raw provider dicts into `record_type` instances."""

    def __init__(
        self,
        record_type: type[CanonicalResult] = NewsArticle,
        default_category: Category = Category.GENERAL,
        provider: str = "",
    ):
        self.record_type = record_type
        self.default_category = default_category
        self.provider = provider

    def normalize(self, raw: dict[str, Any]) -> CanonicalResult:
        try:
            return self._normalize(raw)
        except Exception as e:
            logger.warning("Normalizer fallback record | provider=%s | %s", self.provider, str(e)[:200])
            return self.record_type(
                title="Untitled",
                category=self.default_category,
                severity=Severity.LOW,
            )

    def normalize_many(self, raws: list[dict[str, Any]]) -> list[CanonicalResult]:
        return [self.normalize(raw) for raw in raws]

    def _normalize(self, raw: dict[str, Any]) -> CanonicalResult:
        title = _first(raw, "title", "name") or "Untitled"
        text = _first(raw, "text")
        description = (
            _first(raw, "description", "summary", "message", "highlights")
            or (_truncate(text) if text else "")
        )
        content = _first(raw, "content") or text or description
        url = _first(raw, "url", "eventUrl", "ticketUrl")

        category = _enum_value(raw.get("category"), Category)
        if category is None:
            category = infer_category(title, description, self.default_category)
        severity = _enum_value(raw.get("severity"), Severity, SEVERITY_ALIASES)
        if severity is None:
            severity = infer_severity(title, description)

        location = _text(raw.get("location")) or extract_location(title, description)

        fields: dict[str, Any] = {
            "id": _text(raw.get("id")) or _stable_id(url, title),
            "title": title,
            "description": description,
            "content": content,
            "url": url,
            "image_url": _first(raw, "image", "imageUrl", "image_url", "logo"),
            "published_at": (
                _first(raw, "publishedAt", "publishedDate", "published_at")
                or datetime.now(timezone.utc).isoformat()
            ),
            "source": self._source(raw, url),
            "category": category,
            "severity": severity,
            "location": location or None,
            "tags": _as_list(raw.get("tags")),
        }

        if issubclass(self.record_type, TravelEvent):
            fields.update(self._event_fields(raw))
        elif issubclass(self.record_type, SafetyAlert):
            fields.update(self._alert_fields(raw))

        return self.record_type(**fields)

    def _source(self, raw: dict[str, Any], url: str) -> SourceInfo:
        source = raw.get("source")
        if isinstance(source, dict):
            name = _text(source.get("name"))
            source_url = _text(source.get("url"))
        else:
            name = _text(source)
            source_url = ""
        name = name or _text(raw.get("author")) or _source_name_from_url(url) or self.provider or "Unknown"
        return SourceInfo(name=name, url=source_url or url)

    def _event_fields(self, raw: dict[str, Any]) -> dict[str, Any]:
        start = raw.get("start")
        end = raw.get("end")
        venue = raw.get("venue")
        is_free = raw.get("is_free", raw.get("isFree"))
        return {
            "start_date": _first(raw, "start_date", "startDate")
            or (_text(start.get("utc") or start.get("local")) if isinstance(start, dict) else ""),
            "end_date": _first(raw, "end_date", "endDate")
            or (_text(end.get("utc") or end.get("local")) if isinstance(end, dict) else ""),
            "venue": _text(venue.get("name")) if isinstance(venue, dict) else _text(venue),
            "is_free": is_free if isinstance(is_free, bool) else None,
            "price": _text(raw.get("price")) if not isinstance(raw.get("price"), dict) else "",
        }

    def _alert_fields(self, raw: dict[str, Any]) -> dict[str, Any]:
        advice = (
            _as_list(raw.get("actionable_advice"))
            or _as_list(raw.get("recommendations"))
            or _as_list(raw.get("actionRequired"))
        )
        return {
            "actionable_advice": advice,
            "expires_at": _first(raw, "expires_at", "validUntil"),
        }
