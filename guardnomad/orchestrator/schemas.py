"""Pydantic models for API input/output and the canonical result records.

Split into: enums, canonical records, and API request/response.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


# ═══════════════ ENUMS ═══════════════

class Category(str, Enum):
    TRAVEL = "travel"
    SAFETY = "safety"
    WEATHER = "weather"
    HEALTH = "health"
    EVENTS = "events"
    GENERAL = "general"


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


# ═══════════════ CANONICAL RECORDS ═══════════════

class SourceInfo(BaseModel):
    name: str = "Unknown"
    url: str = ""


class CanonicalResult(BaseModel):
    """Provider-agnostic record returned by every aggregation service."""
    id: str = ""
    title: str = ""
    description: str = ""
    content: str = ""
    url: str = ""
    image_url: str = ""
    published_at: str = ""
    source: SourceInfo = Field(default_factory=SourceInfo)
    category: Category = Category.GENERAL
    severity: Severity = Severity.LOW
    location: str | None = None
    tags: list[str] = Field(default_factory=list)


class NewsArticle(CanonicalResult):
    """News service record."""


class TravelEvent(CanonicalResult):
    """Events service record."""
    start_date: str = ""
    end_date: str = ""
    venue: str = ""
    is_free: bool | None = None
    price: str = ""


class SafetyAlert(CanonicalResult):
    """Destination safety service record."""
    actionable_advice: list[str] = Field(default_factory=list)
    expires_at: str = ""


# ═══════════════ GENERATIVE OUTPUT ═══════════════

class GeneratedItem(BaseModel):
    """One record as produced by the generative fallback."""
    title: str
    description: str = ""
    category: str = ""
    severity: str = ""
    location: str | None = None
    tags: list[str] = Field(default_factory=list)
    actionable_advice: list[str] = Field(default_factory=list)
    start_date: str = ""
    venue: str = ""


# ═══════════════ API ═══════════════

class AggregateRequest(BaseModel):
    operation: str = ""
    params: dict[str, Any] = Field(default_factory=dict)


class AggregateResponse(BaseModel):
    operation: str
    items: list[dict[str, Any]] = Field(default_factory=list)
    count: int = 0
