"""Generative fallback tier: asks Claude for records when the live API can't answer.

The model is prompted to reply with {"items": [...]} only; parsing and
validation happen in the fallback chain.
"""

import logging
from typing import Any

import anthropic

from guardnomad.services.llm_client import call_model, load_prompt, make_client

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "claude-sonnet-4-6"

PROMPT_BY_OPERATION = {
    "travelNews": "news_fallback",
    "safetyAlerts": "news_fallback",
    "weatherNews": "news_fallback",
    "breakingNews": "news_fallback",
    "searchNews": "news_fallback",
    "localNews": "news_fallback",
    "localEvents": "events_fallback",
    "destinationAlerts": "safety_fallback",
    "scamAlerts": "safety_fallback",
}

TOPIC_BY_OPERATION = {
    "travelNews": "travel, tourism and flight news",
    "safetyAlerts": "safety and security alerts for travelers",
    "weatherNews": "weather conditions and severe weather warnings",
    "breakingNews": "breaking travel news and urgent travel alerts",
    "searchNews": "news matching the user's search",
    "localNews": "local news and current events",
    "localEvents": "upcoming local events",
    "destinationAlerts": "destination safety alerts",
    "scamAlerts": "scam alerts and fraud warnings for travelers",
}


def _default_prompt() -> str:
    """Fallback system prompt when the template file is missing."""
    return (
        "You are a travel safety assistant. Produce short, realistic, general guidance records "
        "for the requested topic and place. Do not invent specific incidents, dates or statistics.\n\n"
        "Reply ONLY with JSON:\n"
        '{"items": [{"title": "...", "description": "...", "category": '
        '"travel|safety|weather|health|events|general", "severity": "low|medium|high", '
        '"location": "..."}]}'
    )


def build_user_message(operation: str, params: dict[str, Any]) -> str:
    lines = [f"Topic: {TOPIC_BY_OPERATION.get(operation, operation)}"]
    for key in ("destination", "city", "country", "location", "query", "category"):
        value = params.get(key)
        if value:
            lines.append(f"{key.capitalize()}: {value}")
    if len(lines) == 1:
        lines.append("Location: worldwide")
    return "\n".join(lines)


class ClaudeFallbackGenerator:
    """GenerativeSource backed by the Anthropic API.

    The generator owns its Anthropic client, built lazily from its own key,
    so each service can run with different credentials or limits.
    """

    def __init__(
        self,
        api_key: str = "",
        model: str = DEFAULT_MODEL,
        max_tokens: int = 2000,
        timeout_seconds: float = 60.0,
        max_retries: int = 1,
    ):
        self.api_key = api_key
        self.model = model
        self.max_tokens = max_tokens
        self.timeout_seconds = timeout_seconds
        self.max_retries = max_retries
        self._client: anthropic.AsyncAnthropic | None = None

    @property
    def available(self) -> bool:
        return bool(self.api_key)

    @property
    def client(self) -> anthropic.AsyncAnthropic:
        if self._client is None:
            self._client = make_client(self.api_key, timeout_seconds=self.timeout_seconds)
        return self._client

    async def generate(self, operation: str, params: dict[str, Any]) -> str:
        template = PROMPT_BY_OPERATION.get(operation, "news_fallback")
        try:
            system_prompt = load_prompt(template)
        except FileNotFoundError:
            logger.warning("Prompt template missing | name=%s | using default", template)
            system_prompt = _default_prompt()

        user_message = build_user_message(operation, params)
        logger.info("Generative request | op=%s | template=%s | model=%s", operation, template, self.model)
        return await call_model(
            self.client,
            system_prompt,
            user_message,
            model=self.model,
            max_tokens=self.max_tokens,
            max_retries=self.max_retries,
            timeout_seconds=self.timeout_seconds,
        )
