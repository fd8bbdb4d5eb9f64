"""Async Anthropic API helpers: client construction, retrying calls, JSON extraction.

Callers own their client; nothing here reads global settings.
"""

import asyncio
import json
import logging
import re
import time
from pathlib import Path

import anthropic
import httpx

logger = logging.getLogger(__name__)

RETRYABLE_STATUS = frozenset({429, 500, 502, 503})


def make_client(api_key: str, timeout_seconds: float = 60.0) -> anthropic.AsyncAnthropic:
    """Build an AsyncAnthropic client. SDK-level retries are off; call_model retries."""
    return anthropic.AsyncAnthropic(
        api_key=api_key,
        timeout=httpx.Timeout(timeout_seconds, connect=10.0),
        max_retries=0,
    )


def load_prompt(name: str) -> str:
    """Load a prompt template from guardnomad/prompts/{name}.txt."""
    prompt_path = Path(__file__).parent.parent / "prompts" / f"{name}.txt"
    return prompt_path.read_text(encoding="utf-8")


def _retryable(exc: anthropic.APIError) -> bool:
    if isinstance(exc, anthropic.APIStatusError):
        return exc.status_code in RETRYABLE_STATUS
    return isinstance(exc, (anthropic.APITimeoutError, anthropic.APIConnectionError))


def _response_text(response) -> str:
    return response.content[0].text if response.content else ""


async def call_model(
    client: anthropic.AsyncAnthropic,
    system: str,
    user_message: str,
    *,
    model: str,
    max_tokens: int = 2000,
    max_retries: int = 1,
    timeout_seconds: float = 60.0,
) -> str:
    """Send one user message to `model` and return the raw reply text.

    Retryable API failures (429, 5xx, connection drops) get up to `max_retries`
    more attempts. Hitting the hard `timeout_seconds` limit is never retried.
    """
    attempts = max_retries + 1
    attempt = 0
    while True:
        attempt += 1
        started = time.monotonic()
        request = client.messages.create(
            model=model,
            max_tokens=max_tokens,
            system=system,
            messages=[{"role": "user", "content": user_message}],
        )
        try:
            response = await asyncio.wait_for(request, timeout=timeout_seconds)
        except asyncio.TimeoutError:
            elapsed_ms = int((time.monotonic() - started) * 1000)
            logger.warning("LLM timeout | model=%s | %dms | limit=%ss", model, elapsed_ms, timeout_seconds)
            raise TimeoutError(f"LLM timeout after {elapsed_ms}ms")
        except anthropic.APIError as exc:
            elapsed_ms = int((time.monotonic() - started) * 1000)
            status = getattr(exc, "status_code", None)
            will_retry = _retryable(exc) and attempt < attempts
            logger.warning(
                "LLM error | model=%s | status=%s | attempt=%d/%d | %dms | retry=%s | %s",
                model, status or "-", attempt, attempts, elapsed_ms, will_retry, str(exc)[:200],
            )
            if not will_retry:
                raise
            continue

        elapsed_ms = int((time.monotonic() - started) * 1000)
        usage = response.usage
        logger.info(
            "LLM OK | model=%s | tokens_in=%d tokens_out=%d | %dms",
            model, usage.input_tokens, usage.output_tokens, elapsed_ms,
        )
        return _response_text(response)


def extract_json(text: str) -> dict | None:
    """Extract a valid JSON object from potentially messy LLM output.

    Strategies (in order):
      1. Code fence (```json {...} ```)
      2. Full text as JSON
      3. First decodable object starting at any brace
    """
    # Strategy 1: code fence
    fence = re.search(r"```(?:json)?\s*(\{[\s\S]*?\})\s*```", text)
    if fence:
        result = _try_parse(fence.group(1))
        if result is not None:
            return result

    # Strategy 2: full text
    trimmed = text.strip()
    if trimmed.startswith("{"):
        result = _try_parse(trimmed)
        if result is not None:
            return result

    # Strategy 3: scan for an embedded object
    return _extract_balanced(text)


def _try_parse(s: str) -> dict | None:
    try:
        obj = json.loads(s)
        if isinstance(obj, dict):
            return obj
    except (json.JSONDecodeError, ValueError):
        pass
    return None


def _extract_balanced(text: str) -> dict | None:
    """Decode the first JSON object that starts at any '{' in the text."""
    decoder = json.JSONDecoder()
    pos = text.find("{")
    while pos != -1:
        try:
            obj, _ = decoder.raw_decode(text, pos)
        except json.JSONDecodeError:
            obj = None
        if isinstance(obj, dict):
            return obj
        pos = text.find("{", pos + 1)
    return None
