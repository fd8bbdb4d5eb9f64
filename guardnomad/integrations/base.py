"""Shared request handling for live upstream clients.

Every failure is raised as a classified UpstreamError so the fallback chain
can decide how to react; nothing is swallowed here.
"""

import logging
import time
from typing import Any

import httpx

from guardnomad.aggregation.errors import (
    MalformedUpstreamResponse,
    NoCredentialsError,
    TransientNetworkError,
    classify_status,
)

logger = logging.getLogger(__name__)


class UpstreamClient:
    """Base async client: timing, logging and error classification."""

    provider = "upstream"

    def __init__(
        self,
        api_key: str = "",
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_key = api_key
        self.timeout = timeout
        self._transport = transport

    @property
    def available(self) -> bool:
        return bool(self.api_key)

    async def _request(self, method: str, url: str, label: str = "", **kwargs: Any) -> Any:
        if not self.available:
            raise NoCredentialsError(f"{self.provider} API key not configured")

        start = time.monotonic()
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.request(method, url, **kwargs)
        except httpx.TimeoutException as e:
            elapsed_ms = int((time.monotonic() - start) * 1000)
            logger.warning("%s timeout | %dms | %s", self.provider, elapsed_ms, label)
            raise TransientNetworkError(f"{self.provider} timeout after {elapsed_ms}ms", provider=self.provider) from e
        except httpx.TransportError as e:
            elapsed_ms = int((time.monotonic() - start) * 1000)
            logger.warning("%s network error | %dms | %s | %s", self.provider, elapsed_ms, label, str(e)[:200])
            raise TransientNetworkError(f"{self.provider} network error: {e}", provider=self.provider) from e

        elapsed_ms = int((time.monotonic() - start) * 1000)
        if response.status_code != 200:
            logger.warning(
                "%s | status=%d | %dms | %s | %s",
                self.provider, response.status_code, elapsed_ms, label, response.text[:200],
            )
            error_cls = classify_status(response.status_code)
            raise error_cls(
                f"{self.provider} returned HTTP {response.status_code}",
                provider=self.provider,
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise MalformedUpstreamResponse(
                f"{self.provider} returned a non-JSON body", provider=self.provider, status_code=200,
            ) from e

        logger.info("%s OK | %dms | %s", self.provider, elapsed_ms, label)
        return data

    @staticmethod
    def _require_list(data: Any, key: str, provider: str) -> list[dict[str, Any]]:
        items = data.get(key) if isinstance(data, dict) else None
        if not isinstance(items, list):
            raise MalformedUpstreamResponse(f"{provider} response missing '{key}' list", provider=provider)
        return items
