"""Orchestrator — routes an (operation, params) request to the owning service.

Responsibilities:
  - Reject unknown operations
  - Validate required params before any cache or upstream work
  - Normalize param values (strip strings, drop empties)
  - Dispatch to the news, local news, events or destination safety service
"""

import logging
import time
from typing import Any, Callable

from guardnomad.aggregation.errors import InvalidParamsError, UnknownOperationError
from guardnomad.config import Settings
from guardnomad.orchestrator.schemas import CanonicalResult
from guardnomad.services.domain import DomainService
from guardnomad.services.events import EventsService
from guardnomad.services.local_news import LocalNewsService
from guardnomad.services.news import NewsService
from guardnomad.services.safety import DestinationSafetyService

logger = logging.getLogger(__name__)

# Each operation needs at least one of these params
REQUIRED_PARAMS: dict[str, tuple[str, ...]] = {
    "searchNews": ("query",),
    "localEvents": ("city", "location", "destination"),
    "destinationAlerts": ("destination", "city", "country", "location"),
    "localNews": ("location", "city", "destination", "country"),
}


class OrchestratorRouter:
    """Main dispatcher — maps operation name to service."""

    def __init__(self, services: list[DomainService]):
        self.services = {service.name: service for service in services}
        self._by_operation: dict[str, DomainService] = {}
        for service in services:
            for operation in service.operations:
                self._by_operation[operation] = service

    @property
    def operations(self) -> list[str]:
        return sorted(self._by_operation)

    async def route(self, operation: str, params: dict[str, Any] | None = None) -> list[CanonicalResult]:
        service = self._by_operation.get(operation)
        if service is None:
            raise UnknownOperationError(
                f"Unknown operation '{operation}'", details={"operations": self.operations},
            )

        clean = _clean_params(params or {})
        required = REQUIRED_PARAMS.get(operation)
        if required and not any(clean.get(key) for key in required):
            raise InvalidParamsError(
                f"{operation} requires one of: {', '.join(required)}", details={"required": list(required)},
            )

        logger.info("Orchestrator routing | op=%s | service=%s", operation, service.name)
        return await service.fetch(operation, clean)

    def clear_caches(self) -> None:
        for service in self.services.values():
            service.clear_cache()
        logger.info("All service caches cleared")

    def stats(self) -> dict[str, Any]:
        return {name: service.stats() for name, service in self.services.items()}


def build_router(settings: Settings, clock: Callable[[], float] = time.monotonic) -> OrchestratorRouter:
    """Construct every service from settings and wire them into a router."""
    return OrchestratorRouter([
        NewsService(settings, clock=clock),
        EventsService(settings, clock=clock),
        LocalNewsService(settings, clock=clock),
        DestinationSafetyService(settings, clock=clock),
    ])


# ═══════════════ HELPERS ═══════════════

def _clean_params(params: dict[str, Any]) -> dict[str, Any]:
    clean = {}
    for key, value in params.items():
        if isinstance(value, str):
            value = value.strip()
        if value is None or value == "":
            continue
        clean[key] = value
    return clean
