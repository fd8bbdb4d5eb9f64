"""Request coalescing to prevent duplicate upstream calls.

When several tasks ask for the same fingerprint while a call is in flight,
only one producer runs and every caller receives its result (or its error).

Pattern:
- First caller starts the producer as a task and registers it
- Later callers for the same fingerprint await that task
- The task deregisters itself before its result is published, so nobody
  can join a slot that has already settled
- A caller that is cancelled only detaches itself; once every caller has
  detached, the slot is released at once and the shared task is cancelled
  (when cancel_abandoned is set)

Registration and cleanup never await, so they are atomic on the event loop.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class InFlightRequest:
    """Tracks an in-progress upstream request."""
    fingerprint: str
    task: asyncio.Task
    started_at: float = field(default_factory=time.monotonic)
    waiter_count: int = 0


class RequestCoalescer:
    """Ensures concurrent requests for the same fingerprint share one call."""

    def __init__(self, cancel_abandoned: bool = True):
        self._in_flight: dict[str, InFlightRequest] = {}
        self.cancel_abandoned = cancel_abandoned

    async def run(self, fingerprint: str, producer: Callable[[], Awaitable[T]]) -> T:
        """Join the in-flight call for `fingerprint`, or start one with `producer`."""
        in_flight = self._in_flight.get(fingerprint)
        if in_flight is None:
            task = asyncio.ensure_future(self._execute(fingerprint, producer))
            in_flight = InFlightRequest(fingerprint=fingerprint, task=task)
            self._in_flight[fingerprint] = in_flight
            logger.debug("Coalescer START | key=%s", fingerprint[:20])
        else:
            logger.debug(
                "Coalescer JOIN | key=%s | waiters=%d", fingerprint[:20], in_flight.waiter_count + 1,
            )

        in_flight.waiter_count += 1
        try:
            return await asyncio.shield(in_flight.task)
        finally:
            in_flight.waiter_count -= 1
            if in_flight.waiter_count == 0 and not in_flight.task.done() and self.cancel_abandoned:
                logger.info("Coalescer CANCEL | key=%s | no callers left", fingerprint[:20])
                # Deregister now so the next caller starts a fresh call instead
                # of joining a task that is about to be cancelled.
                if self._in_flight.get(fingerprint) is in_flight:
                    del self._in_flight[fingerprint]
                in_flight.task.cancel()

    async def _execute(self, fingerprint: str, producer: Callable[[], Awaitable[T]]) -> T:
        try:
            return await producer()
        finally:
            current = self._in_flight.get(fingerprint)
            if current is not None and current.task is asyncio.current_task():
                del self._in_flight[fingerprint]

    def is_in_flight(self, fingerprint: str) -> bool:
        return fingerprint in self._in_flight

    @property
    def active_requests(self) -> int:
        """Number of currently in-flight requests."""
        return len(self._in_flight)

    def get_stats(self) -> dict[str, Any]:
        now = time.monotonic()
        return {
            "active_requests": len(self._in_flight),
            "requests": [
                {
                    "key": key[:20],
                    "waiters": req.waiter_count,
                    "age_ms": int((now - req.started_at) * 1000),
                }
                for key, req in self._in_flight.items()
            ],
        }
