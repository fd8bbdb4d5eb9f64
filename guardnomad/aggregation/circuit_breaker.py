"""Circuit breaker for the live tier.

An authorization/quota failure opens the breaker for a cooldown window;
the reopen time is checked synchronously on each access rather than by a
scheduled callback.
"""

import logging
import time
from enum import Enum
from typing import Any, Callable

logger = logging.getLogger(__name__)


class BreakerState(Enum):
    CLOSED = "closed"  # live calls allowed
    OPEN = "open"      # live calls skipped until reopen_after


class CircuitBreaker:

    def __init__(
        self,
        name: str = "default",
        cooldown_seconds: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.name = name
        self.cooldown = cooldown_seconds
        self._clock = clock
        self._state = BreakerState.CLOSED
        self._reopen_after = 0.0
        self._trip_count = 0
        self._last_reason = ""

    @property
    def state(self) -> BreakerState:
        if self._state == BreakerState.OPEN and self._clock() >= self._reopen_after:
            self._state = BreakerState.CLOSED
            logger.info("Circuit breaker CLOSED | name=%s | cooldown elapsed", self.name)
        return self._state

    def allow(self) -> bool:
        """True when the live tier may be attempted."""
        return self.state == BreakerState.CLOSED

    def trip(self, reason: str = "") -> None:
        """Open the breaker for one cooldown window from now."""
        self._state = BreakerState.OPEN
        self._reopen_after = self._clock() + self.cooldown
        self._trip_count += 1
        self._last_reason = reason
        logger.warning(
            "Circuit breaker OPEN | name=%s | cooldown=%ds | reason=%s",
            self.name, self.cooldown, reason[:120],
        )

    def reset(self) -> None:
        self._state = BreakerState.CLOSED
        self._reopen_after = 0.0

    def get_state(self) -> dict[str, Any]:
        state = self.state
        return {
            "name": self.name,
            "state": state.value,
            "reopen_in_seconds": max(round(self._reopen_after - self._clock(), 1), 0.0)
            if state == BreakerState.OPEN else 0.0,
            "trip_count": self._trip_count,
            "last_reason": self._last_reason,
        }
