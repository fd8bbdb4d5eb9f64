"""Fixed-window rate limiter.

Advisory and process-local: it throttles this process against a metered
upstream (or throttles HTTP clients by IP), it does not coordinate across
processes.
"""

import logging
import time
from dataclasses import dataclass
from typing import Callable

logger = logging.getLogger(__name__)


@dataclass
class RateWindow:
    window_start: float
    count: int = 0


class RateLimiter:
    """Allows at most `ceiling` acquisitions per scope per window."""

    def __init__(
        self,
        ceiling: int,
        window_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ceiling = ceiling
        self.window = window_seconds
        self._clock = clock
        self._windows: dict[str, RateWindow] = {}

    def _current_window(self, scope: str) -> RateWindow:
        # Lazy reset: must run before the count is read or incremented.
        now = self._clock()
        window = self._windows.get(scope)
        if window is None or now - window.window_start >= self.window:
            window = RateWindow(window_start=now)
            self._windows[scope] = window
        return window

    def try_acquire(self, scope: str = "global") -> bool:
        """Take a permit for `scope` if one is left in the current window."""
        window = self._current_window(scope)
        if window.count < self.ceiling:
            window.count += 1
            return True
        logger.warning(
            "Rate limited | scope=%s | count=%d/%d", scope, window.count, self.ceiling,
        )
        return False

    def remaining(self, scope: str = "global") -> int:
        window = self._current_window(scope)
        return max(self.ceiling - window.count, 0)

    def reset(self, scope: str | None = None) -> None:
        if scope is None:
            self._windows.clear()
        else:
            self._windows.pop(scope, None)
