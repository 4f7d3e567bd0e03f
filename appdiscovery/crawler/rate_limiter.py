"""
Minimum spacing between outbound requests to the source site.

One RateLimiter belongs to one crawl or import run. It is never shared
through module state, so two runs in the same process do not throttle
each other.
"""

import time
from typing import Callable, Optional

from appdiscovery.core.logging import get_logger

logger = get_logger(__name__)


class RateLimiter:
    """
    Blocks in wait() until delay_ms has elapsed since the previous wait() returned.

    Example:
        >>> limiter = RateLimiter(delay_ms=2000)
        >>> limiter.wait()   # first call returns immediately
        >>> limiter.wait()   # sleeps ~2s
    """

    def __init__(
        self,
        delay_ms: int,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if delay_ms < 0:
            raise ValueError("delay_ms must be non-negative")
        self.delay_ms = delay_ms
        self._clock = clock
        self._sleep = sleep
        self._last: Optional[float] = None

    def wait(self) -> float:
        """Sleep as needed; returns the number of seconds slept."""
        slept = 0.0
        if self._last is not None:
            elapsed = self._clock() - self._last
            remaining = self.delay_ms / 1000.0 - elapsed
            if remaining > 0:
                logger.debug(f"Rate limit: sleeping {remaining:.2f}s")
                self._sleep(remaining)
                slept = remaining
        self._last = self._clock()
        return slept
