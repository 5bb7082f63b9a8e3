"""In-memory narration rate limiting.

Each key (typically ``"{participant_id}-{campaign_id}"``) may make at most
``max_requests`` narration requests in any ``window_seconds`` span. State is
per process; a restart forgets every window.
"""

from __future__ import annotations

import threading
import time
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass

from dnd_director.core.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class RateLimitDecision:
    """Outcome of one rate-limit check.

    Attributes:
        allowed: Whether the request may proceed. Allowed requests are counted.
        remaining: Requests still allowed in the current window.
        reset_at: Clock time at which the oldest counted request leaves the window.
    """

    allowed: bool
    remaining: int
    reset_at: float
    now: float

    @property
    def retry_after_seconds(self) -> float:
        return 0.0 if self.allowed else max(0.0, self.reset_at - self.now)


class RateLimiter:
    """Sliding-window limiter keyed by an arbitrary string.

    Args:
        max_requests: Requests allowed per window.
        window_seconds: Window length.
        clock: Monotonic time source, injectable for tests.
    """

    def __init__(
        self,
        max_requests: int = 12,
        window_seconds: float = 3600.0,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_requests < 1:
            raise ValueError("max_requests must be at least 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._hits: dict[str, deque[float]] = {}
        self._lock = threading.Lock()

    def check(self, key: str) -> RateLimitDecision:
        """Count a request against ``key`` if the window has room."""
        now = self._clock()
        with self._lock:
            hits = self._hits.setdefault(key, deque())
            self._expire(hits, now)

            if len(hits) >= self.max_requests:
                decision = RateLimitDecision(
                    allowed=False,
                    remaining=0,
                    reset_at=hits[0] + self.window_seconds,
                    now=now,
                )
                logger.info(
                    "Narration request throttled",
                    key=key,
                    retry_after_seconds=round(decision.retry_after_seconds, 1),
                )
                return decision

            hits.append(now)
            return RateLimitDecision(
                allowed=True,
                remaining=self.max_requests - len(hits),
                reset_at=hits[0] + self.window_seconds,
                now=now,
            )

    def cleanup(self) -> int:
        """Drop keys whose windows have fully expired. Returns how many were dropped."""
        now = self._clock()
        with self._lock:
            stale = []
            for key, hits in self._hits.items():
                self._expire(hits, now)
                if not hits:
                    stale.append(key)
            for key in stale:
                del self._hits[key]
        return len(stale)

    def _expire(self, hits: deque[float], now: float) -> None:
        while hits and now - hits[0] >= self.window_seconds:
            hits.popleft()


__all__ = ["RateLimitDecision", "RateLimiter"]
