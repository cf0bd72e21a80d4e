"""Implementation of a sliding window rate limiter.

Controls the frequency of outgoing delivery attempts to stay within the
remote endpoint's rate limits. Counts attempts inside a trailing window
rather than refilling a token budget.
"""

import logging
from collections import deque
from typing import Deque

from issuerelay.domain.models.config import RateLimitConfig

logger = logging.getLogger(__name__)


class SlidingWindowLimiter:
    """Sliding window admission control over a bounded timestamp log.

    The log never holds more than ``max_requests`` entries: a timestamp is
    only recorded when the pruned count is below the budget. The log is
    instance-local and not safe for concurrent mutation; callers sharing a
    limiter must serialize ``admit``.
    """

    def __init__(self, config: RateLimitConfig = RateLimitConfig()):
        """Initializes the rate limiter.

        Args:
            config: Maximum number of requests per trailing window.
        """
        self.config = config
        self.timestamps: Deque[float] = deque(maxlen=config.max_requests)
        logger.info(
            f"SlidingWindowLimiter initialized: {config.max_requests} requests / "
            f"{config.window_seconds} seconds"
        )

    def _cleanup_timestamps(self, now: float) -> None:
        """Removes timestamps that have left the window ending at ``now``."""
        window = self.config.window_seconds
        while self.timestamps and now - self.timestamps[0] >= window:
            self.timestamps.popleft()

    def admit(self, now: float) -> bool:
        """Admits a request at time ``now`` if the window has room.

        Args:
            now: Current clock reading in seconds.

        Returns:
            True if admitted (the timestamp is recorded), False otherwise.
            A denial has no side effect beyond eviction.
        """
        self._cleanup_timestamps(now)
        if len(self.timestamps) < self.config.max_requests:
            self.timestamps.append(now)
            return True
        logger.debug(
            f"Rate limit reached: {len(self.timestamps)}/{self.config.max_requests} "
            f"in the last {self.config.window_seconds}s."
        )
        return False

    def in_window(self, now: float) -> int:
        """Number of admissions still inside the window ending at ``now``."""
        self._cleanup_timestamps(now)
        return len(self.timestamps)

    def reset(self) -> None:
        """Forgets every recorded admission."""
        self.timestamps.clear()
        logger.debug("Rate limiter timestamp log cleared.")

    def reconfigure(self, config: RateLimitConfig) -> None:
        """Replaces the budget, keeping the newest recorded timestamps."""
        self.config = config
        self.timestamps = deque(self.timestamps, maxlen=config.max_requests)
        logger.info(
            f"SlidingWindowLimiter reconfigured: {config.max_requests} requests / "
            f"{config.window_seconds} seconds"
        )
