"""Interface for time sources.

Separating wall-clock reads and sleeps from the resilience logic allows the
orchestrator and rate limiter to be driven deterministically in tests.
"""

import abc
import asyncio
from typing import Optional


class Clock(abc.ABC):
    """Abstract Base Class for reading time and suspending."""

    @abc.abstractmethod
    def now(self) -> float:
        """Returns the current time in seconds from an arbitrary, monotonic origin."""
        pass

    @abc.abstractmethod
    async def sleep(self, seconds: float, cancel_event: Optional[asyncio.Event] = None) -> None:
        """Suspends for ``seconds`` without blocking the event loop.

        Args:
            seconds: Duration to wait. Non-positive values return immediately.
            cancel_event: If given, the wait ends early once the event is set.
        """
        pass
