"""Real-time Clock implementation backed by time.monotonic and asyncio."""

import asyncio
import time
from typing import Optional

from issuerelay.domain.interfaces.clock import Clock


class MonotonicClock(Clock):
    """Clock for production use. Sleeping yields to the event loop."""

    def now(self) -> float:
        return time.monotonic()

    async def sleep(self, seconds: float, cancel_event: Optional[asyncio.Event] = None) -> None:
        if seconds <= 0:
            return
        if cancel_event is None:
            await asyncio.sleep(seconds)
            return
        try:
            await asyncio.wait_for(cancel_event.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            pass  # Full duration elapsed without cancellation
