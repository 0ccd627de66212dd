"""
Deadline timer with extend semantics.

A waiter sleeps until the current deadline; if the deadline moved
later while it slept, it keeps waiting for the new one.
"""

from __future__ import annotations

from ring_bridge.core.clock import Clock


class DeadlineTimer:
    def __init__(self, clock: Clock, deadline: float = 0.0) -> None:
        self._clock = clock
        self._deadline = deadline

    @property
    def deadline(self) -> float:
        return self._deadline

    def extend(self, deadline: float) -> bool:
        """Move the deadline later. Earlier deadlines are ignored."""
        if deadline <= self._deadline:
            return False
        self._deadline = deadline
        return True

    def expired(self) -> bool:
        return self._clock.now() >= self._deadline

    async def wait(self) -> None:
        """Return once the clock passes the (possibly extended) deadline."""
        while not self.expired():
            await self._clock.sleep(self._deadline - self._clock.now())
