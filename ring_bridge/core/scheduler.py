"""
Startup/reconnect republish scheduler.

After a bus (re)connection or a detected consumer restart, discovery
and state for every location are republished a bounded number of times
so a consumer that joined late still converges.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Awaitable, Callable, Optional

from ring_bridge.bridge_logging import get_logger
from ring_bridge.core.clock import Clock
from ring_bridge.models import RepublishCycle

logger = logging.getLogger(__name__)
log = get_logger("RING.Republish")

DEFAULT_CYCLES = 10
DEFAULT_INTERVAL = 30.0

PublishPass = Callable[[], Awaitable[None]]


class RepublishScheduler:
    """
    Runs at most one republish episode at a time.

    Every restart detection starts a new generation. A loop from an
    older generation exits at its next check, and start_episode() calls
    made during the restart pause are absorbed by the fresh episode.
    """

    def __init__(
        self,
        publish_pass: PublishPass,
        is_connected: Callable[[], bool],
        clock: Clock,
        cycles: int = DEFAULT_CYCLES,
        interval: float = DEFAULT_INTERVAL,
        restart_pause_extra: float = 5.0,
    ) -> None:
        self._publish_pass = publish_pass
        self._is_connected = is_connected
        self._clock = clock
        self._cycles = cycles
        self._interval = interval
        self._restart_pause = interval + restart_pause_extra
        self.cycle = RepublishCycle(remaining_cycles=0, interval_seconds=interval)
        self._task: Optional[asyncio.Task[None]] = None
        self._generation = 0
        self._restart_pending = False
        self.passes_run = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start_episode(self) -> None:
        """Reset the counter; start the loop unless one is already running."""
        if self._restart_pending:
            logger.debug("Restart pause in progress, episode will start after it")
            return

        self.cycle.remaining_cycles = self._cycles
        self.cycle.interval_seconds = self._interval
        if self.running:
            logger.debug("Republish episode already running, counter reset")
            return

        log.info("RING.Republish.EpisodeStarted", extra={"fields": {
            "cycles": self._cycles,
            "interval": self._interval,
        }})
        self._task = asyncio.get_running_loop().create_task(self._run(self._generation))

    async def restart_detected(self) -> None:
        """End the counting episode, pause, then start exactly one fresh episode."""
        self._generation += 1
        generation = self._generation
        self._restart_pending = True
        self.cycle.remaining_cycles = 0
        log.info("RING.Republish.RestartDetected", extra={"fields": {"pause": self._restart_pause}})

        await self._clock.sleep(self._restart_pause)
        if generation != self._generation:
            # A later restart or stop() took over.
            return

        self._restart_pending = False
        if self.running:
            # Stale loop; it exits after its current pass or sleep.
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
        self.start_episode()

    async def _run(self, generation: int) -> None:
        while generation == self._generation and self.cycle.remaining_cycles > 0 and self._is_connected():
            try:
                await self._publish_pass()
                self.passes_run += 1
            except Exception as e:
                log.error("RING.Republish.PassError", extra={"fields": {"error": str(e)}})

            self.cycle.remaining_cycles -= 1
            await self._clock.sleep(self.cycle.interval_seconds)

        logger.debug("Republish episode finished")

    async def stop(self) -> None:
        self._generation += 1
        self._restart_pending = False
        self.cycle.remaining_cycles = 0
        if self.running:
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
        self._task = None
