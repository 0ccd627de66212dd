"""
Expiring event tracker.

Turns motion/doorbell dings into an ON/OFF state with automatic
deactivation after the latest ding expires.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import math
from typing import Callable, Dict

from ring_bridge.core.clock import Clock
from ring_bridge.core.timers import DeadlineTimer
from ring_bridge.models import DingKind, DingState

logger = logging.getLogger(__name__)

# Called with (kind, "ON" | "OFF")
TransitionCallback = Callable[[DingKind, str], None]


class ExpiringEventTracker:
    """
    Ding state for one camera.

    At most one deactivation watcher runs per kind. A ding that arrives
    while a watcher is sleeping only extends the watcher's deadline.
    """

    def __init__(
        self,
        device_id: str,
        kinds: tuple[DingKind, ...],
        clock: Clock,
        on_transition: TransitionCallback,
        default_duration: float = 180,
    ) -> None:
        self.device_id = device_id
        self._clock = clock
        self._on_transition = on_transition
        self._states: Dict[DingKind, DingState] = {
            kind: DingState(duration_seconds=default_duration) for kind in kinds
        }
        self._timers: Dict[DingKind, DeadlineTimer] = {}
        self._watchers: Dict[DingKind, asyncio.Task[None]] = {}

    @property
    def kinds(self) -> tuple[DingKind, ...]:
        return tuple(self._states)

    def record_event(self, kind: DingKind, observed_at: float, expires_in: float) -> None:
        """Record a ding and emit ON. Starts a watcher unless one is already running."""
        state = self._states.get(kind)
        if state is None:
            logger.debug(f"Ignoring {kind.value} ding for device {self.device_id}: kind not tracked")
            return

        state.last_event_at = math.floor(observed_at)
        state.duration_seconds = expires_in
        new_expiry = state.last_event_at + expires_in
        # Only ever move expiry forward while the ding is active.
        if not state.active or new_expiry > state.expires_at:
            state.expires_at = new_expiry

        logger.debug(
            f"Ding of type {kind.value} received at {observed_at} from device {self.device_id}, "
            f"expires at {state.expires_at}"
        )

        # A new ding during an active window is still a re-trigger.
        state.active = True
        self._on_transition(kind, "ON")

        watcher = self._watchers.get(kind)
        if watcher is not None and not watcher.done():
            self._timers[kind].extend(state.expires_at)
            return

        self._timers[kind] = DeadlineTimer(self._clock, state.expires_at)
        self._watchers[kind] = asyncio.get_running_loop().create_task(self._watch(kind))

    def query_state(self, kind: DingKind) -> bool:
        state = self._states.get(kind)
        return bool(state and state.active)

    def state(self, kind: DingKind) -> DingState:
        return self._states[kind]

    def watcher_running(self, kind: DingKind) -> bool:
        watcher = self._watchers.get(kind)
        return watcher is not None and not watcher.done()

    async def _watch(self, kind: DingKind) -> None:
        await self._timers[kind].wait()
        logger.debug(f"All dings of type {kind.value} from device {self.device_id} have expired")
        self._states[kind].active = False
        self._on_transition(kind, "OFF")

    async def close(self) -> None:
        """Cancel outstanding watchers (shutdown)."""
        watchers = [w for w in self._watchers.values() if not w.done()]
        for watcher in watchers:
            watcher.cancel()
        for watcher in watchers:
            with contextlib.suppress(asyncio.CancelledError):
                await watcher
        self._watchers.clear()
