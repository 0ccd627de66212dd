"""
Bridge context.

Explicitly owned state shared by the engine and every device adapter.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Coroutine, Set

from ring_bridge.bus.base import MessageBus
from ring_bridge.config import BridgeConfig
from ring_bridge.core.availability import AvailabilitySupervisor
from ring_bridge.core.clock import Clock, SystemClock
from ring_bridge.core.confirmation import CommandConfirmer
from ring_bridge.core.publisher import ChangeGatedPublisher
from ring_bridge.core.registry import DeviceRegistry

logger = logging.getLogger(__name__)


@dataclass
class BridgeContext:
    config: BridgeConfig
    bus: MessageBus
    clock: Clock = field(default_factory=SystemClock)
    discovery_delay: float = 2.0
    publisher: ChangeGatedPublisher = field(init=False)
    registry: DeviceRegistry[Any] = field(init=False, default_factory=DeviceRegistry)
    availability: AvailabilitySupervisor = field(init=False)
    confirmer: CommandConfirmer = field(init=False)
    _tasks: Set[asyncio.Task[Any]] = field(init=False, default_factory=set, repr=False)

    def __post_init__(self) -> None:
        self.publisher = ChangeGatedPublisher(self.publish, is_open=lambda: self.bus.is_connected)
        self.availability = AvailabilitySupervisor(self.publisher, self.clock, settle_delay=self.discovery_delay)
        self.confirmer = CommandConfirmer(self.clock)

    def publish(self, topic: str, payload: str) -> None:
        logger.debug(f"{topic} {payload}")
        self.bus.publish(topic, payload, qos=self.config.qos)

    def spawn(self, coro: Coroutine[Any, Any, Any]) -> asyncio.Task[Any]:
        """Run a background task that is cancelled on shutdown."""
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._task_done)
        return task

    def _task_done(self, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(f"Background task failed: {exc!r}")

    async def cancel_tasks(self) -> None:
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()
