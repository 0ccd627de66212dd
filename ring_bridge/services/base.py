"""
Long-lived bridge services.

The MQTT bus, the engine and the optional health server share one
async lifecycle so the registry can start and stop them in order.
"""

from abc import ABC, abstractmethod
from typing import Dict, Any
import logging


class BridgeService(ABC):
    """
    Async start/stop plus a health check.

    health() returns {"status": "healthy" | "degraded" | "unhealthy",
    "message": str, "details": dict}.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._started = False
        self._logger = logging.getLogger(f"ring_bridge.service.{name}")

    @abstractmethod
    async def start(self) -> None:
        """
        Connect, subscribe and spawn background tasks.

        Raises:
            Exception: Startup failure; the bridge does not boot
        """

    @abstractmethod
    async def stop(self) -> None:
        """Release everything start() acquired. Safe to call twice."""

    @abstractmethod
    def health(self) -> Dict[str, Any]:
        pass

    def _mark_started(self) -> None:
        self._started = True
        self._logger.info(f"Service {self.name} started")

    def _mark_stopped(self) -> None:
        self._started = False
        self._logger.info(f"Service {self.name} stopped")

    @property
    def is_started(self) -> bool:
        return self._started
