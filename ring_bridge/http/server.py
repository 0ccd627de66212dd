from __future__ import annotations

import asyncio
import contextlib
from typing import Any, Dict, Optional

import uvicorn
from fastapi import APIRouter, FastAPI

from ring_bridge.services.base import BridgeService
from ring_bridge.services.registry import ServiceRegistry


def build_health_router(*, registry: ServiceRegistry) -> APIRouter:
    """Create the /health route reporting aggregated service health."""

    router = APIRouter()

    @router.get("/health")
    async def get_health() -> Dict[str, Any]:
        return registry.health_all()

    return router


class HealthServer(BridgeService):
    """uvicorn server on a worker thread; the thread has no signal handlers of its own."""

    def __init__(self, registry: ServiceRegistry, host: str = "0.0.0.0", port: int = 8000, name: str = "http") -> None:
        super().__init__(name)
        self.host = host
        self.port = port
        self.app = FastAPI(title="ring-bridge")
        self.app.include_router(build_health_router(registry=registry))
        self._server: Optional[uvicorn.Server] = None
        self._task: Optional[asyncio.Task[None]] = None

    async def start(self) -> None:
        config = uvicorn.Config(self.app, host=self.host, port=self.port, log_level="warning")
        self._server = uvicorn.Server(config)
        self._task = asyncio.create_task(asyncio.to_thread(self._server.run))
        self._mark_started()

    async def stop(self) -> None:
        if self._server is not None:
            self._server.should_exit = True
        if self._task is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
        self._server = None
        self._task = None
        self._mark_stopped()

    def health(self) -> Dict[str, Any]:
        running = self._task is not None and not self._task.done()
        return {
            "status": "healthy" if running else "degraded",
            "message": f"Serving on {self.host}:{self.port}" if running else "Not serving",
            "details": {"port": self.port},
        }
