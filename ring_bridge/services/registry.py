"""
Service registry.

Starts services in order, stops them in reverse, aggregates health.
"""

from typing import Dict, List, Optional, Any
import logging

from ring_bridge.services.base import BridgeService

logger = logging.getLogger(__name__)


class ServiceRegistry:
    def __init__(self) -> None:
        self._services: Dict[str, BridgeService] = {}

    def register(self, service: BridgeService) -> BridgeService:
        """
        Register a service instance.

        Raises:
            ValueError: If a service with the same name is registered
        """
        if service.name in self._services:
            raise ValueError(f"Service '{service.name}' already registered")

        self._services[service.name] = service
        logger.info(f"Registered service: {service.name}")
        return service

    def get_service(self, name: str) -> Optional[BridgeService]:
        return self._services.get(name)

    async def start_all(self) -> None:
        """
        Start all registered services in registration order.

        If any service fails to start, already-started services are
        stopped and the error is raised.
        """
        logger.info(f"Starting {len(self._services)} services...")

        for name, service in self._services.items():
            try:
                logger.info(f"Starting service: {name}")
                await service.start()
            except Exception as e:
                logger.error(f"Failed to start service '{name}': {e}")
                await self.stop_all()
                raise

        logger.info("All services started successfully")

    async def stop_all(self) -> None:
        """
        Stop all started services in reverse registration order.

        Continues stopping even if individual services fail.
        """
        for name, service in reversed(list(self._services.items())):
            try:
                if service.is_started:
                    logger.info(f"Stopping service: {name}")
                    await service.stop()
            except Exception as e:
                logger.error(f"Error stopping service '{name}': {e}")

        logger.info("All services stopped")

    def health_all(self) -> Dict[str, Any]:
        """
        Aggregate health status from all services (worst wins).
        """
        service_health = {}
        overall_status = "healthy"

        for name, service in self._services.items():
            try:
                health = service.health()
                service_health[name] = health

                if health["status"] == "unhealthy":
                    overall_status = "unhealthy"
                elif health["status"] == "degraded" and overall_status != "unhealthy":
                    overall_status = "degraded"

            except Exception as e:
                logger.error(f"Health check failed for '{name}': {e}")
                service_health[name] = {
                    "status": "unhealthy",
                    "message": f"Health check error: {e}",
                    "details": {}
                }
                overall_status = "unhealthy"

        return {
            "status": overall_status,
            "services": service_health
        }

    @property
    def service_names(self) -> List[str]:
        return list(self._services.keys())
