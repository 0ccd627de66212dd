from ring_bridge.http.server import HealthServer, build_health_router

__all__ = ["HealthServer", "build_health_router"]
