from fastapi import FastAPI
from fastapi.testclient import TestClient

from ring_bridge.http.server import HealthServer, build_health_router
from ring_bridge.services.registry import ServiceRegistry
from tests.services.test_service_registry import DummyService


def _client(registry):
    app = FastAPI()
    app.include_router(build_health_router(registry=registry))
    return TestClient(app)


class TestHealthEndpoint:
    def test_reports_aggregated_health(self):
        registry = ServiceRegistry()
        registry.register(DummyService("bus", []))
        registry.register(DummyService("engine", [], status="degraded"))

        response = _client(registry).get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "degraded"
        assert body["services"]["bus"]["status"] == "healthy"

    def test_health_server_mounts_route(self):
        registry = ServiceRegistry()
        server = registry.register(HealthServer(registry, port=0))

        response = TestClient(server.app).get("/health")

        assert response.status_code == 200
        assert response.json()["services"]["http"]["status"] == "degraded"
