from ring_bridge.services.base import BridgeService
from ring_bridge.services.registry import ServiceRegistry

__all__ = ["BridgeService", "ServiceRegistry"]
