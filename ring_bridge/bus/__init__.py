from ring_bridge.bus.base import MessageBus
from ring_bridge.bus.mqtt import MqttMessageBus

__all__ = ["MessageBus", "MqttMessageBus"]
