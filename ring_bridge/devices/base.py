"""
Base class for bridged devices.

A bridged device announces itself with discovery messages, subscribes
once to its remote streams, and publishes state through the
change-gated publisher.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Tuple, Union

from ring_bridge.bridge_logging import get_logger
from ring_bridge.context import BridgeContext
from ring_bridge.models import CommandResult, DeviceKind
from ring_bridge.topics import availability_topic, device_base, discovery_topic

logger = logging.getLogger(__name__)
log = get_logger("RING.Device")

Discovery = Tuple[str, Dict[str, Any]]
BatteryLevel = Union[int, str]


class BridgedDevice(ABC):
    kind: DeviceKind
    category: str = "alarm"
    component: str = "binary_sensor"

    def __init__(self, remote: Any, ctx: BridgeContext, location_id: str, device_id: str, name: str) -> None:
        self.remote = remote
        self.ctx = ctx
        self.location_id = location_id
        self.device_id = device_id
        self.name = name
        self.availability_topic = availability_topic(ctx.config.ring_topic, location_id, self.category, device_id)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.location_id}/{self.device_id}>"

    @property
    def data(self) -> Dict[str, Any]:
        return self.remote.data or {}

    def topic_base(self, component: Optional[str] = None) -> str:
        return device_base(
            self.ctx.config.ring_topic, self.location_id, self.category, component or self.component, self.device_id
        )

    def config_topic(self, component: str, object_id: str) -> str:
        return discovery_topic(self.ctx.config.discovery_prefix, component, self.location_id, object_id)

    def discovery_message(
        self,
        name: str,
        unique_id: str,
        state_topic: str,
        device_class: Optional[str] = None,
        command_topic: Optional[str] = None,
        json_attributes_topic: Optional[str] = None,
        **extra: Any,
    ) -> Dict[str, Any]:
        message: Dict[str, Any] = {
            "name": name,
            "unique_id": unique_id,
            "availability_topic": self.availability_topic,
            "payload_available": "online",
            "payload_not_available": "offline",
            "state_topic": state_topic,
        }
        if device_class:
            message["device_class"] = device_class
        if command_topic:
            message["command_topic"] = command_topic
        if json_attributes_topic:
            message["json_attributes_topic"] = json_attributes_topic
        message.update(extra)
        return message

    @abstractmethod
    def discovery(self) -> List[Discovery]:
        """(config_topic, message) pairs announcing this device."""

    @abstractmethod
    def publish_state(self) -> None:
        """Publish current state through the change gate."""

    def subscribe_streams(self) -> None:
        """Register remote stream observers. Called on every publish pass."""
        self.ctx.registry.subscribe_once(
            self.location_id, self.device_id, "data",
            lambda: self.remote.subscribe_data(self._on_data),
        )

    def _on_data(self, data: Dict[str, Any]) -> None:
        try:
            self.publish_state()
        except Exception as e:
            log.error("RING.Device.PublishError", extra={"fields": {"device_id": self.device_id, "error": str(e)}})

    def update_remote(self, remote: Any) -> None:
        """Swap in a freshly listed remote handle for the same identity."""
        self.remote = remote

    def command_topics(self) -> List[str]:
        return [m["command_topic"] for _, m in self.discovery() if "command_topic" in m]

    def publish_discovery(self) -> None:
        for config_topic, message in self.discovery():
            logger.debug(f"Discovery config topic: {config_topic} {message}")
            self.ctx.publish(config_topic, json.dumps(message))
            for key, value in message.items():
                if key.endswith("command_topic"):
                    self.ctx.bus.subscribe(value, qos=self.ctx.config.qos)

    async def publish(self, republish: bool) -> None:
        """
        Announce, wait for discovery to settle, then publish state.

        Args:
            republish: Known device; clear cached values so state is re-sent
        """
        self.publish_discovery()
        await self.ctx.clock.sleep(self.ctx.discovery_delay)

        if republish:
            self.ctx.publisher.force_republish(self.device_id)
        self.subscribe_streams()
        self.publish_state()

        await self.ctx.availability.device_ready(self)

    def publish_value(self, attribute_key: str, topic: str, value: Any) -> bool:
        return self.ctx.publisher.publish_if_changed(self.device_id, attribute_key, topic, value)

    async def process_command(self, component: str, level: str, message: str) -> CommandResult:
        logger.debug(f"Received {component}/{level} command for device {self.device_id} without a handler")
        return CommandResult.UNKNOWN

    async def close(self) -> None:
        """Release per-device tasks."""


class AlarmDevice(BridgedDevice):
    """Device attached to a location's alarm system; carries battery and tamper attributes."""

    category = "alarm"

    def __init__(self, remote: Any, ctx: BridgeContext) -> None:
        super().__init__(remote, ctx, remote.location_id, remote.zid, remote.name)

    @property
    def attributes_topic(self) -> str:
        return f"{self.topic_base()}/attributes"

    def battery_level(self) -> BatteryLevel:
        """Reported battery level, or a level estimated from battery status."""
        data = self.data
        level = data.get("batteryLevel")
        if level is not None:
            # Some devices never report above 99.
            return 100 if level == 99 else level
        status = data.get("batteryStatus")
        if status == "full":
            return 100
        if status == "ok":
            return 50
        if status == "none":
            return "none"
        return 0

    def attributes(self) -> Dict[str, Any]:
        attributes: Dict[str, Any] = {}
        level = self.battery_level()
        if level != "none":
            attributes["battery_level"] = level
        tamper = self.data.get("tamperStatus")
        if tamper:
            attributes["tamper_status"] = tamper
        return attributes

    def publish_attributes(self) -> None:
        self.publish_value("attributes", self.attributes_topic, json.dumps(self.attributes(), sort_keys=True))
