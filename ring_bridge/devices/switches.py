"""
Switches, dimmers and fans.
"""

import logging
from typing import Any, Dict, List

from ring_bridge.bridge_logging import get_logger
from ring_bridge.devices.base import AlarmDevice, Discovery
from ring_bridge.models import CommandResult, DeviceKind

logger = logging.getLogger(__name__)
log = get_logger("RING.Switch")

POWER_PAYLOADS = {"ON": True, "OFF": False}


def _power_body(on: bool) -> Dict[str, Any]:
    return {"device": {"v1": {"on": on}}}


def _level_body(level: float) -> Dict[str, Any]:
    return {"device": {"v1": {"level": level}}}


class Switch(AlarmDevice):
    """On/off switch, exposed as a light."""

    kind = DeviceKind.SWITCH
    component = "light"

    @property
    def state_topic(self) -> str:
        return f"{self.topic_base()}/state"

    @property
    def command_topic(self) -> str:
        return f"{self.topic_base()}/command"

    def discovery_extra(self) -> Dict[str, Any]:
        return {}

    def discovery(self) -> List[Discovery]:
        message = self.discovery_message(
            name=self.name,
            unique_id=self.device_id,
            state_topic=self.state_topic,
            command_topic=self.command_topic,
            json_attributes_topic=self.attributes_topic,
            **self.discovery_extra(),
        )
        return [(self.config_topic(self.component, self.device_id), message)]

    def publish_state(self) -> None:
        self.publish_value("state", self.state_topic, "ON" if self.data.get("on") else "OFF")
        self.publish_attributes()

    async def set_power(self, message: str) -> CommandResult:
        on = POWER_PAYLOADS.get(message)
        if on is None:
            log.warning("RING.Switch.UnknownCommand", extra={"fields": {"device_id": self.device_id, "payload": message}})
            return CommandResult.UNKNOWN
        try:
            await self.remote.set_info(_power_body(on))
        except Exception as e:
            log.error("RING.Switch.SetFailed", extra={"fields": {"device_id": self.device_id, "error": str(e)}})
            return CommandResult.FAILURE
        return CommandResult.SUCCESS

    async def set_level(self, message: str) -> CommandResult:
        try:
            percent = int(float(message))
        except ValueError:
            log.warning("RING.Switch.UnknownCommand", extra={"fields": {"device_id": self.device_id, "payload": message}})
            return CommandResult.UNKNOWN
        percent = max(0, min(100, percent))
        try:
            await self.remote.set_info(_level_body(percent / 100))
        except Exception as e:
            log.error("RING.Switch.SetFailed", extra={"fields": {"device_id": self.device_id, "error": str(e)}})
            return CommandResult.FAILURE
        return CommandResult.SUCCESS

    async def process_command(self, component: str, level: str, message: str) -> CommandResult:
        if level == "command":
            logger.debug(f"Received set light state {message} for device {self.device_id}")
            return await self.set_power(message)
        return await super().process_command(component, level, message)

    def level_percent(self) -> int:
        level = self.data.get("level")
        if level is None:
            return 0
        return round(float(level) * 100)


class MultiLevelSwitch(Switch):
    """Dimmer, exposed as a light with brightness."""

    kind = DeviceKind.MULTI_LEVEL_SWITCH

    @property
    def brightness_state_topic(self) -> str:
        return f"{self.topic_base()}/brightness_state"

    @property
    def brightness_command_topic(self) -> str:
        return f"{self.topic_base()}/brightness_command"

    def discovery_extra(self) -> Dict[str, Any]:
        return {
            "brightness_scale": 100,
            "brightness_state_topic": self.brightness_state_topic,
            "brightness_command_topic": self.brightness_command_topic,
        }

    def publish_state(self) -> None:
        self.publish_value("brightness", self.brightness_state_topic, self.level_percent())
        super().publish_state()

    async def process_command(self, component: str, level: str, message: str) -> CommandResult:
        if level == "brightness_command":
            return await self.set_level(message)
        return await super().process_command(component, level, message)


class Fan(Switch):
    """Fan controller (multi-level switch of the fan category)."""

    kind = DeviceKind.FAN
    component = "fan"

    @property
    def percentage_state_topic(self) -> str:
        return f"{self.topic_base()}/percentage_state"

    @property
    def percentage_command_topic(self) -> str:
        return f"{self.topic_base()}/percentage_command"

    def discovery_extra(self) -> Dict[str, Any]:
        return {
            "percentage_state_topic": self.percentage_state_topic,
            "percentage_command_topic": self.percentage_command_topic,
        }

    def publish_state(self) -> None:
        self.publish_value("percentage", self.percentage_state_topic, self.level_percent())
        super().publish_state()

    async def process_command(self, component: str, level: str, message: str) -> CommandResult:
        if level == "percentage_command":
            return await self.set_level(message)
        return await super().process_command(component, level, message)
