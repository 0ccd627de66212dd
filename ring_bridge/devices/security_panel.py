"""
Security panel: alarm mode state and arm/disarm commands.

Mode changes are fire-and-poll: the panel is re-listed after each
attempt until it reports the requested mode.
"""

import logging
from typing import Any, Dict, List, Optional

from ring_bridge.bridge_logging import get_logger
from ring_bridge.devices.base import AlarmDevice, Discovery
from ring_bridge.models import CommandResult, DeviceKind

logger = logging.getLogger(__name__)
log = get_logger("RING.SecurityPanel")

MODE_STATES = {
    "none": "disarmed",
    "some": "armed_home",
    "all": "armed_away",
}

# Command payload -> remote mode the panel must report
TARGET_MODES = {
    "DISARM": "none",
    "ARM_HOME": "some",
    "ARM_AWAY": "all",
}


async def _disarm(device: Any) -> None:
    await device.location.disarm()


async def _arm_home(device: Any) -> None:
    await device.location.arm_home()


async def _arm_away(device: Any) -> None:
    await device.location.arm_away()


MUTATIONS = {
    "DISARM": _disarm,
    "ARM_HOME": _arm_home,
    "ARM_AWAY": _arm_away,
}


class SecurityPanel(AlarmDevice):
    kind = DeviceKind.SECURITY_PANEL
    component = "alarm_control_panel"

    @property
    def state_topic(self) -> str:
        return f"{self.topic_base()}/state"

    @property
    def command_topic(self) -> str:
        return f"{self.topic_base()}/command"

    def discovery(self) -> List[Discovery]:
        message = self.discovery_message(
            name=f"{self.name} Alarm",
            unique_id=self.device_id,
            state_topic=self.state_topic,
            command_topic=self.command_topic,
            json_attributes_topic=self.attributes_topic,
        )
        return [(self.config_topic(self.component, self.device_id), message)]

    def alarm_state(self) -> str:
        data = self.data
        if data.get("alarmInfo"):
            return "triggered"
        return MODE_STATES.get(data.get("mode"), "unknown")

    def publish_state(self) -> None:
        self.publish_value("state", self.state_topic, self.alarm_state())
        self.publish_attributes()

    async def _resolve(self) -> Optional[Any]:
        devices = await self.remote.location.get_devices()
        for device in devices:
            if device.zid == self.device_id:
                self.update_remote(device)
                return device
        return None

    async def process_command(self, component: str, level: str, message: str) -> CommandResult:
        if level != "command":
            return await super().process_command(component, level, message)

        log.info("RING.SecurityPanel.SetMode", extra={"fields": {
            "device_id": self.device_id,
            "location_id": self.location_id,
            "mode": message,
        }})
        target = TARGET_MODES.get(message)
        result = await self.ctx.confirmer.apply_and_confirm(
            self._resolve,
            message,
            MUTATIONS,
            lambda device: device.data.get("mode") == target,
            device_id=self.device_id,
        )
        if result is CommandResult.SUCCESS:
            self.publish_state()
        return result
