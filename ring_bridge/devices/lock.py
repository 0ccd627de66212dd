"""
Lock: locked state and lock/unlock commands.
"""

from typing import Any, List, Optional

from ring_bridge.bridge_logging import get_logger
from ring_bridge.devices.base import AlarmDevice, Discovery
from ring_bridge.models import CommandResult, DeviceKind

log = get_logger("RING.Lock")

LOCK_STATES = {
    "locked": "LOCKED",
    "unlocked": "UNLOCKED",
}

TARGET_STATES = {
    "LOCK": "locked",
    "UNLOCK": "unlocked",
}


async def _lock(device: Any) -> None:
    await device.send_command("lock.lock")


async def _unlock(device: Any) -> None:
    await device.send_command("lock.unlock")


MUTATIONS = {
    "LOCK": _lock,
    "UNLOCK": _unlock,
}

# Bolt travel can outlast the settle delay, so lock/unlock is resent.
LOCK_MAX_RETRIES = 4
LOCK_RETRY_DELAY = 5.0


class Lock(AlarmDevice):
    kind = DeviceKind.LOCK
    component = "lock"

    @property
    def state_topic(self) -> str:
        return f"{self.topic_base()}/state"

    @property
    def command_topic(self) -> str:
        return f"{self.topic_base()}/command"

    def discovery(self) -> List[Discovery]:
        message = self.discovery_message(
            name=f"{self.name} Lock",
            unique_id=self.device_id,
            state_topic=self.state_topic,
            command_topic=self.command_topic,
            json_attributes_topic=self.attributes_topic,
        )
        return [(self.config_topic(self.component, self.device_id), message)]

    def publish_state(self) -> None:
        self.publish_value("state", self.state_topic, LOCK_STATES.get(self.data.get("locked"), "UNKNOWN"))
        self.publish_attributes()

    async def _resolve(self) -> Optional[Any]:
        return self.remote

    async def process_command(self, component: str, level: str, message: str) -> CommandResult:
        if level != "command":
            return await super().process_command(component, level, message)

        log.info("RING.Lock.SetState", extra={"fields": {"device_id": self.device_id, "state": message}})
        target = TARGET_STATES.get(message)
        return await self.ctx.confirmer.apply_and_confirm(
            self._resolve,
            message,
            MUTATIONS,
            lambda device: device.data.get("locked") == target,
            device_id=self.device_id,
            max_retries=LOCK_MAX_RETRIES,
            retry_delay=LOCK_RETRY_DELAY,
        )
