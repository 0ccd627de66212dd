"""
Camera: motion and doorbell dings, floodlight and siren.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Any, List, Optional

from ring_bridge.bridge_logging import get_logger
from ring_bridge.context import BridgeContext
from ring_bridge.core.ding_tracker import ExpiringEventTracker
from ring_bridge.devices.base import BridgedDevice, Discovery
from ring_bridge.models import CommandResult, DeviceKind, DingKind
from ring_bridge.remote.base import Ding

logger = logging.getLogger(__name__)
log = get_logger("RING.Camera")

SUBSCRIPTION_CHECK_INTERVAL = 60.0

DING_CLASSES = {
    DingKind.MOTION: ("motion", "Motion"),
    DingKind.DING: ("occupancy", "Ding"),
}


class Camera(BridgedDevice):
    kind = DeviceKind.CAMERA
    category = "camera"

    def __init__(self, remote: Any, ctx: BridgeContext) -> None:
        super().__init__(remote, ctx, remote.location_id, remote.device_id, remote.name)
        kinds = (DingKind.MOTION, DingKind.DING) if remote.is_doorbot else (DingKind.MOTION,)
        self.dings = ExpiringEventTracker(self.device_id, kinds, ctx.clock, self._on_ding_transition)
        self._monitor: Optional[asyncio.Task[None]] = None

    def ding_state_topic(self, kind: DingKind) -> str:
        return f"{self.topic_base('binary_sensor')}/{kind.value}_state"

    @property
    def light_state_topic(self) -> str:
        return f"{self.topic_base('light')}/state"

    @property
    def siren_state_topic(self) -> str:
        return f"{self.topic_base('switch')}/state"

    def discovery(self) -> List[Discovery]:
        messages = []
        for kind in self.dings.kinds:
            device_class, suffix = DING_CLASSES[kind]
            unique_id = f"{self.device_id}_{kind.value}"
            message = self.discovery_message(
                name=f"{self.name} {suffix}",
                unique_id=unique_id,
                state_topic=self.ding_state_topic(kind),
                device_class=device_class,
            )
            messages.append((self.config_topic("binary_sensor", unique_id), message))

        if self.remote.has_light:
            unique_id = f"{self.device_id}_light"
            message = self.discovery_message(
                name=f"{self.name} Light",
                unique_id=unique_id,
                state_topic=self.light_state_topic,
                command_topic=f"{self.topic_base('light')}/command",
            )
            messages.append((self.config_topic("light", unique_id), message))

        if self.remote.has_siren:
            unique_id = f"{self.device_id}_siren"
            message = self.discovery_message(
                name=f"{self.name} Siren",
                unique_id=unique_id,
                state_topic=self.siren_state_topic,
                command_topic=f"{self.topic_base('switch')}/command",
            )
            messages.append((self.config_topic("switch", unique_id), message))

        return messages

    def subscribe_streams(self) -> None:
        registry = self.ctx.registry
        registry.subscribe_once(
            self.location_id, self.device_id, "dings",
            lambda: self.remote.subscribe_dings(self._on_ding),
        )
        if self.remote.has_light or self.remote.has_siren:
            super().subscribe_streams()

        if self._monitor is None:
            self._monitor = self.ctx.spawn(self._monitor_ding_subscriptions())

    def _on_ding(self, ding: Ding) -> None:
        try:
            kind = DingKind(ding.kind)
        except ValueError:
            logger.debug(f"Ignoring ding of unknown kind {ding.kind!r} from camera {self.device_id}")
            return
        self.dings.record_event(kind, ding.now, ding.expires_in)

    def _on_ding_transition(self, kind: DingKind, state: str) -> None:
        self._publish_ding(kind, state)

    def _publish_ding(self, kind: DingKind, state: str) -> None:
        # Dings are not change-gated: a ding during an active window re-triggers ON.
        if not self.ctx.bus.is_connected:
            logger.debug(f"Bus paused, dropping {kind.value} {state} for camera {self.device_id}")
            return
        self.ctx.publish(self.ding_state_topic(kind), state)

    def publish_state(self) -> None:
        for kind in self.dings.kinds:
            self._publish_ding(kind, "ON" if self.dings.query_state(kind) else "OFF")
        self.publish_polled_state()

    def publish_polled_state(self) -> None:
        data = self.data
        if self.remote.has_light:
            light = "ON" if data.get("led_status") == "on" else "OFF"
            self.publish_value("light", self.light_state_topic, light)
        if self.remote.has_siren:
            siren_status = data.get("siren_status") or {}
            siren = "ON" if (siren_status.get("seconds_remaining") or 0) > 0 else "OFF"
            self.publish_value("siren", self.siren_state_topic, siren)

    def _on_data(self, data: Any) -> None:
        try:
            self.publish_polled_state()
        except Exception as e:
            log.error("RING.Camera.PublishError", extra={"fields": {"device_id": self.device_id, "error": str(e)}})

    async def _monitor_ding_subscriptions(self) -> None:
        """Ask the remote to resubscribe when it reports a lost ding/motion subscription."""
        while True:
            await self.ctx.clock.sleep(SUBSCRIPTION_CHECK_INTERVAL)
            await self.check_ding_subscriptions()

    async def check_ding_subscriptions(self) -> None:
        data = self.data
        if data.get("subscribed") is not True:
            logger.info(f"Camera {self.device_id} lost subscription to ding events, resubscribing")
            try:
                await self.remote.resubscribe_dings()
            except Exception as e:
                log.warning("RING.Camera.ResubscribeFailed", extra={"fields": {
                    "device_id": self.device_id,
                    "stream": "dings",
                    "error": str(e),
                }})
        if data.get("subscribed_motions") is not True:
            logger.info(f"Camera {self.device_id} lost subscription to motion events, resubscribing")
            try:
                await self.remote.resubscribe_motions()
            except Exception as e:
                log.warning("RING.Camera.ResubscribeFailed", extra={"fields": {
                    "device_id": self.device_id,
                    "stream": "motions",
                    "error": str(e),
                }})

    async def process_command(self, component: str, level: str, message: str) -> CommandResult:
        if level != "command" or component not in ("light", "switch"):
            log.warning("RING.Camera.UnknownTopic", extra={"fields": {"device_id": self.device_id, "component": component}})
            return CommandResult.UNKNOWN

        if message not in ("ON", "OFF"):
            log.warning("RING.Camera.UnknownCommand", extra={"fields": {
                "device_id": self.device_id,
                "component": component,
                "payload": message,
            }})
            return CommandResult.UNKNOWN

        on = message == "ON"
        logger.debug(f"Received set {component} state {message} for camera {self.device_id}")
        try:
            if component == "light":
                await self.remote.set_light(on)
            else:
                await self.remote.set_siren(on)
        except Exception as e:
            log.error("RING.Camera.CommandFailed", extra={"fields": {
                "device_id": self.device_id,
                "component": component,
                "error": str(e),
            }})
            return CommandResult.FAILURE
        return CommandResult.SUCCESS

    async def close(self) -> None:
        if self._monitor is not None:
            self._monitor.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._monitor
            self._monitor = None
        await self.dings.close()
