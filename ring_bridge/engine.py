"""
Bridge engine.

Coordinates the remote device API and the message bus:
- publishes discovery and state for every location's devices and cameras
- follows location connectivity for availability
- runs republish episodes after (re)connection or a consumer restart
- routes inbound command topics to device adapters
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional

from ring_bridge.bridge_logging import get_logger
from ring_bridge.context import BridgeContext
from ring_bridge.core.scheduler import RepublishScheduler
from ring_bridge.devices.base import BridgedDevice
from ring_bridge.devices.camera import Camera
from ring_bridge.devices.factory import build_alarm_device, has_security_panel
from ring_bridge.models import CommandResult
from ring_bridge.remote.base import RemoteApi, RemoteLocation
from ring_bridge.services.base import BridgeService
from ring_bridge.topics import parse_command_topic

logger = logging.getLogger(__name__)
log = get_logger("RING.Engine")

CONNECT_SETTLE_DELAY = 5.0


class BridgeEngine(BridgeService):
    def __init__(self, remote_api: RemoteApi, ctx: BridgeContext, name: str = "engine") -> None:
        super().__init__(name)
        self.remote_api = remote_api
        self.ctx = ctx
        self.locations: List[RemoteLocation] = []
        self._locations_loaded = False
        self._hass_status: Optional[str] = None
        self._shut_down = False

        config = ctx.config
        self.scheduler = RepublishScheduler(
            self.publish_all,
            lambda: self.ctx.bus.is_connected,
            ctx.clock,
            cycles=config.republish_count,
            interval=config.republish_delay,
        )

        # Set before the bus starts so the first connect is not missed.
        ctx.bus.set_connect_callback(self._on_bus_connected)
        ctx.bus.set_disconnect_callback(self._on_bus_disconnected)
        ctx.bus.set_message_callback(self._on_bus_message)

    async def start(self) -> None:
        locations = await self.remote_api.get_locations()
        allowed = set(self.ctx.config.location_ids)
        self.locations = [loc for loc in locations if not allowed or loc.location_id in allowed]
        self._locations_loaded = True

        log.info("RING.Engine.LocationsLoaded", extra={"fields": {
            "locations": [loc.location_id for loc in self.locations],
        }})

        if self.ctx.config.hass_topic:
            self.ctx.bus.subscribe(self.ctx.config.hass_topic, qos=self.ctx.config.qos)

        self._mark_started()
        if self.ctx.bus.is_connected:
            self._on_bus_connected()

    async def stop(self) -> None:
        await self.shutdown()
        self._mark_stopped()

    def health(self) -> Dict[str, Any]:
        availability = self.ctx.availability
        disconnected = [
            loc.location_id for loc in self.locations
            if availability.connectivity(loc.location_id).subscribed and not availability.is_connected(loc.location_id)
        ]
        status = "healthy"
        if not self.ctx.bus.is_connected or disconnected:
            status = "degraded"
        return {
            "status": status,
            "message": f"{len(self.locations)} locations, {len(self.ctx.registry)} devices",
            "details": {
                "locations": {
                    loc.location_id: availability.is_connected(loc.location_id) for loc in self.locations
                },
                "devices": len(self.ctx.registry),
                "republish_remaining": self.scheduler.cycle.remaining_cycles,
            },
        }

    # Bus callbacks (run on the event loop)

    def _on_bus_connected(self) -> None:
        if not self._locations_loaded or self._shut_down:
            return
        log.info("RING.Engine.BusConnected", extra={"fields": {"publish_in": CONNECT_SETTLE_DELAY}})
        self.ctx.spawn(self._connected_after_delay())

    def _on_bus_disconnected(self) -> None:
        log.warning("RING.Engine.BusDisconnected", extra={"fields": {}})

    def _on_bus_message(self, topic: str, payload: str) -> None:
        if self._shut_down:
            return
        try:
            if self.ctx.config.hass_topic and topic == self.ctx.config.hass_topic:
                self.handle_hass_status(payload)
            else:
                self.route_command(topic, payload)
        except Exception as e:
            log.error("RING.Engine.MessageProcessingError", extra={"fields": {"topic": topic, "error": str(e)}})

    async def _connected_after_delay(self) -> None:
        await self.ctx.clock.sleep(CONNECT_SETTLE_DELAY)
        await self.process_locations()

    # Locations

    async def process_locations(self) -> None:
        """Register connectivity listeners for new locations, then start a republish episode."""
        for location in self.locations:
            await self.register_location(location)
        self.scheduler.start_episode()

    async def register_location(self, location: RemoteLocation) -> bool:
        """
        Follow a location's connectivity unless already registered.

        Returns:
            True once the location is registered. A failed device listing
            leaves it unregistered so the next publish pass retries.
        """
        location_id = location.location_id
        if self.ctx.availability.connectivity(location_id).subscribed:
            return True
        try:
            devices = await location.get_devices()
        except Exception as e:
            log.error("RING.Engine.LocationError", extra={"fields": {"location_id": location_id, "error": str(e)}})
            return False

        self.ctx.availability.mark_subscribed(location_id)
        if devices and has_security_panel(devices):
            self.ctx.registry.subscribe_once(
                location_id, location_id, "connected",
                lambda loc=location: loc.subscribe_connected(
                    lambda connected, loc=loc: self._on_location_connectivity(loc, connected)
                ),
            )
        else:
            # Camera-only locations have no connectivity stream.
            self.ctx.availability.assume_connected(location_id)
        return True

    def _on_location_connectivity(self, location: RemoteLocation, connected: bool) -> None:
        location_id = location.location_id
        if not connected:
            self.ctx.availability.location_disconnected(location_id)
            return
        # Scheduled in order: the connectivity flag is set before the publish pass reads it.
        self.ctx.spawn(self.ctx.availability.location_connected(location_id))
        self.ctx.spawn(self.publish_location(location))

    async def publish_all(self) -> None:
        for location in self.locations:
            if not await self.register_location(location):
                continue
            await self.publish_location(location)

    async def publish_location(self, location: RemoteLocation) -> None:
        location_id = location.location_id
        try:
            devices = await location.get_devices()
            cameras = await location.get_cameras() if self.ctx.config.enable_cameras else []
        except Exception as e:
            log.error("RING.Engine.LocationError", extra={"fields": {"location_id": location_id, "error": str(e)}})
            return

        pending = []
        # Alarm devices pause while the location's websocket is down.
        if self.ctx.availability.is_connected(location_id):
            for remote in devices or []:
                pending.append(self._publish_handle(location_id, remote.zid, remote, build_alarm_device))
        for remote in cameras or []:
            pending.append(self._publish_handle(location_id, remote.device_id, remote, Camera))

        results = await asyncio.gather(*pending, return_exceptions=True)
        for result in results:
            if isinstance(result, Exception):
                log.error("RING.Engine.PublishError", extra={"fields": {"location_id": location_id, "error": str(result)}})

    async def _publish_handle(self, location_id: str, device_id: str, remote: Any, build) -> None:
        handle, created = self.ctx.registry.lookup_or_create(location_id, device_id, lambda: build(remote, self.ctx))
        if handle is None:
            logger.warning(f"Found unsupported device type: {getattr(remote, 'device_type', None)} ({device_id})")
            return

        if created:
            log.info("RING.Engine.DevicePublished", extra={"fields": {
                "location_id": location_id,
                "device_id": device_id,
                "kind": handle.kind.value,
            }})
            self.ctx.availability.track(handle)
        else:
            logger.debug(f"Republishing existing device id: {device_id}")
            handle.update_remote(remote)

        await handle.publish(republish=not created)

    # Restart detection and commands

    def handle_hass_status(self, payload: str) -> None:
        previous, self._hass_status = self._hass_status, payload
        logger.debug(f"Consumer status topic received message: {payload}")
        if payload == "online" and previous != "online":
            self.ctx.spawn(self.scheduler.restart_detected())

    def route_command(self, topic: str, payload: str) -> None:
        command = parse_command_topic(topic)
        if command is None:
            logger.debug(f"Ignoring message on unknown topic: {topic}")
            return

        device: Optional[BridgedDevice] = self.ctx.registry.find(command.location_id, command.device_id)
        if device is None:
            log.warning("RING.Engine.UnknownDevice", extra={"fields": {
                "location_id": command.location_id,
                "device_id": command.device_id,
            }})
            return

        self.ctx.spawn(self._run_command(device, command.component, command.level, payload))

    async def _run_command(self, device: BridgedDevice, component: str, level: str, payload: str) -> CommandResult:
        result = await device.process_command(component, level, payload)
        log.info("RING.Engine.CommandResult", extra={"fields": {
            "device_id": device.device_id,
            "component": component,
            "payload": payload,
            "result": result.value,
        }})
        return result

    # Shutdown

    async def shutdown(self) -> None:
        """Mark every device Offline, then cancel timers and release streams."""
        if self._shut_down:
            return
        self._shut_down = True

        log.info("RING.Engine.Shutdown", extra={"fields": {"devices": len(self.ctx.registry)}})
        self.ctx.availability.shutdown()

        await self.scheduler.stop()
        for device in self.ctx.registry.all():
            try:
                await device.close()
            except Exception as e:
                logger.error(f"Error closing device {device.device_id}: {e}")
        self.ctx.registry.release_subscriptions()
        await self.ctx.cancel_tasks()
