"""
Availability supervisor.

Tracks Online/Offline per device, driven by location connectivity, and
publishes availability through the change-gated publisher.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Protocol

from ring_bridge.bridge_logging import get_logger
from ring_bridge.core.clock import Clock
from ring_bridge.core.publisher import ChangeGatedPublisher
from ring_bridge.models import Availability, ConnectivityEvent, DeviceKey, LocationConnectivity

logger = logging.getLogger(__name__)
log = get_logger("RING.Availability")

AVAILABILITY_ATTRIBUTE = "availability"

TRANSITIONS: Dict[tuple[Availability, ConnectivityEvent], Availability] = {
    (Availability.OFFLINE, ConnectivityEvent.CONNECTED): Availability.ONLINE,
    (Availability.OFFLINE, ConnectivityEvent.DISCONNECTED): Availability.OFFLINE,
    (Availability.OFFLINE, ConnectivityEvent.SHUTDOWN): Availability.OFFLINE,
    (Availability.ONLINE, ConnectivityEvent.CONNECTED): Availability.ONLINE,
    (Availability.ONLINE, ConnectivityEvent.DISCONNECTED): Availability.OFFLINE,
    (Availability.ONLINE, ConnectivityEvent.SHUTDOWN): Availability.OFFLINE,
}


class AvailabilityTarget(Protocol):
    location_id: str
    device_id: str
    availability_topic: str


class AvailabilitySupervisor:
    def __init__(self, publisher: ChangeGatedPublisher, clock: Clock, settle_delay: float = 2.0) -> None:
        self._publisher = publisher
        self._clock = clock
        self._settle_delay = settle_delay
        self._devices: Dict[DeviceKey, AvailabilityTarget] = {}
        self._states: Dict[DeviceKey, Availability] = {}
        self._locations: Dict[str, LocationConnectivity] = {}

    def track(self, device: AvailabilityTarget) -> None:
        key = DeviceKey(device.location_id, device.device_id)
        if key not in self._devices:
            self._devices[key] = device
            self._states[key] = Availability.OFFLINE

    def state_of(self, location_id: str, device_id: str) -> Availability:
        return self._states.get(DeviceKey(location_id, device_id), Availability.OFFLINE)

    def connectivity(self, location_id: str) -> LocationConnectivity:
        return self._locations.setdefault(location_id, LocationConnectivity())

    def is_connected(self, location_id: str) -> bool:
        return self.connectivity(location_id).connected

    def mark_subscribed(self, location_id: str) -> bool:
        """Record that the connectivity listener is registered. False if it already was."""
        connectivity = self.connectivity(location_id)
        if connectivity.subscribed:
            return False
        connectivity.subscribed = True
        return True

    async def location_connected(self, location_id: str) -> None:
        """Mark every device at the location Online after the settle delay."""
        self.connectivity(location_id).connected = True
        log.info("RING.Availability.LocationConnected", extra={"fields": {"location_id": location_id}})

        # Let discovery and state land before announcing availability.
        await self._clock.sleep(self._settle_delay)
        if not self.is_connected(location_id):
            return
        self._apply(self._at_location(location_id), ConnectivityEvent.CONNECTED)

    def location_disconnected(self, location_id: str) -> None:
        self.connectivity(location_id).connected = False
        log.warning("RING.Availability.LocationDisconnected", extra={"fields": {"location_id": location_id}})
        self._apply(self._at_location(location_id), ConnectivityEvent.DISCONNECTED)

    async def device_ready(self, device: AvailabilityTarget) -> None:
        """
        Mark one device Online after the settle delay, if its location is connected.

        An already-Online device is re-announced only when its cached
        value was cleared by a forced republish.
        """
        self.track(device)
        await self._clock.sleep(self._settle_delay)
        if self.is_connected(device.location_id):
            self._apply([device], ConnectivityEvent.CONNECTED)

    def assume_connected(self, location_id: str) -> None:
        """Locations without a connectivity stream are treated as connected."""
        self.connectivity(location_id).connected = True

    def shutdown(self) -> None:
        """Mark every known device Offline. Devices already Offline are skipped."""
        self._apply(list(self._devices.values()), ConnectivityEvent.SHUTDOWN)

    def _at_location(self, location_id: str) -> List[AvailabilityTarget]:
        return [d for k, d in self._devices.items() if k.location_id == location_id]

    def _apply(self, devices: Iterable[AvailabilityTarget], event: ConnectivityEvent) -> None:
        for device in devices:
            key = DeviceKey(device.location_id, device.device_id)
            current = self._states.get(key, Availability.OFFLINE)
            target = TRANSITIONS[(current, event)]
            self._states[key] = target
            if current is Availability.OFFLINE and target is Availability.OFFLINE:
                continue

            if target is not current:
                logger.debug(f"Device {device.device_id} availability {current.value} -> {target.value}")
            self._publisher.publish_if_changed(device.device_id, AVAILABILITY_ATTRIBUTE, device.availability_topic, target.value)
