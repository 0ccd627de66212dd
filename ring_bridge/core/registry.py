"""
Device registry.

Directory of bridged devices keyed by (location, device), plus the
stream subscriptions each device holds on the remote API.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Dict, Generic, List, Optional, Tuple, TypeVar

from ring_bridge.models import DeviceKey

logger = logging.getLogger(__name__)

T = TypeVar("T")

Unsubscribe = Callable[[], None]


class DeviceRegistry(Generic[T]):
    """
    Append-only registry of device handles.

    Registration of the same identity is serialized so a factory runs
    at most once per (location, device).
    """

    def __init__(self) -> None:
        self._devices: Dict[DeviceKey, T] = {}
        self._subscriptions: Dict[Tuple[DeviceKey, str], Unsubscribe] = {}
        self._lock = threading.RLock()

    def lookup_or_create(self, location_id: str, device_id: str, factory: Callable[[], Optional[T]]) -> Tuple[Optional[T], bool]:
        """
        Return the registered handle, creating it with factory if absent.

        Returns:
            (handle, created). handle is None when the factory declines
            (unsupported device); nothing is registered in that case.
        """
        key = DeviceKey(location_id, device_id)
        with self._lock:
            existing = self._devices.get(key)
            if existing is not None:
                return existing, False

            handle = factory()
            if handle is None:
                return None, False

            self._devices[key] = handle
            logger.debug(f"Registered device {device_id} at location {location_id}")
            return handle, True

    def find(self, location_id: str, device_id: str) -> Optional[T]:
        with self._lock:
            return self._devices.get(DeviceKey(location_id, device_id))

    def at_location(self, location_id: str) -> List[T]:
        with self._lock:
            return [h for k, h in self._devices.items() if k.location_id == location_id]

    def all(self) -> List[T]:
        with self._lock:
            return list(self._devices.values())

    def __len__(self) -> int:
        return len(self._devices)

    def subscribe_once(self, location_id: str, device_id: str, stream: str, subscribe: Callable[[], Unsubscribe]) -> bool:
        """
        Register a stream subscription unless the device already holds one.

        Returns:
            True if subscribe was called
        """
        key = (DeviceKey(location_id, device_id), stream)
        with self._lock:
            if key in self._subscriptions:
                return False
            self._subscriptions[key] = subscribe()
            return True

    def has_subscription(self, location_id: str, device_id: str, stream: str) -> bool:
        with self._lock:
            return (DeviceKey(location_id, device_id), stream) in self._subscriptions

    def release_subscriptions(self) -> None:
        """Unsubscribe every stream (shutdown)."""
        with self._lock:
            subscriptions = list(self._subscriptions.items())
            self._subscriptions.clear()

        for (key, stream), unsubscribe in subscriptions:
            try:
                unsubscribe()
            except Exception as e:
                logger.error(f"Failed to release {stream} subscription for {key.device_id}: {e}")
