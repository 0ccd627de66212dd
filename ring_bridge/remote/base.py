"""
Remote device API interface.

The bridge consumes an already-authenticated remote API through these
classes. Streams are observer registrations: subscribing returns a
callable that removes the observer.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

Unsubscribe = Callable[[], None]


@dataclass
class Ding:
    """A motion or doorbell event pushed by a camera."""

    kind: str  # "motion" or "ding"
    now: float  # Epoch seconds the event was observed
    expires_in: float = 180


class RemoteLocation(ABC):
    """A location (home) holding alarm devices and cameras."""

    location_id: str

    @abstractmethod
    async def get_devices(self) -> List["RemoteDevice"]:
        """Alarm devices at this location."""

    @abstractmethod
    async def get_cameras(self) -> List["RemoteCamera"]:
        """Cameras at this location."""

    @abstractmethod
    def subscribe_connected(self, callback: Callable[[bool], None]) -> Unsubscribe:
        """Observe websocket connectivity of the location."""

    @abstractmethod
    async def disarm(self) -> None:
        pass

    @abstractmethod
    async def arm_home(self) -> None:
        pass

    @abstractmethod
    async def arm_away(self) -> None:
        pass


class RemoteDevice(ABC):
    """An alarm device (sensor, panel, lock, switch)."""

    zid: str
    name: str
    device_type: str
    category_id: Optional[int] = None
    location: RemoteLocation

    @property
    def location_id(self) -> str:
        return self.location.location_id

    @property
    @abstractmethod
    def data(self) -> Dict[str, Any]:
        """Latest polled/pushed data snapshot."""

    @abstractmethod
    def subscribe_data(self, callback: Callable[[Dict[str, Any]], None]) -> Unsubscribe:
        pass

    @abstractmethod
    async def set_info(self, body: Dict[str, Any]) -> None:
        """Write device settings (switch on/off, level)."""

    @abstractmethod
    async def send_command(self, command_type: str, data: Optional[Dict[str, Any]] = None) -> None:
        """Send a named device command (e.g. lock.lock)."""


class RemoteCamera(ABC):
    device_id: str
    location_id: str
    name: str
    is_doorbot: bool = False
    has_light: bool = False
    has_siren: bool = False

    @property
    @abstractmethod
    def data(self) -> Dict[str, Any]:
        pass

    @abstractmethod
    def subscribe_data(self, callback: Callable[[Dict[str, Any]], None]) -> Unsubscribe:
        pass

    @abstractmethod
    def subscribe_dings(self, callback: Callable[[Ding], None]) -> Unsubscribe:
        pass

    @abstractmethod
    async def set_light(self, on: bool) -> None:
        pass

    @abstractmethod
    async def set_siren(self, on: bool) -> None:
        pass

    async def resubscribe_dings(self) -> None:
        """Re-establish the ding event subscription on the remote side."""

    async def resubscribe_motions(self) -> None:
        """Re-establish the motion event subscription on the remote side."""


class RemoteApi(ABC):
    @abstractmethod
    async def get_locations(self) -> List[RemoteLocation]:
        pass
