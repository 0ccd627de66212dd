"""
Data models for the bridge.

Identity keys, enumerated states and the per-event-kind ding state.
"""

from dataclasses import dataclass
from enum import Enum
from typing import NamedTuple


class DeviceKey(NamedTuple):
    """Identity of a bridged device: (location, device)."""

    location_id: str
    device_id: str


class DeviceKind(str, Enum):
    CONTACT = "contact"
    MOTION = "motion"
    FLOOD_FREEZE = "flood_freeze"
    FREEZE = "freeze"
    SMOKE = "smoke"
    CO = "co"
    SMOKE_CO = "smoke_co"
    SECURITY_PANEL = "security_panel"
    LOCK = "lock"
    SWITCH = "switch"
    MULTI_LEVEL_SWITCH = "multi_level_switch"
    FAN = "fan"
    TEMPERATURE = "temperature"
    CAMERA = "camera"


class Availability(str, Enum):
    ONLINE = "online"
    OFFLINE = "offline"


class ConnectivityEvent(str, Enum):
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
    SHUTDOWN = "shutdown"


class DingKind(str, Enum):
    MOTION = "motion"
    DING = "ding"


class CommandResult(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"
    UNKNOWN = "unknown"


@dataclass
class DingState:
    """
    Active/inactive state of one ding kind on one camera.

    expires_at only moves forward while the ding is active.
    """

    active: bool = False
    last_event_at: float = 0
    duration_seconds: float = 180
    expires_at: float = 0


@dataclass
class LocationConnectivity:
    """Connectivity of one location as reported by the remote API."""

    connected: bool = False
    subscribed: bool = False


@dataclass
class RepublishCycle:
    """Counter for one republish episode."""

    remaining_cycles: int = 0
    interval_seconds: float = 30.0
