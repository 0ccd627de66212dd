"""
Device adapters.

Each adapter maps one remote device kind to discovery messages,
published state and inbound commands.
"""

from ring_bridge.devices.base import AlarmDevice, BridgedDevice
from ring_bridge.devices.camera import Camera
from ring_bridge.devices.factory import build_alarm_device, has_security_panel

__all__ = [
    "AlarmDevice",
    "BridgedDevice",
    "Camera",
    "build_alarm_device",
    "has_security_panel",
]
