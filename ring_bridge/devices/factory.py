"""
Map remote device types to bridged device classes.
"""

import re
from typing import Any, Optional

from ring_bridge.context import BridgeContext
from ring_bridge.devices.base import AlarmDevice
from ring_bridge.devices.lock import Lock
from ring_bridge.devices.security_panel import SecurityPanel
from ring_bridge.devices.sensors import (
    CoAlarm,
    ContactSensor,
    FloodFreezeSensor,
    FreezeSensor,
    MotionSensor,
    SmokeAlarm,
    SmokeCoListener,
    TemperatureSensor,
)
from ring_bridge.devices.switches import Fan, MultiLevelSwitch, Switch

FAN_CATEGORY_ID = 17

ALARM_DEVICE_TYPES = {
    "sensor.contact": ContactSensor,
    "sensor.zone": ContactSensor,
    "sensor.motion": MotionSensor,
    "sensor.flood-freeze": FloodFreezeSensor,
    "sensor.freeze": FreezeSensor,
    "security-panel": SecurityPanel,
    "alarm.smoke": SmokeAlarm,
    "alarm.co": CoAlarm,
    "listener.smoke-co": SmokeCoListener,
    "switch": Switch,
    "sensor.temperature": TemperatureSensor,
}

_LOCK_TYPE = re.compile(r"^lock($|\.)")


def build_alarm_device(remote: Any, ctx: BridgeContext) -> Optional[AlarmDevice]:
    """Return the bridged device for a remote alarm device, or None if unsupported."""
    device_type = remote.device_type
    if device_type == "switch.multilevel":
        if remote.category_id == FAN_CATEGORY_ID:
            return Fan(remote, ctx)
        return MultiLevelSwitch(remote, ctx)

    cls = ALARM_DEVICE_TYPES.get(device_type)
    if cls is not None:
        return cls(remote, ctx)

    if _LOCK_TYPE.match(device_type or ""):
        return Lock(remote, ctx)

    return None


def has_security_panel(devices: Any) -> bool:
    return any(d.device_type == "security-panel" for d in devices)
