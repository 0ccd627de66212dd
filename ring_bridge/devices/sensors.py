"""
Alarm sensors: contact, motion, flood/freeze, smoke, CO and temperature.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, List

from ring_bridge.devices.base import AlarmDevice, Discovery
from ring_bridge.models import DeviceKind


def _faulted(data: Dict[str, Any]) -> bool:
    return bool(data.get("faulted"))


def _nested_faulted(key: str) -> Callable[[Dict[str, Any]], bool]:
    return lambda data: bool((data.get(key) or {}).get("faulted"))


def _alarm_active(data: Dict[str, Any]) -> bool:
    return data.get("alarmStatus") == "active"


def _nested_alarm_active(key: str) -> Callable[[Dict[str, Any]], bool]:
    return lambda data: (data.get(key) or {}).get("alarmStatus") == "active"


@dataclass(frozen=True)
class SensorSpec:
    key: str
    device_class: str
    name_suffix: str
    read: Callable[[Dict[str, Any]], bool]


class BinarySensorDevice(AlarmDevice):
    component = "binary_sensor"
    sensors: tuple = ()

    def state_topic(self, spec: SensorSpec) -> str:
        if len(self.sensors) == 1:
            return f"{self.topic_base()}/state"
        return f"{self.topic_base()}/{spec.key}_state"

    def unique_id(self, spec: SensorSpec) -> str:
        if len(self.sensors) == 1:
            return self.device_id
        return f"{self.device_id}_{spec.device_class}"

    def discovery(self) -> List[Discovery]:
        messages = []
        for spec in self.sensors:
            unique_id = self.unique_id(spec)
            message = self.discovery_message(
                name=f"{self.name}{spec.name_suffix}",
                unique_id=unique_id,
                state_topic=self.state_topic(spec),
                device_class=spec.device_class,
                json_attributes_topic=self.attributes_topic,
            )
            messages.append((self.config_topic(self.component, unique_id), message))
        return messages

    def publish_state(self) -> None:
        data = self.data
        for spec in self.sensors:
            self.publish_value(f"{spec.key}_state", self.state_topic(spec), "ON" if spec.read(data) else "OFF")
        self.publish_attributes()


class ContactSensor(BinarySensorDevice):
    kind = DeviceKind.CONTACT
    sensors = (SensorSpec("contact", "door", "", _faulted),)


class MotionSensor(BinarySensorDevice):
    kind = DeviceKind.MOTION
    sensors = (SensorSpec("motion", "motion", "", _faulted),)


class FloodFreezeSensor(BinarySensorDevice):
    kind = DeviceKind.FLOOD_FREEZE
    sensors = (
        SensorSpec("flood", "moisture", " - Flood", _nested_faulted("flood")),
        SensorSpec("freeze", "cold", " - Freeze", _nested_faulted("freeze")),
    )


class FreezeSensor(BinarySensorDevice):
    kind = DeviceKind.FREEZE
    sensors = (SensorSpec("freeze", "cold", "", _faulted),)


class SmokeAlarm(BinarySensorDevice):
    kind = DeviceKind.SMOKE
    sensors = (SensorSpec("smoke", "smoke", "", _alarm_active),)


class CoAlarm(BinarySensorDevice):
    kind = DeviceKind.CO
    sensors = (SensorSpec("co", "gas", "", _alarm_active),)


class SmokeCoListener(BinarySensorDevice):
    kind = DeviceKind.SMOKE_CO
    sensors = (
        SensorSpec("smoke", "smoke", " - Smoke", _nested_alarm_active("smoke")),
        SensorSpec("co", "gas", " - CO", _nested_alarm_active("co")),
    )


class TemperatureSensor(AlarmDevice):
    kind = DeviceKind.TEMPERATURE
    component = "sensor"

    @property
    def state_topic(self) -> str:
        return f"{self.topic_base()}/temperature_state"

    def discovery(self) -> List[Discovery]:
        message = self.discovery_message(
            name=f"{self.name} Temperature",
            unique_id=f"{self.device_id}_temperature",
            state_topic=self.state_topic,
            device_class="temperature",
            json_attributes_topic=self.attributes_topic,
            unit_of_measurement="°C",
        )
        return [(self.config_topic(self.component, f"{self.device_id}_temperature"), message)]

    def publish_state(self) -> None:
        celsius = self.data.get("celsius")
        # Nothing is published until the first reading arrives.
        if celsius is not None:
            self.publish_value("temperature_state", self.state_topic, celsius)
        self.publish_attributes()
