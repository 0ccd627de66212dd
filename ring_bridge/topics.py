"""
Topic layout.

State and command topics live under
<ring_topic>/<location_id>/<category>/<component>/<device_id>/...
so a command topic carries the location at index -5 and the device at
index -2.
"""

from typing import NamedTuple, Optional


class CommandTopic(NamedTuple):
    location_id: str
    category: str
    component: str
    device_id: str
    level: str


def device_base(ring_topic: str, location_id: str, category: str, component: str, device_id: str) -> str:
    return f"{ring_topic}/{location_id}/{category}/{component}/{device_id}"


def availability_topic(ring_topic: str, location_id: str, category: str, device_id: str) -> str:
    return f"{ring_topic}/{location_id}/{category}/{device_id}/status"


def discovery_topic(prefix: str, component: str, location_id: str, object_id: str) -> str:
    return f"{prefix}/{component}/{location_id}/{object_id}/config"


def parse_command_topic(topic: str) -> Optional[CommandTopic]:
    parts = topic.split("/")
    if len(parts) < 6:
        return None
    return CommandTopic(
        location_id=parts[-5],
        category=parts[-4],
        component=parts[-3],
        device_id=parts[-2],
        level=parts[-1],
    )
