from __future__ import annotations

import os
from dataclasses import dataclass


def _truthy_env(name: str, default: str = "0") -> bool:
    return os.environ.get(name, default).strip().lower() in {"1", "true", "yes", "on"}


def _opt_str(name: str) -> str | None:
    v = os.environ.get(name)
    if v is None or v.strip() == "":
        return None
    return v.strip()


def _opt_int(name: str) -> int | None:
    v = os.environ.get(name)
    if v is None or v.strip() == "":
        return None
    try:
        return int(v)
    except ValueError:
        return None


def _opt_float(name: str) -> float | None:
    v = os.environ.get(name)
    if v is None or v.strip() == "":
        return None
    try:
        return float(v)
    except ValueError:
        return None


def _parse_ids(value: str | None) -> tuple[str, ...]:
    if not value:
        return ()
    return tuple(item.strip() for item in value.split(",") if item.strip())


@dataclass(frozen=True, slots=True)
class BridgeConfig:
    mqtt_host: str = "localhost"
    mqtt_port: int = 1883
    mqtt_user: str | None = None
    mqtt_password: str | None = None
    ring_topic: str = "ring"
    hass_topic: str | None = "hass/status"
    discovery_prefix: str = "homeassistant"
    enable_cameras: bool = False
    location_ids: tuple[str, ...] = ()
    qos: int = 1
    republish_count: int = 10
    republish_delay: float = 30.0
    remote_api: str | None = None
    http_port: int | None = None
    camera_status_polling_seconds: int = 20
    camera_dings_polling_seconds: int = 2


def load_bridge_config() -> BridgeConfig:
    port = _opt_int("RING_BRIDGE_MQTT_PORT")
    qos = _opt_int("RING_BRIDGE_QOS")
    republish_count = _opt_int("RING_BRIDGE_REPUBLISH_COUNT")
    republish_delay = _opt_float("RING_BRIDGE_REPUBLISH_DELAY")

    # An explicitly empty hass topic disables restart detection.
    hass_topic = os.environ.get("RING_BRIDGE_HASS_TOPIC", "hass/status").strip() or None

    return BridgeConfig(
        mqtt_host=os.environ.get("RING_BRIDGE_MQTT_HOST", "localhost").strip() or "localhost",
        mqtt_port=port if port is not None else 1883,
        mqtt_user=_opt_str("RING_BRIDGE_MQTT_USER"),
        mqtt_password=_opt_str("RING_BRIDGE_MQTT_PASSWORD"),
        ring_topic=_opt_str("RING_BRIDGE_RING_TOPIC") or "ring",
        hass_topic=hass_topic,
        discovery_prefix=_opt_str("RING_BRIDGE_DISCOVERY_PREFIX") or "homeassistant",
        enable_cameras=_truthy_env("RING_BRIDGE_ENABLE_CAMERAS"),
        location_ids=_parse_ids(os.environ.get("RING_BRIDGE_LOCATION_IDS")),
        qos=qos if qos in (0, 1, 2) else 1,
        republish_count=republish_count if republish_count and republish_count > 0 else 10,
        republish_delay=republish_delay if republish_delay and republish_delay > 0 else 30.0,
        remote_api=_opt_str("RING_BRIDGE_REMOTE_API"),
        http_port=_opt_int("RING_BRIDGE_HTTP_PORT"),
    )
