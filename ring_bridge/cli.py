from __future__ import annotations

import argparse
import asyncio
import importlib
import logging
import os
import signal
from typing import Any, Callable

from ring_bridge.bridge_logging import get_logger, set_log_level
from ring_bridge.bus.mqtt import MqttMessageBus
from ring_bridge.config import BridgeConfig, load_bridge_config
from ring_bridge.context import BridgeContext
from ring_bridge.engine import BridgeEngine
from ring_bridge.errors import ConfigError
from ring_bridge.http.server import HealthServer
from ring_bridge.remote.base import RemoteApi
from ring_bridge.services.registry import ServiceRegistry

log = get_logger("RING")


def load_remote_api_factory(import_string: str | None) -> Callable[..., Any]:
    """Resolve a "module:attribute" import string to the remote API factory."""
    if not import_string:
        raise ConfigError("RING_BRIDGE_REMOTE_API is not set (expected 'module:factory')")
    module_name, sep, attr = import_string.partition(":")
    if not sep or not module_name or not attr:
        raise ConfigError(f"Invalid remote API import string {import_string!r} (expected 'module:factory')")
    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise ConfigError(f"Could not import remote API module {module_name!r}: {e}") from e
    factory = getattr(module, attr, None)
    if factory is None:
        raise ConfigError(f"Module {module_name!r} has no attribute {attr!r}")
    return factory


async def build_remote_api(config: BridgeConfig) -> RemoteApi:
    factory = load_remote_api_factory(config.remote_api)
    try:
        api = factory(
            camera_status_polling_seconds=config.camera_status_polling_seconds,
            camera_dings_polling_seconds=config.camera_dings_polling_seconds,
        )
        if asyncio.iscoroutine(api):
            api = await api
    except Exception as e:
        # Authentication and transport failures are fatal at startup.
        log.error("RING.Remote.InitFailed", extra={"fields": {"error": str(e)}})
        raise
    return api


def build_services(config: BridgeConfig, remote_api: RemoteApi) -> tuple[ServiceRegistry, BridgeEngine]:
    bus = MqttMessageBus(
        host=config.mqtt_host,
        port=config.mqtt_port,
        username=config.mqtt_user,
        password=config.mqtt_password,
        client_id=f"ring-bridge-{os.getpid()}",
    )
    ctx = BridgeContext(config=config, bus=bus)
    engine = BridgeEngine(remote_api, ctx)

    registry = ServiceRegistry()
    registry.register(bus)
    registry.register(engine)
    if config.http_port:
        registry.register(HealthServer(registry, port=config.http_port))
    return registry, engine


async def run(config: BridgeConfig) -> None:
    remote_api = await build_remote_api(config)
    registry, _engine = build_services(config, remote_api)

    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop.set)

    await registry.start_all()
    log.info("RING.Bridge.Started", extra={"fields": {"services": registry.service_names}})
    try:
        await stop.wait()
    finally:
        log.info("RING.Bridge.Stopping", extra={"fields": {}})
        await registry.stop_all()


def main() -> None:
    parser = argparse.ArgumentParser(prog="ring-bridge", description="Bridge remote camera/alarm devices to MQTT")
    parser.add_argument("--mqtt-host", default=None)
    parser.add_argument("--mqtt-port", type=int, default=None)
    parser.add_argument("--remote-api", default=None, help="module:factory producing the remote API")
    parser.add_argument("--enable-cameras", action="store_true", default=None)
    parser.add_argument("--log-level", default=None)
    args = parser.parse_args()

    if args.log_level:
        os.environ["RING_BRIDGE_LOG_LEVEL"] = args.log_level
    if args.mqtt_host:
        os.environ["RING_BRIDGE_MQTT_HOST"] = args.mqtt_host
    if args.mqtt_port:
        os.environ["RING_BRIDGE_MQTT_PORT"] = str(args.mqtt_port)
    if args.remote_api:
        os.environ["RING_BRIDGE_REMOTE_API"] = args.remote_api
    if args.enable_cameras:
        os.environ["RING_BRIDGE_ENABLE_CAMERAS"] = "1"

    level = os.environ.get("RING_BRIDGE_LOG_LEVEL", "info")
    numeric = logging.getLevelName(level.strip().upper())
    logging.basicConfig(level=numeric if isinstance(numeric, int) else logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    set_log_level(level)

    config = load_bridge_config()
    try:
        asyncio.run(run(config))
    except ConfigError as e:
        log.error("RING.Config.Invalid", extra={"fields": {"error": str(e)}})
        raise SystemExit(1)
