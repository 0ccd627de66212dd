"""
MQTT message bus.

paho-mqtt client running its network loop on a background thread.
Connection and message callbacks are handed to the asyncio loop.
"""

import asyncio
import logging
import threading
from typing import Any, Dict, Optional, Set

import paho.mqtt.client as mqtt

from ring_bridge.bridge_logging import get_logger
from ring_bridge.bus.base import MessageBus
from ring_bridge.services.base import BridgeService

logger = logging.getLogger(__name__)
log = get_logger("RING.Bus")


class MqttMessageBus(MessageBus, BridgeService):
    def __init__(
        self,
        host: str = "localhost",
        port: int = 1883,
        username: Optional[str] = None,
        password: Optional[str] = None,
        client_id: str = "ring-bridge",
        name: str = "mqtt",
    ) -> None:
        MessageBus.__init__(self)
        BridgeService.__init__(self, name)

        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.client_id = client_id

        self._client: mqtt.Client | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._connected = False
        self._topics: Dict[str, int] = {}
        self._lock = threading.Lock()

    async def start(self) -> None:
        """Connect to the broker and start the network thread."""
        log.info("RING.Bus.Connecting", extra={"fields": {"host": self.host, "port": self.port}})

        self._loop = asyncio.get_running_loop()
        self._client = mqtt.Client(mqtt.CallbackAPIVersion.VERSION2, client_id=self.client_id)

        if self.username:
            self._client.username_pw_set(self.username, self.password)

        self._client.on_connect = self._on_connect
        self._client.on_disconnect = self._on_disconnect
        self._client.on_message = self._on_message
        self._client.reconnect_delay_set(min_delay=1, max_delay=30)

        try:
            await asyncio.to_thread(self._client.connect, self.host, self.port, 60)
            self._client.loop_start()
        except Exception as e:
            log.error("RING.Bus.ConnectionFailed", extra={"fields": {
                "host": self.host,
                "port": self.port,
                "error": str(e)
            }})
            raise

        self._mark_started()

    async def stop(self) -> None:
        logger.info("Stopping MQTT bus")

        if self._client:
            # Give queued publishes (offline availability) a moment to flush.
            await asyncio.sleep(1)
            self._client.disconnect()
            self._client.loop_stop()
            self._client = None

        self._connected = False
        self._mark_stopped()

    def health(self) -> Dict[str, Any]:
        return {
            "status": "healthy" if self._connected else "degraded",
            "message": "Connected to MQTT broker" if self._connected else "Not connected",
            "details": {
                "host": self.host,
                "port": self.port,
                "connected": self._connected,
                "subscriptions": len(self._topics),
            },
        }

    @property
    def is_connected(self) -> bool:
        return self._connected

    def publish(self, topic: str, payload: str, qos: int = 1, retain: bool = False) -> None:
        if self._client is None:
            log.warning("RING.Bus.NotStarted", extra={"fields": {"topic": topic}})
            return

        logger.debug(f"{topic} {payload}")
        result = self._client.publish(topic, payload, qos=qos, retain=retain)
        if result.rc != mqtt.MQTT_ERR_SUCCESS:
            log.error("RING.Bus.PublishFailed", extra={"fields": {
                "topic": topic,
                "error": mqtt.error_string(result.rc),
                "return_code": result.rc,
            }})

    def subscribe(self, topic: str, qos: int = 1) -> None:
        with self._lock:
            new = topic not in self._topics
            self._topics[topic] = qos

        if new and self._client is not None and self._connected:
            self._client.subscribe(topic, qos=qos)
            log.info("RING.Bus.Subscribed", extra={"fields": {"topic": topic}})

    def _dispatch(self, callback, *args) -> None:
        if self._loop is None or self._loop.is_closed():
            return
        self._loop.call_soon_threadsafe(callback, *args)

    def _on_connect(self, client, userdata, flags, reason_code, properties=None):
        if reason_code.is_failure:
            log.error("RING.Bus.ConnectionFailed", extra={"fields": {
                "host": self.host,
                "port": self.port,
                "reason": str(reason_code),
            }})
            self._connected = False
            return

        log.info("RING.Bus.Connected", extra={"fields": {"host": self.host, "port": self.port}})
        self._connected = True

        # Subscriptions do not survive a clean reconnect; renew them all.
        with self._lock:
            topics: Set[tuple[str, int]] = set(self._topics.items())
        for topic, qos in topics:
            client.subscribe(topic, qos=qos)

        self._dispatch(self._connect_callback)

    def _on_disconnect(self, client, userdata, disconnect_flags, reason_code, properties=None):
        self._connected = False
        if reason_code.is_failure:
            log.warning("RING.Bus.UnexpectedDisconnection", extra={"fields": {"reason": str(reason_code)}})
        else:
            logger.info("Disconnected from MQTT broker")

        self._dispatch(self._disconnect_callback)

    def _on_message(self, client, userdata, msg):
        try:
            payload = msg.payload.decode("utf-8")
        except UnicodeDecodeError as e:
            log.error("RING.Bus.InvalidPayload", extra={"fields": {"topic": msg.topic, "error": str(e)}})
            return

        self._dispatch(self._message_callback, msg.topic, payload)
