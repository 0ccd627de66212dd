"""
Change-gated publisher.

Remembers the last value published per (device, attribute) and only
emits when the value changes or a republish was forced.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Dict, Optional, Tuple

logger = logging.getLogger(__name__)

# Called with (topic, payload)
EmitCallback = Callable[[str, str], None]


class ChangeGatedPublisher:
    def __init__(self, emit: EmitCallback, is_open: Optional[Callable[[], bool]] = None) -> None:
        """
        Args:
            emit: Sends one payload to the bus
            is_open: While it returns False nothing is emitted or cached
        """
        self._emit = emit
        self._is_open = is_open or (lambda: True)
        self._published: Dict[Tuple[str, str], Any] = {}
        self._lock = threading.Lock()

    def publish_if_changed(self, device_id: str, attribute_key: str, topic: str, value: Any) -> bool:
        """
        Publish value to topic unless it equals the cached value.

        Returns:
            True if a publish was emitted
        """
        if not self._is_open():
            logger.debug(f"Bus paused, not publishing {attribute_key} for {device_id}")
            return False

        key = (device_id, attribute_key)
        with self._lock:
            if key in self._published and self._published[key] == value:
                return False
            # Cached only once the emit returned, so a failed emit is retried.
            self._emit(topic, value if isinstance(value, str) else str(value))
            self._published[key] = value
        return True

    def force_republish(self, device_id: str, attribute_key: Optional[str] = None) -> None:
        """Forget cached values so the next publish_if_changed emits unconditionally."""
        with self._lock:
            if attribute_key is not None:
                self._published.pop((device_id, attribute_key), None)
                return
            for key in [k for k in self._published if k[0] == device_id]:
                del self._published[key]

    def last_published(self, device_id: str, attribute_key: str) -> Any:
        with self._lock:
            return self._published.get((device_id, attribute_key))
