"""
Base interface for the message bus.

The bridge owns what gets published when; the bus owns transport.
"""

from abc import ABC, abstractmethod
from typing import Callable


class MessageBus(ABC):
    def __init__(self) -> None:
        self._connect_callback: Callable[[], None] = lambda: None
        self._disconnect_callback: Callable[[], None] = lambda: None
        self._message_callback: Callable[[str, str], None] = lambda topic, payload: None

    @abstractmethod
    def publish(self, topic: str, payload: str, qos: int = 1, retain: bool = False) -> None:
        pass

    @abstractmethod
    def subscribe(self, topic: str, qos: int = 1) -> None:
        pass

    @property
    @abstractmethod
    def is_connected(self) -> bool:
        pass

    def set_connect_callback(self, callback: Callable[[], None]) -> None:
        self._connect_callback = callback

    def set_disconnect_callback(self, callback: Callable[[], None]) -> None:
        self._disconnect_callback = callback

    def set_message_callback(self, callback: Callable[[str, str], None]) -> None:
        self._message_callback = callback
