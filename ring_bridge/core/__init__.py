"""
Synchronization core.

- ding_tracker: expiring motion/doorbell state
- publisher: change-gated state publication
- availability: per-device Online/Offline supervision
- confirmation: apply-and-poll command runner
- scheduler: republish episodes after (re)connection
- registry: device directory and stream subscriptions
"""

from ring_bridge.core.availability import AvailabilitySupervisor
from ring_bridge.core.clock import Clock, SystemClock
from ring_bridge.core.confirmation import CommandConfirmer
from ring_bridge.core.ding_tracker import ExpiringEventTracker
from ring_bridge.core.publisher import ChangeGatedPublisher
from ring_bridge.core.registry import DeviceRegistry
from ring_bridge.core.scheduler import RepublishScheduler
from ring_bridge.core.timers import DeadlineTimer

__all__ = [
    "AvailabilitySupervisor",
    "Clock",
    "SystemClock",
    "CommandConfirmer",
    "ExpiringEventTracker",
    "ChangeGatedPublisher",
    "DeviceRegistry",
    "RepublishScheduler",
    "DeadlineTimer",
]
