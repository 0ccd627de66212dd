"""
ring-bridge: device-state synchronization between a remote security
camera/alarm API and an MQTT message bus.

- Expiring ding tracking for motion and doorbell events
- Change-gated state publication
- Availability supervision per location
- Apply-and-confirm command execution
- Republish episodes after (re)connection
"""

__version__ = "0.3.0"
