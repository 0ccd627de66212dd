"""Exception types raised by the bridge."""


class RingBridgeError(Exception):
    """Base class for bridge errors."""


class ConfigError(RingBridgeError):
    """Bootstrap configuration is missing or invalid."""


class RemoteApiError(RingBridgeError):
    """A remote device API call failed."""
