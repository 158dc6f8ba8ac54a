"""Exception types shared across the relay."""

from __future__ import annotations


class NetOpsError(Exception):
    """Base class for relay errors."""


class ProtocolError(NetOpsError):
    """An inbound WebSocket frame did not match the turn-request shape."""


class ConfigurationError(NetOpsError, RuntimeError):
    """Startup configuration is unusable (e.g. no AI credential)."""
