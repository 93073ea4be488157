"""
Sensor Relay - WebSocket hub for sensor broadcast and WebRTC signaling.

This package relays gyroscope/shake/spin updates and screen-capture frames
from a single controlling client to every other client, and pairs two
peers per room for WebRTC offer/answer/candidate exchange.

Architecture:
- Core: protocol constants, message model, compatibility formats, stats
- Relay: connection registry, room directory, controller arbiter,
  message router and the WebSocket server
- API: read-only HTTP status endpoints
- Config: environment-driven configuration
- Infrastructure: logging and exceptions
"""

__version__ = "1.0.0"
__author__ = "Sensor Relay Team"

from .core.stats import RelayStats
from .config import RelayConfig, RelayConfigManager, config_manager
from .relay import (
    Connection,
    ConnectionManager,
    ControllerArbiter,
    RelayServer,
    RelayState,
    RoomDirectory,
)
from .infrastructure.logging import setup_logging, get_logger
from .infrastructure.exceptions import (
    RelayError,
    ConfigurationError,
    NetworkError,
    ProtocolError,
    MessageDecodeError,
)

__all__ = [
    "__version__",
    "__author__",
    "RelayStats",
    "RelayConfig",
    "RelayConfigManager",
    "config_manager",
    "Connection",
    "ConnectionManager",
    "ControllerArbiter",
    "RelayServer",
    "RelayState",
    "RoomDirectory",
    "setup_logging",
    "get_logger",
    "RelayError",
    "ConfigurationError",
    "NetworkError",
    "ProtocolError",
    "MessageDecodeError",
]
