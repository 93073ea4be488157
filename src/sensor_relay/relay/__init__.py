"""
The relay: shared state plus the WebSocket server that drives it.
"""

from .core import (
    Connection,
    ConnectionManager,
    ControllerArbiter,
    ControllerClaim,
    JoinResult,
    RoomDirectory,
)
from .core.state import RelayState
from .server import RelayServer

__all__ = [
    "Connection",
    "ConnectionManager",
    "ControllerArbiter",
    "ControllerClaim",
    "JoinResult",
    "RoomDirectory",
    "RelayState",
    "RelayServer",
]
