"""
Shared relay state: connections, rooms and controller claims.
"""

from .connection_manager import Connection, ConnectionManager
from .room_directory import JoinResult, RoomDirectory
from .controller_arbiter import ControllerArbiter, ControllerClaim

__all__ = [
    "Connection",
    "ConnectionManager",
    "JoinResult",
    "RoomDirectory",
    "ControllerArbiter",
    "ControllerClaim",
]
