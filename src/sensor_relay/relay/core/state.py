"""
Lock-guarded bundle of the relay's shared state.

Handlers mutate the registry, rooms, claims and counters only while holding
``RelayState.lock`` and take plain list snapshots out of it; sends always
happen after the lock is released.
"""

import asyncio
from typing import List, Optional

from sensor_relay.config.settings import RelayConfig
from sensor_relay.core.stats import RelayStats
from sensor_relay.core.types import CONTROLLER_SCOPE_ROOM

from .connection_manager import Connection, ConnectionManager
from .controller_arbiter import ControllerArbiter
from .room_directory import RoomDirectory


class RelayState:
    """Connections, rooms, controller claims and stats behind one lock."""

    def __init__(self, config: Optional[RelayConfig] = None) -> None:
        self.config = config if config is not None else RelayConfig()
        self.lock = asyncio.Lock()
        self.stats = RelayStats()
        self.connections = ConnectionManager(self.stats)
        self.rooms = RoomDirectory()
        self.arbiter = ControllerArbiter(scope=self.config.controller_scope)

    def control_recipients(self, conn: Connection) -> List[Connection]:
        """
        Connections that receive control/binary broadcasts from ``conn``.

        Every other active connection, narrowed to the sender's room when the
        controller claim is room-scoped. Call with the lock held.
        """
        others = self.connections.others(conn)
        if self.config.controller_scope == CONTROLLER_SCOPE_ROOM:
            return [other for other in others if other.room == conn.room]
        return others

    def sync_room_count(self) -> None:
        self.stats.rooms = self.rooms.room_count

    def snapshot(self) -> dict:
        """Point-in-time view of the counters and component stats."""
        data = self.stats.to_dict()
        data["controller"] = self.arbiter.get_stats()
        data["room_members"] = self.rooms.get_stats()["members"]
        return data
