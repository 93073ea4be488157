"""
Connection registry for the WebSocket relay server.

Tracks every live transport connection, hands out client ids and keeps the
connection counters in :class:`RelayStats` in step with the active set.
"""

import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from websockets.asyncio.server import ServerConnection
from websockets.protocol import State

from sensor_relay.core.messages import ScreenCaptureHeader
from sensor_relay.core.stats import RelayStats


@dataclass(eq=False)
class Connection:
    """
    One live client session.

    Compared and hashed by identity so it can live in sets and dicts while
    its mutable fields change.
    """

    client_id: int
    websocket: ServerConnection
    is_alive: bool = True
    room: Optional[str] = None
    role: Optional[str] = None
    pending_header: Optional[ScreenCaptureHeader] = None
    connected_at: float = field(default_factory=time.time)

    @property
    def remote_address(self) -> Any:
        return getattr(self.websocket, "remote_address", None)

    def is_transport_closed(self) -> bool:
        """True once the transport is closing or closed."""
        return getattr(self.websocket, "state", State.OPEN) in (State.CLOSING, State.CLOSED)

    def mark_alive(self) -> None:
        self.is_alive = True

    def __repr__(self) -> str:
        return f"Connection(client_id={self.client_id}, room={self.room!r}, role={self.role!r})"


class ConnectionManager:
    """Registry of active connections with O(1) membership checks."""

    def __init__(self, stats: Optional[RelayStats] = None) -> None:
        self.stats = stats if stats is not None else RelayStats()
        # Map websocket -> Connection
        self._connections: Dict[ServerConnection, Connection] = {}

    def register(self, websocket: ServerConnection) -> Connection:
        """Register a freshly accepted transport and return its Connection."""
        self.stats.total_connections += 1
        conn = Connection(client_id=self.stats.total_connections, websocket=websocket)
        self._connections[websocket] = conn
        self.stats.active_connections = len(self._connections)
        return conn

    def unregister(self, conn: Connection) -> bool:
        """
        Remove a connection from the active set.

        Returns:
            True if the connection was registered, False if it was already gone
        """
        removed = self._connections.pop(conn.websocket, None) is not None
        self.stats.active_connections = len(self._connections)
        return removed

    def get(self, websocket: ServerConnection) -> Optional[Connection]:
        """Get the Connection for a websocket - O(1) lookup."""
        return self._connections.get(websocket)

    def is_registered(self, conn: Connection) -> bool:
        return self._connections.get(conn.websocket) is conn

    def all(self) -> List[Connection]:
        """Snapshot of every active connection."""
        return list(self._connections.values())

    def others(self, conn: Connection) -> List[Connection]:
        """Snapshot of every active connection except ``conn``."""
        return [other for other in self._connections.values() if other is not conn]

    def find_closed(self) -> List[Connection]:
        """Connections whose transport already reached CLOSING or CLOSED."""
        return [conn for conn in self._connections.values() if conn.is_transport_closed()]

    @property
    def active_count(self) -> int:
        return len(self._connections)

    def get_stats(self) -> Dict[str, int]:
        """Get registry statistics."""
        return {
            "active": self.active_count,
            "total": self.stats.total_connections,
        }
