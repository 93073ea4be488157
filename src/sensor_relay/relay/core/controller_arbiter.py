"""
Controller arbitration.

At most one connection per scope may broadcast control and binary
messages. With the global scope there is a single claim for the whole
server; with the room scope each room has its own.
"""

from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

from sensor_relay.core.messages import now_ms
from sensor_relay.core.types import CONTROLLER_SCOPE_GLOBAL, CONTROLLER_SCOPE_ROOM

from .connection_manager import Connection


@dataclass
class ControllerClaim:
    """The current controller of a scope and when it took over."""

    connection: Connection
    since: int = field(default_factory=now_ms)


class ControllerArbiter:
    """Tracks the controlling connection for each scope."""

    def __init__(self, scope: str = CONTROLLER_SCOPE_GLOBAL) -> None:
        self.scope = scope
        self._claims: Dict[Optional[str], ControllerClaim] = {}

    def scope_key(self, conn: Connection) -> Optional[str]:
        """Claim key for ``conn``: ``None`` globally, the room id when room-scoped."""
        if self.scope == CONTROLLER_SCOPE_ROOM:
            return conn.room
        return None

    def claim(self, conn: Connection) -> Tuple[ControllerClaim, Optional[Connection]]:
        """
        Make ``conn`` the controller of its scope.

        Returns:
            The active claim and the connection it superseded, if any. A
            repeated claim by the current holder keeps its original ``since``.
        """
        key = self.scope_key(conn)
        current = self._claims.get(key)
        if current is not None and current.connection is conn:
            return current, None

        claim = ControllerClaim(connection=conn)
        self._claims[key] = claim
        previous = current.connection if current is not None else None
        return claim, previous

    def is_controller(self, conn: Connection) -> bool:
        claim = self._claims.get(self.scope_key(conn))
        return claim is not None and claim.connection is conn

    def current(self, key: Optional[str] = None) -> Optional[ControllerClaim]:
        return self._claims.get(key)

    def release(self, conn: Connection) -> bool:
        """
        Clear every claim held by ``conn``.

        The lookup scans all scopes because a room-scoped holder may already
        have left its room.

        Returns:
            True if ``conn`` held a claim
        """
        released = False
        for key, claim in list(self._claims.items()):
            if claim.connection is conn:
                del self._claims[key]
                released = True
        return released

    @property
    def claim_count(self) -> int:
        return len(self._claims)

    def get_stats(self) -> Dict[str, object]:
        """Get arbiter statistics."""
        holder = self._claims.get(None)
        return {
            "scope": self.scope,
            "claims": len(self._claims),
            "controller": holder.connection.client_id if holder else None,
        }
