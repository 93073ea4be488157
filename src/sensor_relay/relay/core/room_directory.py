"""
Room directory for WebRTC signaling.

A room pairs connections under distinct roles (typically one "sender" and
one "receiver"). Roles are unique per room: the last connection to claim a
role wins and the previous holder is returned to the caller for eviction.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Set

from sensor_relay.core.types import TARGET_ALL

from .connection_manager import Connection


@dataclass
class JoinResult:
    """Outcome of :meth:`RoomDirectory.join`."""

    room: str
    members: List[Connection]
    evicted: Optional[Connection] = None
    # Set when the joiner switched rooms; the left room and who remains there
    left_room: Optional[str] = None
    left_role: Optional[str] = None
    left_remaining: Optional[List[Connection]] = None
    # False when the connection was already a member (a repeated join)
    added: bool = True

    @property
    def is_pair_complete(self) -> bool:
        """This join brought the room to exactly two members."""
        return self.added and len(self.members) == 2


class RoomDirectory:
    """Maps room ids to the set of connections that joined them."""

    def __init__(self) -> None:
        self._rooms: Dict[str, Set[Connection]] = {}

    def join(self, conn: Connection, room: str, role: str) -> JoinResult:
        """
        Add ``conn`` to ``room`` under ``role``.

        Any previous room membership of ``conn`` is dropped first. A different
        connection already holding ``role`` in ``room`` is removed from the
        room and returned as ``evicted``; closing its transport is up to the
        caller.
        """
        left_room = None
        left_role = None
        left_remaining = None
        if conn.room is not None and conn.room != room:
            left_room = conn.room
            left_role = conn.role
            left_remaining = self.leave(conn)

        peers = self._rooms.setdefault(room, set())
        added = conn not in peers

        evicted = None
        for peer in peers:
            if peer is not conn and peer.role == role:
                evicted = peer
                break
        if evicted is not None:
            peers.discard(evicted)
            evicted.room = None
            evicted.role = None

        peers.add(conn)
        conn.room = room
        conn.role = role

        return JoinResult(
            room=room,
            members=list(peers),
            evicted=evicted,
            left_room=left_room,
            left_role=left_role,
            left_remaining=left_remaining,
            added=added,
        )

    def leave(self, conn: Connection) -> List[Connection]:
        """
        Remove ``conn`` from its room, deleting the room once empty.

        Returns:
            The members still in the room (empty if the room was deleted or
            the connection had not joined one)
        """
        room = conn.room
        if room is None:
            return []

        conn.room = None
        conn.role = None
        peers = self._rooms.get(room)
        if peers is None:
            return []

        peers.discard(conn)
        if not peers:
            del self._rooms[room]
            return []
        return list(peers)

    def relay_targets(self, conn: Connection, to: Optional[str] = None) -> List[Connection]:
        """
        Peers of ``conn`` that should receive a signaling message.

        Args:
            conn: The sending connection
            to: Optional destination role; ``None`` or ``"all"`` means every peer
        """
        if conn.room is None:
            return []
        peers = self._rooms.get(conn.room, set())
        targets = [peer for peer in peers if peer is not conn]
        if to is not None and to.lower() != TARGET_ALL:
            targets = [peer for peer in targets if peer.role == to]
        return targets

    def members(self, room: str) -> List[Connection]:
        return list(self._rooms.get(room, ()))

    def peer_roles(self, conn: Connection) -> List[str]:
        """Roles of the other members in ``conn``'s room."""
        if conn.room is None:
            return []
        return [
            peer.role
            for peer in self._rooms.get(conn.room, ())
            if peer is not conn and peer.role is not None
        ]

    def has_room(self, room: str) -> bool:
        return room in self._rooms

    @property
    def room_count(self) -> int:
        return len(self._rooms)

    def get_stats(self) -> Dict[str, int]:
        """Get directory statistics."""
        return {
            "rooms": len(self._rooms),
            "members": sum(len(peers) for peers in self._rooms.values()),
        }
