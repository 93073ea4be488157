"""
Signaling message handler for the relay server.

Handles room joins and relays offer/answer/candidate/ready between the
peers of a room. Signaling is never gated by the controller claim.
"""

import json
import logging
from typing import Any, Dict, List, Optional

from sensor_relay.core.compat import (
    PIPE_NEWPEER,
    PIPE_SIGNAL_TYPES,
    PipeMessage,
    encode_pipe_message,
)
from sensor_relay.core.messages import JoinMessage, SignalMessage
from sensor_relay.core.types import (
    CLOSE_NORMAL,
    CONTROLLER_SCOPE_ROOM,
    MSG_JOIN,
    MSG_JOINED,
    MSG_PEER_JOINED,
    MSG_PEER_LEFT,
    MSG_READY,
    REPLACED_REASON,
)

from ...core.connection_manager import Connection
from ...core.state import RelayState
from .control_message import ControlMessageHandler
from .utils import ConnectionUtils


class SignalingHandler:
    """Handles room membership and room-scoped signaling relay."""

    def __init__(
        self,
        state: RelayState,
        control_handler: ControlMessageHandler,
        logger: logging.Logger,
    ) -> None:
        self.state = state
        self.control_handler = control_handler
        self.logger = logger

    @property
    def pipe_enabled(self) -> bool:
        return self.state.config.pipe_format_enabled

    async def handle_join(self, conn: Connection, message: JoinMessage) -> None:
        """Join ``conn`` to a room, evicting a same-role incumbent."""
        state = self.state
        async with state.lock:
            result = state.rooms.join(conn, message.room, message.role)
            state.sync_room_count()
            peer_roles = state.rooms.peer_roles(conn)
            released = False
            switched_room = result.left_room is not None
            if switched_room and state.config.controller_scope == CONTROLLER_SCOPE_ROOM:
                released = state.arbiter.release(conn)
            new_peers = [member for member in result.members if member is not conn]
            connection_count = state.connections.active_count

        if result.evicted is not None:
            self.logger.info(
                f"Client {result.evicted.client_id} replaced as '{message.role}' "
                f"in room {message.room} by client {conn.client_id}"
            )
            await ConnectionUtils.close_connection(
                result.evicted, CLOSE_NORMAL, REPLACED_REASON, self.logger
            )

        if result.left_room is not None and result.left_remaining:
            await self.notify_peer_left(
                result.left_room, result.left_role, result.left_remaining
            )
        if released and result.left_remaining:
            await self.control_handler.notify_controller_left(result.left_remaining)

        if self.pipe_enabled:
            await ConnectionUtils.safe_send(
                conn,
                encode_pipe_message(
                    {"type": MSG_JOIN, "room": message.room, "role": message.role},
                    message.role,
                    connection_count,
                ),
                self.logger,
            )
        await ConnectionUtils.safe_send(
            conn,
            {
                "type": MSG_JOINED,
                "room": message.room,
                "role": message.role,
                "peers": peer_roles,
            },
            self.logger,
        )
        if result.added:
            await self.notify_peer_joined(message.room, message.role, new_peers)
        self.logger.info(
            f"'{message.role}' joined room {message.room}, members: {len(result.members)}"
        )

        if result.is_pair_complete:
            self.logger.info(f"Room {message.room} has both peers, sending ready")
            await self._send_ready(message.room, result.members, connection_count)

    async def _send_ready(
        self, room: str, members: List[Connection], connection_count: int
    ) -> None:
        ready = {"type": MSG_READY, "room": room}
        for member in members:
            if self.pipe_enabled:
                await ConnectionUtils.safe_send(
                    member,
                    encode_pipe_message(ready, member.role, connection_count),
                    self.logger,
                )
            await ConnectionUtils.safe_send(member, ready, self.logger)

    async def relay_signal(self, conn: Connection, message: SignalMessage) -> int:
        """
        Forward a signaling message to the other members of the sender's room.

        The message gains a ``from`` field carrying the sender's role. Dropped
        when the sender has not joined a room.

        Returns:
            Number of peers the message was delivered to
        """
        async with self.state.lock:
            if conn.room is None:
                targets = None
            else:
                targets = self.state.rooms.relay_targets(conn, message.to)
            role = conn.role
            room = conn.room
            connection_count = self.state.connections.active_count

        if targets is None:
            self.logger.debug(
                f"Dropping {message.type} from client {conn.client_id}: no room joined"
            )
            return 0

        forwarded: Dict[str, Any] = dict(message.raw)
        forwarded["from"] = role

        if self.pipe_enabled:
            await ConnectionUtils.broadcast(
                targets, encode_pipe_message(forwarded, role, connection_count), self.logger
            )
        delivered = await ConnectionUtils.broadcast(targets, forwarded, self.logger)
        self.logger.debug(f"Relayed {message.type} from '{role}' to room {room}")
        return delivered

    async def handle_pipe(self, conn: Connection, pipe: PipeMessage, text: str) -> Optional[str]:
        """
        Handle a frame in the pipe-delimited compatibility format.

        Returns:
            The standard message type the frame was counted as, or None when dropped
        """
        if pipe.type == PIPE_NEWPEER:
            try:
                body = json.loads(pipe.message)
            except ValueError:
                self.logger.debug("Dropping NEWPEER frame with unparsable payload")
                return None
            room = body.get("room") if isinstance(body, dict) else None
            role = body.get("role") if isinstance(body, dict) else None
            if not isinstance(room, str) or not room or not isinstance(role, str) or not role:
                self.logger.debug("Dropping NEWPEER frame without room/role")
                return None
            await self.handle_join(conn, JoinMessage(room=room, role=role, raw=body))
            return MSG_JOIN

        if pipe.type in PIPE_SIGNAL_TYPES:
            async with self.state.lock:
                if conn.room is None:
                    targets = None
                else:
                    target_role = None if pipe.targets_all() else pipe.receiver_peer_id
                    targets = self.state.rooms.relay_targets(conn, target_role)
            if targets is None:
                self.logger.debug(f"Dropping {pipe.type} frame: no room joined")
                return None
            await ConnectionUtils.broadcast(targets, text, self.logger)
            return pipe.type.lower()

        self.logger.debug(f"Dropping unsupported pipe frame type {pipe.type}")
        return None

    async def notify_peer_joined(
        self, room: str, role: str, peers: List[Connection]
    ) -> None:
        """Tell the existing members that a peer joined, when enabled."""
        if not self.state.config.notify_peer_joined or not peers:
            return
        await ConnectionUtils.broadcast(
            peers,
            {"type": MSG_PEER_JOINED, "room": room, "from": role},
            self.logger,
        )

    async def notify_peer_left(
        self, room: str, role: Optional[str], remaining: List[Connection]
    ) -> None:
        """Tell the remaining members that a peer left, when enabled."""
        if not self.state.config.notify_peer_left or not remaining:
            return
        await ConnectionUtils.broadcast(
            remaining,
            {"type": MSG_PEER_LEFT, "room": room, "role": role},
            self.logger,
        )
