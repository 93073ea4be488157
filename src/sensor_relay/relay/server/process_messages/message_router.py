"""
Message router for the relay server.

Classifies every inbound frame and hands it to the handler owning its
routing policy:

- binary frames -> :class:`BinaryMessageHandler` (controller-gated)
- join / offer / answer / candidate / ready -> :class:`SignalingHandler`
- claim, sensor updates, capture headers -> :class:`ControlMessageHandler`

Malformed frames are dropped without a reply; an unexpected failure while
handling a frame is answered with a generic ``error`` envelope and the
connection keeps going.
"""

import logging

from sensor_relay.core.compat import (
    adapt_legacy_shape,
    looks_like_pipe_message,
    parse_pipe_message,
)
from sensor_relay.core.messages import (
    ClaimMessage,
    ControlMessage,
    JoinMessage,
    Message,
    ScreenCaptureHeader,
    SignalMessage,
    decode_message,
    parse_json_object,
)
from sensor_relay.core.types import (
    ERROR_MESSAGE_FORMAT,
    MSG_CLAIM,
    MSG_JOIN,
    MSG_SCREEN_CAPTURE_HEADER,
)
from sensor_relay.infrastructure.exceptions import MessageDecodeError

from ...core.connection_manager import Connection
from ...core.state import RelayState
from .binary_message import BinaryMessageHandler
from .control_message import ControlMessageHandler
from .signaling_message import SignalingHandler
from .utils import ConnectionUtils


class MessageRouter:
    """Per-frame dispatch over the shared relay state."""

    def __init__(self, state: RelayState, logger: logging.Logger) -> None:
        self.state = state
        self.logger = logger
        self.control_handler = ControlMessageHandler(state, logger)
        self.signaling_handler = SignalingHandler(state, self.control_handler, logger)
        self.binary_handler = BinaryMessageHandler(state, self.control_handler, logger)

    async def route(self, conn: Connection, frame) -> None:
        """Route one frame; ``bytes`` frames are binary, ``str`` frames are text."""
        try:
            if isinstance(frame, (bytes, bytearray, memoryview)):
                await self.binary_handler.process_binary_message(conn, bytes(frame))
            else:
                await self.process_text_message(conn, frame)
        except Exception as e:
            self.logger.error(
                f"Error processing message from client {conn.client_id}: {e}",
                exc_info=True,
            )
            await ConnectionUtils.send_error(conn, ERROR_MESSAGE_FORMAT, self.logger)

    async def process_text_message(self, conn: Connection, text: str) -> None:
        """Decode a text frame and dispatch it."""
        if self.state.config.pipe_format_enabled and looks_like_pipe_message(text):
            pipe = parse_pipe_message(text)
            if pipe is not None:
                counted_as = await self.signaling_handler.handle_pipe(conn, pipe, text)
                if counted_as is not None:
                    await self._record(counted_as)
                return

        try:
            data = parse_json_object(text)
            message = decode_message(
                adapt_legacy_shape(data), self.state.config.extra_control_types
            )
        except MessageDecodeError as e:
            self.logger.debug(f"Dropping malformed frame from client {conn.client_id}: {e}")
            return

        await self.dispatch(conn, message)

    async def dispatch(self, conn: Connection, message: Message) -> None:
        """Apply the routing policy of ``message``'s variant."""
        if isinstance(message, JoinMessage):
            await self._record(MSG_JOIN)
            await self.signaling_handler.handle_join(conn, message)

        elif isinstance(message, SignalMessage):
            await self._record(message.type)
            await self.signaling_handler.relay_signal(conn, message)

        elif isinstance(message, ClaimMessage):
            await self._record(MSG_CLAIM)
            await self.control_handler.handle_claim(conn)

        elif isinstance(message, ScreenCaptureHeader):
            await self._record(MSG_SCREEN_CAPTURE_HEADER)
            self.control_handler.buffer_header(conn, message)

        elif isinstance(message, ControlMessage):
            await self._record(message.type)
            await self.control_handler.handle_control(conn, message)

        else:
            self.logger.debug(
                f"Dropping unrouted message type {message.type!r} from client {conn.client_id}"
            )

    async def _record(self, category: str) -> None:
        async with self.state.lock:
            self.state.stats.record_message(category)

    async def disconnect(self, conn: Connection) -> None:
        """
        Single teardown path for a closed connection.

        Removes it from the registry and its room and releases any controller
        claim it held. Safe to call more than once.
        """
        state = self.state
        async with state.lock:
            was_registered = state.connections.unregister(conn)
            room, role = conn.room, conn.role
            scope_peers = state.control_recipients(conn)
            remaining = state.rooms.leave(conn)
            state.sync_room_count()
            released = state.arbiter.release(conn)
        conn.pending_header = None

        if not was_registered and room is None and not released:
            return

        self.logger.info(
            f"Client {conn.client_id} disconnected"
            + (f" from room {room} as '{role}'" if room else "")
            + (", controller released" if released else "")
        )

        if room is not None and remaining:
            await self.signaling_handler.notify_peer_left(room, role, remaining)
        if released:
            await self.control_handler.notify_controller_left(scope_peers)
