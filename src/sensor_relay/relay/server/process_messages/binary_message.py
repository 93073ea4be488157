"""
Binary message handler for the relay server.

Binary frames carry exactly one payload type: the image bytes announced by a
preceding ``screen_capture_header`` from the same connection.
"""

import logging

from sensor_relay.core.types import MSG_SCREEN_CAPTURE

from ...core.connection_manager import Connection
from ...core.state import RelayState
from .control_message import ControlMessageHandler
from .utils import ConnectionUtils


class BinaryMessageHandler:
    """Pairs binary frames with their buffered header and broadcasts them."""

    def __init__(
        self,
        state: RelayState,
        control_handler: ControlMessageHandler,
        logger: logging.Logger,
    ) -> None:
        self.state = state
        self.control_handler = control_handler
        self.logger = logger

    async def process_binary_message(self, conn: Connection, payload: bytes) -> bool:
        """
        Combine ``payload`` with the pending header into a ``screen_capture``
        broadcast. Frames without a pending header are dropped.

        Returns:
            True if a broadcast went out
        """
        header = conn.pending_header
        if header is None:
            self.logger.debug(
                f"Dropping {len(payload)} byte binary frame from client "
                f"{conn.client_id}: no pending header"
            )
            return False
        conn.pending_header = None

        if not await self.control_handler.ensure_controller(conn):
            return False

        out = {
            "type": MSG_SCREEN_CAPTURE,
            "clientId": header.client_id,
            "timestamp": header.timestamp,
            "size": header.size,
            "image": list(payload),
        }

        async with self.state.lock:
            self.state.stats.record_message(MSG_SCREEN_CAPTURE)
            recipients = self.state.control_recipients(conn)

        delivered = await ConnectionUtils.broadcast(recipients, out, self.logger)
        self.logger.debug(
            f"Broadcast screen_capture ({len(payload)} bytes) from client "
            f"{conn.client_id} to {delivered} client(s)"
        )
        await ConnectionUtils.send_ack(self.state, conn, self.logger)
        return True
