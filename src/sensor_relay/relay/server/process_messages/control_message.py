"""
Control message handler for the relay server.

Handles controller claims and the controller-gated broadcast of sensor
updates (gyroscope, shake, spin and configured extras).
"""

import logging
from typing import Optional

from sensor_relay.core.messages import ControlMessage, ScreenCaptureHeader
from sensor_relay.core.types import (
    CONTROLLER_POLICY_STRICT,
    EJECT_REASON_NEW_CONTROLLER,
    ERROR_NOT_CONTROLLER,
    MSG_CONTROLLER_LEFT,
    MSG_EJECTED,
    MSG_YOU_ARE_CONTROLLER,
)

from ...core.connection_manager import Connection
from ...core.controller_arbiter import ControllerClaim
from ...core.state import RelayState
from .utils import ConnectionUtils


class ControlMessageHandler:
    """Handles claims, the controller gate and control broadcasts."""

    def __init__(self, state: RelayState, logger: logging.Logger) -> None:
        self.state = state
        self.logger = logger

    @property
    def strict(self) -> bool:
        return self.state.config.controller_policy == CONTROLLER_POLICY_STRICT

    async def handle_claim(self, conn: Connection) -> ControllerClaim:
        """Explicit claim: make ``conn`` the controller and acknowledge it."""
        async with self.state.lock:
            claim, previous = self.state.arbiter.claim(conn)
        await self._announce_claim(conn, claim, previous)
        return claim

    async def _announce_claim(
        self, conn: Connection, claim: ControllerClaim, previous: Optional[Connection]
    ) -> None:
        if previous is not None:
            self.logger.info(
                f"Client {conn.client_id} took control from client {previous.client_id}"
            )
            await ConnectionUtils.safe_send(
                previous,
                {"type": MSG_EJECTED, "reason": EJECT_REASON_NEW_CONTROLLER},
                self.logger,
            )
        else:
            self.logger.info(f"Client {conn.client_id} is now the controller")

        await ConnectionUtils.safe_send(
            conn, {"type": MSG_YOU_ARE_CONTROLLER, "since": claim.since}, self.logger
        )

    async def ensure_controller(self, conn: Connection) -> bool:
        """
        Gate a control or binary message from ``conn``.

        Under the implicit policy a non-controller is promoted on the spot;
        under the strict policy it is told it is not the controller and the
        message must be dropped.

        Returns:
            True if ``conn`` may broadcast
        """
        async with self.state.lock:
            if self.state.arbiter.is_controller(conn):
                return True
            if self.strict:
                claim = previous = None
            else:
                claim, previous = self.state.arbiter.claim(conn)

        if claim is None:
            self.logger.debug(f"Rejected control message from non-controller {conn.client_id}")
            await ConnectionUtils.send_error(conn, ERROR_NOT_CONTROLLER, self.logger)
            return False

        await self._announce_claim(conn, claim, previous)
        return True

    async def handle_control(self, conn: Connection, message: ControlMessage) -> bool:
        """
        Broadcast a control message to every other connection in scope.

        Returns:
            True if the message was broadcast
        """
        if not await self.ensure_controller(conn):
            return False

        envelope = message.envelope()
        async with self.state.lock:
            recipients = self.state.control_recipients(conn)

        delivered = await ConnectionUtils.broadcast(recipients, envelope, self.logger)
        self.logger.debug(
            f"Broadcast {message.type} from client {conn.client_id} to {delivered} client(s)"
        )
        await ConnectionUtils.send_ack(self.state, conn, self.logger)
        return True

    def buffer_header(self, conn: Connection, header: ScreenCaptureHeader) -> None:
        """Hold a screen-capture header until the connection's next binary frame."""
        if conn.pending_header is not None:
            self.logger.debug(f"Client {conn.client_id} replaced an unpaired capture header")
        conn.pending_header = header

    async def notify_controller_left(self, recipients) -> None:
        """Tell remaining connections the controller disconnected, when enabled."""
        if not self.state.config.notify_controller_left or not recipients:
            return
        await ConnectionUtils.broadcast(
            recipients, {"type": MSG_CONTROLLER_LEFT}, self.logger
        )
