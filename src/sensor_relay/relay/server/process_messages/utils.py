"""
Utility functions for connection management.

Best-effort sends, fan-out, and the periodic sweeps that keep the
connection registry free of dead sockets.
"""

import asyncio
import json
import logging
from typing import Any, Awaitable, Callable, Dict, Iterable, Union

from websockets.exceptions import ConnectionClosed

from sensor_relay.core.messages import now_ms
from sensor_relay.core.types import (
    ACK_MESSAGE,
    CLOSE_GOING_AWAY,
    MSG_ACK,
    MSG_ERROR,
    PING_TIMEOUT_REASON,
)

from ...core.connection_manager import Connection
from ...core.state import RelayState

Payload = Union[str, bytes, Dict[str, Any]]


class ConnectionUtils:
    """Utility functions for connection management."""

    @staticmethod
    async def safe_send(conn: Connection, payload: Payload, logger: logging.Logger) -> bool:
        """
        Send ``payload`` to one connection, logging instead of raising.

        Dicts are serialized to JSON text frames.

        Returns:
            True if the frame was handed to the transport
        """
        frame = json.dumps(payload) if isinstance(payload, dict) else payload
        try:
            await conn.websocket.send(frame)
            return True
        except ConnectionClosed:
            logger.debug(f"Client {conn.client_id} already closed, send skipped")
        except Exception as e:
            logger.error(f"Error sending to client {conn.client_id}: {e}")
        return False

    @staticmethod
    async def broadcast(
        recipients: Iterable[Connection], payload: Payload, logger: logging.Logger
    ) -> int:
        """
        Send ``payload`` to every recipient concurrently.

        A failing recipient never affects the others.

        Returns:
            Number of recipients the frame was handed to
        """
        frame = json.dumps(payload) if isinstance(payload, dict) else payload
        targets = list(recipients)
        if not targets:
            return 0

        results = await asyncio.gather(
            *(ConnectionUtils.safe_send(conn, frame, logger) for conn in targets),
            return_exceptions=True,
        )
        delivered = 0
        for conn, result in zip(targets, results):
            if isinstance(result, BaseException):
                logger.error(f"Broadcast to client {conn.client_id} failed: {result}")
            elif result:
                delivered += 1
        return delivered

    @staticmethod
    async def send_ack(state: RelayState, conn: Connection, logger: logging.Logger) -> bool:
        """Tell the sender a broadcast went out and how many clients are reachable."""
        async with state.lock:
            clients_count = state.connections.active_count
        return await ConnectionUtils.safe_send(
            conn,
            {
                "type": MSG_ACK,
                "message": ACK_MESSAGE,
                "timestamp": now_ms(),
                "clientsCount": clients_count,
            },
            logger,
        )

    @staticmethod
    async def send_error(conn: Connection, message: str, logger: logging.Logger) -> bool:
        """Send error message to client."""
        return await ConnectionUtils.safe_send(
            conn,
            {"type": MSG_ERROR, "message": message, "timestamp": now_ms()},
            logger,
        )

    @staticmethod
    async def close_connection(
        conn: Connection, code: int, reason: str, logger: logging.Logger
    ) -> None:
        """Close a transport, ignoring failures from one that is already gone."""
        try:
            await conn.websocket.close(code, reason)
        except Exception as e:
            logger.debug(f"Closing client {conn.client_id} failed: {e}")

    @staticmethod
    def _watch_pong(conn: Connection, pong_waiter: "asyncio.Future[Any]") -> None:
        def on_pong(future: "asyncio.Future[Any]") -> None:
            if future.cancelled():
                return
            if future.exception() is None:
                conn.mark_alive()

        pong_waiter.add_done_callback(on_pong)

    @staticmethod
    async def _ping_or_terminate(conn: Connection, logger: logging.Logger) -> bool:
        if not conn.is_alive:
            logger.info(f"Client {conn.client_id} missed its last ping, terminating")
            await ConnectionUtils.close_connection(
                conn, CLOSE_GOING_AWAY, PING_TIMEOUT_REASON, logger
            )
            return False

        conn.is_alive = False
        try:
            pong_waiter = await conn.websocket.ping()
        except Exception as e:
            logger.debug(f"Ping to client {conn.client_id} failed: {e}")
            return True
        ConnectionUtils._watch_pong(conn, pong_waiter)
        return True

    @staticmethod
    async def ping_connections(state: RelayState, logger: logging.Logger) -> int:
        """
        One liveness pass: terminate connections that did not answer the
        previous ping and ping the rest.

        Returns:
            Number of connections terminated
        """
        async with state.lock:
            connections = state.connections.all()
        if not connections:
            return 0

        results = await asyncio.gather(
            *(ConnectionUtils._ping_or_terminate(conn, logger) for conn in connections),
            return_exceptions=True,
        )
        return sum(1 for result in results if result is False)

    @staticmethod
    async def sweep_closed(
        state: RelayState,
        teardown: Callable[[Connection], Awaitable[None]],
        logger: logging.Logger,
    ) -> int:
        """
        Tear down registered connections whose transport is already closing
        or closed, covering close events that never reached their handler.

        Returns:
            Number of connections removed
        """
        async with state.lock:
            before = state.connections.active_count
            stale = state.connections.find_closed()

        for conn in stale:
            await teardown(conn)

        if stale:
            async with state.lock:
                after = state.connections.active_count
            logger.info(f"Swept stale connections: {before} -> {after}")
        return len(stale)

    @staticmethod
    async def health_monitor(
        state: RelayState, ping_interval: float, logger: logging.Logger
    ) -> None:
        """Ping every connection each ``ping_interval`` seconds."""
        while True:
            await asyncio.sleep(ping_interval)
            try:
                terminated = await ConnectionUtils.ping_connections(state, logger)
                if terminated:
                    logger.info(f"Liveness sweep terminated {terminated} connection(s)")
            except Exception as e:
                logger.error(f"Liveness sweep failed: {e}", exc_info=True)

    @staticmethod
    async def stale_monitor(
        state: RelayState,
        interval: float,
        teardown: Callable[[Connection], Awaitable[None]],
        logger: logging.Logger,
    ) -> None:
        """Run :meth:`sweep_closed` every ``interval`` seconds."""
        while True:
            await asyncio.sleep(interval)
            try:
                await ConnectionUtils.sweep_closed(state, teardown, logger)
            except Exception as e:
                logger.error(f"Stale connection sweep failed: {e}", exc_info=True)

    @staticmethod
    async def report_status(state: RelayState, logger: logging.Logger) -> None:
        """Log the service summary and per-type counters once."""
        async with state.lock:
            stats = state.stats
            summary = (
                f"Status: uptime {stats.uptime()}s, "
                f"active {stats.active_connections}, "
                f"total messages {stats.total_messages}, "
                f"rooms {stats.rooms}"
            )
            detail = (
                f"Counters: gyroscope {stats.gyroscope_messages}, "
                f"shake {stats.shake_messages}, spin {stats.spin_messages}, "
                f"screen capture {stats.screen_capture_messages}, "
                f"offers {stats.webrtc_offers}, answers {stats.webrtc_answers}, "
                f"candidates {stats.webrtc_candidates}"
            )
        logger.info(summary)
        logger.info(detail)

    @staticmethod
    async def status_reporter(
        state: RelayState, interval: float, logger: logging.Logger
    ) -> None:
        """Run :meth:`report_status` every ``interval`` seconds."""
        while True:
            await asyncio.sleep(interval)
            try:
                await ConnectionUtils.report_status(state, logger)
            except Exception as e:
                logger.error(f"Status report failed: {e}", exc_info=True)
