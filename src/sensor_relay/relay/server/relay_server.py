"""
WebSocket relay server for sensor broadcast and WebRTC signaling.

One handler task runs per connection: it registers the connection, feeds
every inbound frame to the :class:`MessageRouter` and always finishes with
the router's teardown, whether the client closed cleanly, errored out or
was terminated by the liveness sweep.
"""

import asyncio
import sys
from pathlib import Path
from typing import List, Optional

if __name__ == "__main__":
    src_path = Path(__file__).parent.parent.parent.parent
    if str(src_path) not in sys.path:
        sys.path.insert(0, str(src_path))

from websockets.asyncio.server import Server, ServerConnection, serve
from websockets.exceptions import ConnectionClosed

from sensor_relay.config.settings import RelayConfig, config_manager
from sensor_relay.core.messages import now_ms
from sensor_relay.core.types import MSG_CONNECTION, WELCOME_MESSAGE
from sensor_relay.infrastructure import NetworkError, setup_logging

from ..core.state import RelayState
from .process_messages import ConnectionUtils, MessageRouter

logger = setup_logging(
    component_name="relay_server",
    log_file="logs/relay_server.log",
)
router_logger = setup_logging(
    component_name="message_router",
    log_file="logs/relay_server.log",
)


class RelayServer:
    """WebSocket hub multiplexing sensor broadcast, signaling and control."""

    def __init__(self, config: Optional[RelayConfig] = None) -> None:
        """
        Initialize the relay server.

        Args:
            config: Relay configuration; loaded from the environment when omitted
        """
        self.config = config if config is not None else config_manager.get_config()
        self.host = self.config.host
        self.port = self.config.port
        self.server: Optional[Server] = None

        self.state = RelayState(self.config)
        self.router = MessageRouter(self.state, router_logger)
        self._connection_semaphore = asyncio.Semaphore(self.config.max_connections)
        self._background_tasks: List[asyncio.Task] = []

    async def start(self) -> bool:
        """Start accepting connections and the periodic sweeps."""
        try:
            self.server = await serve(
                self._handle_connection,
                self.host,
                self.port,
                ping_interval=None,  # Liveness is driven by the sweep below
                max_size=self.config.max_message_size,
                compression=None,
            )
        except Exception as e:
            logger.error(f"Failed to start relay server: {e}", exc_info=True)
            return False

        logger.info(
            f"Relay server started on {self.host}:{self.bound_port} "
            f"(instance {self.config.instance_name}, "
            f"controller {self.config.controller_policy}/{self.config.controller_scope})"
        )
        self._background_tasks = [
            asyncio.create_task(
                ConnectionUtils.health_monitor(
                    self.state, self.config.ping_interval, logger
                )
            ),
            asyncio.create_task(
                ConnectionUtils.stale_monitor(
                    self.state,
                    self.config.stale_sweep_interval,
                    self.router.disconnect,
                    logger,
                )
            ),
            asyncio.create_task(
                ConnectionUtils.status_reporter(
                    self.state, self.config.status_report_interval, logger
                )
            ),
        ]
        return True

    async def stop(self) -> None:
        """Stop the relay server and its background tasks."""
        if self.server:
            self.server.close()
            await self.server.wait_closed()
            self.server = None
            logger.info("Relay server stopped")

        for task in self._background_tasks:
            task.cancel()
        for task in self._background_tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._background_tasks = []

    async def serve_forever(self) -> None:
        """Start if needed and block until the server is closed."""
        if self.server is None and not await self.start():
            raise NetworkError(f"Relay server could not bind {self.host}:{self.port}")
        await self.server.serve_forever()

    @property
    def bound_port(self) -> int:
        """Actual listening port; differs from ``port`` when binding port 0."""
        if self.server is not None and self.server.sockets:
            return self.server.sockets[0].getsockname()[1]
        return self.port

    @property
    def is_running(self) -> bool:
        return self.server is not None

    async def _handle_connection(self, websocket: ServerConnection) -> None:
        """Handle one client from open to close."""
        async with self._connection_semaphore:
            async with self.state.lock:
                conn = self.state.connections.register(websocket)
            logger.info(f"New connection from {conn.remote_address} as client {conn.client_id}")

            await ConnectionUtils.safe_send(
                conn,
                {
                    "type": MSG_CONNECTION,
                    "message": WELCOME_MESSAGE,
                    "timestamp": now_ms(),
                    "clientId": conn.client_id,
                    "instance": self.config.instance_name,
                },
                logger,
            )

            try:
                async for message in websocket:
                    await self.router.route(conn, message)
            except ConnectionClosed as e:
                logger.info(f"Connection closed for client {conn.client_id}: {e}")
            except Exception as e:
                logger.error(
                    f"Error handling client {conn.client_id}: {e}",
                    exc_info=True,
                )
            finally:
                await self.router.disconnect(conn)

    def get_stats(self) -> dict:
        """Get server statistics."""
        stats = self.state.snapshot()
        stats["server_running"] = self.is_running
        return stats


async def main() -> None:
    """Run the relay server and, when enabled, its status API."""
    config = config_manager.get_config()
    server = RelayServer(config)

    if not await server.start():
        sys.exit(1)

    try:
        if config.http_enabled:
            from sensor_relay.api.server import run_api_server

            await run_api_server(server, host=config.host, port=config.http_port)
        else:
            await server.serve_forever()
    finally:
        await server.stop()


def run() -> None:
    """Console entry point."""
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Shutting down relay server...")
    except Exception as e:
        logger.critical(f"Relay server crashed: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    run()
