"""
Status API runner.
"""

import uvicorn

from sensor_relay.infrastructure import setup_logging

from ..relay.server import RelayServer
from .app import create_app

logger = setup_logging(
    component_name="status_api",
    log_file="logs/status_api.log",
)


async def run_api_server(
    relay: RelayServer,
    host: str = "0.0.0.0",
    port: int = 8082,
) -> None:
    """
    Serve the status API until uvicorn is asked to exit.

    Args:
        relay: The running relay whose counters are reported
        host: Host to bind to
        port: Port to bind to
    """
    app = create_app(relay)

    config = uvicorn.Config(app=app, host=host, port=port, log_level="warning")
    server = uvicorn.Server(config)

    logger.info(f"Starting status API on {host}:{port}")
    await server.serve()
