"""
WebSocket server implementation for the sensor relay.

This module contains the main RelayServer class and related components.
"""

from .relay_server import RelayServer

__all__ = [
    "RelayServer",
]
