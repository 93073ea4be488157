"""
Message processing modules for the WebSocket relay server.

This package contains the router and the handlers for each routing policy.
"""

from .message_router import MessageRouter
from .signaling_message import SignalingHandler
from .control_message import ControlMessageHandler
from .binary_message import BinaryMessageHandler
from .utils import ConnectionUtils

__all__ = [
    "MessageRouter",
    "SignalingHandler",
    "ControlMessageHandler",
    "BinaryMessageHandler",
    "ConnectionUtils",
]
