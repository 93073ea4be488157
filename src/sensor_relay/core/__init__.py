"""
Core building blocks for the Sensor Relay system.

This package holds the protocol constants, the inbound message model,
the legacy compatibility formats and the process-wide counters.
"""

from .messages import (
    ClaimMessage,
    ControlMessage,
    JoinMessage,
    LegacyMessage,
    Message,
    ScreenCaptureHeader,
    SignalMessage,
    UnknownMessage,
    decode_message,
    now_ms,
    parse_json_object,
)
from .compat import (
    PipeMessage,
    adapt_legacy_shape,
    encode_pipe_message,
    looks_like_pipe_message,
    parse_pipe_message,
)
from .stats import RelayStats

__all__ = [
    "ClaimMessage",
    "ControlMessage",
    "JoinMessage",
    "LegacyMessage",
    "Message",
    "ScreenCaptureHeader",
    "SignalMessage",
    "UnknownMessage",
    "decode_message",
    "now_ms",
    "parse_json_object",
    "PipeMessage",
    "adapt_legacy_shape",
    "encode_pipe_message",
    "looks_like_pipe_message",
    "parse_pipe_message",
    "RelayStats",
]
