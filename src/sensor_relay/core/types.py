"""
Common types and constants for the Sensor Relay system.

This module centralizes message types, close codes and defaults to avoid
hardcoding them throughout the codebase.
"""

from typing import Final, FrozenSet

# Client -> server signaling message types
MSG_JOIN: Final[str] = "join"
MSG_OFFER: Final[str] = "offer"
MSG_ANSWER: Final[str] = "answer"
MSG_CANDIDATE: Final[str] = "candidate"
MSG_READY: Final[str] = "ready"

SIGNAL_TYPES: Final[FrozenSet[str]] = frozenset(
    {MSG_OFFER, MSG_ANSWER, MSG_CANDIDATE, MSG_READY}
)

# Controller arbitration
MSG_CLAIM: Final[str] = "claim"

# Control (sensor/state) message types
MSG_GYROSCOPE: Final[str] = "gyroscope"
MSG_SHAKE: Final[str] = "shake"
MSG_SPIN: Final[str] = "spin"

CONTROL_TYPES: Final[FrozenSet[str]] = frozenset({MSG_GYROSCOPE, MSG_SHAKE, MSG_SPIN})

# Screen capture
MSG_SCREEN_CAPTURE_HEADER: Final[str] = "screen_capture_header"
MSG_SCREEN_CAPTURE: Final[str] = "screen_capture"

# Server -> client message types
MSG_CONNECTION: Final[str] = "connection"
MSG_JOINED: Final[str] = "joined"
MSG_PEER_JOINED: Final[str] = "peer-joined"
MSG_PEER_LEFT: Final[str] = "peer-left"
MSG_YOU_ARE_CONTROLLER: Final[str] = "you-are-controller"
MSG_EJECTED: Final[str] = "ejected"
MSG_CONTROLLER_LEFT: Final[str] = "controller-left"
MSG_ACK: Final[str] = "ack"
MSG_ERROR: Final[str] = "error"

# Legacy flattened gyroscope sample fields
GYRO_FIELDS: Final[tuple] = ("alpha", "beta", "gamma")

# Fan-out target meaning "every peer in the room"
TARGET_ALL: Final[str] = "all"

# Reasons and human readable messages
EJECT_REASON_NEW_CONTROLLER: Final[str] = "new-controller"
REPLACED_REASON: Final[str] = "Replaced by new peer"
PING_TIMEOUT_REASON: Final[str] = "ping timeout"
WELCOME_MESSAGE: Final[str] = "WebSocket connection established"
ACK_MESSAGE: Final[str] = "Data broadcast"
ERROR_MESSAGE_FORMAT: Final[str] = "Invalid message format"
ERROR_NOT_CONTROLLER: Final[str] = "you are not the controller"

# WebSocket close codes (RFC 6455)
CLOSE_NORMAL: Final[int] = 1000
CLOSE_GOING_AWAY: Final[int] = 1001

# Controller policies and scopes
CONTROLLER_POLICY_IMPLICIT: Final[str] = "implicit"
CONTROLLER_POLICY_STRICT: Final[str] = "strict"
CONTROLLER_POLICIES: Final[FrozenSet[str]] = frozenset(
    {CONTROLLER_POLICY_IMPLICIT, CONTROLLER_POLICY_STRICT}
)

CONTROLLER_SCOPE_GLOBAL: Final[str] = "global"
CONTROLLER_SCOPE_ROOM: Final[str] = "room"
CONTROLLER_SCOPES: Final[FrozenSet[str]] = frozenset(
    {CONTROLLER_SCOPE_GLOBAL, CONTROLLER_SCOPE_ROOM}
)

# Default Values
DEFAULT_RELAY_HOST: Final[str] = "0.0.0.0"
DEFAULT_RELAY_PORT: Final[int] = 8081
DEFAULT_HTTP_PORT: Final[int] = 8082
DEFAULT_PING_INTERVAL: Final[float] = 25.0
DEFAULT_STALE_SWEEP_INTERVAL: Final[float] = 30.0
DEFAULT_STATUS_REPORT_INTERVAL: Final[float] = 60.0
DEFAULT_MAX_CONNECTIONS: Final[int] = 200
DEFAULT_MAX_MESSAGE_SIZE: Final[int] = 8 * 2**20

SERVICE_NAME: Final[str] = "Sensor & Signaling Relay"
