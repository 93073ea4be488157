"""
Inbound message model for the relay.

Every text frame is decoded into one variant of :data:`Message` by peeking at
its ``type`` discriminator first. Unknown discriminators never raise: they
become :class:`LegacyMessage` when the payload looks like a flattened
gyroscope sample and :class:`UnknownMessage` otherwise.
"""

import json
import time
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterable, Optional, Union

from sensor_relay.core.types import (
    CONTROL_TYPES,
    GYRO_FIELDS,
    MSG_CLAIM,
    MSG_GYROSCOPE,
    MSG_JOIN,
    MSG_SCREEN_CAPTURE_HEADER,
    SIGNAL_TYPES,
)
from sensor_relay.infrastructure.exceptions import MessageDecodeError


def now_ms() -> int:
    """Wall clock time in milliseconds, the unit used on the wire."""
    return int(time.time() * 1000)


@dataclass
class JoinMessage:
    """Request to join a room under a role."""

    room: str
    role: str
    raw: Dict[str, Any] = field(default_factory=dict)


@dataclass
class SignalMessage:
    """offer / answer / candidate / ready, relayed to the sender's room."""

    type: str
    raw: Dict[str, Any]

    @property
    def to(self) -> Optional[str]:
        target = self.raw.get("to")
        return target if isinstance(target, str) else None


@dataclass
class ClaimMessage:
    """Explicit request to become the controller."""

    raw: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ScreenCaptureHeader:
    """Metadata announcing the binary frame that follows."""

    client_id: Any
    size: Any
    timestamp: Any
    raw: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ControlMessage:
    """Sensor/state update broadcast by the controller."""

    type: str
    data: Any
    raw: Dict[str, Any] = field(default_factory=dict)

    def envelope(self, timestamp: Optional[int] = None) -> Dict[str, Any]:
        """The ``{type, data, timestamp}`` shape sent to recipients."""
        return {
            "type": self.type,
            "data": self.data,
            "timestamp": timestamp if timestamp is not None else now_ms(),
        }


@dataclass
class LegacyMessage(ControlMessage):
    """Flattened gyroscope sample from a client that omits or misnames ``type``."""


@dataclass
class UnknownMessage:
    """Anything the relay does not route; dropped by the router."""

    type: Optional[str]
    raw: Dict[str, Any] = field(default_factory=dict)


Message = Union[
    JoinMessage,
    SignalMessage,
    ClaimMessage,
    ScreenCaptureHeader,
    ControlMessage,
    LegacyMessage,
    UnknownMessage,
]


def parse_json_object(text: str) -> Dict[str, Any]:
    """Parse a text frame into a JSON object or raise :class:`MessageDecodeError`."""
    try:
        data = json.loads(text)
    except (TypeError, ValueError) as e:
        raise MessageDecodeError(f"invalid JSON: {e}") from e
    if not isinstance(data, dict):
        raise MessageDecodeError(f"expected a JSON object, got {type(data).__name__}")
    return data


def _flattened_data(data: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in data.items() if key != "type"}


def _is_gyro_sample(data: Dict[str, Any]) -> bool:
    return any(name in data for name in GYRO_FIELDS)


def _control_data(data: Dict[str, Any]) -> Any:
    """Use ``data`` when the sender wrapped it, else re-wrap the flattened fields."""
    if "data" in data:
        return data["data"]
    return _flattened_data(data)


def decode_message(
    data: Dict[str, Any], extra_control_types: Iterable[str] = ()
) -> Message:
    """
    Decode a JSON object into a message variant.

    Args:
        data: Parsed JSON object
        extra_control_types: Additional ``type`` values routed as control messages

    Returns:
        The decoded variant

    Raises:
        MessageDecodeError: If a recognized type carries fields of the wrong shape
    """
    message_type = data.get("type")
    if not isinstance(message_type, str):
        message_type = None
    control_types: FrozenSet[str] = CONTROL_TYPES | frozenset(extra_control_types)

    if message_type == MSG_JOIN:
        room = data.get("room")
        role = data.get("role")
        if not isinstance(room, str) or not room:
            raise MessageDecodeError("join requires a non-empty 'room'")
        if not isinstance(role, str) or not role:
            raise MessageDecodeError("join requires a non-empty 'role'")
        return JoinMessage(room=room, role=role, raw=data)

    if message_type in SIGNAL_TYPES:
        return SignalMessage(type=message_type, raw=data)

    if message_type == MSG_CLAIM:
        return ClaimMessage(raw=data)

    if message_type == MSG_SCREEN_CAPTURE_HEADER:
        return ScreenCaptureHeader(
            client_id=data.get("clientId"),
            size=data.get("size"),
            timestamp=data.get("timestamp"),
            raw=data,
        )

    if message_type in control_types:
        return ControlMessage(type=message_type, data=_control_data(data), raw=data)

    if _is_gyro_sample(data):
        return LegacyMessage(
            type=MSG_GYROSCOPE,
            data={name: data.get(name) for name in (*GYRO_FIELDS, "timestamp")},
            raw=data,
        )

    return UnknownMessage(type=message_type, raw=data)
