"""
Compatibility shims for older signaling clients.

Two families of clients predate the ``{"type": ...}`` protocol:

- JSON clients that describe signaling with ``action``/``signal``/``ice``
  keys. :func:`adapt_legacy_shape` rewrites them to the standard shape.
- "SimpleWebRTC" clients that speak a pipe-delimited text format
  ``TYPE|from|to|payload|connectionCount|isVideoAudioSender``.
  :func:`parse_pipe_message` and :func:`encode_pipe_message` convert in
  both directions.
"""

import json
from dataclasses import dataclass
from typing import Any, Dict, Optional

from sensor_relay.core.types import (
    MSG_ANSWER,
    MSG_CANDIDATE,
    MSG_JOIN,
    MSG_OFFER,
    MSG_READY,
)

PIPE_SEPARATOR = "|"
PIPE_FIELD_COUNT = 6
PIPE_TARGET_ALL = "ALL"
PIPE_NEWPEER = "NEWPEER"
PIPE_OTHER = "OTHER"
PIPE_SIGNAL_TYPES = frozenset({"OFFER", "ANSWER", "CANDIDATE"})

# Role whose peers carry audio/video in SimpleWebRTC deployments
VIDEO_AUDIO_SENDER_ROLE = "web-sender"


def adapt_legacy_shape(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Rewrite a typeless legacy signaling object into the standard shape.

    Objects that already carry ``type`` or match no legacy shape are
    returned unchanged.
    """
    if "type" in data:
        return data

    if data.get("action") == MSG_JOIN and data.get("id"):
        adapted = {"type": MSG_JOIN, "from": data["id"], "role": data["id"]}
        if "room" in data:
            adapted["room"] = data["room"]
        return adapted

    sender = data.get("sender")
    target = data.get("target")

    if data.get("signal") in (MSG_OFFER, MSG_ANSWER) and sender and target and data.get("sdp"):
        return {"type": data["signal"], "from": sender, "to": target, "sdp": data["sdp"]}

    if data.get("ice") and sender and target:
        return {"type": MSG_CANDIDATE, "from": sender, "to": target, "candidate": data["ice"]}

    return data


@dataclass
class PipeMessage:
    """One decoded pipe-delimited frame."""

    type: str
    sender_peer_id: str
    receiver_peer_id: str
    message: str
    connection_count: int
    is_video_audio_sender: bool

    def targets_all(self) -> bool:
        return self.receiver_peer_id.upper() == PIPE_TARGET_ALL


def looks_like_pipe_message(text: str) -> bool:
    """Cheap pre-check so JSON frames never go through the pipe parser."""
    stripped = text.lstrip()
    if stripped.startswith(("{", "[")):
        return False
    return text.count(PIPE_SEPARATOR) >= PIPE_FIELD_COUNT - 1


def parse_pipe_message(text: str) -> Optional[PipeMessage]:
    """Parse a pipe frame; returns None when the frame has too few fields."""
    parts = text.split(PIPE_SEPARATOR)
    if len(parts) < PIPE_FIELD_COUNT:
        return None

    # The payload may itself contain the separator; the trailing two fields
    # are always the count and the sender flag.
    payload = PIPE_SEPARATOR.join(parts[3:-2])
    try:
        connection_count = int(parts[-2])
    except ValueError:
        connection_count = 0

    return PipeMessage(
        type=parts[0],
        sender_peer_id=parts[1],
        receiver_peer_id=parts[2],
        message=payload,
        connection_count=connection_count,
        is_video_audio_sender=parts[-1].strip().lower() == "true",
    )


def encode_pipe_message(
    message: Dict[str, Any], sender_role: Optional[str], connection_count: int
) -> str:
    """Render a standard message in the pipe-delimited format."""
    sender = message.get("from") or sender_role or ""
    receiver = message.get("to") or PIPE_TARGET_ALL
    is_sender = "true" if sender_role == VIDEO_AUDIO_SENDER_ROLE else "false"
    message_type = message.get("type")

    if message_type in (MSG_OFFER, MSG_ANSWER):
        kind, payload = message_type.upper(), str(message.get("sdp", ""))
    elif message_type == MSG_CANDIDATE:
        candidate = message.get("candidate")
        if isinstance(candidate, dict):
            body = candidate
        else:
            body = {
                "candidate": candidate,
                "sdpMLineIndex": message.get("sdpMLineIndex"),
                "sdpMid": message.get("sdpMid"),
            }
        kind, payload = "CANDIDATE", json.dumps(body)
    elif message_type == MSG_JOIN:
        kind = PIPE_NEWPEER
        payload = json.dumps({"room": message.get("room"), "role": message.get("role")})
    elif message_type == MSG_READY:
        kind = PIPE_OTHER
        payload = json.dumps({"type": MSG_READY, "room": message.get("room")})
    else:
        kind, payload = PIPE_OTHER, json.dumps(message)

    return PIPE_SEPARATOR.join(
        [kind, sender, receiver, payload, str(connection_count), is_sender]
    )
