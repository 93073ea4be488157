"""
Process-wide relay counters.

Counters only grow (``active_connections`` and ``rooms`` track current
size) and are reset only by restarting the process.
"""

import time
from dataclasses import dataclass, field
from typing import Any, Dict

from sensor_relay.core.types import (
    MSG_ANSWER,
    MSG_CANDIDATE,
    MSG_CLAIM,
    MSG_GYROSCOPE,
    MSG_JOIN,
    MSG_OFFER,
    MSG_SCREEN_CAPTURE,
    MSG_SHAKE,
    MSG_SPIN,
)

_CATEGORY_FIELDS = {
    MSG_GYROSCOPE: "gyroscope_messages",
    MSG_SHAKE: "shake_messages",
    MSG_SPIN: "spin_messages",
    MSG_SCREEN_CAPTURE: "screen_capture_messages",
    MSG_JOIN: "join_messages",
    MSG_CLAIM: "claim_messages",
    MSG_OFFER: "webrtc_offers",
    MSG_ANSWER: "webrtc_answers",
    MSG_CANDIDATE: "webrtc_candidates",
}


@dataclass
class RelayStats:
    """Connection and message counters exposed by the status API."""

    total_connections: int = 0
    active_connections: int = 0
    total_messages: int = 0
    gyroscope_messages: int = 0
    shake_messages: int = 0
    spin_messages: int = 0
    screen_capture_messages: int = 0
    other_control_messages: int = 0
    join_messages: int = 0
    claim_messages: int = 0
    webrtc_offers: int = 0
    webrtc_answers: int = 0
    webrtc_candidates: int = 0
    rooms: int = 0
    start_time: float = field(default_factory=time.time)

    def record_message(self, category: str) -> None:
        """Count one classified message under ``category`` (its wire type)."""
        self.total_messages += 1
        attr = _CATEGORY_FIELDS.get(category)
        if attr is not None:
            setattr(self, attr, getattr(self, attr) + 1)
        elif category not in ("ready", "screen_capture_header"):
            self.other_control_messages += 1

    def uptime(self) -> int:
        """Seconds since the process started."""
        return int(time.time() - self.start_time)

    def messages_dict(self) -> Dict[str, int]:
        return {
            "total": self.total_messages,
            "gyroscope": self.gyroscope_messages,
            "shake": self.shake_messages,
            "spin": self.spin_messages,
            "screenCapture": self.screen_capture_messages,
            "otherControl": self.other_control_messages,
            "joins": self.join_messages,
            "claims": self.claim_messages,
            "webrtcOffers": self.webrtc_offers,
            "webrtcAnswers": self.webrtc_answers,
            "webrtcCandidates": self.webrtc_candidates,
        }

    def to_dict(self) -> Dict[str, Any]:
        """Snapshot in the shape used by the HTTP status endpoints."""
        return {
            "uptime": self.uptime(),
            "connections": {
                "active": self.active_connections,
                "total": self.total_connections,
            },
            "messages": self.messages_dict(),
            "rooms": self.rooms,
        }
