"""
Pytest configuration and shared fixtures for the Sensor Relay test suite.

This module provides common fixtures and configuration for all tests.
"""

import json
import logging
from typing import Any, Dict, List

import pytest
from unittest.mock import AsyncMock, MagicMock

from websockets.protocol import State

from sensor_relay.config.settings import RelayConfig
from sensor_relay.relay.core.state import RelayState
from sensor_relay.relay.server.process_messages import MessageRouter


def make_websocket(port: int = 50000) -> MagicMock:
    """Create a mock server-side WebSocket connection."""
    websocket = MagicMock()
    websocket.remote_address = ("127.0.0.1", port)
    websocket.state = State.OPEN
    websocket.send = AsyncMock()
    websocket.close = AsyncMock()
    websocket.ping = AsyncMock()
    return websocket


def sent_messages(websocket: MagicMock) -> List[Dict[str, Any]]:
    """Decode every JSON text frame sent to a mock websocket."""
    messages = []
    for call in websocket.send.await_args_list:
        frame = call.args[0]
        if isinstance(frame, str) and frame.startswith("{"):
            messages.append(json.loads(frame))
    return messages


def sent_types(websocket: MagicMock) -> List[str]:
    return [message.get("type") for message in sent_messages(websocket)]


@pytest.fixture
def relay_config():
    """Default relay configuration for testing."""
    return RelayConfig(instance_name="test-instance")


@pytest.fixture
def relay_state(relay_config):
    """Fresh shared relay state."""
    return RelayState(relay_config)


@pytest.fixture
def test_logger():
    return logging.getLogger("sensor_relay.tests")


@pytest.fixture
def router(relay_state, test_logger):
    """Message router over the fresh relay state."""
    return MessageRouter(relay_state, test_logger)


@pytest.fixture
def connect(relay_state):
    """Factory registering a new mock connection with the relay state."""
    counter = {"port": 50000}

    def _connect():
        counter["port"] += 1
        return relay_state.connections.register(make_websocket(counter["port"]))

    return _connect


@pytest.fixture
def mock_websocket():
    """Create a mock WebSocket connection for testing."""
    return make_websocket()


# Pytest configuration
def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test"
    )
