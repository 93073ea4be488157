"""
Unit tests for the status API.
"""

import pytest
from fastapi.testclient import TestClient
from unittest.mock import MagicMock

from sensor_relay import __version__
from sensor_relay.api.app import create_app
from sensor_relay.config.settings import RelayConfig
from sensor_relay.relay.server.relay_server import RelayServer


@pytest.fixture
def relay():
    server = RelayServer(RelayConfig(instance_name="api-test", controller_scope="room"))
    server.server = MagicMock()  # Reported as running without binding a port
    return server


@pytest.fixture
def client(relay):
    return TestClient(create_app(relay))


class TestStatusApi:
    """Test cases for the status endpoints."""

    @pytest.mark.unit
    def test_health(self, client, relay):
        relay.state.stats.total_connections = 3
        relay.state.stats.active_connections = 1
        relay.state.stats.record_message("gyroscope")

        response = client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "ok"
        assert body["connections"] == {"active": 1, "total": 3}
        assert body["messages"]["gyroscope"] == 1
        assert body["rooms"] == 0
        assert isinstance(body["timestamp"], int)

    @pytest.mark.unit
    def test_health_before_start(self, client, relay):
        relay.server = None

        assert client.get("/health").json()["status"] == "starting"

    @pytest.mark.unit
    def test_status(self, client):
        response = client.get("/api/status")

        assert response.status_code == 200
        body = response.json()
        assert body["version"] == __version__
        assert body["instance"] == "api-test"
        assert body["controller"] is None
        assert body["features"]["roomScopedController"] is True
        assert body["features"]["strictController"] is False
        assert body["memory"]["rss_mb"] >= 0

    @pytest.mark.unit
    def test_ping(self, client):
        body = client.get("/api/ping").json()

        assert body["status"] == "pong"
        assert body["uptime"] >= 0
