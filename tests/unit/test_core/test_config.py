"""
Unit tests for relay configuration.
"""

import os

import pytest

from sensor_relay.config.settings import RelayConfig, RelayConfigManager
from sensor_relay.infrastructure.exceptions import ConfigurationError, ValidationError

RELAY_ENV_VARS = [
    "RELAY_HOST",
    "RELAY_PORT",
    "PORT",
    "HTTP_PORT",
    "HTTP_ENABLED",
    "PING_INTERVAL",
    "STALE_SWEEP_INTERVAL",
    "STATUS_REPORT_INTERVAL",
    "MAX_CONNECTIONS",
    "MAX_MESSAGE_SIZE",
    "CONTROLLER_POLICY",
    "CONTROLLER_SCOPE",
    "NOTIFY_PEER_LEFT",
    "NOTIFY_PEER_JOINED",
    "NOTIFY_CONTROLLER_LEFT",
    "PIPE_FORMAT_ENABLED",
    "EXTRA_CONTROL_TYPES",
    "INSTANCE_NAME",
    "LOG_LEVEL",
]


@pytest.fixture
def clean_env(monkeypatch):
    # Private copy so values loaded from .env files never leak between tests
    environ = dict(os.environ)
    for name in RELAY_ENV_VARS:
        environ.pop(name, None)
    monkeypatch.setattr(os, "environ", environ)
    return monkeypatch


@pytest.fixture
def manager(tmp_path):
    return RelayConfigManager(env_file_path=str(tmp_path / "missing.env"))


class TestRelayConfig:
    """Test cases for RelayConfig validation."""

    @pytest.mark.unit
    def test_defaults(self):
        config = RelayConfig()

        assert config.port == 8081
        assert config.http_port == 8082
        assert config.ping_interval == 25.0
        assert config.stale_sweep_interval == 30.0
        assert config.controller_policy == "implicit"
        assert config.controller_scope == "global"
        assert config.notify_peer_left is False
        assert config.notify_peer_joined is False
        assert config.notify_controller_left is True
        assert config.pipe_format_enabled is False
        assert config.instance_name

    @pytest.mark.unit
    def test_invalid_policy(self):
        with pytest.raises(ValidationError):
            RelayConfig(controller_policy="lenient")

    @pytest.mark.unit
    def test_invalid_scope(self):
        with pytest.raises(ValidationError):
            RelayConfig(controller_scope="planet")

    @pytest.mark.unit
    def test_non_positive_interval(self):
        with pytest.raises(ValidationError):
            RelayConfig(ping_interval=0)

    @pytest.mark.unit
    def test_max_connections_minimum(self):
        with pytest.raises(ConfigurationError):
            RelayConfig(max_connections=0)


class TestRelayConfigManager:
    """Test cases for RelayConfigManager."""

    @pytest.mark.unit
    def test_defaults_without_environment(self, clean_env, manager):
        config = manager.get_config()

        assert config.host == "0.0.0.0"
        assert config.port == 8081
        assert config.extra_control_types == []

    @pytest.mark.unit
    def test_reads_environment(self, clean_env, manager):
        clean_env.setenv("RELAY_PORT", "9001")
        clean_env.setenv("HTTP_ENABLED", "false")
        clean_env.setenv("CONTROLLER_POLICY", "STRICT")
        clean_env.setenv("CONTROLLER_SCOPE", "room")
        clean_env.setenv("NOTIFY_PEER_LEFT", "yes")
        clean_env.setenv("NOTIFY_PEER_JOINED", "true")
        clean_env.setenv("EXTRA_CONTROL_TYPES", "tilt, , pinch")
        clean_env.setenv("PING_INTERVAL", "2.5")
        clean_env.setenv("INSTANCE_NAME", "relay-a")

        config = manager.get_config()

        assert config.port == 9001
        assert config.http_enabled is False
        assert config.controller_policy == "strict"
        assert config.controller_scope == "room"
        assert config.notify_peer_left is True
        assert config.notify_peer_joined is True
        assert config.extra_control_types == ["tilt", "pinch"]
        assert config.ping_interval == 2.5
        assert config.instance_name == "relay-a"

    @pytest.mark.unit
    def test_platform_port_fallback(self, clean_env, manager):
        clean_env.setenv("PORT", "10000")
        assert manager.get_config().port == 10000

        clean_env.setenv("RELAY_PORT", "9002")
        assert manager.get_config().port == 9002

    @pytest.mark.unit
    def test_malformed_integer(self, clean_env, manager):
        clean_env.setenv("MAX_CONNECTIONS", "many")

        with pytest.raises(ConfigurationError):
            manager.get_config()

    @pytest.mark.unit
    def test_loads_env_file(self, clean_env, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("INSTANCE_NAME=from-file\nHTTP_PORT=9100\n")

        config = RelayConfigManager(env_file_path=str(env_file)).get_config()

        assert config.instance_name == "from-file"
        assert config.http_port == 9100
