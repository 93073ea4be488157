"""
Configuration management for the Sensor Relay server.

Settings come from environment variables, optionally seeded from a ``.env``
file, and are collected into a single :class:`RelayConfig` dataclass.
"""

import logging
import os
import socket
from dataclasses import dataclass, field
from typing import List, Optional

from dotenv import load_dotenv

from sensor_relay.core.types import (
    CONTROLLER_POLICIES,
    CONTROLLER_POLICY_IMPLICIT,
    CONTROLLER_SCOPES,
    CONTROLLER_SCOPE_GLOBAL,
    DEFAULT_HTTP_PORT,
    DEFAULT_MAX_CONNECTIONS,
    DEFAULT_MAX_MESSAGE_SIZE,
    DEFAULT_PING_INTERVAL,
    DEFAULT_RELAY_HOST,
    DEFAULT_RELAY_PORT,
    DEFAULT_STALE_SWEEP_INTERVAL,
    DEFAULT_STATUS_REPORT_INTERVAL,
)
from sensor_relay.infrastructure.exceptions import ConfigurationError, ValidationError

logger = logging.getLogger(__name__)


def _default_instance_name() -> str:
    return os.getenv("HOSTNAME") or f"{socket.gethostname()}-{os.getpid()}"


@dataclass
class RelayConfig:
    """Runtime configuration for the relay and its status API."""

    host: str = DEFAULT_RELAY_HOST
    port: int = DEFAULT_RELAY_PORT
    http_port: int = DEFAULT_HTTP_PORT
    http_enabled: bool = True

    # Sweep intervals, in seconds
    ping_interval: float = DEFAULT_PING_INTERVAL
    stale_sweep_interval: float = DEFAULT_STALE_SWEEP_INTERVAL
    status_report_interval: float = DEFAULT_STATUS_REPORT_INTERVAL

    max_connections: int = DEFAULT_MAX_CONNECTIONS
    max_message_size: int = DEFAULT_MAX_MESSAGE_SIZE

    # Routing policy
    controller_policy: str = CONTROLLER_POLICY_IMPLICIT
    controller_scope: str = CONTROLLER_SCOPE_GLOBAL
    notify_peer_left: bool = False
    notify_peer_joined: bool = False
    notify_controller_left: bool = True
    pipe_format_enabled: bool = False
    extra_control_types: List[str] = field(default_factory=list)

    instance_name: str = field(default_factory=_default_instance_name)
    log_level: str = "INFO"

    def __post_init__(self):
        """Validate enumerated and numeric settings."""
        if self.controller_policy not in CONTROLLER_POLICIES:
            raise ValidationError(
                f"Invalid controller_policy '{self.controller_policy}'. "
                f"Valid values: {list(CONTROLLER_POLICIES)}"
            )
        if self.controller_scope not in CONTROLLER_SCOPES:
            raise ValidationError(
                f"Invalid controller_scope '{self.controller_scope}'. "
                f"Valid values: {list(CONTROLLER_SCOPES)}"
            )
        for name in ("ping_interval", "stale_sweep_interval", "status_report_interval"):
            if getattr(self, name) <= 0:
                raise ValidationError(f"{name} must be positive")
        if self.max_connections < 1:
            raise ValidationError("max_connections must be at least 1")


class RelayConfigManager:
    """Builds :class:`RelayConfig` from the process environment."""

    def __init__(self, env_file_path: str = ".env"):
        """
        Initialize configuration manager.

        Args:
            env_file_path: Path to environment file
        """
        self.env_file_path = env_file_path
        self._load_environment()

    def _load_environment(self):
        """Load environment variables from file."""
        if os.path.exists(self.env_file_path):
            load_dotenv(dotenv_path=self.env_file_path)
            logger.info(f"Loaded environment from {self.env_file_path}")
        else:
            logger.debug(f"Environment file {self.env_file_path} not found")

    def _get_optional_env(self, key: str, default: Optional[str] = None) -> Optional[str]:
        return os.getenv(key, default)

    def _get_int(self, key: str, default: int) -> int:
        raw = self._get_optional_env(key)
        if raw is None or raw == "":
            return default
        try:
            return int(raw)
        except ValueError:
            raise ConfigurationError(f"{key} must be an integer, got '{raw}'")

    def _get_float(self, key: str, default: float) -> float:
        raw = self._get_optional_env(key)
        if raw is None or raw == "":
            return default
        try:
            return float(raw)
        except ValueError:
            raise ConfigurationError(f"{key} must be a number, got '{raw}'")

    def _get_bool(self, key: str, default: bool) -> bool:
        raw = self._get_optional_env(key)
        if raw is None or raw == "":
            return default
        return raw.strip().lower() in ("1", "true", "yes", "on")

    def _get_list(self, key: str) -> List[str]:
        raw = self._get_optional_env(key, "")
        return [item.strip() for item in raw.split(",") if item.strip()]

    def _get_port(self) -> int:
        """RELAY_PORT wins over the platform-provided PORT."""
        if self._get_optional_env("RELAY_PORT"):
            return self._get_int("RELAY_PORT", DEFAULT_RELAY_PORT)
        return self._get_int("PORT", DEFAULT_RELAY_PORT)

    def get_config(self) -> RelayConfig:
        """
        Get the relay configuration.

        Returns:
            RelayConfig: Relay configuration

        Raises:
            ConfigurationError: If a value is malformed or out of range
        """
        try:
            config = RelayConfig(
                host=self._get_optional_env("RELAY_HOST", DEFAULT_RELAY_HOST),
                port=self._get_port(),
                http_port=self._get_int("HTTP_PORT", DEFAULT_HTTP_PORT),
                http_enabled=self._get_bool("HTTP_ENABLED", True),
                ping_interval=self._get_float("PING_INTERVAL", DEFAULT_PING_INTERVAL),
                stale_sweep_interval=self._get_float(
                    "STALE_SWEEP_INTERVAL", DEFAULT_STALE_SWEEP_INTERVAL
                ),
                status_report_interval=self._get_float(
                    "STATUS_REPORT_INTERVAL", DEFAULT_STATUS_REPORT_INTERVAL
                ),
                max_connections=self._get_int("MAX_CONNECTIONS", DEFAULT_MAX_CONNECTIONS),
                max_message_size=self._get_int("MAX_MESSAGE_SIZE", DEFAULT_MAX_MESSAGE_SIZE),
                controller_policy=self._get_optional_env(
                    "CONTROLLER_POLICY", CONTROLLER_POLICY_IMPLICIT
                ).lower(),
                controller_scope=self._get_optional_env(
                    "CONTROLLER_SCOPE", CONTROLLER_SCOPE_GLOBAL
                ).lower(),
                notify_peer_left=self._get_bool("NOTIFY_PEER_LEFT", False),
                notify_peer_joined=self._get_bool("NOTIFY_PEER_JOINED", False),
                notify_controller_left=self._get_bool("NOTIFY_CONTROLLER_LEFT", True),
                pipe_format_enabled=self._get_bool("PIPE_FORMAT_ENABLED", False),
                extra_control_types=self._get_list("EXTRA_CONTROL_TYPES"),
                instance_name=self._get_optional_env("INSTANCE_NAME")
                or _default_instance_name(),
                log_level=self._get_optional_env("LOG_LEVEL", "INFO"),
            )

            logger.info("Configuration loaded successfully")
            return config

        except Exception as e:
            logger.error(f"Failed to load configuration: {e}", exc_info=True)
            raise


# Global configuration manager instance
config_manager = RelayConfigManager()
