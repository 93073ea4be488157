"""
Infrastructure components for the Sensor Relay system.

This package contains infrastructure concerns including:
- Logging configuration and utilities with production controls
- Custom exception definitions
"""

from .logging import setup_logging, get_logger
from .logging_manager import (
    LoggingManager,
    LogLevel,
    Environment,
    is_production,
    get_environment,
)
from .exceptions import (
    RelayError,
    ConfigurationError,
    ValidationError,
    NetworkError,
    ProtocolError,
    MessageDecodeError,
)

__all__ = [
    # Logging
    "setup_logging",
    "get_logger",
    "LoggingManager",
    "LogLevel",
    "Environment",
    "is_production",
    "get_environment",
    # Exceptions
    "RelayError",
    "ConfigurationError",
    "ValidationError",
    "NetworkError",
    "ProtocolError",
    "MessageDecodeError",
]
