"""
Custom exceptions for the Sensor Relay system.

This module defines all custom exceptions used throughout the relay,
providing clear error categorization and handling.
"""


class RelayError(Exception):
    """Base exception for all Sensor Relay related errors."""

    pass


class ConfigurationError(RelayError):
    """Raised when there are configuration-related errors."""

    pass


class ValidationError(ConfigurationError):
    """Raised when configuration validation fails."""

    pass


class NetworkError(RelayError):
    """Raised when there are network communication errors."""

    pass


class ProtocolError(RelayError):
    """Raised when an inbound frame violates the relay protocol."""

    pass


class MessageDecodeError(ProtocolError):
    """Raised when an inbound frame cannot be decoded into a message."""

    pass
