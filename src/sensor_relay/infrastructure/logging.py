"""
Centralized logging entry points for the Sensor Relay components.

Thin wrappers over :mod:`sensor_relay.infrastructure.logging_manager` so
modules can import ``setup_logging`` without caring about the YAML layer.
"""

import logging
from typing import Optional

from .logging_manager import setup_logging as _setup_logging, get_logger as _get_logger


def setup_logging(
    component_name: str,
    log_level: Optional[str] = None,
    log_file: Optional[str] = None,
) -> logging.Logger:
    """
    Set up logging for a relay component using YAML configuration.

    Args:
        component_name: Name of the component (e.g., 'relay_server', 'status_api')
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL). If None, uses
                   LOG_LEVEL or the environment-appropriate level.
        log_file: Optional log file path

    Returns:
        logging.Logger: Configured logger instance
    """
    return _setup_logging(component_name, log_level, log_file)


def get_logger(component_name: str) -> logging.Logger:
    """Get a logger for a specific component."""
    return _get_logger(component_name)
