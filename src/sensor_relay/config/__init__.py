"""
Configuration management for the Sensor Relay system.

This package provides:
- The RelayConfig data structure and its validation
- Environment variable and .env handling
- Default value management
"""

from .settings import RelayConfig, RelayConfigManager, config_manager

__all__ = [
    "RelayConfig",
    "RelayConfigManager",
    "config_manager",
]
