"""
Production-ready logging management for the Sensor Relay system.

This module provides centralized logging configuration with environment-based
log levels and YAML configuration support.

Environment Log Levels:
- Development: DEBUG and above
- Staging: INFO and above
- Production: WARNING and above
"""

import logging
import logging.config
import os
import yaml
from pathlib import Path
from typing import Optional, Dict, Any
from enum import Enum


NOISY_LOGGERS = [
    "websockets",
    "websockets.server",
    "uvicorn.access",
    "asyncio",
]


class LogLevel(Enum):
    """Log level enumeration."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class Environment(Enum):
    """Environment enumeration."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class LoggingManager:
    """Centralized logging management with production controls."""

    def __init__(self, config_path: Optional[Path] = None):
        """
        Initialize logging manager.

        Args:
            config_path: Path to YAML configuration file. If None, uses the
                         ``logging.yaml`` shipped with the package.
        """
        if config_path is None:
            config_path = Path(__file__).parent.parent / "logging.yaml"

        self.config_path = config_path
        self._config_cache: Optional[Dict[str, Any]] = None
        self._yaml_applied = False
        self._environment = self._detect_environment()
        self._production_mode = self._environment == Environment.PRODUCTION

    def _detect_environment(self) -> Environment:
        """Detect current environment from environment variables."""
        env = os.getenv("ENVIRONMENT", "development").lower()

        if env in ["prod", "production"]:
            return Environment.PRODUCTION
        elif env in ["staging", "stage"]:
            return Environment.STAGING
        else:
            return Environment.DEVELOPMENT

    def _load_yaml_config(self) -> Optional[Dict[str, Any]]:
        """Load YAML logging configuration."""
        if self._config_cache is not None:
            return self._config_cache

        if not self.config_path.exists():
            return None

        try:
            with open(self.config_path, "r") as f:
                config = yaml.safe_load(f)
            self._config_cache = config
            return config
        except (yaml.YAMLError, IOError) as e:
            print(f"Warning: Failed to load YAML logging config: {e}")
            return None

    def _get_environment_log_level(self) -> str:
        """Get appropriate log level for current environment."""
        if self._production_mode:
            return "WARNING"
        elif self._environment == Environment.STAGING:
            return "INFO"
        else:
            return "DEBUG"

    def _apply_environment_overrides(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """Apply environment-specific level overrides to configuration."""
        env_log_level = self._get_environment_log_level()

        if "root" in config:
            config["root"]["level"] = env_log_level

        if "loggers" in config:
            for logger_name, logger_config in config["loggers"].items():
                if logger_name in NOISY_LOGGERS:
                    continue
                logger_config["level"] = env_log_level

        return config

    def setup_logging(
        self,
        component_name: str,
        log_level: Optional[str] = None,
        log_file: Optional[str] = None,
        force_development: bool = False,
    ) -> logging.Logger:
        """
        Set up logging for a component with environment-aware configuration.

        The YAML configuration is applied once per process; later calls only
        adjust the component logger.

        Args:
            component_name: Name of the component
            log_level: Override log level (if None, uses environment-appropriate level:
                      Development=DEBUG, Staging=INFO, Production=WARNING)
            log_file: Optional file to receive this component's records
            force_development: Force development mode regardless of environment

        Returns:
            Configured logger instance
        """
        effective_production = self._production_mode and not force_development

        if log_level is None:
            log_level = os.getenv("LOG_LEVEL") or self._get_environment_log_level()

        config = self._load_yaml_config()

        if config and not force_development:
            if not self._yaml_applied:
                logging.config.dictConfig(self._apply_environment_overrides(config))
                self._yaml_applied = True

            logger = logging.getLogger(component_name)
            logger.setLevel(getattr(logging, log_level.upper()))
            if log_file:
                self._attach_file_handler(logger, log_file, effective_production)

            self._suppress_noisy_loggers()
            return logger
        else:
            return self._setup_basic_logging(
                component_name, log_level, log_file, effective_production
            )

    def _build_formatter(self, production_mode: bool) -> logging.Formatter:
        if production_mode:
            return logging.Formatter(
                "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        return logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(filename)s:%(lineno)d - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    def _attach_file_handler(
        self, logger: logging.Logger, log_file: str, production_mode: bool
    ) -> None:
        """Attach a file handler to ``logger`` unless one already targets ``log_file``."""
        target = os.path.abspath(log_file)
        for handler in logger.handlers:
            if isinstance(handler, logging.FileHandler) and handler.baseFilename == target:
                return

        log_dir = os.path.dirname(target)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        file_handler = logging.FileHandler(target)
        file_handler.setLevel(logging.WARNING if production_mode else logging.DEBUG)
        file_handler.setFormatter(self._build_formatter(production_mode))
        logger.addHandler(file_handler)

    def _setup_basic_logging(
        self,
        component_name: str,
        log_level: str,
        log_file: Optional[str],
        production_mode: bool,
    ) -> logging.Logger:
        """Set up basic logging when YAML config is not available."""
        logger = logging.getLogger(component_name)
        logger.setLevel(getattr(logging, log_level.upper()))
        logger.handlers.clear()

        console_handler = logging.StreamHandler()
        console_handler.setLevel(logger.level)
        console_handler.setFormatter(self._build_formatter(production_mode))
        logger.addHandler(console_handler)

        if log_file:
            self._attach_file_handler(logger, log_file, production_mode)

        self._suppress_noisy_loggers()

        return logger

    def _suppress_noisy_loggers(self):
        """Suppress noisy third-party library loggers."""
        for logger_name in NOISY_LOGGERS:
            logging.getLogger(logger_name).setLevel(logging.WARNING)

    def get_environment(self) -> Environment:
        """Get current environment."""
        return self._environment

    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self._production_mode

    def set_production_mode(self, enabled: bool):
        """Manually set production mode."""
        self._production_mode = enabled
        self._environment = (
            Environment.PRODUCTION if enabled else Environment.DEVELOPMENT
        )

    def reload_config(self):
        """Reload YAML configuration on the next ``setup_logging`` call."""
        self._config_cache = None
        self._yaml_applied = False


# Global logging manager instance
_logging_manager = LoggingManager()


def setup_logging(
    component_name: str,
    log_level: Optional[str] = None,
    log_file: Optional[str] = None,
    force_development: bool = False,
) -> logging.Logger:
    """Set up logging for a component (convenience function)."""
    return _logging_manager.setup_logging(
        component_name, log_level, log_file, force_development
    )


def get_logger(component_name: str) -> logging.Logger:
    """Get a logger for a component."""
    return logging.getLogger(component_name)


def is_production() -> bool:
    """Check if running in production mode."""
    return _logging_manager.is_production()


def get_environment() -> Environment:
    """Get current environment."""
    return _logging_manager.get_environment()
