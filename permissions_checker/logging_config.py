"""
Logging configuration utilities for the Permissions Checker.

Usage:
    from permissions_checker.logging_config import configure_from_config

    configure_from_config(config)
"""

import os
from typing import Mapping, Optional

from .config import AppConfig
from .logger import configure_logger, get_logger


def configure_from_config(config: AppConfig) -> None:
    """Configure the global logger from an AppConfig.

    verbose_logging echoes entries to stderr and lowers the level to DEBUG.
    Whether logging is enabled at all is left as configure_from_environment()
    set it.
    """
    configure_logger(
        enabled=get_logger().enabled,
        level="DEBUG" if config.verbose_logging else config.log_level,
        log_directory=config.log_directory,
        console_output=config.verbose_logging,
    )


def configure_from_environment(env: Optional[Mapping[str, str]] = None) -> None:
    """Configure the global logger from environment variables.

    Environment variables:
        PERMISSIONS_CHECKER_LOG_ENABLED: '0', '1', 'true', 'false'
        PERMISSIONS_CHECKER_LOG_LEVEL: 'ERROR', 'WARN', 'INFO', 'DEBUG', 'TRACE'
        PERMISSIONS_CHECKER_LOG_DIR: Path to log directory
        PERMISSIONS_CHECKER_VERBOSE: echo entries to stderr
        PERMISSIONS_CHECKER_SESSION_ID: Session ID for correlation
    """
    env = os.environ if env is None else env

    configure_logger(
        enabled=_parse_bool(env.get("PERMISSIONS_CHECKER_LOG_ENABLED"), True),
        level=env.get("PERMISSIONS_CHECKER_LOG_LEVEL", "INFO"),
        log_directory=env.get("PERMISSIONS_CHECKER_LOG_DIR"),
        console_output=_parse_bool(env.get("PERMISSIONS_CHECKER_VERBOSE"), False),
        session_id=env.get("PERMISSIONS_CHECKER_SESSION_ID"),
    )


def _parse_bool(value: Optional[str], default: bool) -> bool:
    """Parse string to boolean."""
    if value is None:
        return default
    return value.lower() in ("1", "true", "yes", "on")


__all__ = [
    "configure_from_config",
    "configure_from_environment",
]
