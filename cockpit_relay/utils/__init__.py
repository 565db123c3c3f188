"""Utility package."""
from cockpit_relay.utils.config import ConfigurationError, Settings, clamp_int, get_settings
from cockpit_relay.utils.logger import get_logger, setup_logging

__all__ = [
    "ConfigurationError",
    "Settings",
    "clamp_int",
    "get_settings",
    "get_logger",
    "setup_logging",
]
