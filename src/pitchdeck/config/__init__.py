"""Configuration loading, settings and logging setup."""

from pitchdeck.config.loader import ConfigurationError
from pitchdeck.config.logging_config import configure_logging
from pitchdeck.config.settings import AppSettings, get_settings, reload_settings

__all__ = [
    "AppSettings",
    "ConfigurationError",
    "configure_logging",
    "get_settings",
    "reload_settings",
]
