"""Configuration management for the Concoro notifier."""

from .environment import EnvironmentConfig, load_environment_config
from .exceptions import ConfigurationError
from .loader import load_config, parse_app_config, validate_config_file
from .models import (
    AppConfig,
    EmailConfig,
    LinksConfig,
    LogFormat,
    LoggingConfig,
    LogLevel,
    NotificationsConfig,
    ProfileWebhookConfig,
    ScheduleConfig,
)

__all__ = [
    # Loader functions
    "load_config",
    "parse_app_config",
    "validate_config_file",
    "load_environment_config",
    # Configuration models
    "AppConfig",
    "ScheduleConfig",
    "NotificationsConfig",
    "EmailConfig",
    "LinksConfig",
    "ProfileWebhookConfig",
    "LoggingConfig",
    "EnvironmentConfig",
    # Enums
    "LogLevel",
    "LogFormat",
    # Exceptions
    "ConfigurationError",
]
