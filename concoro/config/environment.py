"""Environment variable loading and validation."""

import os
from typing import Optional

from .exceptions import ConfigurationError

DEFAULT_DATABASE_URL = "sqlite:///./data/concoro.db"
VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class EnvironmentConfig:
    """Secrets and deployment settings read from the environment."""

    def __init__(
        self,
        brevo_api_key: Optional[str] = None,
        database_url: Optional[str] = None,
        log_level: Optional[str] = None,
        profile_webhook_url: Optional[str] = None,
        environment: Optional[str] = None,
    ):
        self.brevo_api_key = brevo_api_key or ""
        self.database_url = database_url or DEFAULT_DATABASE_URL
        self.log_level = log_level
        self.profile_webhook_url = profile_webhook_url or None
        self.environment = environment or "local"

    @property
    def email_configured(self) -> bool:
        return bool(self.brevo_api_key)


def load_environment_config() -> EnvironmentConfig:
    """
    Load and validate environment variables.

    All variables are optional:
    - BREVO_API_KEY: Brevo transactional API key (emails are skipped without it)
    - DATABASE_URL: SQLAlchemy URL (default: sqlite:///./data/concoro.db)
    - LOG_LEVEL: Override log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    - PROFILE_WEBHOOK_URL: Endpoint notified when a profile is completed
    - ENVIRONMENT: Label stamped on log records (default: local)

    Returns:
        EnvironmentConfig with validated values

    Raises:
        ConfigurationError: If a provided value is invalid
    """
    errors = []

    brevo_api_key = os.getenv("BREVO_API_KEY", "").strip()
    database_url = os.getenv("DATABASE_URL", "").strip()
    log_level = os.getenv("LOG_LEVEL", "").strip()
    webhook_url = os.getenv("PROFILE_WEBHOOK_URL", "").strip()
    environment = os.getenv("ENVIRONMENT", "").strip()

    if log_level and log_level.upper() not in VALID_LOG_LEVELS:
        errors.append(
            f"Invalid LOG_LEVEL: '{log_level}'. Must be one of: {', '.join(VALID_LOG_LEVELS)}"
        )

    if webhook_url and not webhook_url.startswith(("http://", "https://")):
        errors.append(f"Invalid PROFILE_WEBHOOK_URL: '{webhook_url}'. Must be an http(s) URL.")

    if database_url and "://" not in database_url:
        errors.append(
            f"Invalid DATABASE_URL: '{database_url}'. Expected e.g. sqlite:///./data/concoro.db"
        )

    if errors:
        raise ConfigurationError(
            "Environment variable validation failed",
            errors=errors,
            suggestions=[
                "Copy .env.example to .env and fill in your values",
                "Unset variables you do not need; all of them are optional",
            ],
        )

    return EnvironmentConfig(
        brevo_api_key=brevo_api_key,
        database_url=database_url,
        log_level=log_level.upper() if log_level else None,
        profile_webhook_url=webhook_url,
        environment=environment,
    )
