"""Configuration schema models using Pydantic."""

from datetime import timedelta
from enum import Enum
from typing import List, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from email_validator import EmailNotValidError, validate_email
from pydantic import BaseModel, Field, field_validator, model_validator

from .duration import DurationParseError, parse_duration, validate_duration_range

# Day counts at which a deadline notification is created
DEFAULT_THRESHOLDS = [7, 3, 1, 0]
# Day counts whose notifications are included in the email digest
DEFAULT_EMAILABLE_DAYS_LEFT = [0, 1, 3, 7]


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(str, Enum):
    """Log output formats."""

    JSON = "json"
    KEY_VALUE = "key-value"


class ScheduleConfig(BaseModel):
    """Wall-clock time of the daily batch."""

    hour: int = Field(9, ge=0, le=23, description="Hour of the daily run")
    minute: int = Field(0, ge=0, le=59, description="Minute of the daily run")
    timezone: str = Field("Europe/Rome", description="IANA timezone of the schedule")

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        """Reject unknown IANA zone names."""
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone: '{v}'") from e
        return v

    def tzinfo(self) -> ZoneInfo:
        """Return the schedule timezone as a tzinfo object."""
        return ZoneInfo(self.timezone)


class NotificationsConfig(BaseModel):
    """Deadline thresholds, digest selection and cooldown."""

    thresholds: List[int] = Field(
        default_factory=lambda: list(DEFAULT_THRESHOLDS),
        description="Days-left values that create a notification",
    )
    emailable_days_left: List[int] = Field(
        default_factory=lambda: list(DEFAULT_EMAILABLE_DAYS_LEFT),
        description="Days-left values included in the digest email",
    )
    digest_limit: int = Field(10, ge=1, le=100, description="Max notifications per digest")
    cooldown: str = Field("6h", description="Minimum time between two digests to a user")
    max_age: Optional[str] = Field(
        None, description="Ignore notifications older than this in the digest"
    )
    sort_users: bool = Field(
        False, description="Process users in id order instead of storage order"
    )

    @field_validator("thresholds", "emailable_days_left")
    @classmethod
    def validate_day_counts(cls, v: List[int]) -> List[int]:
        """Day counts must be non-negative and unique."""
        if not v:
            raise ValueError("At least one day count is required")
        if any(day < 0 for day in v):
            raise ValueError("Day counts cannot be negative")
        if len(set(v)) != len(v):
            raise ValueError("Day counts must be unique")
        return v

    @field_validator("cooldown")
    @classmethod
    def validate_cooldown(cls, v: str) -> str:
        """Cooldown must parse and stay within one minute and seven days."""
        try:
            validate_duration_range(parse_duration(v), min_seconds=60, max_seconds=7 * 86400)
        except DurationParseError as e:
            raise ValueError(str(e)) from e
        return v

    @field_validator("max_age")
    @classmethod
    def validate_max_age(cls, v: Optional[str]) -> Optional[str]:
        """max_age is optional but must parse when given."""
        if v is None:
            return None
        try:
            parse_duration(v)
        except DurationParseError as e:
            raise ValueError(str(e)) from e
        return v

    @property
    def cooldown_delta(self) -> timedelta:
        return timedelta(seconds=parse_duration(self.cooldown))

    @property
    def max_age_delta(self) -> Optional[timedelta]:
        if self.max_age is None:
            return None
        return timedelta(seconds=parse_duration(self.max_age))


class EmailConfig(BaseModel):
    """Brevo sender identity and transport settings."""

    sender_email: str = Field("notifiche@concoro.it", description="From address")
    sender_name: str = Field("Concoro - Notifiche Concorsi", min_length=1)
    api_base_url: str = Field("https://api.brevo.com/v3", description="Brevo API root")
    request_timeout: int = Field(30, ge=5, le=300, description="HTTP timeout (seconds)")

    @field_validator("sender_email")
    @classmethod
    def validate_sender_email(cls, v: str) -> str:
        """Normalize the sender address with email-validator."""
        try:
            return validate_email(v, check_deliverability=False).normalized
        except EmailNotValidError as e:
            raise ValueError(f"Invalid sender_email '{v}': {e}") from e

    @field_validator("api_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Drop a trailing slash so paths can be appended."""
        v = v.strip().rstrip("/")
        if not v.startswith(("http://", "https://")):
            raise ValueError("api_base_url must be an http(s) URL")
        return v


class LinksConfig(BaseModel):
    """Public site URLs used in email deep links."""

    base_url: str = Field("https://concoro.it", description="Public site root")

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Drop a trailing slash so paths can be appended."""
        v = v.strip().rstrip("/")
        if not v.startswith(("http://", "https://")):
            raise ValueError("base_url must be an http(s) URL")
        return v

    def concorso_url(self, concorso_id: str) -> str:
        return f"{self.base_url}/bandi/{concorso_id}"

    @property
    def notifications_url(self) -> str:
        return f"{self.base_url}/notifiche"

    @property
    def settings_url(self) -> str:
        return f"{self.base_url}/settings"


class ProfileWebhookConfig(BaseModel):
    """Profile-completion webhook settings (URL comes from the environment)."""

    enabled: bool = Field(True, description="Fire the webhook on completed profiles")
    timeout: int = Field(30, ge=1, le=300, description="HTTP timeout (seconds)")


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: LogLevel = Field(LogLevel.INFO, description="Log level")
    format: LogFormat = Field(
        LogFormat.KEY_VALUE, description="Log output format (json or key-value)"
    )

    model_config = {"use_enum_values": True}


class AppConfig(BaseModel):
    """Root configuration object for the Concoro notifier."""

    schedule: ScheduleConfig = Field(default_factory=ScheduleConfig)
    notifications: NotificationsConfig = Field(default_factory=NotificationsConfig)
    email: EmailConfig = Field(default_factory=EmailConfig)
    links: LinksConfig = Field(default_factory=LinksConfig)
    profile_webhook: ProfileWebhookConfig = Field(default_factory=ProfileWebhookConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @model_validator(mode="after")
    def validate_threshold_overlap(self):
        """The digest must be able to pick up at least one created threshold."""
        created = set(self.notifications.thresholds)
        emailed = set(self.notifications.emailable_days_left)
        if not created & emailed:
            raise ValueError(
                "notifications.emailable_days_left shares no value with "
                "notifications.thresholds; no digest would ever be sent"
            )
        return self
