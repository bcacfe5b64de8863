"""Domain models for the Concoro notifier."""

from .models import (
    EMAIL_LOG_TYPE_NOTIFICATION,
    Concorso,
    DigestItem,
    EmailLogEntry,
    Notification,
    SavedItem,
    UserProfile,
)

__all__ = [
    "SavedItem",
    "Concorso",
    "Notification",
    "EmailLogEntry",
    "UserProfile",
    "DigestItem",
    "EMAIL_LOG_TYPE_NOTIFICATION",
]
