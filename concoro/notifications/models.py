"""Data models and exceptions for the digest email gateway.

This module defines result types and custom exceptions used throughout
the notification pipeline.
"""

from dataclasses import dataclass
from typing import Optional

PRIORITY_HIGH = "high"
PRIORITY_NORMAL = "normal"


class NotificationError(Exception):
    """Base exception for notification-related errors."""

    pass


class NotificationTemplateError(NotificationError):
    """Raised when template rendering fails due to configuration or missing variables."""

    pass


class BrevoDeliveryError(NotificationError):
    """Raised when the Brevo API rejects a message or cannot be reached.

    Attributes:
        status_code: HTTP status returned by Brevo, None for network errors
        body: Response body as text, if any
    """

    def __init__(self, message: str, status_code: Optional[int] = None, body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


@dataclass
class DeliveryResult:
    """Outcome of a call to the transactional email API.

    Attributes:
        success: True if Brevo accepted the message
        reason: Why nothing was sent (e.g. "API key not configured")
        message_id: Brevo ``messageId`` of an accepted message
    """

    success: bool
    reason: Optional[str] = None
    message_id: Optional[str] = None
