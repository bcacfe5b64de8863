"""Profile-completion webhook for the external matching flow."""

from .webhook import (
    REASON_INCOMPLETE,
    REASON_NO_DATA,
    REASON_NOT_CONFIGURED,
    ProfileWebhookNotifier,
    WebhookError,
    WebhookResult,
    field_presence,
    is_profile_complete,
)

__all__ = [
    "ProfileWebhookNotifier",
    "WebhookResult",
    "WebhookError",
    "is_profile_complete",
    "field_presence",
    "REASON_INCOMPLETE",
    "REASON_NOT_CONFIGURED",
    "REASON_NO_DATA",
]
