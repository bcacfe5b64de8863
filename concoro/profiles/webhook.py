"""Profile-completion webhook.

When a user profile carries everything the external matching flow needs,
the full profile is POSTed to the configured webhook. Delivery failures are
reported in the result, never raised.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, Mapping, Optional

import requests

from concoro.config.models import ProfileWebhookConfig
from concoro.logging import get_logger
from concoro.logging.context import log_context
from concoro.utils.dates import utc_now

logger = get_logger(__name__, component="profile_webhook")

REASON_INCOMPLETE = "Incomplete profile for matching flow"
REASON_NOT_CONFIGURED = "Webhook not configured"
REASON_NO_DATA = "Profile deleted"

REQUIRED_FIELDS = ("firstName", "preferredCategories", "preferredRegions", "experience", "education")
ALTERNATIVE_FIELDS = ("languages", "skills")


class WebhookError(Exception):
    """Raised when the webhook endpoint rejects the call or cannot be reached."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


@dataclass
class WebhookResult:
    """Outcome of a profile write.

    Attributes:
        success: True if the webhook accepted the profile
        reason: Why the webhook was not called
        error: Transport error message when the call failed
        status_code: HTTP status of the webhook response
        field_presence: Per-field presence flags, set for incomplete profiles
    """

    success: bool
    reason: Optional[str] = None
    error: Optional[str] = None
    status_code: Optional[int] = None
    field_presence: Dict[str, bool] = field(default_factory=dict)


def field_presence(data: Mapping[str, Any]) -> Dict[str, bool]:
    """Truthiness of every field the matching flow looks at."""
    return {name: bool(data.get(name)) for name in REQUIRED_FIELDS + ALTERNATIVE_FIELDS}


def is_profile_complete(data: Mapping[str, Any]) -> bool:
    """All required fields set, plus languages or skills."""
    presence = field_presence(data)
    return all(presence[name] for name in REQUIRED_FIELDS) and any(
        presence[name] for name in ALTERNATIVE_FIELDS
    )


def _iso_millis(moment: datetime) -> str:
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class ProfileWebhookNotifier:
    """Forwards completed profiles to the matching-flow webhook."""

    def __init__(
        self,
        url: Optional[str],
        config: Optional[ProfileWebhookConfig] = None,
        session: Optional[requests.Session] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        """
        Args:
            url: Webhook endpoint; None disables the notifier
            config: Enable flag and HTTP timeout
            session: requests session to reuse (a new one is created if None)
            clock: Returns the current UTC time, stamped as ``updatedAt``
        """
        self.url = url
        self.config = config or ProfileWebhookConfig()
        self._session = session or requests.Session()
        self.clock = clock

    @property
    def enabled(self) -> bool:
        return bool(self.url) and self.config.enabled

    def on_profile_written(self, user_id: str, data: Optional[Mapping[str, Any]]) -> WebhookResult:
        """Handle a write to ``user_id``'s profile.

        Args:
            user_id: Owner of the profile
            data: Profile document after the write (camelCase keys), None if deleted

        Returns:
            WebhookResult describing what happened
        """
        with log_context(user_id=user_id):
            if not data:
                return WebhookResult(success=False, reason=REASON_NO_DATA)

            if not is_profile_complete(data):
                presence = field_presence(data)
                logger.info(
                    "Profile update skipped, incomplete profile for matching flow",
                    extra={"event": "profile_webhook.skipped", "reason": "incomplete", **{
                        f"has_{name}": present for name, present in presence.items()
                    }},
                )
                return WebhookResult(success=False, reason=REASON_INCOMPLETE, field_presence=presence)

            if not self.enabled:
                logger.info(
                    "Profile webhook not configured, skipping",
                    extra={"event": "profile_webhook.skipped", "reason": "not_configured"},
                )
                return WebhookResult(success=False, reason=REASON_NOT_CONFIGURED)

            body = {"userId": user_id, **dict(data), "updatedAt": _iso_millis(self.clock())}

            try:
                status_code = self._post(body)
            except WebhookError as e:
                logger.error(
                    f"Error sending profile update webhook: {e}",
                    extra={"event": "profile_webhook.failed", "status_code": e.status_code},
                )
                return WebhookResult(success=False, error=str(e), status_code=e.status_code)

            logger.info(
                "Profile update webhook sent successfully for matching flow",
                extra={"event": "profile_webhook.sent", "status_code": status_code},
            )
            return WebhookResult(success=True, status_code=status_code)

    def _post(self, body: Dict[str, Any]) -> int:
        try:
            response = self._session.post(
                self.url,
                headers={"Content-Type": "application/json"},
                json=body,
                timeout=self.config.timeout,
            )
        except requests.exceptions.RequestException as e:
            raise WebhookError(f"Webhook request failed: {e}") from e

        if not 200 <= response.status_code < 300:
            raise WebhookError(f"HTTP error! Status: {response.status_code}", response.status_code)
        return response.status_code
