"""Brevo transactional email API client.

Thin wrapper around ``POST {api_base_url}/smtp/email`` using a shared
requests session.
"""

from typing import Any, Dict, Optional

import requests

from concoro.config.models import EmailConfig
from concoro.logging import get_logger

from .models import BrevoDeliveryError, DeliveryResult

logger = get_logger(__name__, component="brevo")

REASON_NOT_CONFIGURED = "API key not configured"


class BrevoClient:
    """Client for the Brevo transactional email endpoint.

    Without an API key every send is skipped with a warning and no HTTP call
    is made. Designed to be easily mockable for testing: pass a fake
    ``session`` exposing ``post``.
    """

    def __init__(
        self,
        api_key: str,
        email_config: Optional[EmailConfig] = None,
        session: Optional[requests.Session] = None,
    ):
        """Initialize the client.

        Args:
            api_key: Brevo API key; empty disables delivery
            email_config: Base URL and timeout (defaults apply if None)
            session: requests session to reuse (a new one is created if None)
        """
        self.api_key = api_key or ""
        self.email_config = email_config or EmailConfig()
        self._session = session or requests.Session()

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    @property
    def endpoint(self) -> str:
        return f"{self.email_config.api_base_url}/smtp/email"

    def send_transactional(self, payload: Dict[str, Any]) -> DeliveryResult:
        """Send one transactional email.

        Args:
            payload: Brevo message body (to, sender, subject, htmlContent,
                textContent, params, tags)

        Returns:
            DeliveryResult with success=True and the Brevo messageId, or
            success=False with reason "API key not configured"

        Raises:
            BrevoDeliveryError: On non-2xx responses or network failures
        """
        if not self.configured:
            logger.warning(
                "Brevo API key not configured, skipping email",
                extra={"event": "brevo.send.skipped", "reason": "api_key_missing"},
            )
            return DeliveryResult(success=False, reason=REASON_NOT_CONFIGURED)

        headers = {
            "accept": "application/json",
            "api-key": self.api_key,
            "content-type": "application/json",
        }

        try:
            response = self._session.post(
                self.endpoint,
                headers=headers,
                json=payload,
                timeout=self.email_config.request_timeout,
            )
        except requests.exceptions.RequestException as e:
            logger.error(
                f"Brevo request failed: {e}",
                extra={"event": "brevo.send.error", "error_type": type(e).__name__},
            )
            raise BrevoDeliveryError(f"Brevo request failed: {e}") from e

        if not 200 <= response.status_code < 300:
            body = response.text or ""
            logger.error(
                f"Brevo API error: {response.status_code} {response.reason}",
                extra={
                    "event": "brevo.send.error",
                    "status_code": response.status_code,
                    "response_body": body[:500],
                },
            )
            raise BrevoDeliveryError(
                f"Brevo API Error: {response.status_code} {response.reason}",
                status_code=response.status_code,
                body=body,
            )

        message_id = None
        try:
            data = response.json()
        except ValueError:
            data = None
        if isinstance(data, dict):
            message_id = data.get("messageId")

        logger.info(
            "Email sent successfully via Brevo",
            extra={
                "event": "brevo.send.succeeded",
                "status_code": response.status_code,
                "message_id": message_id,
            },
        )
        return DeliveryResult(success=True, message_id=message_id)
