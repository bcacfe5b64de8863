"""Digest service for sending deadline summary emails.

This module provides the DigestService class that orchestrates one user's
digest: profile lookup, selection of actionable notifications, enrichment
with concorso data, cooldown check, template rendering, Brevo delivery and
the email log entry that drives the next cooldown.
"""

import logging
from contextlib import AbstractContextManager
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from email_validator import EmailNotValidError, validate_email
from sqlalchemy.orm import Session

from concoro.config.models import EmailConfig, LinksConfig, NotificationsConfig
from concoro.domain.models import (
    EMAIL_LOG_TYPE_NOTIFICATION,
    DigestItem,
    EmailLogEntry,
    Notification,
    UserProfile,
)
from concoro.logging import get_logger
from concoro.logging.context import log_context
from concoro.persistence import get_session
from concoro.persistence.exceptions import PersistenceError
from concoro.persistence.repositories import (
    ConcorsoRepository,
    EmailLogRepository,
    NotificationRepository,
    UserProfileRepository,
)
from concoro.utils.dates import utc_now

from .brevo_client import BrevoClient
from .payloads import build_digest_context
from .templates import TemplateRenderer

logger = get_logger(__name__, component="digest")


class DigestService:
    """Service for sending one digest email per user.

    Every call runs in its own database session. The cooldown read and the
    email log write are separate statements with no lock between them, so
    two concurrent calls for the same user can both send.
    """

    def __init__(
        self,
        brevo_client: BrevoClient,
        notifications_config: Optional[NotificationsConfig] = None,
        email_config: Optional[EmailConfig] = None,
        links_config: Optional[LinksConfig] = None,
        template_renderer: Optional[TemplateRenderer] = None,
        session_factory: Callable[[], AbstractContextManager] = get_session,
        clock: Callable[[], datetime] = utc_now,
        logger_instance: Optional[logging.Logger] = None,
    ):
        """Initialize digest service.

        Args:
            brevo_client: Transactional email client
            notifications_config: Cooldown, limit and emailable thresholds
            email_config: Sender identity
            links_config: Site URLs used in deep links
            template_renderer: Template renderer (creates default if None)
            session_factory: Context manager yielding a database session
            clock: Returns the current UTC time
            logger_instance: Logger instance (uses module logger if None)
        """
        self.brevo_client = brevo_client
        self.notifications_config = notifications_config or NotificationsConfig()
        self.email_config = email_config or EmailConfig()
        self.links_config = links_config or LinksConfig()
        self.template_renderer = template_renderer or TemplateRenderer()
        self.session_factory = session_factory
        self.clock = clock
        self.logger = logger_instance or logger

    def send_digest(self, user_id: str) -> bool:
        """Send the digest of actionable notifications to one user.

        Args:
            user_id: Recipient

        Returns:
            True if an email was accepted by Brevo and logged, False if the
            digest was skipped (no profile or email, nothing actionable,
            cooldown active, Brevo not configured)

        Raises:
            BrevoDeliveryError: If Brevo rejects the message or is unreachable
            NotificationTemplateError: If rendering fails
            PersistenceError: If the store cannot be read or written
        """
        with log_context(user_id=user_id), self.session_factory() as session:
            profile = UserProfileRepository(session).get(user_id)
            recipient = self._resolve_recipient(user_id, profile)
            if recipient is None:
                return False

            notifications = NotificationRepository(session).list_actionable(
                user_id,
                max_age=self.notifications_config.max_age_delta,
                days_left_set=self.notifications_config.emailable_days_left,
                limit=self.notifications_config.digest_limit,
            )
            if not notifications:
                self._skip(f"No actionable notifications for user {user_id}", "no_notifications")
                return False

            items = self._enrich(session, notifications)
            if not items:
                self._skip(f"No notifications with concorso data for user {user_id}", "no_items")
                return False

            email_log = EmailLogRepository(session)
            now = self.clock()
            last_sent = email_log.get_last_sent(user_id, EMAIL_LOG_TYPE_NOTIFICATION)
            if last_sent is not None and now - last_sent.sent_at < self.notifications_config.cooldown_delta:
                self._skip(
                    f"Digest for user {user_id} skipped, last sent at {last_sent.sent_at.isoformat()}",
                    "cooldown",
                )
                return False

            context = build_digest_context(profile.display_name, items, self.links_config)
            rendered = self.template_renderer.render(context)
            payload = self.build_payload(recipient, profile.display_name, context, rendered)

            result = self.brevo_client.send_transactional(payload)
            if not result.success:
                self._skip(f"Digest for user {user_id} not sent: {result.reason}", "not_configured")
                return False

            email_log.record(
                EmailLogEntry(
                    user_id=user_id,
                    type=EMAIL_LOG_TYPE_NOTIFICATION,
                    sent_at=now,
                    notification_count=context["notification_count"],
                    urgent_count=context["urgent_count"],
                )
            )

            self.logger.info(
                f"Digest sent to user {user_id} with {context['notification_count']} notifications",
                extra={
                    "event": "digest.sent",
                    "notification_count": context["notification_count"],
                    "urgent_count": context["urgent_count"],
                    "priority": context["priority"],
                    "message_id": result.message_id,
                },
            )
            return True

    def build_payload(
        self,
        recipient: str,
        user_name: str,
        context: Dict[str, Any],
        rendered: Dict[str, str],
    ) -> Dict[str, Any]:
        """Assemble the Brevo message body from a rendered digest."""
        return {
            "to": [{"email": recipient, "name": user_name}],
            "sender": {
                "email": self.email_config.sender_email,
                "name": self.email_config.sender_name,
            },
            "subject": rendered["subject"],
            "htmlContent": rendered["html_body"],
            "textContent": rendered["text_body"],
            "params": {
                "USER_NAME": user_name,
                "NOTIFICATION_COUNT": context["notification_count"],
                "URGENT_COUNT": context["urgent_count"],
                "SOON_COUNT": context["soon_count"],
            },
            "tags": ["notification", "concorso", context["priority"]],
        }

    def _resolve_recipient(self, user_id: str, profile: Optional[UserProfile]) -> Optional[str]:
        if profile is None:
            self._skip(f"User profile not found for {user_id}", "profile_missing", warn=True)
            return None
        if not profile.email:
            self._skip(f"No email found for user {user_id}", "email_missing", warn=True)
            return None
        try:
            return validate_email(profile.email, check_deliverability=False).normalized
        except EmailNotValidError as e:
            self._skip(f"Invalid email for user {user_id}: {e}", "email_invalid", warn=True)
            return None

    def _enrich(self, session: Session, notifications: List[Notification]) -> List[DigestItem]:
        concorsi = ConcorsoRepository(session)
        items = []
        for notification in notifications:
            try:
                concorso = concorsi.get(notification.concorso_id)
            except PersistenceError as e:
                self.logger.error(
                    f"Error fetching concorso {notification.concorso_id}: {e}",
                    extra={"event": "digest.enrich.error", "concorso_id": notification.concorso_id},
                )
                continue

            if concorso is None:
                self.logger.warning(
                    f"Concorso {notification.concorso_id} not found, dropped from digest",
                    extra={"event": "digest.enrich.missing", "concorso_id": notification.concorso_id},
                )
                continue

            items.append(
                DigestItem(
                    notification=notification,
                    concorso_title=concorso.display_title,
                    concorso_ente=concorso.ente,
                )
            )
        return items

    def _skip(self, message: str, reason: str, warn: bool = False) -> None:
        self.logger.log(
            logging.WARNING if warn else logging.INFO,
            message,
            extra={"event": "digest.skipped", "reason": reason},
        )
