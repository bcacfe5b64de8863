"""Pipeline orchestration for deadline notifications and digests."""

from contextlib import AbstractContextManager
from datetime import date, datetime
from typing import Callable, List, Optional
from uuid import uuid4

from concoro.config.models import AppConfig
from concoro.deadlines.engine import DeadlineEngine
from concoro.domain.models import SavedItem
from concoro.logging import get_logger
from concoro.logging.context import log_context
from concoro.notifications.service import DigestService
from concoro.persistence.database import get_session
from concoro.persistence.repositories import (
    ConcorsoRepository,
    NotificationRepository,
    SavedItemRepository,
)
from concoro.utils.dates import local_today, utc_now

from .aggregator import group_by_user
from .models import BatchRunResult, OnSaveResult, UserRunStats

logger = get_logger(__name__, component="pipeline")

REASON_CONCORSO_NOT_FOUND = "Concorso not found"
REASON_SAVED_ITEM_NOT_FOUND = "Saved item not found"


class NotificationPipeline:
    """
    Creates deadline notifications and sends the daily digests.

    Two entry points share the same per-item logic:
    - ``run_daily_batch``: every saved item of every user, then one digest
      per user
    - ``on_item_saved``: a single newly saved item, no email

    Each saved item is evaluated in its own database session, so one
    failing item never rolls back the notifications of another.
    """

    def __init__(
        self,
        app_config: AppConfig,
        digest_service: DigestService,
        deadline_engine: Optional[DeadlineEngine] = None,
        session_factory: Callable[[], AbstractContextManager] = get_session,
        clock: Callable[[], datetime] = utc_now,
    ):
        """
        Initialize the notification pipeline.

        Args:
            app_config: Application configuration
            digest_service: Service sending one digest per user
            deadline_engine: Threshold evaluator (built from config if None)
            session_factory: Context manager yielding a database session
            clock: Returns the current UTC time
        """
        self.app_config = app_config
        self.digest_service = digest_service
        self.tz = app_config.schedule.tzinfo()
        self.deadline_engine = deadline_engine or DeadlineEngine(
            thresholds=app_config.notifications.thresholds,
            tz=self.tz,
        )
        self.session_factory = session_factory
        self.clock = clock

    def run_daily_batch(self) -> BatchRunResult:
        """
        Evaluate every saved item and send each user's digest.

        Failures of a single item or a single digest are logged and counted;
        the loop continues with the next item or user.

        Returns:
            BatchRunResult with aggregate counts

        Raises:
            PersistenceError: If the saved items cannot be read at all
        """
        run_started_at = self.clock()
        run_id = uuid4().hex

        with log_context(run_id=run_id, trigger="scheduled"):
            logger.info("Daily notification batch started", extra={"event": "batch.run.started"})

            try:
                with self.session_factory() as session:
                    saved_items = SavedItemRepository(session).list_all()
            except Exception as e:
                logger.error(
                    f"Daily batch aborted, saved items unavailable: {e}",
                    exc_info=True,
                    extra={"event": "batch.run.failed", "error_type": type(e).__name__},
                )
                raise

            result = BatchRunResult(run_started_at=run_started_at, run_finished_at=run_started_at)

            if not saved_items:
                logger.info("No saved concorsi found", extra={"event": "batch.run.empty"})
            else:
                today = local_today(self.tz, run_started_at)
                grouped = group_by_user(saved_items, sort_users=self.app_config.notifications.sort_users)

                logger.info(
                    f"Processing {len(saved_items)} saved concorsi for {len(grouped)} users",
                    extra={
                        "event": "batch.users.enumerated",
                        "user_count": len(grouped),
                        "item_count": len(saved_items),
                        "today": today.isoformat(),
                    },
                )

                for user_id, items in grouped.items():
                    result.add(self._process_user(user_id, items, today))

            result.run_finished_at = self.clock()
            result.total_duration_seconds = (
                result.run_finished_at - result.run_started_at
            ).total_seconds()

            logger.info(
                "Daily notification batch completed",
                extra={
                    "event": "batch.run.completed",
                    "duration_ms": int(result.total_duration_seconds * 1000),
                    "users_processed": result.users_processed,
                    "notifications_created": result.notifications_created,
                    "emails_sent": result.emails_sent,
                    "email_failures": result.email_failures,
                    "item_failures": result.item_failures,
                },
            )
            return result

    def on_item_saved(self, item: SavedItem) -> OnSaveResult:
        """
        Evaluate a newly saved item immediately. No email is sent.

        Args:
            item: The saved item

        Returns:
            OnSaveResult; ``success`` is False only if the concorso is missing

        Raises:
            PersistenceError: If the store cannot be read or written
        """
        with log_context(trigger="item_saved", user_id=item.user_id):
            today = local_today(self.tz, self.clock())
            created = self._process_item(item, today)

            if created is None:
                return OnSaveResult(success=False, reason=REASON_CONCORSO_NOT_FOUND)

            logger.info(
                f"Saved concorso {item.concorso_id} evaluated, {created} notifications created",
                extra={
                    "event": "item_saved.processed",
                    "concorso_id": item.concorso_id,
                    "notifications_created": created,
                },
            )
            return OnSaveResult(success=True, notifications_created=created)

    def on_saved_item_id(self, item_id: str) -> OnSaveResult:
        """Look up a saved item by id and run ``on_item_saved`` on it."""
        with self.session_factory() as session:
            item = SavedItemRepository(session).get(item_id)

        if item is None:
            logger.warning(
                f"Saved item {item_id} not found",
                extra={"event": "item_saved.missing", "saved_item_id": item_id},
            )
            return OnSaveResult(success=False, reason=REASON_SAVED_ITEM_NOT_FOUND)

        return self.on_item_saved(item)

    def _process_user(self, user_id: str, items: List[SavedItem], today: date) -> UserRunStats:
        stats = UserRunStats(user_id=user_id)

        with log_context(user_id=user_id):
            for item in items:
                stats.items_processed += 1
                try:
                    created = self._process_item(item, today)
                except Exception as e:
                    stats.item_failures += 1
                    stats.error_message = str(e)
                    logger.error(
                        f"Error processing saved concorso {item.concorso_id}: {e}",
                        exc_info=True,
                        extra={
                            "event": "batch.item.failed",
                            "concorso_id": item.concorso_id,
                            "error_type": type(e).__name__,
                        },
                    )
                    continue
                stats.notifications_created += created or 0

            try:
                stats.email_sent = self.digest_service.send_digest(user_id)
            except Exception as e:
                stats.email_failed = True
                stats.error_message = str(e)
                logger.error(
                    f"Error sending digest to user {user_id}: {e}",
                    exc_info=True,
                    extra={"event": "batch.digest.failed", "error_type": type(e).__name__},
                )

        return stats

    def _process_item(self, item: SavedItem, today: date) -> Optional[int]:
        """Create the notifications due today for one saved item.

        Returns:
            Number of notifications inserted, or None if the concorso is missing
        """
        with log_context(concorso_id=item.concorso_id), self.session_factory() as session:
            concorso = ConcorsoRepository(session).get(item.concorso_id)
            if concorso is None:
                logger.warning(
                    f"Concorso {item.concorso_id} not found",
                    extra={"event": "notification.concorso_missing"},
                )
                return None

            candidates = self.deadline_engine.evaluate(
                concorso,
                user_id=item.user_id,
                saved_at=item.saved_at,
                today=today,
                now=self.clock(),
            )

            repo = NotificationRepository(session)
            created = 0
            for notification in candidates:
                if repo.exists(notification.user_id, notification.concorso_id, notification.days_left):
                    logger.debug(
                        f"Notification already exists for concorso {item.concorso_id} "
                        f"({notification.days_left} days left)",
                        extra={"event": "notification.duplicate", "days_left": notification.days_left},
                    )
                    continue

                notification_id = repo.insert(notification)
                created += 1
                logger.info(
                    f"Created notification for concorso {item.concorso_id} "
                    f"({notification.days_left} days left)",
                    extra={
                        "event": "notification.created",
                        "notification_id": notification_id,
                        "days_left": notification.days_left,
                    },
                )
            return created
