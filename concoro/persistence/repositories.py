"""Data access layer (repositories) for persistence operations.

This module provides repository classes for saved items, concorsi, user
profiles, notifications and the email log. Repositories encapsulate database
operations and return domain models rather than ORM models.
"""

import logging
from datetime import datetime, timedelta
from typing import Iterable, List, Optional

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from concoro.domain.models import (
    EMAIL_LOG_TYPE_NOTIFICATION,
    Concorso,
    EmailLogEntry,
    Notification,
    SavedItem,
    UserProfile,
)
from concoro.config.models import DEFAULT_EMAILABLE_DAYS_LEFT
from concoro.utils.dates import format_timestamp, utc_now

from .exceptions import DataIntegrityError, PersistenceError, RecordNotFoundError
from .schema import (
    ConcorsoModel,
    EmailLogModel,
    NotificationModel,
    SavedItemModel,
    UserProfileModel,
    encode_closing_date,
)

logger = logging.getLogger(__name__)


class SavedItemRepository:
    """Repository for users' saved concorsi."""

    def __init__(self, session: Session):
        """Initialize repository with database session.

        Args:
            session: SQLAlchemy session for database operations
        """
        self.session = session

    def list_all(self) -> List[SavedItem]:
        """Retrieve every saved item across all users.

        Returns:
            List of SavedItem domain models in insertion order

        Raises:
            PersistenceError: If database error occurs
        """
        try:
            stmt = select(SavedItemModel).order_by(SavedItemModel.position, SavedItemModel.id)
            return [model.to_domain() for model in self.session.execute(stmt).scalars().all()]

        except SQLAlchemyError as e:
            logger.error(f"Error listing saved items: {e}", exc_info=True)
            raise PersistenceError(f"Failed to list saved items: {e}") from e

    def get(self, item_id: str) -> Optional[SavedItem]:
        """Retrieve a saved item by id, or None."""
        try:
            model = self.session.get(SavedItemModel, item_id)
            return model.to_domain() if model is not None else None

        except SQLAlchemyError as e:
            logger.error(f"Error retrieving saved item {item_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to retrieve saved item: {e}") from e

    def add(self, item: SavedItem) -> SavedItem:
        """Persist a new saved item.

        Returns:
            The stored SavedItem, with its generated id

        Raises:
            DataIntegrityError: If the id already exists
            PersistenceError: If database error occurs
        """
        try:
            last_position = self.session.execute(
                select(func.coalesce(func.max(SavedItemModel.position), 0))
            ).scalar_one()

            model = SavedItemModel.from_domain(item)
            model.position = last_position + 1
            self.session.add(model)
            self.session.flush()
            return model.to_domain()

        except IntegrityError as e:
            logger.error(f"Integrity error adding saved item: {e}", exc_info=True)
            raise DataIntegrityError(f"Failed to add saved item: {e}") from e
        except SQLAlchemyError as e:
            logger.error(f"Error adding saved item: {e}", exc_info=True)
            raise PersistenceError(f"Failed to add saved item: {e}") from e


class ConcorsoRepository:
    """Repository for concorsi (read by the notifier, written by ingestion)."""

    def __init__(self, session: Session):
        self.session = session

    def get(self, concorso_id: str) -> Optional[Concorso]:
        """Retrieve a concorso by id.

        Returns:
            Concorso domain model if found, None otherwise

        Raises:
            PersistenceError: If database error occurs
        """
        try:
            model = self.session.get(ConcorsoModel, concorso_id)
            return model.to_domain() if model is not None else None

        except SQLAlchemyError as e:
            logger.error(f"Error retrieving concorso {concorso_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to retrieve concorso: {e}") from e

    def upsert(self, concorso: Concorso) -> Concorso:
        """Insert a new concorso or update an existing one."""
        try:
            existing = self.session.get(ConcorsoModel, concorso.id)

            if existing:
                existing.titolo = concorso.titolo
                existing.titolo_breve = concorso.titolo_breve
                existing.ente = concorso.ente
                existing.data_chiusura = encode_closing_date(concorso.data_chiusura)
                existing.publication_date = concorso.publication_date
                self.session.flush()
                return existing.to_domain()

            model = ConcorsoModel.from_domain(concorso)
            self.session.add(model)
            self.session.flush()
            return model.to_domain()

        except IntegrityError as e:
            logger.error(f"Integrity error upserting concorso {concorso.id}: {e}", exc_info=True)
            raise DataIntegrityError(
                f"Failed to upsert concorso due to constraint violation: {e}"
            ) from e
        except SQLAlchemyError as e:
            logger.error(f"Error upserting concorso {concorso.id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to upsert concorso: {e}") from e


class UserProfileRepository:
    """Repository for user profiles."""

    def __init__(self, session: Session):
        self.session = session

    def get(self, user_id: str) -> Optional[UserProfile]:
        """Retrieve a user profile, or None if the user has none."""
        try:
            model = self.session.get(UserProfileModel, user_id)
            return model.to_domain() if model is not None else None

        except SQLAlchemyError as e:
            logger.error(f"Error retrieving profile for {user_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to retrieve user profile: {e}") from e

    def upsert(self, profile: UserProfile) -> UserProfile:
        """Insert a new profile or replace the fields of an existing one."""
        try:
            existing = self.session.get(UserProfileModel, profile.user_id)

            if existing:
                existing.email = profile.email
                existing.first_name = profile.first_name
                existing.attributes = dict(profile.attributes)
                self.session.flush()
                return existing.to_domain()

            model = UserProfileModel.from_domain(profile)
            self.session.add(model)
            self.session.flush()
            return model.to_domain()

        except IntegrityError as e:
            logger.error(
                f"Integrity error upserting profile {profile.user_id}: {e}", exc_info=True
            )
            raise DataIntegrityError(
                f"Failed to upsert user profile due to constraint violation: {e}"
            ) from e
        except SQLAlchemyError as e:
            logger.error(f"Error upserting profile {profile.user_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to upsert user profile: {e}") from e


class NotificationRepository:
    """Repository for per-user deadline notifications.

    Deduplication is a read-before-insert check: ``exists`` followed by
    ``insert``. Two writers racing on the same key may both insert.
    """

    def __init__(self, session: Session):
        self.session = session

    def exists(self, user_id: str, concorso_id: str, days_left: int) -> bool:
        """Check whether a notification already exists for the dedup key.

        Args:
            user_id: Owner of the notification
            concorso_id: Concorso the notification refers to
            days_left: Threshold that triggered it

        Returns:
            True if at least one matching notification exists

        Raises:
            PersistenceError: If database error occurs
        """
        try:
            stmt = (
                select(NotificationModel.id)
                .where(
                    NotificationModel.user_id == user_id,
                    NotificationModel.concorso_id == concorso_id,
                    NotificationModel.days_left == days_left,
                )
                .limit(1)
            )
            return self.session.execute(stmt).first() is not None

        except SQLAlchemyError as e:
            logger.error(
                f"Error checking notification {user_id}/{concorso_id}/{days_left}: {e}",
                exc_info=True,
            )
            raise PersistenceError(f"Failed to check notification existence: {e}") from e

    def insert(self, notification: Notification) -> str:
        """Persist a notification and return its generated id.

        Raises:
            DataIntegrityError: If a constraint is violated
            PersistenceError: If database error occurs
        """
        try:
            model = NotificationModel.from_domain(notification)
            self.session.add(model)
            self.session.flush()
            return model.id

        except IntegrityError as e:
            logger.error(f"Integrity error inserting notification: {e}", exc_info=True)
            raise DataIntegrityError(
                f"Failed to insert notification due to constraint violation: {e}"
            ) from e
        except SQLAlchemyError as e:
            logger.error(f"Error inserting notification: {e}", exc_info=True)
            raise PersistenceError(f"Failed to insert notification: {e}") from e

    def list_actionable(
        self,
        user_id: str,
        max_age: Optional[timedelta] = None,
        days_left_set: Iterable[int] = DEFAULT_EMAILABLE_DAYS_LEFT,
        limit: int = 10,
        now: Optional[datetime] = None,
    ) -> List[Notification]:
        """Unread notifications eligible for a digest.

        Args:
            user_id: Owner of the notifications
            max_age: If given, skip notifications created more than this long ago
            days_left_set: Thresholds that are worth emailing
            limit: Maximum number of notifications to return
            now: Reference time for ``max_age`` (defaults to UTC now)

        Returns:
            Notifications ordered by creation time, newest first

        Raises:
            PersistenceError: If database error occurs
        """
        try:
            stmt = select(NotificationModel).where(
                NotificationModel.user_id == user_id,
                NotificationModel.is_read.is_(False),
                NotificationModel.days_left.in_(list(days_left_set)),
            )
            if max_age is not None:
                cutoff = (now or utc_now()) - max_age
                stmt = stmt.where(NotificationModel.timestamp >= format_timestamp(cutoff))
            stmt = stmt.order_by(NotificationModel.timestamp.desc()).limit(limit)

            return [model.to_domain() for model in self.session.execute(stmt).scalars().all()]

        except SQLAlchemyError as e:
            logger.error(f"Error listing actionable notifications for {user_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to list actionable notifications: {e}") from e

    def list_for_user(self, user_id: str, unread_only: bool = False) -> List[Notification]:
        """All notifications of a user, newest first."""
        try:
            stmt = select(NotificationModel).where(NotificationModel.user_id == user_id)
            if unread_only:
                stmt = stmt.where(NotificationModel.is_read.is_(False))
            stmt = stmt.order_by(NotificationModel.timestamp.desc())

            return [model.to_domain() for model in self.session.execute(stmt).scalars().all()]

        except SQLAlchemyError as e:
            logger.error(f"Error listing notifications for {user_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to list notifications: {e}") from e

    def count_unread(self, user_id: str) -> int:
        """Number of unread notifications of a user."""
        try:
            stmt = (
                select(func.count())
                .select_from(NotificationModel)
                .where(
                    NotificationModel.user_id == user_id,
                    NotificationModel.is_read.is_(False),
                )
            )
            return int(self.session.execute(stmt).scalar_one())

        except SQLAlchemyError as e:
            logger.error(f"Error counting unread notifications for {user_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to count unread notifications: {e}") from e

    def mark_as_read(self, user_id: str, notification_id: str) -> None:
        """Mark one notification as read.

        Raises:
            RecordNotFoundError: If the user has no notification with that id
            PersistenceError: If database error occurs
        """
        try:
            stmt = (
                update(NotificationModel)
                .where(
                    NotificationModel.id == notification_id,
                    NotificationModel.user_id == user_id,
                )
                .values(is_read=True)
            )
            result = self.session.execute(stmt)
            self.session.flush()

            if result.rowcount == 0:
                raise RecordNotFoundError(
                    f"Notification {notification_id} not found for user {user_id}"
                )

        except RecordNotFoundError:
            raise
        except SQLAlchemyError as e:
            logger.error(f"Error marking notification {notification_id} read: {e}", exc_info=True)
            raise PersistenceError(f"Failed to mark notification as read: {e}") from e

    def mark_all_as_read(self, user_id: str) -> int:
        """Mark every unread notification of a user as read.

        Returns:
            Number of notifications updated
        """
        try:
            stmt = (
                update(NotificationModel)
                .where(
                    NotificationModel.user_id == user_id,
                    NotificationModel.is_read.is_(False),
                )
                .values(is_read=True)
            )
            result = self.session.execute(stmt)
            self.session.flush()
            return result.rowcount

        except SQLAlchemyError as e:
            logger.error(f"Error marking notifications read for {user_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to mark notifications as read: {e}") from e


class EmailLogRepository:
    """Repository for the append-only email log."""

    def __init__(self, session: Session):
        self.session = session

    def get_last_sent(
        self, user_id: str, email_type: str = EMAIL_LOG_TYPE_NOTIFICATION
    ) -> Optional[EmailLogEntry]:
        """Most recent log entry of a given type for a user.

        Returns:
            EmailLogEntry if the user was ever sent that email type, None otherwise

        Raises:
            PersistenceError: If database error occurs
        """
        try:
            stmt = (
                select(EmailLogModel)
                .where(
                    EmailLogModel.user_id == user_id,
                    EmailLogModel.type == email_type,
                )
                .order_by(EmailLogModel.sent_at.desc())
                .limit(1)
            )
            model = self.session.execute(stmt).scalar_one_or_none()
            return model.to_domain() if model is not None else None

        except SQLAlchemyError as e:
            logger.error(f"Error retrieving last email for {user_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to retrieve email log: {e}") from e

    def record(self, entry: EmailLogEntry) -> EmailLogEntry:
        """Append a log entry."""
        try:
            model = EmailLogModel.from_domain(entry)
            self.session.add(model)
            self.session.flush()
            return model.to_domain()

        except SQLAlchemyError as e:
            logger.error(f"Error recording email log for {entry.user_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to record email log: {e}") from e
