"""Database schema definition and ORM models.

Each table mirrors one collection of the original document store:

- saved_concorsi          <- savedconcorsi
- concorsi                <- concorsi
- user_profiles           <- userProfiles/{userId}
- notifications           <- userProfiles/{userId}/notifications
- email_log               <- userProfiles/{userId}/emailLog

Timestamps are stored as ISO-8601 UTC strings with a fixed width, so string
ordering equals chronological ordering.
"""

import logging
from datetime import date, datetime
from typing import Any, Optional
from uuid import uuid4

from sqlalchemy import JSON, Boolean, Column, Index, Integer, String, Text, inspect
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base

from concoro.domain.models import (
    Concorso,
    EmailLogEntry,
    Notification,
    SavedItem,
    UserProfile,
)
from concoro.utils.dates import convert_date_object, epoch_seconds, format_timestamp, parse_iso_datetime

logger = logging.getLogger(__name__)

Base = declarative_base()


def new_id() -> str:
    """Random document id."""
    return uuid4().hex


class SavedItemModel(Base):
    """ORM model for saved_concorsi (a user's bookmark of a concorso)."""

    __tablename__ = "saved_concorsi"

    id = Column(String(64), primary_key=True, default=new_id)
    user_id = Column(String(128), nullable=False)
    concorso_id = Column(String(255), nullable=False)
    saved_at = Column(String(50), nullable=True)
    # Insertion order, assigned by SavedItemRepository.add
    position = Column(Integer, nullable=False, default=0)

    __table_args__ = (Index("idx_saved_concorsi_user", "user_id"),)

    def to_domain(self) -> SavedItem:
        return SavedItem(
            id=self.id,
            user_id=self.user_id,
            concorso_id=self.concorso_id,
            saved_at=parse_iso_datetime(self.saved_at),
        )

    @classmethod
    def from_domain(cls, item: SavedItem) -> "SavedItemModel":
        return cls(
            id=item.id or new_id(),
            user_id=item.user_id,
            concorso_id=item.concorso_id,
            saved_at=format_timestamp(item.saved_at),
        )


class ConcorsoModel(Base):
    """ORM model for concorsi.

    ``data_chiusura`` is a JSON column so the raw closing-date encoding
    written by the ingestion pipeline survives unchanged.
    """

    __tablename__ = "concorsi"

    id = Column(String(255), primary_key=True)
    titolo = Column(Text, nullable=True)
    titolo_breve = Column(Text, nullable=True)
    ente = Column(String(255), nullable=True)
    data_chiusura = Column(JSON, nullable=True)
    publication_date = Column(String(50), nullable=True)

    def to_domain(self) -> Concorso:
        return Concorso(
            id=self.id,
            titolo=self.titolo,
            titolo_breve=self.titolo_breve,
            ente=self.ente,
            data_chiusura=self.data_chiusura,
            publication_date=self.publication_date,
        )

    @classmethod
    def from_domain(cls, concorso: Concorso) -> "ConcorsoModel":
        return cls(
            id=concorso.id,
            titolo=concorso.titolo,
            titolo_breve=concorso.titolo_breve,
            ente=concorso.ente,
            data_chiusura=encode_closing_date(concorso.data_chiusura),
            publication_date=concorso.publication_date,
        )


class UserProfileModel(Base):
    """ORM model for user_profiles."""

    __tablename__ = "user_profiles"

    user_id = Column(String(128), primary_key=True)
    email = Column(String(320), nullable=True)
    first_name = Column(String(255), nullable=True)
    attributes = Column(JSON, nullable=False, default=dict)

    def to_domain(self) -> UserProfile:
        return UserProfile(
            user_id=self.user_id,
            email=self.email,
            first_name=self.first_name,
            attributes=dict(self.attributes or {}),
        )

    @classmethod
    def from_domain(cls, profile: UserProfile) -> "UserProfileModel":
        return cls(
            user_id=profile.user_id,
            email=profile.email,
            first_name=profile.first_name,
            attributes=dict(profile.attributes),
        )


class NotificationModel(Base):
    """ORM model for notifications.

    There is deliberately no unique constraint on
    (user_id, concorso_id, days_left): uniqueness comes from the
    repository's read-before-insert check only.
    """

    __tablename__ = "notifications"

    id = Column(String(64), primary_key=True, default=new_id)
    user_id = Column(String(128), nullable=False)
    concorso_id = Column(String(255), nullable=False)
    days_left = Column(Integer, nullable=False)
    scadenza = Column(String(10), nullable=False)
    publication_date = Column(String(50), nullable=False, default="")
    saved_at = Column(String(50), nullable=True)
    timestamp = Column(String(50), nullable=False)
    is_read = Column(Boolean, nullable=False, default=False)

    __table_args__ = (
        Index("idx_notifications_dedup", "user_id", "concorso_id", "days_left"),
        Index("idx_notifications_unread", "user_id", "is_read", "timestamp"),
    )

    def to_domain(self) -> Notification:
        return Notification(
            id=self.id,
            user_id=self.user_id,
            concorso_id=self.concorso_id,
            days_left=self.days_left,
            scadenza=date.fromisoformat(self.scadenza),
            publication_date=self.publication_date or "",
            saved_at=parse_iso_datetime(self.saved_at),
            timestamp=parse_iso_datetime(self.timestamp),
            is_read=bool(self.is_read),
        )

    @classmethod
    def from_domain(cls, notification: Notification) -> "NotificationModel":
        return cls(
            id=notification.id or new_id(),
            user_id=notification.user_id,
            concorso_id=notification.concorso_id,
            days_left=notification.days_left,
            scadenza=notification.scadenza.isoformat(),
            publication_date=notification.publication_date,
            saved_at=format_timestamp(notification.saved_at),
            timestamp=format_timestamp(notification.timestamp),
            is_read=notification.is_read,
        )


class EmailLogModel(Base):
    """ORM model for email_log (append-only)."""

    __tablename__ = "email_log"

    id = Column(String(64), primary_key=True, default=new_id)
    user_id = Column(String(128), nullable=False)
    type = Column(String(50), nullable=False)
    sent_at = Column(String(50), nullable=False)
    notification_count = Column(Integer, nullable=False, default=0)
    urgent_count = Column(Integer, nullable=False, default=0)

    __table_args__ = (Index("idx_email_log_user_type_sent", "user_id", "type", "sent_at"),)

    def to_domain(self) -> EmailLogEntry:
        return EmailLogEntry(
            id=self.id,
            user_id=self.user_id,
            type=self.type,
            sent_at=parse_iso_datetime(self.sent_at),
            notification_count=self.notification_count,
            urgent_count=self.urgent_count,
        )

    @classmethod
    def from_domain(cls, entry: EmailLogEntry) -> "EmailLogModel":
        return cls(
            id=entry.id or new_id(),
            user_id=entry.user_id,
            type=entry.type,
            sent_at=format_timestamp(entry.sent_at),
            notification_count=entry.notification_count,
            urgent_count=entry.urgent_count,
        )


def encode_closing_date(raw: Any) -> Optional[Any]:
    """Convert a raw closing date into a JSON-storable value.

    Strings and mappings are stored as they are. Native dates, and objects
    exposing a conversion method such as ``toDate()``, become ISO strings.
    Objects carrying epoch seconds become ``{"seconds": n}``.
    Anything else is stored as its string form, which will later fail to
    parse and be reported like any other malformed date.
    """
    if raw is None or isinstance(raw, (str, dict)):
        return raw
    if isinstance(raw, (datetime, date)):
        return raw.isoformat()
    seconds = epoch_seconds(raw)
    if seconds is not None:
        return {"seconds": seconds}
    converted = convert_date_object(raw)
    if converted is not None:
        return converted.isoformat()
    return str(raw)


def create_schema(engine: Engine) -> None:
    """Create all tables and indexes if they don't exist (idempotent)."""
    try:
        Base.metadata.create_all(engine, checkfirst=True)
    except Exception as e:
        logger.error(f"Failed to create database schema: {e}", exc_info=True)
        raise

    tables = inspect(engine).get_table_names()
    logger.info(f"Database schema ready. Tables: {', '.join(sorted(tables))}")
