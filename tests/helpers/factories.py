"""Builders and seeding helpers for tests."""

from datetime import date, datetime, timedelta, timezone
from typing import Any, Optional

from concoro.domain.models import (
    Concorso,
    DigestItem,
    EmailLogEntry,
    Notification,
    SavedItem,
    UserProfile,
)
from concoro.persistence import (
    ConcorsoRepository,
    EmailLogRepository,
    NotificationRepository,
    SavedItemRepository,
    UserProfileRepository,
    get_session,
)

# 2025-03-07 08:00 UTC is 09:00 in Rome, the scheduled run time
RUN_AT = datetime(2025, 3, 7, 8, 0, tzinfo=timezone.utc)
TODAY = date(2025, 3, 7)


def make_concorso(
    concorso_id: str = "c1",
    days_ahead: Optional[int] = 3,
    data_chiusura: Any = None,
    titolo: Optional[str] = "Istruttore amministrativo",
    ente: Optional[str] = "Comune di Bologna",
    **kwargs,
) -> Concorso:
    """Concorso closing ``days_ahead`` days after TODAY unless a raw date is given."""
    if data_chiusura is None and days_ahead is not None:
        data_chiusura = (TODAY + timedelta(days=days_ahead)).isoformat()
    return Concorso(
        id=concorso_id,
        titolo=titolo,
        ente=ente,
        data_chiusura=data_chiusura,
        publication_date=kwargs.pop("publication_date", "2025-02-01"),
        **kwargs,
    )


def make_saved_item(user_id: str = "u1", concorso_id: str = "c1", **kwargs) -> SavedItem:
    kwargs.setdefault("saved_at", datetime(2025, 2, 20, 10, 0, tzinfo=timezone.utc))
    return SavedItem(user_id=user_id, concorso_id=concorso_id, **kwargs)


def make_profile(user_id: str = "u1", email: Optional[str] = "mario@example.com", **kwargs) -> UserProfile:
    kwargs.setdefault("first_name", "Mario")
    return UserProfile(user_id=user_id, email=email, **kwargs)


def make_notification(
    user_id: str = "u1",
    concorso_id: str = "c1",
    days_left: int = 3,
    timestamp: Optional[datetime] = None,
    **kwargs,
) -> Notification:
    return Notification(
        user_id=user_id,
        concorso_id=concorso_id,
        days_left=days_left,
        scadenza=kwargs.pop("scadenza", TODAY + timedelta(days=days_left)),
        timestamp=timestamp or RUN_AT,
        **kwargs,
    )


def make_digest_item(days_left: int = 3, concorso_id: str = "c1", **kwargs) -> DigestItem:
    return DigestItem(
        notification=make_notification(concorso_id=concorso_id, days_left=days_left),
        concorso_title=kwargs.get("concorso_title", f"Concorso {concorso_id}"),
        concorso_ente=kwargs.get("concorso_ente", "Comune di Roma"),
    )


def seed(*records) -> None:
    """Persist domain objects through their repositories in one session."""
    with get_session() as session:
        for record in records:
            if isinstance(record, Concorso):
                ConcorsoRepository(session).upsert(record)
            elif isinstance(record, SavedItem):
                SavedItemRepository(session).add(record)
            elif isinstance(record, UserProfile):
                UserProfileRepository(session).upsert(record)
            elif isinstance(record, Notification):
                NotificationRepository(session).insert(record)
            elif isinstance(record, EmailLogEntry):
                EmailLogRepository(session).record(record)
            else:
                raise TypeError(f"Cannot seed {type(record).__name__}")


def notifications_of(user_id: str):
    with get_session() as session:
        return NotificationRepository(session).list_for_user(user_id)


def email_log_of(user_id: str):
    with get_session() as session:
        return EmailLogRepository(session).get_last_sent(user_id)
