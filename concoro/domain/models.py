"""Core domain models for saved concorsi, notifications and digests.

- SavedItem: a user's bookmark of a concorso
- Concorso: a public job posting, read-only to this service
- Notification: a deadline threshold reached for a (user, concorso) pair
- EmailLogEntry: audit record of a sent digest, used for the cooldown
- UserProfile: the profile fields this service reads
- DigestItem: a notification enriched with concorso data for the email
"""

from datetime import date, datetime, timezone
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_validator

EMAIL_LOG_TYPE_NOTIFICATION = "notification"


def _as_utc(v: Optional[datetime]) -> Optional[datetime]:
    if v is None:
        return None
    if v.tzinfo is None:
        return v.replace(tzinfo=timezone.utc)
    return v.astimezone(timezone.utc)


class SavedItem(BaseModel):
    """A user's bookmark of a concorso."""

    id: Optional[str] = Field(None, description="Storage id of the bookmark")
    user_id: str = Field(..., min_length=1)
    concorso_id: str = Field(..., min_length=1)
    saved_at: Optional[datetime] = Field(None, description="When it was saved (UTC)")

    @field_validator("saved_at")
    @classmethod
    def ensure_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return _as_utc(v)


class Concorso(BaseModel):
    """An Italian public-sector job posting.

    ``data_chiusura`` keeps whatever the ingestion pipeline stored: an ISO
    string, an epoch ``{"seconds": ...}`` mapping or a native date. It is
    only ever read through ``try_parse_date``.
    """

    id: str = Field(..., min_length=1)
    titolo: Optional[str] = Field(None, description="Full title (Titolo)")
    titolo_breve: Optional[str] = Field(None, description="Short title")
    ente: Optional[str] = Field(None, description="Issuing organization (Ente)")
    data_chiusura: Any = Field(None, description="Closing date, raw encoding")
    publication_date: Optional[str] = Field(None)

    @property
    def display_title(self) -> Optional[str]:
        return self.titolo or self.titolo_breve

    model_config = {"json_schema_extra": {"example": {
        "id": "concorso-123",
        "titolo": "Concorso per 10 istruttori amministrativi",
        "titolo_breve": "10 istruttori amministrativi",
        "ente": "Comune di Bologna",
        "data_chiusura": "2025-03-10",
        "publication_date": "2025-02-01",
    }}}


class Notification(BaseModel):
    """A deadline threshold reached for a (user, concorso) pair.

    At most one record exists per ``(user_id, concorso_id, days_left)``;
    the repository enforces this with a read-before-insert check only.
    """

    id: Optional[str] = None
    concorso_id: str = Field(..., min_length=1)
    user_id: str = Field(..., min_length=1)
    days_left: int = Field(..., ge=0)
    scadenza: date = Field(..., description="Closing date snapshot")
    publication_date: str = Field("", description="Copied from the concorso")
    saved_at: Optional[datetime] = Field(None, description="Copied from the saved item")
    timestamp: datetime = Field(..., description="Creation time (UTC)")
    is_read: bool = False

    @field_validator("saved_at", "timestamp")
    @classmethod
    def ensure_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return _as_utc(v)

    @property
    def dedup_key(self) -> tuple:
        return (self.user_id, self.concorso_id, self.days_left)


class EmailLogEntry(BaseModel):
    """Audit record of one digest email sent to one user."""

    id: Optional[str] = None
    user_id: str = Field(..., min_length=1)
    type: str = Field(EMAIL_LOG_TYPE_NOTIFICATION)
    sent_at: datetime
    notification_count: int = Field(0, ge=0)
    urgent_count: int = Field(0, ge=0)

    @field_validator("sent_at")
    @classmethod
    def ensure_utc(cls, v: datetime) -> datetime:
        return _as_utc(v)


class UserProfile(BaseModel):
    """Profile fields read by the notifier.

    ``attributes`` holds the remaining profile document (preferred
    categories, regions, experience...) forwarded to the matching webhook.
    """

    user_id: str = Field(..., min_length=1)
    email: Optional[str] = None
    first_name: Optional[str] = None
    attributes: Dict[str, Any] = Field(default_factory=dict)

    @property
    def display_name(self) -> str:
        return self.first_name or "Utente"

    def as_document(self) -> Dict[str, Any]:
        """Profile in its stored document shape (camelCase keys)."""
        document = dict(self.attributes)
        if self.email is not None:
            document["email"] = self.email
        if self.first_name is not None:
            document["firstName"] = self.first_name
        return document


class DigestItem(BaseModel):
    """A notification joined with the concorso fields shown in the email."""

    notification: Notification
    concorso_title: Optional[str] = None
    concorso_ente: Optional[str] = None

    @property
    def days_left(self) -> int:
        return self.notification.days_left

    @property
    def concorso_id(self) -> str:
        return self.notification.concorso_id
