"""Date and timestamp utilities.

Two concerns live here:
- UTC timestamp handling for everything the service stores
- ``try_parse_date``, the single adapter that turns any closing-date encoding
  found on a concorso into a calendar date
"""

from collections.abc import Mapping
from datetime import date, datetime, timezone, tzinfo
from typing import Any, Optional

ITALIAN_MONTHS = (
    "gennaio", "febbraio", "marzo", "aprile", "maggio", "giugno",
    "luglio", "agosto", "settembre", "ottobre", "novembre", "dicembre",
)

# Zero-argument conversion methods exposed by timestamp wrappers
# (protobuf Timestamp, Firestore exports, JS-style objects)
_CONVERSION_METHODS = ("to_datetime", "ToDatetime", "toDate")
_EPOCH_FIELDS = ("seconds", "_seconds")


def utc_now() -> datetime:
    """Current UTC time as a timezone-aware datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """
    Return ``dt`` as an aware UTC datetime.

    Naive datetimes are taken to be UTC already.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def parse_iso_datetime(value: Optional[str]) -> Optional[datetime]:
    """
    Parse an ISO-8601 string into an aware UTC datetime.

    Accepts a trailing ``Z``, explicit offsets, and date-only strings.
    Returns None when the string cannot be parsed.
    """
    if not value or not value.strip():
        return None

    cleaned = value.strip()
    if cleaned.endswith(("Z", "z")):
        cleaned = cleaned[:-1] + "+00:00"

    try:
        return ensure_utc(datetime.fromisoformat(cleaned))
    except ValueError:
        return None


def format_timestamp(dt: Optional[datetime]) -> Optional[str]:
    """Format a datetime for storage as ``YYYY-MM-DDTHH:MM:SS.ffffffZ``."""
    dt = ensure_utc(dt)
    if dt is None:
        return None
    return dt.strftime("%Y-%m-%dT%H:%M:%S.%fZ")


def local_today(tz: tzinfo, now: Optional[datetime] = None) -> date:
    """Calendar date in ``tz`` at ``now`` (defaults to the current time)."""
    now = ensure_utc(now) if now is not None else utc_now()
    return now.astimezone(tz).date()


def try_parse_date(raw: Any, tz: tzinfo = timezone.utc) -> Optional[date]:
    """
    Resolve a closing date stored in any supported encoding to a calendar date.

    Supported encodings, checked in order:
    - native ``datetime`` / ``date``
    - an object exposing a zero-argument conversion method
      (``to_datetime()``, ``ToDatetime()``, ``toDate()``)
    - a mapping or object carrying numeric epoch ``seconds`` (or ``_seconds``)
    - an ISO-8601 string, date-only or full timestamp

    Aware datetimes are converted to ``tz`` before the date is taken, so a
    deadline stored as ``2025-03-09T23:30:00Z`` is the 10th in Rome.

    Args:
        raw: Raw closing date value
        tz: Timezone in which calendar days are counted

    Returns:
        The calendar date, or None if ``raw`` is missing or unparsable
    """
    if raw is None:
        return None

    if isinstance(raw, datetime):
        if raw.tzinfo is None:
            return raw.date()
        return raw.astimezone(tz).date()

    if isinstance(raw, date):
        return raw

    if isinstance(raw, str):
        return _parse_date_string(raw, tz)

    converted = convert_date_object(raw)
    if converted is not None:
        return try_parse_date(converted, tz)

    seconds = epoch_seconds(raw)
    if seconds is not None:
        try:
            moment = datetime.fromtimestamp(seconds, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
        return moment.astimezone(tz).date()

    return None


def convert_date_object(raw: Any) -> Optional[date]:
    """
    Call the zero-argument conversion method ``raw`` exposes, if any.

    Returns the resulting ``date`` or ``datetime``, or None when ``raw`` has no
    such method, the call fails or it returns anything else.
    """
    for method_name in _CONVERSION_METHODS:
        method = getattr(raw, method_name, None)
        if callable(method):
            try:
                converted = method()
            except (TypeError, ValueError, OverflowError):
                return None
            if isinstance(converted, (datetime, date)):
                return converted
            return None
    return None


def epoch_seconds(raw: Any) -> Optional[float]:
    """Epoch seconds carried by a mapping or object, or None. Booleans are rejected."""
    for field in _EPOCH_FIELDS:
        if isinstance(raw, Mapping):
            value = raw.get(field)
        else:
            value = getattr(raw, field, None)
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return value
    return None


def _parse_date_string(value: str, tz: tzinfo) -> Optional[date]:
    cleaned = value.strip()
    if not cleaned:
        return None

    try:
        return date.fromisoformat(cleaned)
    except ValueError:
        pass

    if cleaned.endswith(("Z", "z")):
        cleaned = cleaned[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(cleaned)
    except ValueError:
        return None
    return try_parse_date(parsed, tz)


def format_date_long(value: Optional[date]) -> str:
    """Italian long date, e.g. ``10 marzo 2025``."""
    if value is None:
        return "Data non disponibile"
    return f"{value.day} {ITALIAN_MONTHS[value.month - 1]} {value.year}"


def format_date_short(value: Optional[date]) -> str:
    """Italian numeric date, e.g. ``10/3/2025``."""
    if value is None:
        return "Data non disponibile"
    return f"{value.day}/{value.month}/{value.year}"
