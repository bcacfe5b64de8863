"""Deadline evaluation: which threshold notification, if any, is due today."""

from datetime import date, datetime, timezone, tzinfo
from math import ceil
from typing import List, Optional, Sequence, Union
from zoneinfo import ZoneInfo

from concoro.config.models import DEFAULT_THRESHOLDS
from concoro.domain.models import Concorso, Notification
from concoro.logging import get_logger
from concoro.utils.dates import try_parse_date, utc_now

logger = get_logger(__name__, component="deadlines")

DEFAULT_TIMEZONE = ZoneInfo("Europe/Rome")

_SECONDS_PER_DAY = 86400


def _midnight(value: Union[date, datetime]) -> datetime:
    day = value.date() if isinstance(value, datetime) else value
    return datetime(day.year, day.month, day.day, tzinfo=timezone.utc)


def compute_days_left(closing: Union[date, datetime], today: Union[date, datetime]) -> int:
    """
    Whole calendar days from ``today`` until ``closing``.

    Both values are reduced to midnight first, so the time of day of either
    argument never changes the result. Negative once the deadline has passed.

    Examples:
        >>> compute_days_left(date(2025, 3, 10), date(2025, 3, 7))
        3
        >>> compute_days_left(date(2025, 3, 10), date(2025, 3, 10))
        0
    """
    delta = _midnight(closing) - _midnight(today)
    return ceil(delta.total_seconds() / _SECONDS_PER_DAY)


class DeadlineEngine:
    """Pure threshold evaluation for a single saved concorso.

    The engine does not look at storage: it returns the notification that
    *would* be created today. Deduplication against existing records is the
    caller's job (see ``NotificationRepository.exists``).
    """

    def __init__(
        self,
        thresholds: Optional[Sequence[int]] = None,
        tz: tzinfo = DEFAULT_TIMEZONE,
    ):
        """
        Args:
            thresholds: Ordered day counts that trigger a notification
            tz: Timezone in which calendar days are counted
        """
        self.thresholds = list(thresholds if thresholds is not None else DEFAULT_THRESHOLDS)
        self.tz = tz

    def resolve_deadline(self, concorso: Concorso) -> Optional[date]:
        """Closing date of ``concorso`` as a calendar date, or None."""
        return try_parse_date(concorso.data_chiusura, self.tz)

    def evaluate(
        self,
        concorso: Concorso,
        user_id: str,
        saved_at: Optional[datetime],
        today: date,
        now: Optional[datetime] = None,
    ) -> List[Notification]:
        """
        Build the notifications due for ``concorso`` on ``today``.

        Args:
            concorso: The saved concorso
            user_id: Owner of the saved item
            saved_at: When the item was saved (defaults to ``now``)
            today: Calendar day of the run, in the engine timezone
            now: Creation timestamp for the notification (defaults to UTC now)

        Returns:
            Zero or one notification. Empty when the closing date is missing
            or unparsable, when the concorso has expired, or when the days
            left match no threshold exactly.
        """
        deadline = self.resolve_deadline(concorso)
        if deadline is None:
            logger.warning(
                f"Invalid deadline date format for concorso {concorso.id}",
                extra={
                    "event": "deadline.unparsable",
                    "concorso_id": concorso.id,
                    "data_chiusura": repr(concorso.data_chiusura),
                },
            )
            return []

        days_left = compute_days_left(deadline, today)
        if days_left < 0:
            logger.info(
                f"Concorso {concorso.id} already expired",
                extra={
                    "event": "deadline.expired",
                    "concorso_id": concorso.id,
                    "days_left": days_left,
                },
            )
            return []

        created_at = now or utc_now()
        return [
            Notification(
                concorso_id=concorso.id,
                user_id=user_id,
                days_left=days_left,
                scadenza=deadline,
                publication_date=concorso.publication_date or "",
                saved_at=saved_at or created_at,
                timestamp=created_at,
                is_read=False,
            )
            for threshold in self.thresholds
            if days_left == threshold
        ]
