"""Payload resolution for digest templates.

This module groups enriched notifications into urgency buckets and builds
the context dictionary used for subject and body rendering.
"""

from typing import Dict, List, Optional, Sequence

from concoro.config.models import LinksConfig
from concoro.domain.models import DigestItem
from concoro.utils.dates import format_date_long, format_date_short

from .models import PRIORITY_HIGH, PRIORITY_NORMAL

FALLBACK_TITLE = "Concorso"

BUCKET_URGENT = "urgent"
BUCKET_SOON = "soon"
BUCKET_UPCOMING = "upcoming"


def split_buckets(items: Sequence[DigestItem]) -> Dict[str, List[DigestItem]]:
    """Split items into urgent (today), soon (tomorrow) and upcoming.

    Order inside each bucket follows the input order.
    """
    return {
        BUCKET_URGENT: [item for item in items if item.days_left == 0],
        BUCKET_SOON: [item for item in items if item.days_left == 1],
        BUCKET_UPCOMING: [item for item in items if item.days_left > 1],
    }


def headline_bucket(buckets: Dict[str, List[DigestItem]]) -> Optional[str]:
    """The most urgent non-empty bucket, which drives subject and priority."""
    for name in (BUCKET_URGENT, BUCKET_SOON, BUCKET_UPCOMING):
        if buckets[name]:
            return name
    return None


def _days_phrase(days_left: int) -> str:
    return f"{days_left} {'giorno' if days_left == 1 else 'giorni'}"


def _urgency_label(days_left: int) -> str:
    if days_left == 0:
        return "⚠️ SCADE OGGI"
    if days_left == 1:
        return "⏰ Scade domani"
    return f"Scade tra {_days_phrase(days_left)}"


def _build_card(item: DigestItem, links: LinksConfig) -> Dict:
    scadenza = item.notification.scadenza
    return {
        "concorso_id": item.concorso_id,
        "title": item.concorso_title or FALLBACK_TITLE,
        "ente": item.concorso_ente or "",
        "days_left": item.days_left,
        "days_phrase": _days_phrase(item.days_left),
        "urgency_label": _urgency_label(item.days_left),
        "deadline_long": format_date_long(scadenza),
        "deadline_short": format_date_short(scadenza),
        "url": links.concorso_url(item.concorso_id),
    }


def build_digest_context(
    user_name: str,
    items: Sequence[DigestItem],
    links: Optional[LinksConfig] = None,
) -> Dict:
    """Build the template context for one user's digest.

    Args:
        user_name: Recipient display name
        items: Enriched notifications, already capped and ordered
        links: Site URLs for deep links (defaults to the public site)

    Returns:
        Dictionary with keys:
        - user_name, notification_count, urgent_count, soon_count
        - urgent, soon, upcoming: lists of card dictionaries
        - headline: name of the bucket that drives the subject
        - priority: "high" for today/tomorrow deadlines, else "normal"
        - notifications_url, settings_url, home_url

    Raises:
        ValueError: If ``items`` is empty
    """
    if not items:
        raise ValueError("Cannot build a digest without notifications")

    links = links or LinksConfig()
    buckets = split_buckets(items)
    headline = headline_bucket(buckets)

    return {
        "user_name": user_name,
        "notification_count": len(items),
        "urgent_count": len(buckets[BUCKET_URGENT]),
        "soon_count": len(buckets[BUCKET_SOON]),
        BUCKET_URGENT: [_build_card(item, links) for item in buckets[BUCKET_URGENT]],
        BUCKET_SOON: [_build_card(item, links) for item in buckets[BUCKET_SOON]],
        BUCKET_UPCOMING: [_build_card(item, links) for item in buckets[BUCKET_UPCOMING]],
        "headline": headline,
        "priority": PRIORITY_NORMAL if headline == BUCKET_UPCOMING else PRIORITY_HIGH,
        "notifications_url": links.notifications_url,
        "settings_url": links.settings_url,
        "home_url": links.base_url,
    }
