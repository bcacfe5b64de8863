"""Test helper utilities for Concoro notifier tests."""

from .factories import (
    RUN_AT,
    TODAY,
    email_log_of,
    make_concorso,
    make_digest_item,
    make_notification,
    make_profile,
    make_saved_item,
    notifications_of,
    seed,
)

__all__ = [
    "RUN_AT",
    "TODAY",
    "make_concorso",
    "make_saved_item",
    "make_profile",
    "make_notification",
    "make_digest_item",
    "seed",
    "notifications_of",
    "email_log_of",
]
