"""Utility functions for dates and timestamps."""

from .dates import (
    ensure_utc,
    format_date_long,
    format_date_short,
    format_timestamp,
    local_today,
    parse_iso_datetime,
    try_parse_date,
    utc_now,
)

__all__ = [
    "utc_now",
    "ensure_utc",
    "parse_iso_datetime",
    "format_timestamp",
    "local_today",
    "try_parse_date",
    "format_date_long",
    "format_date_short",
]
