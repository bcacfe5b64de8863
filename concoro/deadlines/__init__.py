"""Deadline threshold evaluation."""

from .engine import DEFAULT_TIMEZONE, DeadlineEngine, compute_days_left

__all__ = [
    "DeadlineEngine",
    "compute_days_left",
    "DEFAULT_TIMEZONE",
]
