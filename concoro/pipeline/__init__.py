"""Notification pipeline: daily batch and item-saved processing."""

from .aggregator import group_by_user
from .models import BatchRunResult, OnSaveResult, UserRunStats
from .runner import REASON_CONCORSO_NOT_FOUND, REASON_SAVED_ITEM_NOT_FOUND, NotificationPipeline

__all__ = [
    "NotificationPipeline",
    "BatchRunResult",
    "OnSaveResult",
    "UserRunStats",
    "group_by_user",
    "REASON_CONCORSO_NOT_FOUND",
    "REASON_SAVED_ITEM_NOT_FOUND",
]
