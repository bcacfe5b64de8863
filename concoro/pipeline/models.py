"""Data models for batch execution tracking and reporting."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass
class UserRunStats:
    """
    Statistics for one user's share of a daily batch.

    Attributes:
        user_id: Owner of the saved items
        items_processed: Saved items evaluated
        notifications_created: New notifications inserted
        item_failures: Saved items whose processing raised
        email_sent: Whether a digest was accepted by Brevo
        email_failed: Whether sending the digest raised
        error_message: Last error message, if any
    """

    user_id: str
    items_processed: int = 0
    notifications_created: int = 0
    item_failures: int = 0
    email_sent: bool = False
    email_failed: bool = False
    error_message: Optional[str] = None


@dataclass
class BatchRunResult:
    """
    Aggregate results of one daily batch.

    Attributes:
        run_started_at: UTC timestamp when the run began
        run_finished_at: UTC timestamp when the run completed
        total_duration_seconds: Total time for the entire run
        users_processed: Distinct users with at least one saved item
        items_processed: Saved items evaluated
        notifications_created: New notifications inserted
        emails_sent: Digests accepted by Brevo
        email_failures: Digests that raised
        item_failures: Saved items whose processing raised
    """

    run_started_at: datetime
    run_finished_at: datetime
    total_duration_seconds: float = 0.0
    users_processed: int = 0
    items_processed: int = 0
    notifications_created: int = 0
    emails_sent: int = 0
    email_failures: int = 0
    item_failures: int = 0

    def __post_init__(self):
        if self.total_duration_seconds == 0.0:
            delta = self.run_finished_at - self.run_started_at
            self.total_duration_seconds = delta.total_seconds()

    @property
    def had_errors(self) -> bool:
        return self.email_failures > 0 or self.item_failures > 0

    def add(self, stats: UserRunStats) -> None:
        """Fold one user's statistics into the totals."""
        self.users_processed += 1
        self.items_processed += stats.items_processed
        self.notifications_created += stats.notifications_created
        self.item_failures += stats.item_failures
        self.emails_sent += int(stats.email_sent)
        self.email_failures += int(stats.email_failed)


@dataclass
class OnSaveResult:
    """
    Outcome of evaluating a single newly saved item.

    Attributes:
        success: False only when the concorso could not be found
        reason: Why the evaluation was not performed
        notifications_created: New notifications inserted (0 or 1)
    """

    success: bool
    reason: Optional[str] = None
    notifications_created: int = 0
