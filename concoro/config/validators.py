"""Soft checks on a raw configuration dictionary."""

import warnings
from typing import Any, Dict, List

from .duration import DurationParseError, parse_duration


def check_for_warnings(config_dict: Dict[str, Any]) -> List[str]:
    """
    Return warnings for values that are valid but probably unintended.

    Args:
        config_dict: Raw configuration dictionary

    Returns:
        List of warning messages
    """
    messages = []

    notifications = config_dict.get("notifications") or {}
    if isinstance(notifications, dict):
        thresholds = notifications.get("thresholds")
        emailable = notifications.get("emailable_days_left")

        if isinstance(thresholds, list) and isinstance(emailable, list):
            never_created = sorted(set(emailable) - set(thresholds))
            if never_created:
                messages.append(
                    "emailable_days_left contains values that no threshold creates: "
                    + ", ".join(str(day) for day in never_created)
                )
            never_emailed = sorted(set(thresholds) - set(emailable))
            if never_emailed:
                messages.append(
                    "Notifications for these thresholds are stored but never emailed: "
                    + ", ".join(str(day) for day in never_emailed)
                )

        cooldown = notifications.get("cooldown")
        if isinstance(cooldown, str):
            try:
                if parse_duration(cooldown) < 3600:
                    messages.append(
                        f"Short cooldown ({cooldown}) may send several digests per day"
                    )
            except DurationParseError:
                pass  # reported by model validation

        limit = notifications.get("digest_limit")
        if isinstance(limit, int) and limit > 25:
            messages.append(f"Large digest_limit ({limit}) produces very long emails")

    profile_webhook = config_dict.get("profile_webhook") or {}
    if isinstance(profile_webhook, dict) and profile_webhook.get("enabled") is False:
        messages.append("Profile webhook is disabled; completed profiles will not be forwarded")

    return messages


def emit_warnings(warning_messages: List[str]) -> None:
    """Emit each message through the warnings module."""
    for message in warning_messages:
        warnings.warn(message, UserWarning, stacklevel=2)
