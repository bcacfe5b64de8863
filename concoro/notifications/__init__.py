"""Digest email gateway for deadline notifications.

This module provides the complete digest pipeline:
- DigestService: Sends one user's digest with cooldown and email log
- BrevoClient: Brevo transactional email API wrapper
- TemplateRenderer: Jinja2-based email template rendering
- Payload utilities: Urgency buckets and template context builders
"""

from .brevo_client import REASON_NOT_CONFIGURED, BrevoClient
from .models import (
    PRIORITY_HIGH,
    PRIORITY_NORMAL,
    BrevoDeliveryError,
    DeliveryResult,
    NotificationError,
    NotificationTemplateError,
)
from .payloads import build_digest_context, split_buckets
from .service import DigestService
from .templates import TemplateRenderer

__all__ = [
    # Main service
    "DigestService",
    # Models and results
    "DeliveryResult",
    "PRIORITY_HIGH",
    "PRIORITY_NORMAL",
    "REASON_NOT_CONFIGURED",
    # Exceptions
    "NotificationError",
    "NotificationTemplateError",
    "BrevoDeliveryError",
    # Components
    "TemplateRenderer",
    "BrevoClient",
    # Utilities
    "build_digest_context",
    "split_buckets",
]
