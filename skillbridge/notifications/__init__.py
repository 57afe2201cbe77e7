"""Transactional email: verification links and submission review results.

- NotificationService: renders and delivers emails with retry/backoff
- TemplateRenderer: Jinja2-based email template rendering
- SMTPClient: SMTP wrapper with TLS/SSL support
- Payload builders: template contexts per message kind
"""

from .models import (
    InvalidRecipientError,
    NotificationError,
    NotificationResult,
    NotificationTemplateError,
    SMTPDeliveryError,
)
from .payloads import build_review_context, build_verification_context, build_verification_url
from .service import SUBMISSION_REVIEWED, VERIFICATION, NotificationService
from .smtp_client import SMTPClient, build_sender_address, normalize_recipient
from .templates import TemplateRenderer

__all__ = [
    # Main service
    "NotificationService",
    "VERIFICATION",
    "SUBMISSION_REVIEWED",
    # Models and results
    "NotificationResult",
    # Exceptions
    "NotificationError",
    "NotificationTemplateError",
    "SMTPDeliveryError",
    "InvalidRecipientError",
    # Components
    "TemplateRenderer",
    "SMTPClient",
    # Utilities
    "build_verification_url",
    "build_verification_context",
    "build_review_context",
    "build_sender_address",
    "normalize_recipient",
]
