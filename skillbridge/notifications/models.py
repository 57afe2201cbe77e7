"""Data models and exceptions for the notification service."""

from dataclasses import dataclass
from typing import Optional


class NotificationError(Exception):
    """Base exception for notification-related errors."""

    pass


class NotificationTemplateError(NotificationError):
    """Raised when template rendering fails due to configuration or missing variables."""

    pass


class SMTPDeliveryError(NotificationError):
    """Raised when SMTP delivery fails."""

    pass


class InvalidRecipientError(NotificationError):
    """Raised when a recipient address does not validate."""

    pass


@dataclass
class NotificationResult:
    """Outcome of one email send.

    Attributes:
        kind: Message kind (verification, submission_reviewed)
        recipient: Normalized recipient address
        attempts: Number of SMTP send attempts made
        status: "sent", "skipped" (SMTP not configured) or "failed"
        error: Error message when status is "failed"
    """

    kind: str
    recipient: str
    attempts: int
    status: str
    error: Optional[str] = None

    def is_success(self) -> bool:
        return self.status == "sent"
