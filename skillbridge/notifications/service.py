"""Notification service for transactional emails.

Renders a message kind's templates, builds a multipart EmailMessage and
delivers it over SMTP with retry/backoff. When SMTP is not configured the
message is logged and skipped, so local development works without a mail
server.
"""

import logging
import time
from email.message import EmailMessage
from typing import Callable, Dict, Optional

from skillbridge.config.environment import EnvironmentConfig
from skillbridge.config.models import EmailConfig
from skillbridge.domain.models import Submission
from skillbridge.logging import get_logger
from skillbridge.logging.context import log_context

from .models import InvalidRecipientError, NotificationResult, SMTPDeliveryError
from .payloads import build_review_context, build_verification_context
from .smtp_client import SMTPClient, build_sender_address, normalize_recipient
from .templates import TemplateRenderer

logger = get_logger(__name__, component="notification")

VERIFICATION = "verification"
SUBMISSION_REVIEWED = "submission_reviewed"


class NotificationService:
    """Sends verification and review emails."""

    def __init__(
        self,
        env_config: EnvironmentConfig,
        email_config: Optional[EmailConfig] = None,
        template_renderer: Optional[TemplateRenderer] = None,
        smtp_client: Optional[SMTPClient] = None,
        sleep: Callable[[float], None] = time.sleep,
        logger_instance: Optional[logging.Logger] = None,
    ):
        self.env_config = env_config
        self.email_config = email_config or EmailConfig()
        self.template_renderer = template_renderer or TemplateRenderer()
        self.smtp_client = smtp_client or SMTPClient()
        self.sleep = sleep
        self.logger = logger_instance or logger

    def send_verification_email(
        self,
        email: str,
        full_name: Optional[str],
        verification_url: str,
        expires_in_seconds: int,
    ) -> NotificationResult:
        """Send the sign-up confirmation link."""
        context = build_verification_context(verification_url, full_name, expires_in_seconds)
        return self.deliver(VERIFICATION, email, context)

    def send_submission_reviewed(self, submission: Submission, site_url: str) -> NotificationResult:
        """Tell a member their submission was approved or rejected."""
        if not submission.user_email:
            return NotificationResult(
                kind=SUBMISSION_REVIEWED,
                recipient="",
                attempts=0,
                status="failed",
                error="Submission has no recipient email",
            )
        with log_context(submission_id=submission.id, job_id=submission.job_id):
            context = build_review_context(submission, site_url)
            return self.deliver(SUBMISSION_REVIEWED, submission.user_email, context)

    def deliver(self, kind: str, recipient: str, context: Dict) -> NotificationResult:
        """Render and send one message, retrying transient SMTP failures.

        Raises:
            NotificationTemplateError: If templates fail to render
        """
        try:
            to_address = normalize_recipient(recipient)
        except InvalidRecipientError as e:
            self.logger.error(
                str(e), extra={"event": "notification.invalid_recipient", "kind": kind}
            )
            return NotificationResult(
                kind=kind, recipient=recipient, attempts=0, status="failed", error=str(e)
            )

        rendered = self.template_renderer.render(kind, context)

        if not self.env_config.smtp_enabled:
            self.logger.info(
                f"SMTP not configured; skipping {kind} email to {to_address}",
                extra={
                    "event": "notification.skip",
                    "kind": kind,
                    "reason": "smtp_not_configured",
                    "subject": rendered["subject"],
                },
            )
            return NotificationResult(kind=kind, recipient=to_address, attempts=0, status="skipped")

        message = EmailMessage()
        message["Subject"] = rendered["subject"]
        message["From"] = build_sender_address(self.env_config)
        message["To"] = to_address
        message.set_content(rendered["text_body"])
        message.add_alternative(rendered["html_body"], subtype="html")

        max_attempts = self.email_config.max_retries + 1
        last_error = None

        for attempt in range(1, max_attempts + 1):
            if attempt > 1:
                delay = self.email_config.retry_initial_delay * (
                    self.email_config.retry_backoff_multiplier ** (attempt - 2)
                )
                delay = min(delay, 60.0)
                self.logger.warning(
                    f"Retrying {kind} email (attempt {attempt}/{max_attempts}) after {delay:.1f}s delay",
                    extra={"event": "notification.send.attempt", "kind": kind, "attempt": attempt},
                )
                self.sleep(delay)

            try:
                self.smtp_client.send(message, self.env_config, self.email_config.use_tls)
            except SMTPDeliveryError as e:
                last_error = str(e)
                self.logger.warning(
                    f"SMTP delivery failed for {kind} email (attempt {attempt}/{max_attempts}): {e}",
                    extra={
                        "event": "notification.send.failure",
                        "kind": kind,
                        "attempt": attempt,
                        "retry_remaining": attempt < max_attempts,
                    },
                )
                continue

            self.logger.info(
                f"Sent {kind} email to {to_address} (attempts: {attempt})",
                extra={"event": "notification.send.success", "kind": kind, "attempt": attempt},
            )
            return NotificationResult(kind=kind, recipient=to_address, attempts=attempt, status="sent")

        self.logger.error(
            f"Giving up on {kind} email to {to_address} after {max_attempts} attempts",
            extra={"event": "notification.send.exhausted", "kind": kind, "attempts": max_attempts},
        )
        return NotificationResult(
            kind=kind, recipient=to_address, attempts=max_attempts, status="failed", error=last_error
        )
