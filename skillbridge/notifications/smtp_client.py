"""SMTP delivery and address helpers.

Port 465 connects with implicit TLS; any other port connects in plain text
and upgrades with STARTTLS when requested. Connections are opened per
message and always closed.
"""

import smtplib
import ssl
from email.message import EmailMessage
from typing import Callable, Optional

from email_validator import EmailNotValidError, validate_email

from skillbridge.config.environment import EnvironmentConfig
from skillbridge.logging import get_logger

from .models import InvalidRecipientError, SMTPDeliveryError

logger = get_logger(__name__, component="smtp")

IMPLICIT_TLS_PORT = 465


class SMTPClient:
    """Sends one EmailMessage per connection. Factories are injectable for tests."""

    def __init__(
        self,
        smtp_factory: Optional[Callable] = None,
        smtp_ssl_factory: Optional[Callable] = None,
    ):
        self.smtp_factory = smtp_factory or smtplib.SMTP
        self.smtp_ssl_factory = smtp_ssl_factory or smtplib.SMTP_SSL

    def _connect(self, env_config: EnvironmentConfig, use_tls: bool):
        host, port = env_config.smtp_host, env_config.smtp_port
        if port == IMPLICIT_TLS_PORT:
            logger.debug(f"Connecting to {host}:{port} with implicit TLS")
            return self.smtp_ssl_factory(host, port, context=ssl.create_default_context())

        logger.debug(f"Connecting to {host}:{port}")
        connection = self.smtp_factory(host, port)
        if use_tls:
            try:
                connection.starttls(context=ssl.create_default_context())
            except (smtplib.SMTPException, OSError):
                _close(connection)
                raise
        return connection

    def send(
        self,
        message: EmailMessage,
        env_config: EnvironmentConfig,
        use_tls: bool = True,
    ) -> None:
        """
        Raises:
            SMTPDeliveryError: If connecting, authenticating or sending fails
        """
        try:
            connection = self._connect(env_config, use_tls)
        except (smtplib.SMTPException, OSError) as e:
            raise _delivery_error(e) from e

        try:
            if env_config.smtp_user and env_config.smtp_pass:
                connection.login(env_config.smtp_user, env_config.smtp_pass)
            connection.send_message(message)
        except (smtplib.SMTPException, OSError) as e:
            raise _delivery_error(e) from e
        finally:
            _close(connection)

        logger.debug(
            f"Message accepted for {message['To']}",
            extra={"event": "smtp.message.accepted", "smtp_host": env_config.smtp_host},
        )


def _delivery_error(error: Exception) -> SMTPDeliveryError:
    if isinstance(error, smtplib.SMTPException):
        text = f"SMTP error during message delivery: {error}"
    else:
        text = f"Network error during SMTP connection: {error}"
    logger.error(text, extra={"event": "smtp.delivery.failed", "error_type": type(error).__name__})
    return SMTPDeliveryError(text)


def _close(connection) -> None:
    try:
        connection.quit()
    except (smtplib.SMTPException, OSError) as e:
        logger.warning(f"Error closing SMTP connection: {e}")


def normalize_recipient(email: str) -> str:
    """Validate a single recipient and return its normalized form.

    Raises:
        InvalidRecipientError: If the address is not valid
    """
    try:
        return validate_email(email.strip(), check_deliverability=False).normalized
    except EmailNotValidError as e:
        raise InvalidRecipientError(f"Invalid recipient address '{email}': {e}") from e


def build_sender_address(env_config: EnvironmentConfig) -> str:
    """'Name <address>' using SMTP_USER, or a noreply address at the SMTP host."""
    sender_email = env_config.smtp_user or f"noreply@{env_config.smtp_host}"
    return f"{env_config.smtp_sender_name} <{sender_email}>"
