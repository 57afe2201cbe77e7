"""Environment variable loading and validation."""

import os
from typing import Optional

from email_validator import EmailNotValidError, validate_email

from .exceptions import ConfigurationError

DEFAULT_DATABASE_URL = "sqlite:///./data/skillbridge.db"


class EnvironmentConfig:
    """Secrets and deployment-specific settings read from the environment."""

    def __init__(
        self,
        database_url: Optional[str] = None,
        site_url: Optional[str] = None,
        cloudinary_cloud_name: Optional[str] = None,
        cloudinary_upload_preset: Optional[str] = None,
        paypal_recipient: Optional[str] = None,
        smtp_host: Optional[str] = None,
        smtp_port: Optional[int] = None,
        smtp_user: Optional[str] = None,
        smtp_pass: Optional[str] = None,
        smtp_sender_name: Optional[str] = None,
        log_level: Optional[str] = None,
        environment: Optional[str] = None,
    ):
        self.database_url = database_url or DEFAULT_DATABASE_URL
        self.site_url = site_url
        self.cloudinary_cloud_name = cloudinary_cloud_name
        self.cloudinary_upload_preset = cloudinary_upload_preset
        self.paypal_recipient = paypal_recipient
        self.smtp_host = smtp_host
        self.smtp_port = smtp_port
        self.smtp_user = smtp_user
        self.smtp_pass = smtp_pass
        self.smtp_sender_name = smtp_sender_name or "SkillBridge"
        self.log_level = log_level
        self.environment = environment or "local"

    @property
    def smtp_enabled(self) -> bool:
        return bool(self.smtp_host and self.smtp_port)

    @property
    def uploads_enabled(self) -> bool:
        return bool(
            self.cloudinary_cloud_name
            and self.cloudinary_cloud_name != "undefined"
            and self.cloudinary_upload_preset
        )


def load_environment_config() -> EnvironmentConfig:
    """
    Load and validate environment variables.

    All variables are optional; features whose settings are absent are
    disabled (uploads, email) or fail at use time (checkout).

    - DATABASE_URL: SQLAlchemy URL (default: sqlite:///./data/skillbridge.db)
    - SITE_URL: Public origin for email links (overrides config site_url)
    - CLOUDINARY_CLOUD_NAME / CLOUDINARY_UPLOAD_PRESET: media CDN uploads
    - PAYPAL_RECIPIENT: Email address receiving membership payments
    - SMTP_HOST / SMTP_PORT: Outgoing mail server (set both or neither)
    - SMTP_USER / SMTP_PASS: SMTP credentials (set both or neither)
    - SMTP_SENDER_NAME: Display name for outgoing email
    - LOG_LEVEL: Override log level
    - ENVIRONMENT: Environment label for logs (production, staging, local)

    Raises:
        ConfigurationError: If any provided value is invalid
    """
    errors = []

    smtp_host = os.getenv("SMTP_HOST")
    smtp_port_str = os.getenv("SMTP_PORT")
    smtp_user = os.getenv("SMTP_USER")
    smtp_pass = os.getenv("SMTP_PASS")
    paypal_recipient = os.getenv("PAYPAL_RECIPIENT")
    site_url = os.getenv("SITE_URL")
    log_level = os.getenv("LOG_LEVEL")

    smtp_port = None
    if smtp_port_str:
        try:
            smtp_port = int(smtp_port_str)
            if smtp_port < 1 or smtp_port > 65535:
                errors.append(f"Invalid SMTP_PORT: {smtp_port}. Must be between 1 and 65535.")
        except ValueError:
            errors.append(f"Invalid SMTP_PORT: '{smtp_port_str}'. Must be a valid integer.")

    if bool(smtp_host) != bool(smtp_port_str):
        errors.append("SMTP_HOST and SMTP_PORT must be set together.")

    if smtp_user and not smtp_pass:
        errors.append("SMTP_USER is set but SMTP_PASS is not. Both must be set for authentication.")
    elif smtp_pass and not smtp_user:
        errors.append("SMTP_PASS is set but SMTP_USER is not. Both must be set for authentication.")

    if paypal_recipient:
        try:
            paypal_recipient = validate_email(
                paypal_recipient.strip(), check_deliverability=False
            ).normalized
        except EmailNotValidError as e:
            errors.append(f"Invalid email address in PAYPAL_RECIPIENT: '{paypal_recipient}' - {e}")

    if site_url and not site_url.startswith(("http://", "https://")):
        errors.append(f"Invalid SITE_URL: '{site_url}'. Must start with http:// or https://")

    if log_level:
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if log_level.upper() not in valid_levels:
            errors.append(
                f"Invalid LOG_LEVEL: '{log_level}'. Must be one of: {', '.join(valid_levels)}"
            )
        log_level = log_level.upper()

    if errors:
        raise ConfigurationError(
            "Environment variable validation failed",
            errors=errors,
            suggestions=[
                "Copy .env.example to .env and fill in your settings",
                "Verify SMTP_PORT is a number between 1 and 65535",
                "Check that email addresses are valid",
            ],
        )

    return EnvironmentConfig(
        database_url=os.getenv("DATABASE_URL"),
        site_url=site_url.rstrip("/") if site_url else None,
        cloudinary_cloud_name=os.getenv("CLOUDINARY_CLOUD_NAME"),
        cloudinary_upload_preset=os.getenv("CLOUDINARY_UPLOAD_PRESET"),
        paypal_recipient=paypal_recipient,
        smtp_host=smtp_host,
        smtp_port=smtp_port,
        smtp_user=smtp_user,
        smtp_pass=smtp_pass,
        smtp_sender_name=os.getenv("SMTP_SENDER_NAME"),
        log_level=log_level,
        environment=os.getenv("ENVIRONMENT"),
    )
