"""Authentication errors.

Each error carries the message shown to the end user.
"""

from typing import Dict, Optional

EMAIL_ALREADY_REGISTERED = "This email is already registered. Please sign in instead."
INVALID_CREDENTIALS = "Invalid email or password. Please try again."
EMAIL_NOT_CONFIRMED = (
    "Please verify your email address before logging in. "
    "Check your inbox for the verification email."
)
SESSION_EXPIRED = "Your session has expired. Please sign in again."
VERIFICATION_EXPIRED = "Verification link has expired. Please request a new one."
VERIFICATION_INVALID = "Invalid verification link."
RESEND_NEEDS_EMAIL = "No email found to resend verification"


class AuthError(Exception):
    """Base exception for authentication failures."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class CredentialValidationError(AuthError):
    """Form input failed validation; ``errors`` maps field name to message."""

    def __init__(self, errors: Dict[str, str], message: Optional[str] = None):
        super().__init__(message or "Please correct the highlighted fields.")
        self.errors = errors


class EmailAlreadyRegisteredError(AuthError):
    def __init__(self, message: str = EMAIL_ALREADY_REGISTERED):
        super().__init__(message)


class InvalidCredentialsError(AuthError):
    def __init__(self, message: str = INVALID_CREDENTIALS):
        super().__init__(message)


class EmailNotConfirmedError(AuthError):
    def __init__(self, message: str = EMAIL_NOT_CONFIRMED):
        super().__init__(message)


class InvalidSessionError(AuthError):
    """Access or refresh token is unknown, revoked or expired."""

    def __init__(self, message: str = SESSION_EXPIRED):
        super().__init__(message)
