"""Accounts, sessions and email verification."""

from .exceptions import (
    AuthError,
    CredentialValidationError,
    EmailAlreadyRegisteredError,
    EmailNotConfirmedError,
    InvalidCredentialsError,
    InvalidSessionError,
)
from .service import AuthContext, AuthService, CallbackResult, SignUpResult
from .validation import normalize_email, validate_sign_in, validate_sign_up

__all__ = [
    "AuthService",
    "AuthContext",
    "SignUpResult",
    "CallbackResult",
    # Exceptions
    "AuthError",
    "CredentialValidationError",
    "EmailAlreadyRegisteredError",
    "EmailNotConfirmedError",
    "InvalidCredentialsError",
    "InvalidSessionError",
    # Validation
    "normalize_email",
    "validate_sign_in",
    "validate_sign_up",
]
