"""Field-level validation of the sign-up and sign-in forms."""

import re
from typing import Dict, Optional

from email_validator import EmailNotValidError, validate_email

_PASSWORD_COMPLEXITY = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)")

MIN_NAME_LENGTH = 2


def normalize_email(email: str) -> str:
    return email.strip().lower()


def _email_error(email: Optional[str]) -> Optional[str]:
    if not email or not email.strip():
        return "Invalid email address"
    try:
        validate_email(email.strip(), check_deliverability=False)
    except EmailNotValidError:
        return "Invalid email address"
    return None


def validate_sign_in(email: Optional[str], password: Optional[str], min_password_length: int = 6) -> Dict[str, str]:
    """Return a field -> message map; empty when the form is valid."""
    errors = {}

    email_error = _email_error(email)
    if email_error:
        errors["email"] = email_error

    if not password or len(password) < min_password_length:
        errors["password"] = f"Password must be at least {min_password_length} characters"

    return errors


def validate_sign_up(
    full_name: Optional[str],
    email: Optional[str],
    password: Optional[str],
    confirm_password: Optional[str],
    accept_terms: bool,
    min_password_length: int = 6,
) -> Dict[str, str]:
    """Return a field -> message map; empty when the form is valid.

    Passwords need a lowercase letter, an uppercase letter and a digit.
    """
    errors = {}

    if not full_name or len(full_name.strip()) < MIN_NAME_LENGTH:
        errors["full_name"] = f"Name must be at least {MIN_NAME_LENGTH} characters"

    email_error = _email_error(email)
    if email_error:
        errors["email"] = email_error

    if not password or len(password) < min_password_length:
        errors["password"] = f"Password must be at least {min_password_length} characters"
    elif not _PASSWORD_COMPLEXITY.match(password):
        errors["password"] = (
            "Password must contain at least one uppercase letter, one lowercase letter, and one number"
        )

    if password != confirm_password:
        errors["confirm_password"] = "Passwords don't match"

    if accept_terms is not True:
        errors["accept_terms"] = "You must accept the terms and conditions"

    return errors
