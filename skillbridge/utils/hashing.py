"""Hashing utilities for passwords and opaque tokens.

Passwords are stored as PBKDF2-SHA256 hashes in the form
``pbkdf2_sha256$<iterations>$<salt>$<hash>``. Session and verification tokens
are random URL-safe strings; only their SHA256 digest is persisted so a leaked
database cannot be replayed against the API.
"""

import hashlib
import hmac
import secrets

PASSWORD_ALGORITHM = "pbkdf2_sha256"
PASSWORD_ITERATIONS = 260_000
TOKEN_BYTES = 32


def hash_string(value: str) -> str:
    """Compute SHA256 hash of a string value.

    Returns:
        Hexadecimal string representation of SHA256 hash (64 characters)
    """
    hash_obj = hashlib.sha256(value.encode("utf-8"))
    return hash_obj.hexdigest()


def generate_token(nbytes: int = TOKEN_BYTES) -> str:
    """Generate a random URL-safe token."""
    return secrets.token_urlsafe(nbytes)


def hash_token(token: str) -> str:
    """Digest of a token as stored in the database."""
    return hash_string(token)


def hash_password(password: str, iterations: int = PASSWORD_ITERATIONS) -> str:
    """Hash a password with a random salt.

    Example:
        >>> encoded = hash_password("Secret123")
        >>> encoded.startswith("pbkdf2_sha256$")
        True
    """
    salt = secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt.encode("utf-8"), iterations)
    return f"{PASSWORD_ALGORITHM}${iterations}${salt}${digest.hex()}"


def verify_password(password: str, encoded: str) -> bool:
    """Check a password against a value produced by hash_password().

    Malformed stored values never verify.
    """
    try:
        algorithm, iterations_str, salt, expected = encoded.split("$", 3)
        iterations = int(iterations_str)
    except (AttributeError, ValueError):
        return False

    if algorithm != PASSWORD_ALGORITHM:
        return False

    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt.encode("utf-8"), iterations)
    return hmac.compare_digest(digest.hex(), expected)
