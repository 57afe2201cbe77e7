"""Utility functions for hashing, time handling, and text formatting."""

from .hashing import generate_token, hash_password, hash_string, hash_token, verify_password
from .text import format_currency, matches_search, normalize_search_term, truncate_text
from .timestamps import (
    add_months,
    ensure_utc,
    format_date_for_display,
    format_timestamp,
    parse_iso_datetime,
    timestamp_to_millis,
    utc_now,
    utc_today,
)

__all__ = [
    # Hashing
    "hash_string",
    "hash_token",
    "generate_token",
    "hash_password",
    "verify_password",
    # Timestamps
    "utc_now",
    "utc_today",
    "ensure_utc",
    "add_months",
    "parse_iso_datetime",
    "format_timestamp",
    "format_date_for_display",
    "timestamp_to_millis",
    # Text
    "normalize_search_term",
    "matches_search",
    "truncate_text",
    "format_currency",
]
