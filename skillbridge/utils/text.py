"""Text helpers for search matching and display formatting."""

import re
from typing import Iterable, Optional


def normalize_search_term(term: Optional[str]) -> str:
    """Lowercase and collapse whitespace; blank input becomes ''.

    Example:
        >>> normalize_search_term("  Logo   DESIGN ")
        'logo design'
    """
    if not term:
        return ""
    return re.sub(r"\s+", " ", term.lower()).strip()


def matches_search(term: str, fields: Iterable[Optional[str]]) -> bool:
    """Case-insensitive substring match of ``term`` against any field.

    An empty term matches everything.
    """
    needle = normalize_search_term(term)
    if not needle:
        return True
    return any(needle in normalize_search_term(field) for field in fields if field)


def truncate_text(text: str, max_length: int = 500, suffix: str = "...") -> str:
    """Truncate text to maximum length, adding suffix if truncated.

    Breaks at a word boundary when one is close to the cut.

    Example:
        >>> truncate_text("This is a very long text that needs truncating", max_length=30)
        'This is a very long text...'
    """
    if not text or len(text) <= max_length:
        return text

    truncate_at = max_length - len(suffix)
    if truncate_at <= 0:
        return suffix[:max_length]

    truncated = text[:truncate_at]
    last_space = truncated.rfind(" ")
    if last_space > truncate_at * 0.8:
        truncated = truncated[:last_space]

    return truncated.rstrip() + suffix


def format_currency(amount: float, currency: str = "USD") -> str:
    """Format an amount for display; USD gets a dollar sign.

    Example:
        >>> format_currency(12.5)
        '$12.50'
    """
    if currency.upper() == "USD":
        sign = "-" if amount < 0 else ""
        return f"{sign}${abs(amount):,.2f}"
    return f"{amount:,.2f} {currency.upper()}"
