"""Duration parsing for TTLs and scheduler intervals in the config file."""

import re

_ISO_PATTERN = re.compile(r"^P(?:(\d+)D)?(?:T(?:(\d+)H)?(?:(\d+)M)?(?:(\d+(?:\.\d+)?)S)?)?$")
_HUMAN_PATTERN = re.compile(r"(\d+)\s*([smhd])")
_UNIT_SECONDS = {"s": 1, "m": 60, "h": 3600, "d": 86400}


class DurationParseError(ValueError):
    """Raised when a duration string cannot be parsed."""


def parse_duration(duration_str: str) -> int:
    """
    Parse a duration string to seconds.

    Accepts human-readable values ("30s", "2m", "1h30m", "8h") and
    ISO-8601 durations ("PT2M", "PT8H", "P1D").

    Args:
        duration_str: Duration string to parse

    Returns:
        Duration in seconds

    Raises:
        DurationParseError: If the string is empty, malformed or zero

    Examples:
        >>> parse_duration("2m")
        120
        >>> parse_duration("PT8H")
        28800
    """
    if not isinstance(duration_str, str):
        raise DurationParseError(f"Duration must be a string, got: {duration_str!r}")

    duration_str = duration_str.strip()
    if not duration_str:
        raise DurationParseError("Duration string cannot be empty")

    if duration_str.upper().startswith("P"):
        total_seconds = _parse_iso8601(duration_str.upper())
    else:
        total_seconds = _parse_human_readable(duration_str.lower())

    if total_seconds == 0:
        raise DurationParseError(f"Duration cannot be zero: '{duration_str}'")

    return total_seconds


def _parse_iso8601(duration_str: str) -> int:
    match = _ISO_PATTERN.match(duration_str)
    if not match or duration_str in ("P", "PT"):
        raise DurationParseError(
            f"Invalid ISO-8601 duration format: '{duration_str}'. "
            "Expected format like 'P1D', 'PT8H', 'PT2M', or 'PT30S'"
        )

    days, hours, minutes, seconds = match.groups()
    return (
        int(days or 0) * _UNIT_SECONDS["d"]
        + int(hours or 0) * _UNIT_SECONDS["h"]
        + int(minutes or 0) * _UNIT_SECONDS["m"]
        + int(float(seconds or 0))
    )


def _parse_human_readable(duration_str: str) -> int:
    matches = _HUMAN_PATTERN.findall(duration_str)
    if not matches:
        raise DurationParseError(
            f"Invalid duration format: '{duration_str}'. "
            "Expected format like '30s', '2m', '1h', '1d', or combinations like '1h30m'"
        )

    # Reject leftovers such as "5x" or "1h-"
    parsed = "".join(f"{num}{unit}" for num, unit in matches)
    if parsed != re.sub(r"\s+", "", duration_str):
        raise DurationParseError(
            f"Invalid characters in duration: '{duration_str}'. "
            "Use only digits and units: s (seconds), m (minutes), h (hours), d (days)"
        )

    return sum(int(num) * _UNIT_SECONDS[unit] for num, unit in matches)


def validate_duration_range(
    duration_seconds: int,
    min_seconds: int,
    max_seconds: int,
    label: str = "Duration",
) -> None:
    """
    Check that a duration falls inside [min_seconds, max_seconds].

    Raises:
        DurationParseError: If the duration is outside the range
    """
    if duration_seconds < min_seconds:
        raise DurationParseError(
            f"{label} too short: {seconds_to_human_readable(duration_seconds)}. "
            f"Minimum is {seconds_to_human_readable(min_seconds)}."
        )

    if duration_seconds > max_seconds:
        raise DurationParseError(
            f"{label} too long: {seconds_to_human_readable(duration_seconds)}. "
            f"Maximum is {seconds_to_human_readable(max_seconds)}."
        )


def seconds_to_human_readable(seconds: int) -> str:
    """Render seconds as "30 seconds", "2 minutes", "8 hours" or "1 day"."""
    for unit_seconds, name in ((86400, "day"), (3600, "hour"), (60, "minute")):
        if seconds >= unit_seconds:
            count = seconds // unit_seconds
            return f"{count} {name}{'s' if count != 1 else ''}"
    return f"{seconds} second{'s' if seconds != 1 else ''}"
