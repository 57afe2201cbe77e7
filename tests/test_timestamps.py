"""Tests for timestamp and text utilities."""

from datetime import datetime, timedelta, timezone

from skillbridge.utils.text import format_currency, matches_search, normalize_search_term, truncate_text
from skillbridge.utils.timestamps import (
    add_months,
    ensure_utc,
    format_date_for_display,
    format_timestamp,
    parse_iso_datetime,
    timestamp_to_millis,
    utc_now,
)


class TestUtcHelpers:
    def test_utc_now_is_aware(self):
        assert utc_now().tzinfo == timezone.utc

    def test_ensure_utc(self):
        assert ensure_utc(None) is None
        assert ensure_utc(datetime(2026, 1, 1)).tzinfo == timezone.utc

        eastern = timezone(timedelta(hours=-5))
        converted = ensure_utc(datetime(2026, 1, 1, 7, 0, tzinfo=eastern))
        assert converted == datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)


class TestAddMonths:
    def test_simple(self):
        start = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)

        assert add_months(start, 1) == datetime(2026, 11, 18, 12, 0, tzinfo=timezone.utc)

    def test_rolls_over_year(self):
        start = datetime(2026, 12, 5, tzinfo=timezone.utc)

        assert add_months(start, 1) == datetime(2027, 1, 5, tzinfo=timezone.utc)
        assert add_months(start, 12) == datetime(2027, 12, 5, tzinfo=timezone.utc)

    def test_clamps_to_month_end(self):
        """Jan 31 plus a month lands on the last day of February."""
        assert add_months(datetime(2026, 1, 31, tzinfo=timezone.utc), 1).day == 28
        assert add_months(datetime(2028, 1, 31, tzinfo=timezone.utc), 1).day == 29


class TestParsingAndFormatting:
    def test_parse_z_suffix(self):
        assert parse_iso_datetime("2026-10-18T12:00:00Z") == datetime(
            2026, 10, 18, 12, 0, tzinfo=timezone.utc
        )

    def test_parse_bare_date(self):
        assert parse_iso_datetime("2026-10-18") == datetime(2026, 10, 18, tzinfo=timezone.utc)

    def test_parse_garbage(self):
        assert parse_iso_datetime("next tuesday") is None
        assert parse_iso_datetime("   ") is None
        assert parse_iso_datetime(None) is None

    def test_format_timestamp(self):
        dt = datetime(2026, 10, 18, 12, 0, 0, 123456, tzinfo=timezone.utc)

        assert format_timestamp(dt) == "2026-10-18T12:00:00Z"
        assert format_timestamp(dt, include_microseconds=True) == "2026-10-18T12:00:00.123456Z"
        assert format_timestamp(None) == ""

    def test_format_date_for_display(self):
        assert format_date_for_display(datetime(2026, 10, 8, tzinfo=timezone.utc)) == "Oct 8, 2026"

    def test_timestamp_to_millis(self):
        assert timestamp_to_millis(datetime(1970, 1, 1, 0, 0, 1, tzinfo=timezone.utc)) == 1000


class TestTextHelpers:
    def test_normalize_search_term(self):
        assert normalize_search_term("  Logo   DESIGN ") == "logo design"
        assert normalize_search_term(None) == ""

    def test_matches_search(self):
        assert matches_search("logo", ["Bakery LOGO design", None]) is True
        assert matches_search("video", ["Bakery logo design"]) is False
        assert matches_search("", ["anything"]) is True

    def test_truncate_text(self):
        text = "This is a very long text that needs truncating"

        assert truncate_text(text, max_length=30) == "This is a very long text..."
        assert truncate_text("short", max_length=30) == "short"

    def test_format_currency(self):
        assert format_currency(12.5) == "$12.50"
        assert format_currency(-15) == "-$15.00"
        assert format_currency(1234.5, "eur") == "1,234.50 EUR"
